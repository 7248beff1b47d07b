import logging
import time
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from code_corrector.api.correct import router as correct_router, shutdown_corrector
from code_corrector.core.config import LOG_TO_FILE
from code_corrector.utils.logging_config import setup_logging

setup_logging(to_file=LOG_TO_FILE)
logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await shutdown_corrector()


app = FastAPI(title="Code Issue Corrector API", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        logger.info("-> %s from %s", route, request.client.host if request.client else "unknown")
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("%s failed: %s", route, e)
            raise
        logger.info(
            "<- %s %d in %.2fms",
            route, response.status_code, (time.perf_counter() - started) * 1000,
        )
        return response


app.add_middleware(LoggingMiddleware)


@app.exception_handler(httpx.HTTPError)
async def detector_unavailable(request: Request, exc: httpx.HTTPError):
    logger.error("Issue detector call failed: %s", exc)
    return JSONResponse(status_code=502, content={"detail": "issue detector unavailable"})


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(correct_router, tags=["Corrector"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
