"""
Correction Request Model
========================
Pydantic model for everything a single correction run needs.

Fields:
    code                — generated code snippet to correct
    host                — host platform identifier (Excel, Word, PowerPoint, ...)
    is_custom_function  — True when generating an Excel custom function
    substeps            — ordered task breakdown the code is meant to implement
    complexity          — declared task complexity score in [0, 100]
    api_declarations    — API declaration snippets with descriptions
    code_sample         — example code the oracle may imitate
    context             — opaque detector context (forwarded untouched)
"""
from typing import Any, Dict, List
from pydantic import BaseModel


class ApiDeclaration(BaseModel):
    description: str
    code_sample: str


class CorrectionRequest(BaseModel):
    code: str
    host: str
    is_custom_function: bool = False
    substeps: List[str] = []
    complexity: float = 0.0
    api_declarations: List[ApiDeclaration] = []
    code_sample: str = ""
    context: Dict[str, Any] = {}
