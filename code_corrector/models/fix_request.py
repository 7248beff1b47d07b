"""
Fix Request Model
=================
Everything the fix oracle receives for one correction round.

Fields:
    code                — current candidate code
    host                — host platform identifier
    is_custom_function  — Excel custom-function generation mode
    substeps            — ordered task breakdown
    compile_errors      — baseline compile errors to fix
    runtime_errors      — baseline runtime errors to fix
    historical_errors   — normalised errors attempted in earlier rounds
    additional_info     — corrective hint from the previous round
    api_declarations    — reference API declarations
    code_sample         — reference example code
    model_id            — model id for token budgeting
"""
from typing import List
from pydantic import BaseModel

from .correction_request import ApiDeclaration


class FixRequest(BaseModel):
    code: str
    host: str
    is_custom_function: bool = False
    substeps: List[str] = []
    compile_errors: List[str] = []
    runtime_errors: List[str] = []
    historical_errors: List[str] = []
    additional_info: str = ""
    api_declarations: List[ApiDeclaration] = []
    code_sample: str = ""
    model_id: str = "gpt-3.5-turbo"
