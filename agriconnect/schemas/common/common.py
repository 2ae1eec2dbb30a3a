# agriconnect/schemas/common/common.py
from pydantic import BaseModel
from typing import Optional


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    redirectTo: Optional[str] = None
