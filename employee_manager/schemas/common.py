# employee_manager/schemas/common.py
from pydantic import BaseModel
from typing import Optional


class ApiResponse(BaseModel):
    """Envelope shared by every JSON response"""
    success: bool = True
    message: Optional[str] = None


class MessageResponse(ApiResponse):
    pass
