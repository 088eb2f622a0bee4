"""
Common schemas used across the application.
"""
from typing import Any, Optional
from pydantic import BaseModel
from datetime import datetime


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    code: int = 200
    message: str = "API is healthy."


class ErrorResponse(BaseModel):
    """Body returned for every service error."""
    code: int
    message: str
    error_code: str
    data: Optional[dict[str, Any]] = None


class BaseResponse(BaseModel):
    """Base response with common fields."""
    id: str
    created: datetime
    updated: datetime

    class Config:
        from_attributes = True
