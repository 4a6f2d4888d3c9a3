"""
Common schema types shared by results and errors.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """A single field-attributed error."""
    
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error payload handed to the transport layer."""
    
    status: int
    kind: str
    message: str
    errors: List[FieldError] = Field(default_factory=list)
    timestamp: datetime
