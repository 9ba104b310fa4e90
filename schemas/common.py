"""
Common Pydantic schemas shared by import and export.

This module contains the generic success/failure envelope returned to
callers that present results to users.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class OperationResult(BaseModel):
    """Standard success/failure envelope."""

    success: bool = Field(True, description="Operation success flag")
    message: str = Field(..., description="Result message, or the failure reason")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional data")

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "0b4f0a5e-7d7e-4b0e-9a55-5c1f7f0a1d2c_dept.xlsx",
                "data": {"filename": "0b4f0a5e-7d7e-4b0e-9a55-5c1f7f0a1d2c_dept.xlsx"}
            }
        }

    @classmethod
    def ok(cls, message: str, data: Optional[Dict[str, Any]] = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def error(cls, message: str) -> "OperationResult":
        return cls(success=False, message=message)
