"""
Common schemas for API error responses.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Schema for detailed error information."""

    error_code: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    suggestions: Optional[List[str]] = Field(None, description="Helpful suggestions for resolving the error")


class ErrorResponse(BaseModel):
    """Schema for API error responses."""

    error: ErrorDetail
    error_id: str
    timestamp: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": {
                        "error_code": "SEAT_CONFLICT",
                        "message": "Seats no longer available: E3B",
                        "details": {
                            "occupied_seat_codes": ["E3B"],
                            "conflicting_seat_ids": [83],
                            "conflicting_seat_codes": ["E3B"]
                        },
                        "suggestions": [
                            "Refresh the seat map",
                            "Select different seats"
                        ]
                    },
                    "error_id": "1f0e7c3a-2b1d-4d4e-9a43-0f8a6f1c2d11",
                    "timestamp": "2024-01-01T12:00:00Z"
                }
            ]
        }
    }
