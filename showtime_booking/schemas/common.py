"""
Common schemas for API error responses.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Schema for API error responses."""

    error: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Error code for programmatic handling")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    suggestions: Optional[List[str]] = Field(None, description="Helpful suggestions for resolving the error")
    error_id: Optional[str] = Field(None, description="Correlation id for server logs")
    timestamp: Optional[str] = Field(None, description="When the error was produced")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": "Seat Row 0, Col 0 is already booked",
                    "error_code": "SEAT_ALREADY_BOOKED",
                    "details": {"show_id": 12, "row_number": 0, "col_number": 0},
                    "suggestions": ["Choose a different seat", "Refresh seat availability"]
                },
                {
                    "error": "Insufficient points. You have 50 points, but trying to use 300",
                    "error_code": "INSUFFICIENT_POINTS",
                    "details": {"requested": 300, "limit": "50"}
                }
            ]
        }
    }
