"""
Pydantic schemas for user-facing loyalty data.
"""

from pydantic import BaseModel, Field


class UserPointsResponse(BaseModel):
    """Current redeemable points balance."""

    points: int = Field(..., ge=0, description="Redeemable loyalty points")
