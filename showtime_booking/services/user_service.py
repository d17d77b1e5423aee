"""
User service for identity lookups and the points balance.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User
from ..schemas.user import UserPointsResponse
from .points_service import PointsLedger


class UserService:
    """Service class for user operations."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the user service.

        Args:
            db: Database session
        """
        self.db = db

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        """
        Get a user by ID.

        Args:
            user_id: The user ID

        Returns:
            The user if found, None otherwise
        """
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_points(self, user_id: UUID) -> UserPointsResponse:
        """Current redeemable points balance of the user."""
        balance = await PointsLedger(self.db).get_balance(user_id)
        return UserPointsResponse(points=balance)
