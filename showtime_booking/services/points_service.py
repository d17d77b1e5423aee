"""
Points ledger for the loyalty balance of each user.
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..models import User
from ..utils.exceptions import (
    InsufficientPointsError,
    OptimisticLockError,
    UserNotFoundError,
    ValidationError,
)
from ..utils.logging_config import log_business_event
from ..utils.retry import RetryConfig, retry_async

logger = logging.getLogger(__name__)


def clamp_balance(value: int, ceiling: int) -> int:
    """Clamp a computed balance into [0, ceiling]."""
    return max(0, min(value, ceiling))


class PointsLedger:
    """Atomic read-modify-write of a user's points balance.

    Every write is a compare-and-swap on the balance that was read, so two
    bookings by the same user cannot overwrite each other's delta.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()

    async def get_balance(self, user_id: UUID) -> int:
        """
        Read the current balance straight from the database.

        Raises:
            UserNotFoundError: If the user row does not exist
        """
        result = await self.session.execute(
            select(User.points).where(User.id == user_id)
        )
        points = result.scalar_one_or_none()
        if points is None:
            raise UserNotFoundError(user_id)
        return points

    async def apply_delta(self, user_id: UUID, redeem: int, award: int) -> int:
        """
        Debit redeemed points and credit awarded points in one write.

        Args:
            user_id: Owner of the balance
            redeem: Points to debit, must not exceed the current balance
            award: Points to credit

        Returns:
            The new balance

        Raises:
            InsufficientPointsError: If the balance no longer covers ``redeem``
            OptimisticLockError: If every compare-and-swap attempt lost a race
        """
        config = RetryConfig(max_attempts=max(1, self.settings.points_update_max_attempts))
        return await retry_async(
            self._compare_and_swap,
            config,
            user_id,
            redeem,
            award,
            retryable_exceptions=(OptimisticLockError,),
            non_retryable_exceptions=(ValidationError, UserNotFoundError),
        )

    async def _compare_and_swap(self, user_id: UUID, redeem: int, award: int) -> int:
        current = await self.get_balance(user_id)

        if redeem > current:
            raise InsufficientPointsError(
                f"Insufficient points. You have {current} points, but trying to use {redeem}",
                requested=redeem,
                limit=current,
            )

        new_balance = clamp_balance(current - redeem + award, self.settings.points_balance_ceiling)

        try:
            result = await self.session.execute(
                update(User)
                .where(User.id == user_id, User.points == current)
                .values(points=new_balance)
                .execution_options(synchronize_session=False)
            )
            swapped = result.rowcount == 1
            if swapped:
                await self.session.commit()
            else:
                await self.session.rollback()
        except Exception:
            await self.session.rollback()
            raise

        if not swapped:
            logger.debug(f"Points balance of user {user_id} changed since read ({current}), retrying")
            raise OptimisticLockError("User points", str(user_id))

        log_business_event(
            "points_updated",
            {"previous_balance": current, "new_balance": new_balance, "redeemed": redeem, "awarded": award},
            user_id=str(user_id),
        )
        return new_balance
