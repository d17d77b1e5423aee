"""
Plain helpers shared by the test modules.
"""

import uuid

from sqlalchemy import func, select

from showtime_booking.models import User
from showtime_booking.utils.auth import create_access_token


async def add_user(session_factory, points: int = 0, email: str | None = None) -> uuid.UUID:
    """Insert a user and return its id."""
    user_id = uuid.uuid4()
    async with session_factory() as db_session:
        db_session.add(User(id=user_id, email=email or f"{user_id.hex[:8]}@example.com", points=points))
        await db_session.commit()
    return user_id


async def get_points(session_factory, user_id: uuid.UUID) -> int:
    async with session_factory() as db_session:
        return await db_session.scalar(select(User.points).where(User.id == user_id))


async def count_rows(session_factory, model) -> int:
    async with session_factory() as db_session:
        return await db_session.scalar(select(func.count()).select_from(model))


def auth_headers(user_id: uuid.UUID) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}
