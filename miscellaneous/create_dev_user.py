#!/usr/bin/env python3
"""
Create (or top up) a local user and print a bearer token for it.

Identity normally comes from the external auth provider; this script is only
for exercising the API against a development database.
"""

import asyncio
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from showtime_booking.database import init_database, close_database, get_db_session
from showtime_booking.models.user import User
from showtime_booking.utils.auth import create_access_token


async def create_dev_user(email: str, points: int) -> None:
    """Upsert a user by email with the given balance and print a token."""
    print("🔄 Initializing database connection...")
    await init_database()

    try:
        async with get_db_session() as db:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()

            if user is None:
                user = User(email=email, points=points)
                db.add(user)
                print(f"✅ Created user {email}")
            else:
                user.points = points
                print(f"✅ Reset points for existing user {email}")

            await db.flush()
            user_id = user.id

        token = create_access_token({"sub": str(user_id), "email": email})
        print(f"   ID: {user_id}")
        print(f"   Points: {points}")
        print(f"\nAuthorization: Bearer {token}")
    finally:
        await close_database()


async def list_users() -> None:
    """List users and their balances."""
    await init_database()

    try:
        async with get_db_session() as db:
            result = await db.execute(select(User).order_by(User.email))
            users = result.scalars().all()

            if not users:
                print("No users found.")
            for user in users:
                print(f"📧 {user.email}  points={user.points}  id={user.id}")
    finally:
        await close_database()


def main():
    if len(sys.argv) > 1 and sys.argv[1] == "list":
        asyncio.run(list_users())
        return

    if len(sys.argv) < 2:
        print("Usage:")
        print("  python miscellaneous/create_dev_user.py <email> [points]")
        print("  python miscellaneous/create_dev_user.py list")
        sys.exit(1)

    email = sys.argv[1].strip()
    points = int(sys.argv[2]) if len(sys.argv) > 2 else 0
    asyncio.run(create_dev_user(email, points))


if __name__ == "__main__":
    main()
