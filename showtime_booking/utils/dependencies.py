"""
FastAPI dependencies for authentication.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..services.user_service import UserService
from .auth import verify_token
from .exceptions import AuthenticationError


# Missing credentials are reported as 401 by get_current_user, not 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get the current authenticated user from the bearer token.

    Raises:
        AuthenticationError: If the token is missing, invalid or names no known user
    """
    if credentials is None:
        raise AuthenticationError("Unauthorized", suggestions=["Send an Authorization: Bearer token"])

    token_data = verify_token(credentials.credentials)
    if token_data is None or token_data.user_id is None:
        raise AuthenticationError("Could not validate credentials")

    try:
        user_id = UUID(token_data.user_id)
    except ValueError:
        raise AuthenticationError("Could not validate credentials")

    user = await UserService(db).get_user_by_id(user_id)
    if user is None:
        raise AuthenticationError("Could not validate credentials")

    return user
