"""
Endpoints for the authenticated user's own data.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.common import ErrorResponse
from ..schemas.user import UserPointsResponse
from ..services.user_service import UserService
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/points", response_model=UserPointsResponse, responses={401: {"model": ErrorResponse}})
async def get_my_points(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's redeemable points balance."""
    return await UserService(db).get_points(current_user.id)
