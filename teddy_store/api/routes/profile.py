from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ...database import get_db
from ...exceptions import NotFound, RemoteFailure
from ...schemas.profile import ProfileResponse, ProfileUpdate
from ...services.profile_service import ProfileService
from ...storefront import StorefrontSession
from ..dependencies import get_storefront_session, require_owner

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
        owner: str = Depends(require_owner),
        storefront: StorefrontSession = Depends(get_storefront_session),
        db: AsyncSession = Depends(get_db)
):
    """Профиль текущего пользователя"""
    try:
        return await ProfileService(db, storefront.notifier).get_profile(owner)
    except NotFound:
        raise HTTPException(status_code=404, detail="Profile not found")


@router.put("", response_model=ProfileResponse)
async def update_profile(
        data: ProfileUpdate,
        owner: str = Depends(require_owner),
        storefront: StorefrontSession = Depends(get_storefront_session),
        db: AsyncSession = Depends(get_db)
):
    """Обновление профиля"""
    try:
        return await ProfileService(db, storefront.notifier).update_profile(owner, data)
    except RemoteFailure:
        raise HTTPException(status_code=503, detail="Failed to update profile")
