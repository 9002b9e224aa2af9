import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFound, RemoteFailure, Unauthenticated
from ..models.profile import Profile
from ..notifications import NotificationSink
from ..schemas.notice import NoticeKind
from ..schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    """Профиль пользователя (имя, телефон, адрес доставки)"""

    def __init__(self, db: AsyncSession, notifier: NotificationSink):
        self.db = db
        self.notifier = notifier

    async def _find(self, owner: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.user_id == owner))
        return result.scalar_one_or_none()

    async def get_profile(self, owner: Optional[str]) -> Profile:
        if owner is None:
            raise Unauthenticated("profile")

        profile = await self._find(owner)
        if profile is None:
            raise NotFound("Profile", owner)
        return profile

    async def update_profile(self, owner: Optional[str], data: ProfileUpdate) -> Profile:
        """Обновляет профиль; при первом сохранении профиль создается"""
        if owner is None:
            raise Unauthenticated("profile update")

        try:
            profile = await self._find(owner)
            if profile is None:
                profile = Profile(user_id=owner)
                self.db.add(profile)

            # Поля, не переданные в запросе, не трогаем
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(profile, field, value)

            await self.db.commit()
            await self.db.refresh(profile)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"❌ Error updating profile of {owner}: {e}")
            self.notifier.notify(NoticeKind.ERROR, "Failed to update profile")
            raise RemoteFailure("update profile", owner, e) from e

        logger.info(f"✅ Profile of {owner} updated")
        self.notifier.notify(NoticeKind.SUCCESS, "Profile updated successfully! 🎉")
        return profile
