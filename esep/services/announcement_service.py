from typing import List

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from esep.db.models import Announcement
from esep.db.session import get_sync_session
from esep.schemas.content_schemas import AnnouncementRequest
from esep.services.base import BaseService
from esep.utils.errors import NotFoundError
from esep.utils.logging import get_logger

logger = get_logger()

PUBLIC_ANNOUNCEMENT_LIMIT = 3


class AnnouncementService(BaseService):
    """Notice board shown on the public landing page"""

    async def get_announcement(self, announcement_id: str) -> Announcement:
        announcement = self.db.get(Announcement, announcement_id)
        if not announcement:
            raise NotFoundError("Announcement not found", "ANNOUNCEMENT_NOT_FOUND")
        return announcement

    async def list_announcements(self) -> List[Announcement]:
        result = self.db.execute(
            select(Announcement).order_by(Announcement.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_public_announcements(
        self, limit: int = PUBLIC_ANNOUNCEMENT_LIMIT
    ) -> List[Announcement]:
        """Newest active announcements"""
        result = self.db.execute(
            select(Announcement)
            .where(Announcement.is_active == True)
            .order_by(Announcement.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_announcement(self, data: AnnouncementRequest) -> Announcement:
        announcement = Announcement(
            title=data.title.strip(), content=data.content, is_active=data.is_active
        )
        self.db.add(announcement)
        self._commit("create announcement")
        self.db.refresh(announcement)

        logger.info(f"Created announcement: {announcement.title}")
        return announcement

    async def update_announcement(
        self, announcement_id: str, data: AnnouncementRequest
    ) -> Announcement:
        announcement = await self.get_announcement(announcement_id)
        announcement.title = data.title.strip()
        announcement.content = data.content
        announcement.is_active = data.is_active

        self._commit("update announcement")
        self.db.refresh(announcement)
        return announcement

    async def delete_announcement(self, announcement_id: str) -> None:
        announcement = await self.get_announcement(announcement_id)
        self.db.delete(announcement)
        self._commit("delete announcement")
        logger.info(f"Deleted announcement: {announcement.title}")


def get_announcement_service(
    db_session: Session = Depends(get_sync_session),
) -> AnnouncementService:
    """Dependency function to get AnnouncementService instance"""
    return AnnouncementService(db_session)
