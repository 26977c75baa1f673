from typing import List

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from esep.db.models import Utility
from esep.db.session import get_sync_session
from esep.schemas.content_schemas import UtilityRequest
from esep.services.base import BaseService
from esep.utils.errors import NotFoundError, ValidationError
from esep.utils.logging import get_logger

logger = get_logger()

PUBLIC_UTILITY_LIMIT = 6


class UtilityService(BaseService):
    """Useful external links listed on the public page"""

    async def get_utility(self, utility_id: str) -> Utility:
        utility = self.db.get(Utility, utility_id)
        if not utility:
            raise NotFoundError("Utility not found", "UTILITY_NOT_FOUND")
        return utility

    async def list_utilities(self) -> List[Utility]:
        result = self.db.execute(select(Utility).order_by(Utility.name.asc()))
        return list(result.scalars().all())

    async def list_public_utilities(
        self, limit: int = PUBLIC_UTILITY_LIMIT
    ) -> List[Utility]:
        result = self.db.execute(
            select(Utility)
            .where(Utility.is_active == True)
            .order_by(Utility.created_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_utility(self, data: UtilityRequest) -> Utility:
        utility = Utility(
            name=data.name.strip(),
            url=self._validate_url(data.url),
            description=data.description,
            is_active=data.is_active,
        )
        self.db.add(utility)
        self._commit("create utility")
        self.db.refresh(utility)

        logger.info(f"Created utility link: {utility.name}")
        return utility

    async def update_utility(self, utility_id: str, data: UtilityRequest) -> Utility:
        utility = await self.get_utility(utility_id)
        utility.name = data.name.strip()
        utility.url = self._validate_url(data.url)
        utility.description = data.description
        utility.is_active = data.is_active

        self._commit("update utility")
        self.db.refresh(utility)
        return utility

    async def delete_utility(self, utility_id: str) -> None:
        utility = await self.get_utility(utility_id)
        self.db.delete(utility)
        self._commit("delete utility")
        logger.info(f"Deleted utility link: {utility.name}")

    @staticmethod
    def _validate_url(url: str) -> str:
        url = url.strip()
        if not url.startswith(("http://", "https://")):
            raise ValidationError("URL must start with http:// or https://", "INVALID_URL")
        return url


def get_utility_service(
    db_session: Session = Depends(get_sync_session),
) -> UtilityService:
    """Dependency function to get UtilityService instance"""
    return UtilityService(db_session)
