from typing import Optional, List

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from esep.db.models import Panchayath
from esep.db.session import get_sync_session
from esep.schemas.panchayath_schemas import (
    CreatePanchayathRequest,
    UpdatePanchayathRequest,
    PanchayathListQueryParams,
)
from esep.services.base import BaseService
from esep.utils.errors import NotFoundError
from esep.utils.logging import get_logger

logger = get_logger()


class PanchayathService(BaseService):
    """Reference data for local administrative units"""

    async def get_panchayath_by_id(self, panchayath_id: str) -> Optional[Panchayath]:
        result = self.db.execute(
            select(Panchayath).where(Panchayath.id == panchayath_id)
        )
        return result.scalar_one_or_none()

    async def get_panchayath(self, panchayath_id: str) -> Panchayath:
        panchayath = await self.get_panchayath_by_id(panchayath_id)
        if not panchayath:
            raise NotFoundError(
                f"Panchayath {panchayath_id} not found", "PANCHAYATH_NOT_FOUND"
            )
        return panchayath

    async def create_panchayath(self, data: CreatePanchayathRequest) -> Panchayath:
        panchayath = Panchayath(
            name=data.name.strip(),
            district=data.district.strip(),
            is_active=data.is_active,
        )
        self.db.add(panchayath)
        self._commit("create panchayath", duplicate_code="PANCHAYATH_EXISTS")
        self.db.refresh(panchayath)

        logger.info(f"Created panchayath {panchayath.name} ({panchayath.district})")
        return panchayath

    async def update_panchayath(
        self, panchayath_id: str, data: UpdatePanchayathRequest
    ) -> Panchayath:
        panchayath = await self.get_panchayath(panchayath_id)
        panchayath.name = data.name.strip()
        panchayath.district = data.district.strip()

        self._commit("update panchayath", duplicate_code="PANCHAYATH_EXISTS")
        self.db.refresh(panchayath)
        return panchayath

    async def set_active(self, panchayath_id: str, is_active: bool) -> Panchayath:
        panchayath = await self.get_panchayath(panchayath_id)
        panchayath.is_active = is_active

        self._commit("change panchayath status")
        return panchayath

    async def list_panchayaths(
        self, query_params: PanchayathListQueryParams
    ) -> List[Panchayath]:
        query = select(Panchayath)
        if query_params.is_active is not None:
            query = query.where(Panchayath.is_active == query_params.is_active)
        if query_params.district:
            query = query.where(Panchayath.district == query_params.district)

        result = self.db.execute(
            query.order_by(Panchayath.district.asc(), Panchayath.name.asc())
        )
        return list(result.scalars().all())

    async def list_active_panchayaths(self) -> List[Panchayath]:
        return await self.list_panchayaths(PanchayathListQueryParams(is_active=True))


def get_panchayath_service(
    db_session: Session = Depends(get_sync_session),
) -> PanchayathService:
    """Dependency function to get PanchayathService instance"""
    return PanchayathService(db_session)
