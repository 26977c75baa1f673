import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy import select, func, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from esep.db.models import Panchayath, Registration, RegistrationStatus, UserPermission
from esep.schemas.category_schemas import UpdateCategoryRequest
from esep.schemas.panchayath_schemas import CreatePanchayathRequest
from esep.services.category_service import CategoryService
from esep.services.panchayath_service import PanchayathService
from esep.services.permission_service import PermissionService, VIEW_REPORTS
from esep.services.registration_service import RegistrationService
from esep.utils.errors import ConflictError, DuplicateError, StoreError


def _count(db_session: Session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


class TestStoreFailures:
    """Test that failed commits are rolled back and mapped to service errors."""

    @pytest.mark.asyncio
    async def test_database_failure_is_a_store_error(
        self, db_session: Session, sample_category
    ):
        service = CategoryService(db_session)
        request = UpdateCategoryRequest(
            name_english="Renamed",
            name_malayalam="പുതിയ",
            actual_fee=500,
            offer_fee=300,
            expiry_days=30,
        )
        locked = OperationalError("COMMIT", {}, Exception("database is locked"))

        with patch.object(db_session, "commit", side_effect=locked):
            with pytest.raises(StoreError):
                await service.update_category(sample_category.id, request)

        db_session.refresh(sample_category)
        assert sample_category.name_english == "Pennyekka"

    @pytest.mark.asyncio
    async def test_duplicate_panchayath_hits_the_unique_constraint(
        self, db_session: Session, sample_panchayath
    ):
        service = PanchayathService(db_session)

        with pytest.raises(DuplicateError) as exc_info:
            await service.create_panchayath(
                CreatePanchayathRequest(name="Kondotty", district="Malappuram")
            )

        assert exc_info.value.error_code == "PANCHAYATH_EXISTS"
        assert _count(db_session, Panchayath) == 1

    @pytest.mark.asyncio
    async def test_customer_id_clash_at_insert_writes_nothing(
        self, db_session: Session, pending_registration, registration_draft
    ):
        service = RegistrationService(db_session)
        clash = AsyncMock(return_value=pending_registration.customer_id)

        with patch.object(RegistrationService, "_generate_customer_id", clash):
            with pytest.raises(DuplicateError) as exc_info:
                await service.submit(registration_draft(full_name="Second Applicant"))

        assert exc_info.value.error_code == "CUSTOMER_ID_COLLISION"
        assert _count(db_session, Registration) == 1

    @pytest.mark.asyncio
    async def test_concurrent_grant_hits_the_unique_constraint(
        self, db_session: Session, staff_admin, permissions
    ):
        service = PermissionService(db_session)
        permission = permissions[VIEW_REPORTS]
        await service.grant(staff_admin.id, permission.id, "eva")

        # The pre-insert lookup misses a grant written by another request
        no_existing = MagicMock(**{"first.return_value": None})
        with patch.object(db_session, "execute", return_value=no_existing):
            with pytest.raises(DuplicateError) as exc_info:
                await service.grant(staff_admin.id, permission.id, "meera")

        assert exc_info.value.error_code == "PERMISSION_ALREADY_GRANTED"
        grants = db_session.execute(select(UserPermission)).scalars().all()
        assert [g.granted_by for g in grants] == ["eva"]

    @pytest.mark.asyncio
    async def test_row_changed_underneath_is_a_conflict(
        self, db_session: Session, pending_registration
    ):
        # Another writer bumps the version without this session noticing
        db_session.execute(
            update(Registration)
            .where(Registration.id == pending_registration.id)
            .values(version=Registration.version + 1)
            .execution_options(synchronize_session=False)
        )
        service = RegistrationService(db_session)

        with pytest.raises(ConflictError):
            await service.approve(pending_registration.id, "eva")

        db_session.refresh(pending_registration)
        assert pending_registration.status == RegistrationStatus.PENDING
        assert pending_registration.approved_by is None
        assert pending_registration.version == 1
