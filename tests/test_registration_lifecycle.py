import pytest
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from esep.db.models import Registration, RegistrationStatus
from esep.schemas.registration_schemas import RegistrationListQueryParams
from esep.services.registration_service import RegistrationService
from esep.services.cash_ledger_service import CashLedgerService
from esep.utils.errors import (
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
    ConflictError,
)


def _registration_count(db_session: Session) -> int:
    return db_session.execute(select(func.count(Registration.id))).scalar_one()


class TestSubmission:
    """Test citizen submissions."""

    @pytest.mark.asyncio
    async def test_submit_with_empty_full_name_creates_nothing(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.submit(registration_draft(full_name="   "))

        assert exc_info.value.error_code == "REQUIRED_FIELDS_MISSING"
        assert "Full name" in exc_info.value.message
        assert _registration_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_submit_valid_registration_is_pending(
        self, db_session: Session, registration_draft, sample_category
    ):
        service = RegistrationService(db_session)

        registration = await service.submit(registration_draft())

        assert registration.status == RegistrationStatus.PENDING
        assert registration.customer_id.startswith("ESEP")
        assert registration.customer_id[6:10] == "2345"
        assert registration.expiry_date is None
        assert registration.approved_date is None
        assert registration.payment_verified is None
        assert registration.category_id == sample_category.id
        # Offer fee wins over the actual fee
        assert registration.fee == Decimal("300.00")
        assert registration.version == 1

    @pytest.mark.asyncio
    async def test_submit_falls_back_to_actual_fee(
        self, db_session: Session, registration_draft, make_category
    ):
        category = make_category(name_english="Farmelife", offer_fee=None)
        service = RegistrationService(db_session)

        registration = await service.submit(registration_draft(category_id=category.id))

        assert registration.fee == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_customer_ids_are_unique_for_the_same_mobile(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)

        first = await service.submit(registration_draft())
        second = await service.submit(registration_draft())

        assert first.customer_id != second.customer_id

    @pytest.mark.asyncio
    async def test_submit_normalizes_mobile_number(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)

        registration = await service.submit(
            registration_draft(mobile_number="+91 98470-12345")
        )

        assert registration.mobile_number == "+919847012345"

    @pytest.mark.asyncio
    async def test_submit_rejects_short_mobile_number(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.submit(registration_draft(mobile_number="12345"))

        assert exc_info.value.error_code == "INVALID_MOBILE_NUMBER"

    @pytest.mark.asyncio
    async def test_submit_rejects_unknown_category(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            await service.submit(registration_draft(category_id=str(uuid.uuid4())))

        assert exc_info.value.error_code == "CATEGORY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_submit_rejects_inactive_category(
        self, db_session: Session, registration_draft, make_category
    ):
        category = make_category(name_english="Closed", is_active=False)
        service = RegistrationService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.submit(registration_draft(category_id=category.id))

        assert exc_info.value.error_code == "CATEGORY_INACTIVE"


class TestTransitions:
    """Test approve, reject, restore and delete."""

    @pytest.mark.asyncio
    async def test_approve_sets_expiry_from_category_window(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)
        now = datetime(2025, 7, 1, 10, 30)

        registration = await service.approve(pending_registration.id, "eva", now=now)

        assert registration.status == RegistrationStatus.APPROVED
        assert registration.approved_date == now
        assert registration.approved_by == "eva"
        assert registration.expiry_date == now + timedelta(days=30)
        assert registration.version == 2

    @pytest.mark.asyncio
    async def test_approve_keeps_existing_expiry_date(
        self, db_session: Session, pending_registration
    ):
        existing_expiry = datetime(2025, 9, 1)
        pending_registration.expiry_date = existing_expiry
        db_session.commit()
        service = RegistrationService(db_session)

        registration = await service.approve(
            pending_registration.id, "eva", now=datetime(2025, 7, 1)
        )

        assert registration.expiry_date == existing_expiry

    @pytest.mark.asyncio
    async def test_approve_uses_default_window_without_category_expiry(
        self, db_session: Session, registration_draft, make_category
    ):
        category = make_category(name_english="Open Window")
        service = RegistrationService(db_session)
        registration = await service.submit(registration_draft(category_id=category.id))

        # Deactivating after submission must not block approval
        category.expiry_days = None
        category.is_active = False
        db_session.commit()

        now = datetime(2025, 7, 1)
        approved = await service.approve(registration.id, "eva", now=now)

        assert approved.expiry_date == now + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_approve_after_category_deactivated_uses_default_window(
        self, db_session: Session, registration_draft, make_category
    ):
        category = make_category(name_english="Short Window", expiry_days=10)
        service = RegistrationService(db_session)
        registration = await service.submit(registration_draft(category_id=category.id))

        category.is_active = False
        db_session.commit()

        now = datetime(2025, 7, 1)
        approved = await service.approve(registration.id, "eva", now=now)

        assert approved.expiry_date == now + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_approve_twice_is_an_invalid_transition(
        self, db_session: Session, approved_registration
    ):
        service = RegistrationService(db_session)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.approve(approved_registration.id, "eva")

        assert exc_info.value.error_code == "CANNOT_APPROVE_APPROVED"

    @pytest.mark.asyncio
    async def test_approve_missing_registration(self, db_session: Session):
        service = RegistrationService(db_session)

        with pytest.raises(NotFoundError):
            await service.approve(str(uuid.uuid4()), "eva")

    @pytest.mark.asyncio
    async def test_reject_does_not_set_expiry(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)
        now = datetime(2025, 7, 2)

        registration = await service.reject(pending_registration.id, "eva", now=now)

        assert registration.status == RegistrationStatus.REJECTED
        assert registration.approved_by == "eva"
        assert registration.approved_date == now
        assert registration.expiry_date is None

    @pytest.mark.asyncio
    async def test_reject_then_restore_keeps_fee_and_category(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)
        fee = pending_registration.fee
        category_id = pending_registration.category_id

        await service.reject(pending_registration.id, "eva")
        registration = await service.restore(pending_registration.id)

        assert registration.status == RegistrationStatus.PENDING
        assert registration.approved_date is None
        assert registration.approved_by is None
        assert registration.fee == fee
        assert registration.category_id == category_id

    @pytest.mark.asyncio
    async def test_restore_from_pending_is_an_invalid_transition(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.restore(pending_registration.id)

        assert exc_info.value.error_code == "CANNOT_RESTORE_PENDING"

    @pytest.mark.asyncio
    async def test_restore_keeps_expiry_and_clears_verification(
        self, db_session: Session, approved_registration
    ):
        ledger = CashLedgerService(db_session)
        service = RegistrationService(db_session)
        expiry_date = approved_registration.expiry_date
        await ledger.verify(approved_registration.id, "eva")

        registration = await service.restore(approved_registration.id)

        assert registration.status == RegistrationStatus.PENDING
        assert registration.expiry_date == expiry_date
        assert registration.payment_verified is None
        assert registration.verified_by is None
        assert registration.verified_at is None

    @pytest.mark.asyncio
    async def test_delete_removes_the_row(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)

        await service.delete(pending_registration.id)

        assert _registration_count(db_session) == 0
        with pytest.raises(NotFoundError):
            await service.get_registration(pending_registration.id)


class TestOptimisticVersioning:
    """Test version checks on status changes."""

    @pytest.mark.asyncio
    async def test_stale_version_is_rejected(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)
        read_version = pending_registration.version

        await service.reject(pending_registration.id, "anil", expected_version=read_version)

        with pytest.raises(ConflictError):
            await service.restore(pending_registration.id, expected_version=read_version)

    @pytest.mark.asyncio
    async def test_current_version_is_accepted(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)

        registration = await service.approve(
            pending_registration.id, "eva", expected_version=1
        )
        restored = await service.restore(registration.id, expected_version=2)

        assert restored.version == 3


class TestEndToEndScenario:
    """Submit, approve, verify and restore one registration."""

    @pytest.mark.asyncio
    async def test_full_lifecycle(
        self, db_session: Session, registration_draft, feed_account
    ):
        service = RegistrationService(db_session)
        ledger = CashLedgerService(db_session)

        with pytest.raises(ValidationError):
            await service.submit(registration_draft(full_name=""))
        assert _registration_count(db_session) == 0

        registration = await service.submit(registration_draft())
        assert registration.status == RegistrationStatus.PENDING
        assert registration.customer_id

        now = datetime(2025, 7, 1, 9, 0)
        registration = await service.approve(registration.id, "eva", now=now)
        assert registration.expiry_date == now + timedelta(days=30)

        balance_before = await ledger.balance(feed_account.id)
        registration = await ledger.verify(registration.id, "eva")
        assert registration.payment_verified is True
        assert await ledger.balance(feed_account.id) == balance_before + registration.fee

        registration = await service.restore(registration.id)
        assert registration.status == RegistrationStatus.PENDING
        assert registration.approved_date is None
        assert registration.payment_verified is None
        assert await ledger.balance(feed_account.id) == balance_before


class TestQueries:
    """Test listing, filtering and public lookup."""

    @pytest.mark.asyncio
    async def test_list_filters_by_status_and_search(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)
        first = await service.submit(registration_draft(full_name="Fathima K"))
        second = await service.submit(
            registration_draft(full_name="Suresh Babu", mobile_number="9995551234")
        )
        await service.approve(second.id, "eva")

        pending, total = await service.list_registrations(
            RegistrationListQueryParams(status="pending")
        )
        assert total == 1
        assert [r.id for r in pending] == [first.id]

        found, total = await service.list_registrations(
            RegistrationListQueryParams(search="suresh")
        )
        assert total == 1
        assert found[0].id == second.id

        by_mobile, _ = await service.list_registrations(
            RegistrationListQueryParams(search="5551234")
        )
        assert [r.id for r in by_mobile] == [second.id]

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)
        await service.submit(registration_draft(full_name="Fathima K"))
        literal = await service.submit(registration_draft(full_name="Ravi 100% Organic"))

        percent, _ = await service.list_registrations(
            RegistrationListQueryParams(search="%")
        )
        underscore, _ = await service.list_registrations(
            RegistrationListQueryParams(search="_")
        )

        assert [r.id for r in percent] == [literal.id]
        assert underscore == []

    @pytest.mark.asyncio
    async def test_zero_expiring_window_returns_nothing(
        self, db_session: Session, pending_registration
    ):
        now = datetime(2025, 7, 10, 9, 0)
        pending_registration.expiry_date = now + timedelta(days=3)
        db_session.commit()
        service = RegistrationService(db_session)

        assert await service.list_expiring_soon(now=now, window_days=0) == []
        assert await service.list_expiring_soon(now=now, window_days=3) == [
            pending_registration
        ]

    @pytest.mark.asyncio
    async def test_list_paginates_but_reports_full_total(
        self, db_session: Session, registration_draft
    ):
        service = RegistrationService(db_session)
        for index in range(3):
            await service.submit(registration_draft(full_name=f"Applicant {index}"))

        page, total = await service.list_registrations(
            RegistrationListQueryParams(page=2, per_page=2)
        )

        assert total == 3
        assert len(page) == 1

    @pytest.mark.asyncio
    async def test_lookup_by_customer_id_ignores_case(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)

        found = await service.lookup_status(
            customer_id=pending_registration.customer_id.lower()
        )

        assert [r.id for r in found] == [pending_registration.id]

    @pytest.mark.asyncio
    async def test_lookup_by_mobile_number(
        self, db_session: Session, pending_registration
    ):
        service = RegistrationService(db_session)

        found = await service.lookup_status(mobile_number="98470 12345")

        assert [r.id for r in found] == [pending_registration.id]

    @pytest.mark.asyncio
    async def test_lookup_requires_a_key(self, db_session: Session):
        service = RegistrationService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.lookup_status()

        assert exc_info.value.error_code == "LOOKUP_KEY_REQUIRED"

    @pytest.mark.asyncio
    async def test_lookup_unknown_customer_id(self, db_session: Session):
        service = RegistrationService(db_session)

        with pytest.raises(NotFoundError):
            await service.lookup_status(customer_id="ESEP000000XXXX")
