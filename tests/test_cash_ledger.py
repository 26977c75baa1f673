import pytest
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from esep.db.models import (
    CashAccount,
    CashTransaction,
    CashTransactionType,
    Registration,
    RegistrationStatus,
)
from esep.services.cash_ledger_service import CashLedgerService
from esep.utils.errors import (
    ValidationError,
    InvalidTransitionError,
    NotFoundError,
)


@pytest.fixture
def make_registration(db_session: Session, sample_category):
    """Insert registrations directly in a given state."""
    counter = {"value": 0}

    def _make_registration(
        fee, status=RegistrationStatus.APPROVED, payment_verified=None
    ) -> Registration:
        counter["value"] += 1
        registration = Registration(
            customer_id=f"ESEP25{counter['value']:04d}TEST",
            full_name=f"Applicant {counter['value']}",
            mobile_number=f"98470{counter['value']:05d}",
            address="Kondotty",
            ward="3",
            category_id=sample_category.id,
            fee=Decimal(str(fee)),
            status=status,
            approved_date=(
                datetime(2025, 7, 1) if status != RegistrationStatus.PENDING else None
            ),
            payment_verified=payment_verified,
            verified_by="eva" if payment_verified else None,
            verified_at=datetime(2025, 7, 2) if payment_verified else None,
        )
        db_session.add(registration)
        db_session.commit()
        return registration

    return _make_registration


class TestDerivedBalance:
    """Test the registration feed part of the balance."""

    @pytest.mark.asyncio
    async def test_balance_sums_only_verified_fees(
        self, db_session: Session, feed_account, make_registration
    ):
        for fee in (100, 250, 0):
            make_registration(fee, payment_verified=True)
        for _ in range(2):
            make_registration(500)

        ledger = CashLedgerService(db_session)

        assert await ledger.balance(feed_account.id) == Decimal("350.00")
        assert await ledger.verified_fees_total() == Decimal("350.00")

    @pytest.mark.asyncio
    async def test_non_feed_account_ignores_registration_fees(
        self, db_session: Session, feed_account, bank_account, make_registration
    ):
        make_registration(100, payment_verified=True)
        ledger = CashLedgerService(db_session)

        assert await ledger.balance(bank_account.id) == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_feed_entries_include_synthetic_fee_rows(
        self, db_session: Session, feed_account, make_registration
    ):
        verified = make_registration(250, payment_verified=True)
        make_registration(0, payment_verified=True)
        ledger = CashLedgerService(db_session)

        entries = await ledger.list_entries(feed_account.id)

        assert len(entries) == 1
        assert entries[0].synthetic is True
        assert entries[0].transaction_type == "registration_fee"
        assert entries[0].reference_id == verified.customer_id
        assert entries[0].signed_amount == Decimal("250.00")


class TestVerification:
    """Test payment verification on registrations."""

    @pytest.mark.asyncio
    async def test_verify_requires_approval(
        self, db_session: Session, pending_registration
    ):
        ledger = CashLedgerService(db_session)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await ledger.verify(pending_registration.id, "eva")

        assert exc_info.value.error_code == "VERIFY_REQUIRES_APPROVAL"
        assert pending_registration.payment_verified is None

    @pytest.mark.asyncio
    async def test_verify_then_unverify_moves_the_balance(
        self, db_session: Session, feed_account, approved_registration
    ):
        ledger = CashLedgerService(db_session)
        verified_at = datetime(2025, 7, 5, 14, 0)

        registration = await ledger.verify(
            approved_registration.id, "eva", now=verified_at
        )
        assert registration.payment_verified is True
        assert registration.verified_by == "eva"
        assert registration.verified_at == verified_at
        assert await ledger.balance(feed_account.id) == registration.fee

        registration = await ledger.unverify(approved_registration.id)
        assert registration.payment_verified is None
        assert registration.verified_by is None
        assert registration.verified_at is None
        assert await ledger.balance(feed_account.id) == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_unverify_unverified_is_a_no_op(
        self, db_session: Session, approved_registration
    ):
        ledger = CashLedgerService(db_session)
        version = approved_registration.version

        registration = await ledger.unverify(approved_registration.id)

        assert registration.payment_verified is None
        assert registration.version == version


class TestManualEntries:
    """Test cash in, cash out, expenses and transfers."""

    @pytest.mark.asyncio
    async def test_balance_is_signed_sum_of_events(
        self, db_session: Session, bank_account
    ):
        ledger = CashLedgerService(db_session)

        await ledger.cash_in(bank_account.id, "1000", "eva", "Opening float")
        await ledger.cash_out(bank_account.id, Decimal("200"), "eva")
        await ledger.expense(bank_account.id, 150.5, "eva", "Stationery")

        assert await ledger.balance(bank_account.id) == Decimal("649.50")

    @pytest.mark.asyncio
    async def test_cash_out_beyond_balance_is_rejected(
        self, db_session: Session, bank_account
    ):
        ledger = CashLedgerService(db_session)
        await ledger.cash_in(bank_account.id, 100, "eva")

        with pytest.raises(ValidationError) as exc_info:
            await ledger.cash_out(bank_account.id, 100.01, "eva")

        assert exc_info.value.error_code == "INSUFFICIENT_BALANCE"
        assert await ledger.balance(bank_account.id) == Decimal("100.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, "abc"])
    async def test_invalid_amounts_are_rejected(
        self, db_session: Session, bank_account, amount
    ):
        ledger = CashLedgerService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await ledger.cash_in(bank_account.id, amount, "eva")

        assert exc_info.value.error_code == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_inactive_account_refuses_entries(
        self, db_session: Session, bank_account
    ):
        bank_account.is_active = False
        db_session.commit()
        ledger = CashLedgerService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await ledger.cash_in(bank_account.id, 10, "eva")

        assert exc_info.value.error_code == "ACCOUNT_INACTIVE"

    @pytest.mark.asyncio
    async def test_transfer_writes_both_legs(
        self, db_session: Session, feed_account, bank_account, make_registration
    ):
        make_registration(300, payment_verified=True)
        ledger = CashLedgerService(db_session)

        outgoing, incoming = await ledger.transfer(
            feed_account.id, bank_account.id, 120, "eva"
        )

        assert outgoing.transaction_type == CashTransactionType.TRANSFER_OUT
        assert incoming.transaction_type == CashTransactionType.TRANSFER_IN
        assert outgoing.reference_id == incoming.reference_id
        assert await ledger.balance(feed_account.id) == Decimal("180.00")
        assert await ledger.balance(bank_account.id) == Decimal("120.00")

    @pytest.mark.asyncio
    async def test_transfer_to_same_account_is_rejected(
        self, db_session: Session, bank_account
    ):
        ledger = CashLedgerService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await ledger.transfer(bank_account.id, bank_account.id, 10, "eva")

        assert exc_info.value.error_code == "SAME_ACCOUNT_TRANSFER"

    @pytest.mark.asyncio
    async def test_failed_transfer_writes_nothing(
        self, db_session: Session, feed_account, bank_account
    ):
        ledger = CashLedgerService(db_session)

        with pytest.raises(ValidationError):
            await ledger.transfer(bank_account.id, feed_account.id, 50, "eva")

        rows = db_session.execute(select(CashTransaction)).scalars().all()
        assert rows == []


class TestAccounts:
    """Test account creation rules."""

    @pytest.mark.asyncio
    async def test_only_one_registration_feed_account(
        self, db_session: Session, feed_account
    ):
        ledger = CashLedgerService(db_session)

        with pytest.raises(ValidationError) as exc_info:
            await ledger.create_account("Second Feed", is_registration_feed=True)

        assert exc_info.value.error_code == "FEED_ACCOUNT_EXISTS"

    @pytest.mark.asyncio
    async def test_create_account_starts_at_zero(self, db_session: Session):
        ledger = CashLedgerService(db_session)

        account = await ledger.create_account("  Petty Cash ")

        assert isinstance(account, CashAccount)
        assert account.name == "Petty Cash"
        response = await ledger.to_account_response(account)
        assert response.balance == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_unknown_account(self, db_session: Session):
        ledger = CashLedgerService(db_session)

        with pytest.raises(NotFoundError):
            await ledger.balance("00000000-0000-0000-0000-000000000000")
