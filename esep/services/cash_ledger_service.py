from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple
from datetime import datetime
import uuid

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select, func, case

from esep.db.models import (
    CashAccount,
    CashTransaction,
    CashTransactionType,
    Registration,
    RegistrationStatus,
)
from esep.db.session import get_sync_session
from esep.schemas.ledger_schemas import CashAccountResponse, LedgerEntryResponse
from esep.services.base import BaseService
from esep.services.registration_service import RegistrationService
from esep.utils.datetime_utils import naive_utc_now
from esep.utils.errors import InvalidTransitionError, NotFoundError, ValidationError
from esep.utils.logging import get_logger

logger = get_logger()

CREDIT_TYPES = (CashTransactionType.CASH_IN, CashTransactionType.TRANSFER_IN)
DEBIT_TYPES = (
    CashTransactionType.CASH_OUT,
    CashTransactionType.TRANSFER_OUT,
    CashTransactionType.EXPENSE,
)
REGISTRATION_FEE_TYPE = "registration_fee"
CENT = Decimal("0.01")


def _to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


class CashLedgerService(BaseService):
    """Event-sourced cash ledger.

    Stored transactions are append-only. The registration-feed account also
    folds in one synthetic credit per verified registration fee, computed at
    read time. Payment verification lives here because it drives that feed.
    """

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.registrations = RegistrationService(db_session)

    # Accounts
    async def get_account(self, account_id: str) -> CashAccount:
        account = self.db.get(CashAccount, account_id)
        if not account:
            raise NotFoundError(f"Cash account {account_id} not found", "ACCOUNT_NOT_FOUND")
        return account

    async def list_accounts(self) -> List[CashAccount]:
        result = self.db.execute(select(CashAccount).order_by(CashAccount.name.asc()))
        return list(result.scalars().all())

    async def create_account(
        self, name: str, is_registration_feed: bool = False
    ) -> CashAccount:
        if is_registration_feed and await self.get_registration_feed_account():
            raise ValidationError(
                "A registration feed account already exists", "FEED_ACCOUNT_EXISTS"
            )

        account = CashAccount(
            name=name.strip(), is_active=True, is_registration_feed=is_registration_feed
        )
        self.db.add(account)
        self._commit("create cash account", duplicate_code="ACCOUNT_NAME_TAKEN")
        self.db.refresh(account)

        logger.info(f"Created cash account {account.name}")
        return account

    async def get_registration_feed_account(self) -> Optional[CashAccount]:
        result = self.db.execute(
            select(CashAccount).where(CashAccount.is_registration_feed == True)
        )
        return result.scalars().first()

    # Balances
    async def verified_fees_total(self) -> Decimal:
        """Sum of fees over registrations whose payment is verified"""
        total = self.db.execute(
            select(func.coalesce(func.sum(Registration.fee), 0)).where(
                Registration.payment_verified == True
            )
        ).scalar_one()
        return _to_money(total)

    async def balance(self, account_id: str) -> Decimal:
        """Signed fold over the account's events"""
        account = await self.get_account(account_id)

        signed_amount = case(
            (CashTransaction.transaction_type.in_(CREDIT_TYPES), CashTransaction.amount),
            else_=-CashTransaction.amount,
        )
        manual_total = self.db.execute(
            select(func.coalesce(func.sum(signed_amount), 0)).where(
                CashTransaction.account_id == account.id
            )
        ).scalar_one()

        balance = _to_money(manual_total)
        if account.is_registration_feed:
            balance += await self.verified_fees_total()
        return balance

    async def to_account_response(self, account: CashAccount) -> CashAccountResponse:
        return CashAccountResponse(
            id=account.id,
            name=account.name,
            is_active=account.is_active,
            is_registration_feed=account.is_registration_feed,
            balance=await self.balance(account.id),
            created_at=account.created_at,
        )

    # Manual entries
    async def cash_in(
        self, account_id: str, amount, actor: str, description: Optional[str] = None
    ) -> CashTransaction:
        return await self._record_single(
            account_id, CashTransactionType.CASH_IN, amount, actor, description
        )

    async def cash_out(
        self, account_id: str, amount, actor: str, description: Optional[str] = None
    ) -> CashTransaction:
        return await self._record_single(
            account_id, CashTransactionType.CASH_OUT, amount, actor, description
        )

    async def expense(
        self, account_id: str, amount, actor: str, description: Optional[str] = None
    ) -> CashTransaction:
        return await self._record_single(
            account_id, CashTransactionType.EXPENSE, amount, actor, description
        )

    async def transfer(
        self,
        source_account_id: str,
        destination_account_id: str,
        amount,
        actor: str,
        description: Optional[str] = None,
    ) -> Tuple[CashTransaction, CashTransaction]:
        """Both legs are written in a single commit"""
        if source_account_id == destination_account_id:
            raise ValidationError(
                "Source and destination accounts must differ", "SAME_ACCOUNT_TRANSFER"
            )

        amount = self._validate_amount(amount)
        source = await self._get_active_account(source_account_id)
        destination = await self._get_active_account(destination_account_id)
        await self._ensure_funds(source, amount)

        reference_id = str(uuid.uuid4())
        now = naive_utc_now()
        outgoing = CashTransaction(
            account_id=source.id,
            transaction_type=CashTransactionType.TRANSFER_OUT,
            amount=amount,
            description=description or f"Transfer to {destination.name}",
            reference_id=reference_id,
            created_by=actor,
            created_at=now,
        )
        incoming = CashTransaction(
            account_id=destination.id,
            transaction_type=CashTransactionType.TRANSFER_IN,
            amount=amount,
            description=description or f"Transfer from {source.name}",
            reference_id=reference_id,
            created_by=actor,
            created_at=now,
        )
        self.db.add_all([outgoing, incoming])
        self._commit("transfer cash")

        logger.info(
            f"{actor} transferred {amount} from {source.name} to {destination.name}"
        )
        return outgoing, incoming

    async def list_entries(self, account_id: str) -> List[LedgerEntryResponse]:
        """Account history, newest first, including verified registration fees"""
        account = await self.get_account(account_id)

        entries = []
        transactions = self.db.execute(
            select(CashTransaction).where(CashTransaction.account_id == account.id)
        ).scalars()
        for transaction in transactions:
            sign = 1 if transaction.transaction_type in CREDIT_TYPES else -1
            entries.append(
                LedgerEntryResponse(
                    id=transaction.id,
                    account_id=account.id,
                    transaction_type=transaction.transaction_type.value,
                    amount=transaction.amount,
                    signed_amount=sign * transaction.amount,
                    description=transaction.description,
                    reference_id=transaction.reference_id,
                    created_by=transaction.created_by,
                    created_at=transaction.created_at,
                )
            )

        if account.is_registration_feed:
            verified = self.db.execute(
                select(Registration).where(
                    Registration.payment_verified == True, Registration.fee > 0
                )
            ).scalars()
            for registration in verified:
                entries.append(
                    LedgerEntryResponse(
                        id=registration.id,
                        account_id=account.id,
                        transaction_type=REGISTRATION_FEE_TYPE,
                        amount=registration.fee,
                        signed_amount=registration.fee,
                        description=f"Registration fee {registration.customer_id}",
                        reference_id=registration.customer_id,
                        created_by=registration.verified_by,
                        created_at=registration.verified_at,
                        synthetic=True,
                    )
                )

        entries.sort(key=lambda entry: entry.created_at or datetime.min, reverse=True)
        return entries

    # Payment verification
    async def verify(
        self,
        registration_id: str,
        verifier: str,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Registration:
        """Confirm fee receipt on an approved registration"""
        registration = await self.registrations.get_for_update(
            registration_id, expected_version
        )
        if registration.status != RegistrationStatus.APPROVED:
            raise InvalidTransitionError(
                "Only approved registrations can be payment-verified",
                "VERIFY_REQUIRES_APPROVAL",
            )

        registration.payment_verified = True
        registration.verified_by = verifier
        registration.verified_at = now or naive_utc_now()

        self._commit("verify payment")
        logger.info(f"Payment for {registration.customer_id} verified by {verifier}")
        return registration

    async def unverify(
        self, registration_id: str, expected_version: Optional[int] = None
    ) -> Registration:
        """Clear verification. Unverifying an unverified registration is a no-op."""
        registration = await self.registrations.get_for_update(
            registration_id, expected_version
        )
        if not registration.payment_verified:
            logger.info(f"Payment for {registration.customer_id} is not verified")
            return registration

        registration.payment_verified = None
        registration.verified_by = None
        registration.verified_at = None

        self._commit("unverify payment")
        logger.info(f"Payment verification cleared for {registration.customer_id}")
        return registration

    # Helper Methods
    @staticmethod
    def _validate_amount(amount) -> Decimal:
        try:
            value = _to_money(amount)
        except ArithmeticError:
            raise ValidationError("Amount must be a number", "INVALID_AMOUNT")
        if value <= 0:
            raise ValidationError("Amount must be greater than zero", "INVALID_AMOUNT")
        return value

    async def _get_active_account(self, account_id: str) -> CashAccount:
        account = await self.get_account(account_id)
        if not account.is_active:
            raise ValidationError(f"Account {account.name} is inactive", "ACCOUNT_INACTIVE")
        return account

    async def _ensure_funds(self, account: CashAccount, amount: Decimal) -> None:
        balance = await self.balance(account.id)
        if amount > balance:
            raise ValidationError(
                f"Insufficient balance in {account.name}: {balance} available",
                "INSUFFICIENT_BALANCE",
            )

    async def _record_single(
        self,
        account_id: str,
        transaction_type: CashTransactionType,
        amount,
        actor: str,
        description: Optional[str],
    ) -> CashTransaction:
        amount = self._validate_amount(amount)
        account = await self._get_active_account(account_id)
        if transaction_type in DEBIT_TYPES:
            await self._ensure_funds(account, amount)

        transaction = CashTransaction(
            account_id=account.id,
            transaction_type=transaction_type,
            amount=amount,
            description=description,
            created_by=actor,
            created_at=naive_utc_now(),
        )
        self.db.add(transaction)
        self._commit(f"record {transaction_type.value}")
        self.db.refresh(transaction)

        logger.info(
            f"{actor} recorded {transaction_type.value} of {amount} on {account.name}"
        )
        return transaction


def get_cash_ledger_service(
    db_session: Session = Depends(get_sync_session),
) -> CashLedgerService:
    """Dependency function to get CashLedgerService instance"""
    return CashLedgerService(db_session)
