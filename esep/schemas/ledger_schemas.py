from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import Field

from .camel_base_model import CamelCaseBaseModel


class CreateCashAccountRequest(CamelCaseBaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Account name")
    is_registration_feed: bool = Field(
        False, description="Whether verified registration fees flow into this account"
    )


class CashEntryRequest(CamelCaseBaseModel):
    """Cash in, cash out or expense against one account"""

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=500)


class TransferRequest(CamelCaseBaseModel):
    source_account_id: str = Field(..., description="Account debited")
    destination_account_id: str = Field(..., description="Account credited")
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=500)


class CashAccountResponse(CamelCaseBaseModel):
    id: str
    name: str
    is_active: bool
    is_registration_feed: bool
    balance: Decimal = Field(..., description="Signed sum of all ledger events")
    created_at: datetime


class LedgerEntryResponse(CamelCaseBaseModel):
    """Stored transaction or a verified registration fee feeding the account"""

    id: str
    account_id: str
    transaction_type: str
    amount: Decimal
    signed_amount: Decimal
    description: Optional[str] = None
    reference_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    synthetic: bool = False
