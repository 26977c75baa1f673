from typing import Annotated

from fastapi import APIRouter, Depends, Request, status, Path

from esep.middlewares.auth_middleware import AuthState, require_permissions
from esep.services.cash_ledger_service import (
    CashLedgerService,
    get_cash_ledger_service,
)
from esep.services.permission_service import MANAGE_ACCOUNTS
from esep.schemas.ledger_schemas import (
    CreateCashAccountRequest,
    CashEntryRequest,
    TransferRequest,
    CashAccountResponse,
)
from esep.schemas.common_schemas import UUID_PATTERN
from esep.utils.responses import ResponseBuilder

accounts_router = APIRouter()

can_manage = require_permissions(MANAGE_ACCOUNTS)

AccountId = Annotated[
    str, Path(pattern=UUID_PATTERN, description="Cash account ID")
]


def _transaction_data(transaction) -> dict:
    return {
        "id": transaction.id,
        "accountId": transaction.account_id,
        "transactionType": transaction.transaction_type.value,
        "amount": transaction.amount,
        "description": transaction.description,
        "referenceId": transaction.reference_id,
        "createdBy": transaction.created_by,
        "createdAt": transaction.created_at,
    }


@accounts_router.get("/", summary="List cash accounts with balances")
async def list_accounts(
    request: Request,
    _: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    accounts = await ledger_service.list_accounts()
    data = [
        (await ledger_service.to_account_response(account)).model_dump(by_alias=True)
        for account in accounts
    ]
    return ResponseBuilder.success(
        request=request, data=data, message=f"Retrieved {len(data)} cash accounts"
    )


@accounts_router.post(
    "/",
    response_model=CashAccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a cash account",
)
async def create_account(
    request: Request,
    account_data: CreateCashAccountRequest,
    _: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    account = await ledger_service.create_account(
        account_data.name, account_data.is_registration_feed
    )
    response = await ledger_service.to_account_response(account)
    return ResponseBuilder.success(
        request=request,
        data=response.model_dump(by_alias=True),
        message="Cash account created",
        status_code=status.HTTP_201_CREATED,
    )


@accounts_router.get(
    "/{account_id}", response_model=CashAccountResponse, summary="Get account balance"
)
async def get_account(
    request: Request,
    account_id: AccountId,
    _: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    account = await ledger_service.get_account(account_id)
    response = await ledger_service.to_account_response(account)
    return ResponseBuilder.success(
        request=request,
        data=response.model_dump(by_alias=True),
        message="Cash account retrieved",
    )


@accounts_router.get(
    "/{account_id}/entries",
    summary="Account history",
    description="Stored transactions plus verified registration fees for the feed account, newest first",
)
async def list_entries(
    request: Request,
    account_id: AccountId,
    _: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    entries = await ledger_service.list_entries(account_id)
    return ResponseBuilder.success(
        request=request,
        data=[entry.model_dump(by_alias=True) for entry in entries],
        message=f"Retrieved {len(entries)} ledger entries",
    )


@accounts_router.post(
    "/{account_id}/cash-in",
    status_code=status.HTTP_201_CREATED,
    summary="Record cash received",
)
async def cash_in(
    request: Request,
    account_id: AccountId,
    entry: CashEntryRequest,
    current_user: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    transaction = await ledger_service.cash_in(
        account_id, entry.amount, current_user.username, entry.description
    )
    return ResponseBuilder.success(
        request=request,
        data=_transaction_data(transaction),
        message="Cash in recorded",
        status_code=status.HTTP_201_CREATED,
    )


@accounts_router.post(
    "/{account_id}/cash-out",
    status_code=status.HTTP_201_CREATED,
    summary="Record cash paid out",
    description="Rejected when the amount exceeds the account balance",
)
async def cash_out(
    request: Request,
    account_id: AccountId,
    entry: CashEntryRequest,
    current_user: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    transaction = await ledger_service.cash_out(
        account_id, entry.amount, current_user.username, entry.description
    )
    return ResponseBuilder.success(
        request=request,
        data=_transaction_data(transaction),
        message="Cash out recorded",
        status_code=status.HTTP_201_CREATED,
    )


@accounts_router.post(
    "/{account_id}/expenses",
    status_code=status.HTTP_201_CREATED,
    summary="Record an expense",
    description="Rejected when the amount exceeds the account balance",
)
async def record_expense(
    request: Request,
    account_id: AccountId,
    entry: CashEntryRequest,
    current_user: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    transaction = await ledger_service.expense(
        account_id, entry.amount, current_user.username, entry.description
    )
    return ResponseBuilder.success(
        request=request,
        data=_transaction_data(transaction),
        message="Expense recorded",
        status_code=status.HTTP_201_CREATED,
    )


@accounts_router.post(
    "/transfers",
    status_code=status.HTTP_201_CREATED,
    summary="Transfer between two accounts",
    description="Writes the outgoing and incoming legs together",
)
async def transfer(
    request: Request,
    transfer_data: TransferRequest,
    current_user: Annotated[AuthState, Depends(can_manage)],
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    outgoing, incoming = await ledger_service.transfer(
        transfer_data.source_account_id,
        transfer_data.destination_account_id,
        transfer_data.amount,
        current_user.username,
        transfer_data.description,
    )
    return ResponseBuilder.success(
        request=request,
        data={
            "outgoing": _transaction_data(outgoing),
            "incoming": _transaction_data(incoming),
        },
        message="Transfer recorded",
        status_code=status.HTTP_201_CREATED,
    )
