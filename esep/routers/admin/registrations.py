from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request, status, Path

from esep.config.settings import settings
from esep.middlewares.auth_middleware import AuthState, require_permissions
from esep.services.registration_service import (
    RegistrationService,
    get_registration_service,
)
from esep.services.cash_ledger_service import (
    CashLedgerService,
    get_cash_ledger_service,
)
from esep.services.export_service import (
    ExportService,
    REGISTRATION_COLUMNS,
    EXPIRING_ALERT_COLUMNS,
)
from esep.services.permission_service import (
    MANAGE_REGISTRATIONS,
    VERIFY_PAYMENTS,
    MANAGE_ACCOUNTS,
)
from esep.schemas.registration_schemas import (
    RegistrationActionRequest,
    RegistrationListQueryParams,
    RegistrationExportQueryParams,
    RegistrationResponse,
)
from esep.utils.datetime_utils import naive_utc_now
from esep.schemas.common_schemas import UUID_PATTERN
from esep.utils.responses import ResponseBuilder

registrations_router = APIRouter()

can_manage = require_permissions(MANAGE_REGISTRATIONS)
can_view = require_permissions(MANAGE_REGISTRATIONS, VERIFY_PAYMENTS, MANAGE_ACCOUNTS)
can_verify = require_permissions(VERIFY_PAYMENTS, MANAGE_ACCOUNTS)

RegistrationId = Annotated[
    str, Path(pattern=UUID_PATTERN, description="Registration ID")
]


def _expected_version(action: Optional[RegistrationActionRequest]) -> Optional[int]:
    return action.expected_version if action else None


@registrations_router.get(
    "/",
    status_code=status.HTTP_200_OK,
    summary="List registrations",
    description="Filter by status, category, panchayath, expiry window or a search term over name, mobile number and customer ID. Newest first.",
)
async def list_registrations(
    request: Request,
    query_params: Annotated[RegistrationListQueryParams, Depends()],
    _: Annotated[AuthState, Depends(can_view)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registrations, total = await registration_service.list_registrations(query_params)
    now = naive_utc_now()

    return ResponseBuilder.paginated(
        request=request,
        data=[
            RegistrationService.to_response(r, now).model_dump(by_alias=True)
            for r in registrations
        ],
        page=query_params.page,
        per_page=query_params.per_page,
        total=total,
        message=f"Retrieved {len(registrations)} of {total} registrations",
    )


@registrations_router.get(
    "/export/csv",
    summary="Export registrations as CSV",
    description="Same filters as the list endpoint, without pagination",
)
async def export_registrations_csv(
    query_params: Annotated[RegistrationExportQueryParams, Depends()],
    _: Annotated[AuthState, Depends(can_view)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registrations, _total = await registration_service.list_registrations(
        RegistrationListQueryParams(**query_params.model_dump()), paginate=False
    )
    now = naive_utc_now()
    content = ExportService.to_csv(
        [RegistrationService.to_response(r, now) for r in registrations],
        REGISTRATION_COLUMNS,
    )
    return ResponseBuilder.file(
        content,
        ExportService.export_filename("registrations", "csv"),
        "text/csv",
    )


@registrations_router.get(
    "/export/html",
    summary="Printable registrations report",
    description="Same filters as the list endpoint, rendered as a printable HTML page",
)
async def export_registrations_html(
    query_params: Annotated[RegistrationExportQueryParams, Depends()],
    _: Annotated[AuthState, Depends(can_view)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registrations, total = await registration_service.list_registrations(
        RegistrationListQueryParams(**query_params.model_dump()), paginate=False
    )
    now = naive_utc_now()
    rows = [RegistrationService.to_response(r, now) for r in registrations]
    content = ExportService.to_html(
        "Registrations Report",
        rows,
        REGISTRATION_COLUMNS,
        summary={
            "Total registrations": total,
            "Pending": sum(1 for r in rows if r.status == "pending"),
            "Approved": sum(1 for r in rows if r.status == "approved"),
            "Rejected": sum(1 for r in rows if r.status == "rejected"),
        },
        heading=lambda r: f"{r.full_name} ({r.customer_id})",
        generated_at=now,
    )
    return ResponseBuilder.file(
        content,
        ExportService.export_filename("registrations", "html"),
        "text/html",
        disposition="inline",
    )


@registrations_router.get(
    "/expiring",
    summary="Registrations about to expire",
    description="Pending registrations expiring within the alert window, soonest first",
)
async def list_expiring_registrations(
    request: Request,
    _: Annotated[AuthState, Depends(can_view)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    now = naive_utc_now()
    registrations = await registration_service.list_expiring_soon(now=now)
    items = [
        RegistrationService.to_expiring_item(r, now).model_dump(by_alias=True)
        for r in registrations
    ]
    return ResponseBuilder.success(
        request=request,
        data=items,
        message=f"{len(items)} registration{'s' if len(items) != 1 else ''} expiring soon",
    )


@registrations_router.get(
    "/expiring/export/csv", summary="Export the expiring registrations alert as CSV"
)
async def export_expiring_csv(
    _: Annotated[AuthState, Depends(can_view)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    now = naive_utc_now()
    registrations = await registration_service.list_expiring_soon(now=now)
    content = ExportService.to_csv(
        [RegistrationService.to_expiring_item(r, now) for r in registrations],
        EXPIRING_ALERT_COLUMNS,
    )
    return ResponseBuilder.file(
        content,
        ExportService.export_filename("expiring-registrations", "csv"),
        "text/csv",
    )


@registrations_router.get(
    "/expiring/export/html", summary="Printable expiring registrations alert"
)
async def export_expiring_html(
    _: Annotated[AuthState, Depends(can_view)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    now = naive_utc_now()
    registrations = await registration_service.list_expiring_soon(now=now)
    items = [RegistrationService.to_expiring_item(r, now) for r in registrations]
    window = settings.EXPIRING_ALERT_WINDOW_DAYS
    content = ExportService.to_html(
        "Expiring Registrations Alert",
        items,
        EXPIRING_ALERT_COLUMNS,
        summary={f"Total registrations expiring within {window} days": len(items)},
        highlight="Days Remaining",
        generated_at=now,
    )
    return ResponseBuilder.file(
        content,
        ExportService.export_filename("expiring-registrations", "html"),
        "text/html",
        disposition="inline",
    )


@registrations_router.get(
    "/{registration_id}",
    response_model=RegistrationResponse,
    summary="Get a registration",
)
async def get_registration(
    request: Request,
    registration_id: RegistrationId,
    _: Annotated[AuthState, Depends(can_view)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registration = await registration_service.get_registration(registration_id)
    return ResponseBuilder.success(
        request=request,
        data=RegistrationService.to_response(registration).model_dump(by_alias=True),
        message="Registration retrieved",
    )


@registrations_router.post(
    "/{registration_id}/approve",
    response_model=RegistrationResponse,
    summary="Approve a pending registration",
    description="Sets the approval fields and computes the expiry date from the category window when absent",
)
async def approve_registration(
    request: Request,
    registration_id: RegistrationId,
    current_user: Annotated[AuthState, Depends(can_manage)],
    action: Optional[RegistrationActionRequest] = None,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registration = await registration_service.approve(
        registration_id, current_user.username, _expected_version(action)
    )
    return ResponseBuilder.success(
        request=request,
        data=RegistrationService.to_response(registration).model_dump(by_alias=True),
        message=f"Registration {registration.customer_id} approved",
    )


@registrations_router.post(
    "/{registration_id}/reject",
    response_model=RegistrationResponse,
    summary="Reject a pending registration",
)
async def reject_registration(
    request: Request,
    registration_id: RegistrationId,
    current_user: Annotated[AuthState, Depends(can_manage)],
    action: Optional[RegistrationActionRequest] = None,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registration = await registration_service.reject(
        registration_id, current_user.username, _expected_version(action)
    )
    return ResponseBuilder.success(
        request=request,
        data=RegistrationService.to_response(registration).model_dump(by_alias=True),
        message=f"Registration {registration.customer_id} rejected",
    )


@registrations_router.post(
    "/{registration_id}/restore",
    response_model=RegistrationResponse,
    summary="Send a registration back to pending",
    description="Clears approval and payment verification; keeps expiry date, fee and category",
)
async def restore_registration(
    request: Request,
    registration_id: RegistrationId,
    _: Annotated[AuthState, Depends(can_manage)],
    action: Optional[RegistrationActionRequest] = None,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registration = await registration_service.restore(
        registration_id, _expected_version(action)
    )
    return ResponseBuilder.success(
        request=request,
        data=RegistrationService.to_response(registration).model_dump(by_alias=True),
        message=f"Registration {registration.customer_id} restored to pending",
    )


@registrations_router.delete(
    "/{registration_id}",
    summary="Delete a registration permanently",
)
async def delete_registration(
    request: Request,
    registration_id: RegistrationId,
    _: Annotated[AuthState, Depends(can_manage)],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    await registration_service.delete(registration_id)
    return ResponseBuilder.success(request=request, message="Registration deleted")


@registrations_router.post(
    "/{registration_id}/verify",
    response_model=RegistrationResponse,
    summary="Verify fee payment",
    description="Only approved registrations can be verified; the fee then counts toward the registration feed account",
)
async def verify_payment(
    request: Request,
    registration_id: RegistrationId,
    current_user: Annotated[AuthState, Depends(can_verify)],
    action: Optional[RegistrationActionRequest] = None,
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    registration = await ledger_service.verify(
        registration_id, current_user.username, _expected_version(action)
    )
    return ResponseBuilder.success(
        request=request,
        data=RegistrationService.to_response(registration).model_dump(by_alias=True),
        message=f"Payment for {registration.customer_id} verified",
    )


@registrations_router.post(
    "/{registration_id}/unverify",
    response_model=RegistrationResponse,
    summary="Clear fee payment verification",
)
async def unverify_payment(
    request: Request,
    registration_id: RegistrationId,
    _: Annotated[AuthState, Depends(can_verify)],
    action: Optional[RegistrationActionRequest] = None,
    ledger_service: CashLedgerService = Depends(get_cash_ledger_service),
):
    registration = await ledger_service.unverify(
        registration_id, _expected_version(action)
    )
    return ResponseBuilder.success(
        request=request,
        data=RegistrationService.to_response(registration).model_dump(by_alias=True),
        message=f"Payment verification cleared for {registration.customer_id}",
    )
