from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from esep.services.registration_service import (
    RegistrationService,
    get_registration_service,
)
from esep.schemas.registration_schemas import (
    RegistrationCreateRequest,
    RegistrationStatusResponse,
    StatusLookupQueryParams,
)
from esep.utils.datetime_utils import naive_utc_now
from esep.utils.responses import ResponseBuilder

public_registrations_router = APIRouter()


@public_registrations_router.post(
    "/",
    response_model=RegistrationStatusResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a registration",
    description="Stores the registration as pending and returns its customer ID",
)
async def submit_registration(
    request: Request,
    registration_data: RegistrationCreateRequest,
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registration = await registration_service.submit(registration_data)
    return ResponseBuilder.success(
        request=request,
        data=RegistrationService.to_status_response(registration).model_dump(
            by_alias=True
        ),
        message=f"Registration submitted. Your customer ID is {registration.customer_id}",
        status_code=status.HTTP_201_CREATED,
    )


@public_registrations_router.get(
    "/status",
    summary="Check registration status",
    description="Look up registrations by customer ID or by mobile number",
)
async def check_registration_status(
    request: Request,
    query_params: Annotated[StatusLookupQueryParams, Depends()],
    registration_service: RegistrationService = Depends(get_registration_service),
):
    registrations = await registration_service.lookup_status(
        customer_id=query_params.customer_id,
        mobile_number=query_params.mobile_number,
    )
    now = naive_utc_now()
    return ResponseBuilder.success(
        request=request,
        data=[
            RegistrationService.to_status_response(r, now).model_dump(by_alias=True)
            for r in registrations
        ],
        message=f"Found {len(registrations)} registration(s)",
    )
