from typing import Annotated

from fastapi import APIRouter, Depends, Request, status, Path

from esep.middlewares.auth_middleware import require_permissions
from esep.services.panchayath_service import (
    PanchayathService,
    get_panchayath_service,
)
from esep.services.permission_service import MANAGE_PANCHAYATHS
from esep.schemas.panchayath_schemas import (
    CreatePanchayathRequest,
    UpdatePanchayathRequest,
    PanchayathListQueryParams,
    PanchayathResponse,
)
from esep.schemas.common_schemas import ActiveStatusRequest, UUID_PATTERN
from esep.utils.responses import ResponseBuilder

panchayaths_router = APIRouter(
    dependencies=[Depends(require_permissions(MANAGE_PANCHAYATHS))]
)

PanchayathId = Annotated[
    str, Path(pattern=UUID_PATTERN, description="Panchayath ID")
]


def _dump(panchayath) -> dict:
    return PanchayathResponse.model_validate(panchayath).model_dump(by_alias=True)


@panchayaths_router.get("/", summary="Get all panchayaths")
async def get_all_panchayaths(
    request: Request,
    query_params: Annotated[PanchayathListQueryParams, Depends()],
    panchayath_service: PanchayathService = Depends(get_panchayath_service),
):
    panchayaths = await panchayath_service.list_panchayaths(query_params)
    return ResponseBuilder.success(
        request=request,
        data=[_dump(p) for p in panchayaths],
        message=f"Retrieved {len(panchayaths)} panchayaths",
    )


@panchayaths_router.post(
    "/",
    response_model=PanchayathResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a panchayath",
)
async def create_panchayath(
    request: Request,
    panchayath_data: CreatePanchayathRequest,
    panchayath_service: PanchayathService = Depends(get_panchayath_service),
):
    panchayath = await panchayath_service.create_panchayath(panchayath_data)
    return ResponseBuilder.success(
        request=request,
        data=_dump(panchayath),
        message="Panchayath created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@panchayaths_router.put(
    "/{panchayath_id}", response_model=PanchayathResponse, summary="Update a panchayath"
)
async def update_panchayath(
    request: Request,
    panchayath_id: PanchayathId,
    panchayath_data: UpdatePanchayathRequest,
    panchayath_service: PanchayathService = Depends(get_panchayath_service),
):
    panchayath = await panchayath_service.update_panchayath(
        panchayath_id, panchayath_data
    )
    return ResponseBuilder.success(
        request=request,
        data=_dump(panchayath),
        message="Panchayath updated successfully",
    )


@panchayaths_router.patch(
    "/{panchayath_id}/status",
    response_model=PanchayathResponse,
    summary="Activate or deactivate a panchayath",
)
async def set_panchayath_status(
    request: Request,
    panchayath_id: PanchayathId,
    status_data: ActiveStatusRequest,
    panchayath_service: PanchayathService = Depends(get_panchayath_service),
):
    panchayath = await panchayath_service.set_active(
        panchayath_id, status_data.is_active
    )
    return ResponseBuilder.success(
        request=request,
        data=_dump(panchayath),
        message=f"Panchayath {'activated' if panchayath.is_active else 'deactivated'}",
    )
