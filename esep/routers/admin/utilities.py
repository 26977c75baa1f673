from typing import Annotated

from fastapi import APIRouter, Depends, Request, status, Path

from esep.middlewares.auth_middleware import require_permissions
from esep.services.utility_service import UtilityService, get_utility_service
from esep.services.permission_service import MANAGE_UTILITIES
from esep.schemas.content_schemas import UtilityRequest, UtilityResponse
from esep.schemas.common_schemas import UUID_PATTERN
from esep.utils.responses import ResponseBuilder

utilities_router = APIRouter(
    dependencies=[Depends(require_permissions(MANAGE_UTILITIES))]
)

UtilityId = Annotated[
    str, Path(pattern=UUID_PATTERN, description="Utility link ID")
]


def _to_data(utility) -> dict:
    return UtilityResponse.model_validate(utility, from_attributes=True).model_dump(
        by_alias=True
    )


@utilities_router.get("/", summary="Get all utilities")
async def get_all_utilities(
    request: Request,
    utility_service: UtilityService = Depends(get_utility_service),
):
    utilities = await utility_service.list_utilities()
    return ResponseBuilder.success(
        request=request,
        data=[_to_data(u) for u in utilities],
        message=f"Retrieved {len(utilities)} utilities",
    )


@utilities_router.post(
    "/",
    response_model=UtilityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a useful link",
)
async def create_utility(
    request: Request,
    utility_data: UtilityRequest,
    utility_service: UtilityService = Depends(get_utility_service),
):
    utility = await utility_service.create_utility(utility_data)
    return ResponseBuilder.success(
        request=request,
        data=_to_data(utility),
        message="Utility created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@utilities_router.put(
    "/{utility_id}",
    response_model=UtilityResponse,
    summary="Update a useful link",
)
async def update_utility(
    request: Request,
    utility_id: UtilityId,
    utility_data: UtilityRequest,
    utility_service: UtilityService = Depends(get_utility_service),
):
    utility = await utility_service.update_utility(utility_id, utility_data)
    return ResponseBuilder.success(
        request=request,
        data=_to_data(utility),
        message="Utility updated successfully",
    )


@utilities_router.delete("/{utility_id}", summary="Delete a useful link")
async def delete_utility(
    request: Request,
    utility_id: UtilityId,
    utility_service: UtilityService = Depends(get_utility_service),
):
    await utility_service.delete_utility(utility_id)
    return ResponseBuilder.success(
        request=request, data=None, message="Utility deleted successfully"
    )
