from fastapi import APIRouter, Depends, Request

from esep.services.announcement_service import (
    AnnouncementService,
    get_announcement_service,
)
from esep.services.utility_service import UtilityService, get_utility_service
from esep.schemas.content_schemas import AnnouncementResponse, UtilityResponse
from esep.utils.responses import ResponseBuilder

content_router = APIRouter()


@content_router.get("/announcements", summary="Latest announcements")
async def get_public_announcements(
    request: Request,
    announcement_service: AnnouncementService = Depends(get_announcement_service),
):
    announcements = await announcement_service.list_public_announcements()
    return ResponseBuilder.success(
        request=request,
        data=[
            AnnouncementResponse.model_validate(a, from_attributes=True).model_dump(
                by_alias=True
            )
            for a in announcements
        ],
        message=f"Retrieved {len(announcements)} announcements",
    )


@content_router.get("/utilities", summary="Useful links")
async def get_public_utilities(
    request: Request,
    utility_service: UtilityService = Depends(get_utility_service),
):
    utilities = await utility_service.list_public_utilities()
    return ResponseBuilder.success(
        request=request,
        data=[
            UtilityResponse.model_validate(u, from_attributes=True).model_dump(
                by_alias=True
            )
            for u in utilities
        ],
        message=f"Retrieved {len(utilities)} useful links",
    )
