from typing import Annotated

from fastapi import APIRouter, Depends, Request, status, Path

from esep.middlewares.auth_middleware import require_permissions
from esep.services.announcement_service import (
    AnnouncementService,
    get_announcement_service,
)
from esep.services.permission_service import MANAGE_ANNOUNCEMENTS
from esep.schemas.content_schemas import AnnouncementRequest, AnnouncementResponse
from esep.schemas.common_schemas import UUID_PATTERN
from esep.utils.responses import ResponseBuilder

announcements_router = APIRouter(
    dependencies=[Depends(require_permissions(MANAGE_ANNOUNCEMENTS))]
)

AnnouncementId = Annotated[
    str, Path(pattern=UUID_PATTERN, description="Announcement ID")
]


def _to_data(announcement) -> dict:
    return AnnouncementResponse.model_validate(
        announcement, from_attributes=True
    ).model_dump(by_alias=True)


@announcements_router.get("/", summary="Get all announcements")
async def get_all_announcements(
    request: Request,
    announcement_service: AnnouncementService = Depends(get_announcement_service),
):
    announcements = await announcement_service.list_announcements()
    return ResponseBuilder.success(
        request=request,
        data=[_to_data(a) for a in announcements],
        message=f"Retrieved {len(announcements)} announcements",
    )


@announcements_router.post(
    "/",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an announcement",
)
async def create_announcement(
    request: Request,
    announcement_data: AnnouncementRequest,
    announcement_service: AnnouncementService = Depends(get_announcement_service),
):
    announcement = await announcement_service.create_announcement(announcement_data)
    return ResponseBuilder.success(
        request=request,
        data=_to_data(announcement),
        message="Announcement created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@announcements_router.put(
    "/{announcement_id}",
    response_model=AnnouncementResponse,
    summary="Update an announcement",
)
async def update_announcement(
    request: Request,
    announcement_id: AnnouncementId,
    announcement_data: AnnouncementRequest,
    announcement_service: AnnouncementService = Depends(get_announcement_service),
):
    announcement = await announcement_service.update_announcement(
        announcement_id, announcement_data
    )
    return ResponseBuilder.success(
        request=request,
        data=_to_data(announcement),
        message="Announcement updated successfully",
    )


@announcements_router.delete("/{announcement_id}", summary="Delete an announcement")
async def delete_announcement(
    request: Request,
    announcement_id: AnnouncementId,
    announcement_service: AnnouncementService = Depends(get_announcement_service),
):
    await announcement_service.delete_announcement(announcement_id)
    return ResponseBuilder.success(
        request=request, data=None, message="Announcement deleted successfully"
    )
