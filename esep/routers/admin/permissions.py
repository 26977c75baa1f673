from typing import Annotated

from fastapi import APIRouter, Depends, Request, status, Path

from esep.middlewares.auth_middleware import (
    AuthState,
    get_current_user,
    require_permissions,
    require_super_admin,
)
from esep.services.permission_service import (
    PermissionService,
    get_permission_service,
    MANAGE_PERMISSIONS,
)
from esep.schemas.permission_schemas import (
    GrantPermissionRequest,
    CreateAdminUserRequest,
    GrantListQueryParams,
    PermissionResponse,
    AdminUserSummary,
    CapabilitiesResponse,
)
from esep.schemas.common_schemas import UUID_PATTERN
from esep.utils.responses import ResponseBuilder

permissions_router = APIRouter()

can_manage = require_permissions(MANAGE_PERMISSIONS)


@permissions_router.get(
    "/me",
    response_model=CapabilitiesResponse,
    summary="Capabilities of the current admin",
    description="Used by the dashboard to decide which tabs and actions to show",
)
async def get_my_capabilities(
    request: Request,
    current_user: Annotated[AuthState, Depends(get_current_user)],
    permission_service: PermissionService = Depends(get_permission_service),
):
    permissions = await permission_service.permissions_for(current_user)
    capabilities = CapabilitiesResponse(
        username=current_user.username,
        is_super_admin=current_user.is_super_admin,
        permissions=sorted(permissions),
    )
    return ResponseBuilder.success(
        request=request,
        data=capabilities.model_dump(by_alias=True),
        message=f"{len(permissions)} permissions available",
    )


@permissions_router.get(
    "/",
    summary="List permissions",
    dependencies=[Depends(can_manage)],
)
async def list_permissions(
    request: Request,
    permission_service: PermissionService = Depends(get_permission_service),
):
    permissions = await permission_service.list_permissions()
    return ResponseBuilder.success(
        request=request,
        data=[
            PermissionResponse.model_validate(p).model_dump(by_alias=True)
            for p in permissions
        ],
        message=f"Retrieved {len(permissions)} permissions",
    )


@permissions_router.get(
    "/admins",
    summary="List admin users",
    dependencies=[Depends(can_manage)],
)
async def list_admin_users(
    request: Request,
    permission_service: PermissionService = Depends(get_permission_service),
):
    admin_users = await permission_service.list_admin_users()
    return ResponseBuilder.success(
        request=request,
        data=[
            AdminUserSummary.model_validate(u).model_dump(by_alias=True)
            for u in admin_users
        ],
        message=f"Retrieved {len(admin_users)} admin users",
    )


@permissions_router.post(
    "/admins",
    response_model=AdminUserSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Create an admin user",
    description="Super admin only. Optional permission IDs are granted on creation.",
)
async def create_admin_user(
    request: Request,
    admin_data: CreateAdminUserRequest,
    current_user: Annotated[AuthState, Depends(require_super_admin)],
    permission_service: PermissionService = Depends(get_permission_service),
):
    admin_user = await permission_service.create_admin_user(
        admin_data, current_user.username
    )
    return ResponseBuilder.success(
        request=request,
        data=AdminUserSummary.model_validate(admin_user).model_dump(by_alias=True),
        message=f"Admin user {admin_user.username} created",
        status_code=status.HTTP_201_CREATED,
    )


@permissions_router.get(
    "/grants",
    summary="List permission grants",
    description="Optional search over admin full name, username and permission name",
    dependencies=[Depends(can_manage)],
)
async def list_grants(
    request: Request,
    query_params: Annotated[GrantListQueryParams, Depends()],
    permission_service: PermissionService = Depends(get_permission_service),
):
    grants = await permission_service.list_grants(query_params.search)
    return ResponseBuilder.success(
        request=request,
        data=[g.model_dump(by_alias=True) for g in grants],
        message=f"Retrieved {len(grants)} grants",
    )


@permissions_router.post(
    "/grants",
    status_code=status.HTTP_201_CREATED,
    summary="Grant a permission to an admin",
)
async def grant_permission(
    request: Request,
    grant_data: GrantPermissionRequest,
    current_user: Annotated[AuthState, Depends(can_manage)],
    permission_service: PermissionService = Depends(get_permission_service),
):
    user_permission = await permission_service.grant(
        grant_data.admin_user_id, grant_data.permission_id, current_user.username
    )
    return ResponseBuilder.success(
        request=request,
        data={
            "id": user_permission.id,
            "adminUserId": user_permission.admin_user_id,
            "permissionId": user_permission.permission_id,
            "grantedBy": user_permission.granted_by,
            "grantedAt": user_permission.granted_at,
        },
        message="Permission granted",
        status_code=status.HTTP_201_CREATED,
    )


@permissions_router.delete(
    "/grants/{user_permission_id}",
    summary="Revoke a permission grant",
    description="Revoking a grant that no longer exists succeeds without change",
    dependencies=[Depends(can_manage)],
)
async def revoke_permission(
    request: Request,
    user_permission_id: Annotated[
        str, Path(pattern=UUID_PATTERN, description="Grant ID")
    ],
    permission_service: PermissionService = Depends(get_permission_service),
):
    removed = await permission_service.revoke(user_permission_id)
    return ResponseBuilder.success(
        request=request,
        data={"removed": removed},
        message="Permission revoked" if removed else "Grant was already absent",
    )
