from typing import Annotated
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from esep.db.session import get_sync_session
from esep.services.auth_service import AuthService
from esep.services.permission_service import PermissionService
from esep.schemas.auth_schemas import (
    LoginRequest,
    LoginResponse,
    AdminUserResponse,
)
from esep.middlewares.auth_middleware import get_current_user, AuthState
from esep.utils.responses import ResponseBuilder
from esep.utils.errors import AuthenticationError
from esep.utils.cookies import CookieUtils

auth_router = APIRouter()


async def _admin_user_response(user, session: Session) -> AdminUserResponse:
    permissions = await PermissionService(session).permissions_for(user)
    return AdminUserResponse(
        id=str(user.id),
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        is_active=user.is_active,
        is_super_admin=user.is_super_admin,
        permissions=sorted(permissions),
    )


@auth_router.post("/login")
async def login(
    login_request: LoginRequest,
    request: Request,
    db: Annotated[Session, Depends(get_sync_session)],
):
    """
    Login admin with username and password.

    Returns the bearer token and also sets an HTTP-only access cookie plus a
    client-readable CSRF cookie for browser sessions.
    """
    auth_service = AuthService(db)
    tokens, user = await auth_service.login_user(
        login_request.username, login_request.password
    )

    login_data = LoginResponse(
        access_token=tokens.access_token,
        csrf_token=tokens.csrf_token,
        user=await _admin_user_response(user, db),
    )

    response = ResponseBuilder.success(
        request=request,
        data=login_data.model_dump(by_alias=True),
        message="Login successful",
    )
    CookieUtils.set_auth_cookies(response, tokens)

    return response


@auth_router.post("/logout")
async def logout(
    request: Request,
    current_user: Annotated[AuthState, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_sync_session)],
):
    """Logout admin and invalidate every token issued so far"""
    auth_service = AuthService(db)
    await auth_service.logout_user(current_user.user_id)

    response = ResponseBuilder.success(request=request, message="Logout successful")
    CookieUtils.clear_auth_cookies(response)

    return response


@auth_router.get("/me")
async def get_current_user_info(
    request: Request,
    current_user: Annotated[AuthState, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_sync_session)],
):
    """Get current authenticated admin information"""
    auth_service = AuthService(db)
    user = await auth_service.get_user_by_id(current_user.user_id)

    if not user:
        raise AuthenticationError("User not found")

    user_data = await _admin_user_response(user, db)
    return ResponseBuilder.success(
        request=request,
        data=user_data.model_dump(by_alias=True),
        message="User information retrieved",
    )
