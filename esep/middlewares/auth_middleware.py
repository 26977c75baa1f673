from typing import Optional, Callable
from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

from esep.config.settings import settings
from esep.db.session import get_sync_session
from esep.services.auth_service import AuthService
from esep.services.permission_service import PermissionService
from esep.utils.auth import AuthUtils
from esep.utils.cookies import CookieUtils
from esep.utils.errors import AuthenticationError, AuthorizationError
from esep.utils.responses import ResponseBuilder
from esep.utils.logging import get_logger

logger = get_logger()

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
CSRF_HEADER = "X-CSRF-Token"


class AuthState:
    """Authentication state to be stored in request.state"""

    def __init__(
        self,
        user_id: str,
        username: str,
        full_name: str,
        is_super_admin: bool = False,
        token_version: int = 0,
        is_authenticated: bool = True,
    ):
        self.user_id = user_id
        self.username = username
        self.full_name = full_name
        self.is_super_admin = is_super_admin
        self.token_version = token_version
        self.is_authenticated = is_authenticated


class AuthMiddleware(BaseHTTPMiddleware):
    """Authentication middleware for JWT access token validation"""

    # Paths that don't require authentication
    EXCLUDED_PATHS = {
        "/docs",
        "/redoc",
        "/openapi.json",
        f"{settings.API_PREFIX}/shared/auth/login",
        f"{settings.API_PREFIX}/shared/health",
        f"{settings.API_PREFIX}/public",
    }

    def __init__(self, app, excluded_paths: Optional[set] = None):
        super().__init__(app)
        self.excluded_paths = set(self.EXCLUDED_PATHS)
        if excluded_paths:
            self.excluded_paths.update(excluded_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through authentication middleware"""

        # Skip authentication for excluded paths and CORS preflight
        if request.method == "OPTIONS" or self._is_excluded_path(request.url.path):
            return await call_next(request)

        try:
            auth_state = await self._authenticate_request(request)
        except AuthenticationError as e:
            logger.warning(f"Authentication rejected: {e.message}")
            return ResponseBuilder.error(
                request=request,
                message=e.message,
                error_code=e.error_code,
                status_code=401,
            )

        request.state.auth = auth_state
        return await call_next(request)

    def _is_excluded_path(self, path: str) -> bool:
        """Check if path is excluded from authentication"""
        return any(path.startswith(excluded) for excluded in self.excluded_paths)

    async def _authenticate_request(self, request: Request) -> AuthState:
        """Decode the bearer token (header or cookie) into an AuthState"""
        access_token = CookieUtils.extract_bearer_token(
            request.headers.get("authorization")
        )
        if not access_token:
            access_token = request.cookies.get("access_token")
            if not access_token:
                raise AuthenticationError("No access token found", "NOT_AUTHENTICATED")

            # Cookie sessions must prove the CSRF token on writes
            if request.method not in SAFE_METHODS:
                csrf_token = request.headers.get(CSRF_HEADER)
                if not csrf_token or not AuthUtils.verify_csrf_token(
                    access_token, csrf_token
                ):
                    raise AuthenticationError("Invalid CSRF token", "INVALID_CSRF")

        payload = AuthUtils.verify_access_token(access_token)
        if not payload:
            raise AuthenticationError("Invalid or expired token", "INVALID_TOKEN")

        user_id = payload.get("sub")
        username = payload.get("username")
        if not user_id or not username:
            raise AuthenticationError("Malformed token", "INVALID_TOKEN")

        token_version = payload.get("token_version", 0)
        # Honour dependency overrides so tests can swap the database
        session_provider = request.app.dependency_overrides.get(
            get_sync_session, get_sync_session
        )
        sessions = session_provider()
        try:
            auth_service = AuthService(next(sessions))
            is_current = await auth_service.verify_token_version(
                str(user_id), token_version
            )
        finally:
            sessions.close()
        if not is_current:
            raise AuthenticationError("Session is no longer valid", "SESSION_REVOKED")

        return AuthState(
            user_id=str(user_id),
            username=str(username),
            full_name=str(payload.get("full_name") or username),
            is_super_admin=bool(payload.get("is_super_admin", False)),
            token_version=token_version,
        )


# Dependency for getting current user from request state
def get_current_user(request: Request) -> AuthState:
    """Dependency to get current authenticated user from request state"""
    auth_state = getattr(request.state, "auth", None)

    if not auth_state or not auth_state.is_authenticated:
        raise AuthenticationError("Not authenticated", "NOT_AUTHENTICATED")

    return auth_state


# Dependency for requiring any of the named capabilities
def require_permissions(*permission_names: str):
    """Create dependency that requires at least one of the given permissions"""

    async def check_permissions(
        current_user: AuthState = Depends(get_current_user),
        db: Session = Depends(get_sync_session),
    ) -> AuthState:
        permission_service = PermissionService(db)
        if not await permission_service.has_any(current_user, permission_names):
            raise AuthorizationError(
                f"Requires one of: {', '.join(permission_names)}",
                "INSUFFICIENT_PERMISSIONS",
            )
        return current_user

    return check_permissions


def require_super_admin(
    current_user: AuthState = Depends(get_current_user),
) -> AuthState:
    if not current_user.is_super_admin:
        raise AuthorizationError("Super admin access required", "SUPER_ADMIN_REQUIRED")
    return current_user
