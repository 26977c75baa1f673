from typing import Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy import select

from esep.db.models import AdminUser
from esep.utils.auth import AuthUtils, AuthTokens
from esep.utils.datetime_utils import naive_utc_now
from esep.utils.errors import AuthenticationError


class AuthService:
    """Authentication service for handling login, logout, and token management"""

    def __init__(self, db_session: Session):
        self.db = db_session

    async def authenticate_user(self, username: str, password: str) -> Optional[AdminUser]:
        """Authenticate an active admin by username and password hash"""
        stmt = select(AdminUser).where(
            AdminUser.username == username.strip().lower(), AdminUser.is_active == True
        )
        result = self.db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user:
            return None

        if not AuthUtils.verify_password(password, user.password_hash):
            return None

        return user

    async def login_user(
        self, username: str, password: str
    ) -> Tuple[AuthTokens, AdminUser]:
        """Login admin and generate authentication tokens"""
        user = await self.authenticate_user(username, password)
        if not user:
            raise AuthenticationError(
                "Invalid username or password", "INVALID_CREDENTIALS"
            )

        # Increment token version first for new login session
        user.access_token_version += 1

        tokens = AuthUtils.create_token_set(
            user_id=str(user.id),
            username=user.username,
            full_name=user.full_name,
            is_super_admin=user.is_super_admin,
            token_version=user.access_token_version,
        )

        user.last_login = naive_utc_now()
        self.db.commit()

        return tokens, user

    async def logout_user(self, user_id: str) -> bool:
        """Logout admin by incrementing token version"""
        user = self.db.get(AdminUser, user_id)
        if not user:
            return False

        user.access_token_version += 1
        self.db.commit()

        return True

    async def get_user_by_id(self, user_id: str) -> Optional[AdminUser]:
        """Get active admin by ID"""
        stmt = select(AdminUser).where(
            AdminUser.id == user_id, AdminUser.is_active == True
        )
        result = self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def verify_token_version(self, user_id: str, token_version: int) -> bool:
        """Verify if the token version is still valid"""
        user = await self.get_user_by_id(user_id)
        if not user:
            return False
        return user.access_token_version == token_version
