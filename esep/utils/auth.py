from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import uuid
import jwt
from passlib.context import CryptContext
import bcrypt

from esep.config.settings import settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthTokens:
    """Container for authentication tokens"""

    def __init__(self, access_token: str, csrf_token: str):
        self.access_token = access_token
        self.csrf_token = csrf_token


class AuthUtils:
    """Authentication utilities for JWT token management and password hashing"""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        try:
            return pwd_context.verify(password, password_hash)
        except ValueError:
            return False

    @staticmethod
    def generate_access_token(
        user_id: str,
        username: str,
        full_name: str,
        is_super_admin: bool = False,
        token_version: int = 0,
    ) -> str:
        """Generate JWT access token with admin information"""
        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        payload = {
            "sub": str(user_id),  # Subject (admin user ID)
            "username": username,
            "full_name": full_name,
            "is_super_admin": bool(is_super_admin),
            "token_version": token_version,
            "iat": now,  # Issued at
            "exp": expire,  # Expiration
            "jti": str(uuid.uuid4()),  # JWT ID for uniqueness
        }

        return jwt.encode(
            payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
        )

    @staticmethod
    def generate_csrf_token(access_token: str) -> str:
        """Generate CSRF token by hashing the access token"""
        return bcrypt.hashpw(access_token.encode(), bcrypt.gensalt()).decode()

    @staticmethod
    def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
        """Verify and decode access token"""
        try:
            return jwt.decode(
                token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

    @staticmethod
    def verify_csrf_token(access_token: str, csrf_token: str) -> bool:
        """Verify CSRF token against access token"""
        try:
            return bcrypt.checkpw(access_token.encode(), csrf_token.encode())
        except ValueError:
            return False

    @staticmethod
    def create_token_set(
        user_id: str,
        username: str,
        full_name: str,
        is_super_admin: bool = False,
        token_version: int = 0,
    ) -> AuthTokens:
        """Create an access token and its matching CSRF token"""
        access_token = AuthUtils.generate_access_token(
            user_id, username, full_name, is_super_admin, token_version
        )
        csrf_token = AuthUtils.generate_csrf_token(access_token)

        return AuthTokens(access_token=access_token, csrf_token=csrf_token)
