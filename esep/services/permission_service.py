from typing import Any, Iterable, List, Optional, Set

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select, or_

from esep.db.models import AdminUser, Permission, UserPermission
from esep.db.session import get_sync_session
from esep.schemas.permission_schemas import (
    CreateAdminUserRequest,
    UserPermissionResponse,
)
from esep.services.base import BaseService
from esep.utils.auth import AuthUtils
from esep.utils.datetime_utils import naive_utc_now
from esep.utils.errors import DuplicateError, NotFoundError, ValidationError
from esep.utils.logging import get_logger

logger = get_logger()

# Capability keys known to the admin API
MANAGE_REGISTRATIONS = "manage_registrations"
VERIFY_PAYMENTS = "verify_payments"
MANAGE_CATEGORIES = "manage_categories"
MANAGE_PANCHAYATHS = "manage_panchayaths"
VIEW_REPORTS = "view_reports"
MANAGE_ACCOUNTS = "manage_accounts"
MANAGE_PERMISSIONS = "manage_permissions"
MANAGE_ANNOUNCEMENTS = "manage_announcements"
MANAGE_UTILITIES = "manage_utilities"


def _identity_id(identity: Any) -> str:
    """AuthState carries ``user_id``; AdminUser rows carry ``id``"""
    user_id = getattr(identity, "user_id", None)
    return str(user_id if user_id is not None else identity.id)


class PermissionService(BaseService):
    """Maps admin identities to capability names and manages grants"""

    async def permissions_for(self, identity: Any) -> Set[str]:
        """Capability names held by an admin.

        A super admin holds every active permission without explicit grants.
        Everyone else holds the active permissions granted to them.
        """
        if getattr(identity, "is_super_admin", False):
            result = self.db.execute(
                select(Permission.name).where(Permission.is_active == True)
            )
            return set(result.scalars().all())

        result = self.db.execute(
            select(Permission.name)
            .join(UserPermission, UserPermission.permission_id == Permission.id)
            .join(AdminUser, AdminUser.id == UserPermission.admin_user_id)
            .where(
                UserPermission.admin_user_id == _identity_id(identity),
                Permission.is_active == True,
                AdminUser.is_active == True,
            )
        )
        return set(result.scalars().all())

    async def has_any(self, identity: Any, required: Iterable[str]) -> bool:
        return bool(await self.permissions_for(identity) & set(required))

    async def grant(
        self, admin_user_id: str, permission_id: str, grantor: str
    ) -> UserPermission:
        admin_user = self.db.get(AdminUser, admin_user_id)
        if not admin_user or not admin_user.is_active:
            raise NotFoundError("Admin user not found or inactive", "ADMIN_NOT_FOUND")

        permission = self.db.get(Permission, permission_id)
        if not permission or not permission.is_active:
            raise NotFoundError(
                "Permission not found or inactive", "PERMISSION_NOT_FOUND"
            )

        existing = self.db.execute(
            select(UserPermission.id).where(
                UserPermission.admin_user_id == admin_user_id,
                UserPermission.permission_id == permission_id,
            )
        ).first()
        if existing:
            raise DuplicateError(
                f"{admin_user.username} already has {permission.name}",
                "PERMISSION_ALREADY_GRANTED",
            )

        user_permission = UserPermission(
            admin_user_id=admin_user_id,
            permission_id=permission_id,
            granted_by=grantor,
            granted_at=naive_utc_now(),
        )
        self.db.add(user_permission)
        self._commit("grant permission", duplicate_code="PERMISSION_ALREADY_GRANTED")
        self.db.refresh(user_permission)

        logger.info(f"{grantor} granted {permission.name} to {admin_user.username}")
        return user_permission

    async def revoke(self, user_permission_id: str) -> bool:
        """Remove one grant. Revoking an absent grant is a no-op."""
        user_permission = self.db.get(UserPermission, user_permission_id)
        if not user_permission:
            logger.info(f"Grant {user_permission_id} already absent, nothing to revoke")
            return False

        self.db.delete(user_permission)
        self._commit("revoke permission")
        logger.info(f"Revoked grant {user_permission_id}")
        return True

    async def list_permissions(self, active_only: bool = False) -> List[Permission]:
        query = select(Permission).order_by(Permission.name.asc())
        if active_only:
            query = query.where(Permission.is_active == True)
        return list(self.db.execute(query).scalars().all())

    async def list_admin_users(self) -> List[AdminUser]:
        result = self.db.execute(select(AdminUser).order_by(AdminUser.username.asc()))
        return list(result.scalars().all())

    async def list_grants(self, search: Optional[str] = None) -> List[UserPermissionResponse]:
        """Grants joined with admin and permission, optionally filtered by a search term"""
        query = (
            select(UserPermission, AdminUser, Permission)
            .join(AdminUser, AdminUser.id == UserPermission.admin_user_id)
            .join(Permission, Permission.id == UserPermission.permission_id)
            .order_by(UserPermission.granted_at.desc())
        )
        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.where(
                or_(
                    AdminUser.full_name.ilike(term),
                    AdminUser.username.ilike(term),
                    Permission.name.ilike(term),
                )
            )

        grants = []
        for user_permission, admin_user, permission in self.db.execute(query).all():
            grants.append(
                UserPermissionResponse(
                    id=user_permission.id,
                    admin_user_id=admin_user.id,
                    username=admin_user.username,
                    full_name=admin_user.full_name,
                    permission_id=permission.id,
                    permission_name=permission.name,
                    granted_by=user_permission.granted_by,
                    granted_at=user_permission.granted_at,
                )
            )
        return grants

    async def create_admin_user(
        self, data: CreateAdminUserRequest, creator: str
    ) -> AdminUser:
        """Create a regular admin account with optional initial grants"""
        username = data.username.strip().lower()
        exists = self.db.execute(
            select(AdminUser.id).where(AdminUser.username == username)
        ).first()
        if exists:
            raise DuplicateError(f"Username {username} is taken", "USERNAME_TAKEN")

        permissions = []
        for permission_id in dict.fromkeys(data.permission_ids):
            permission = self.db.get(Permission, permission_id)
            if not permission or not permission.is_active:
                raise ValidationError(
                    f"Unknown permission {permission_id}", "PERMISSION_NOT_FOUND"
                )
            permissions.append(permission)

        admin_user = AdminUser(
            username=username,
            full_name=data.full_name.strip(),
            email=data.email,
            password_hash=AuthUtils.hash_password(data.password),
            is_active=True,
            is_super_admin=False,
        )
        admin_user.user_permissions = [
            UserPermission(
                permission=permission, granted_by=creator, granted_at=naive_utc_now()
            )
            for permission in permissions
        ]
        self.db.add(admin_user)
        self._commit("create admin user", duplicate_code="USERNAME_TAKEN")
        self.db.refresh(admin_user)

        logger.info(f"{creator} created admin user {username}")
        return admin_user


def get_permission_service(
    db_session: Session = Depends(get_sync_session),
) -> PermissionService:
    """Dependency function to get PermissionService instance"""
    return PermissionService(db_session)
