from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from .camel_base_model import CamelCaseBaseModel


class GrantPermissionRequest(CamelCaseBaseModel):
    """Request schema for granting a permission to an admin"""

    admin_user_id: str = Field(..., description="Admin user receiving the permission")
    permission_id: str = Field(..., description="Permission to grant")


class CreateAdminUserRequest(CamelCaseBaseModel):
    """Request schema for creating an admin account"""

    username: str = Field(..., min_length=3, max_length=100, description="Login name")
    full_name: str = Field(..., min_length=1, max_length=200, description="Full name")
    email: Optional[str] = Field(None, max_length=320, description="Email address")
    password: str = Field(..., min_length=8, description="Initial password")
    permission_ids: List[str] = Field(
        default_factory=list, description="Permissions granted on creation"
    )


class GrantListQueryParams(BaseModel):
    search: Optional[str] = Field(
        None, description="Matches admin full name, username or permission name"
    )


class PermissionResponse(CamelCaseBaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool


class UserPermissionResponse(CamelCaseBaseModel):
    """A single grant joined with its admin and permission"""

    id: str
    admin_user_id: str
    username: str
    full_name: str
    permission_id: str
    permission_name: str
    granted_by: Optional[str] = None
    granted_at: datetime


class AdminUserSummary(CamelCaseBaseModel):
    id: str
    username: str
    full_name: str
    email: Optional[str] = None
    is_active: bool
    is_super_admin: bool
    last_login: Optional[datetime] = None


class CapabilitiesResponse(CamelCaseBaseModel):
    """Capability set of the calling admin, used for UI gating"""

    username: str
    is_super_admin: bool
    permissions: List[str]
