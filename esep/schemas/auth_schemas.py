from typing import List, Optional
from pydantic import Field
from .camel_base_model import CamelCaseBaseModel as BaseModel


class LoginRequest(BaseModel):
    """Login request schema"""

    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class AdminUserResponse(BaseModel):
    """Admin user response schema"""

    id: str = Field(..., description="Admin user ID")
    username: str = Field(..., description="Username")
    full_name: str = Field(..., description="Full name")
    email: Optional[str] = Field(None, description="Email address")
    is_active: bool = Field(..., description="Admin active status")
    is_super_admin: bool = Field(..., description="Holds every permission")
    permissions: List[str] = Field(
        default_factory=list, description="Capability names held by the admin"
    )


class LoginResponse(BaseModel):
    """Login response schema"""

    access_token: str = Field(..., description="Bearer access token")
    csrf_token: str = Field(..., description="CSRF token bound to the access token")
    token_type: str = Field("bearer", description="Token type")
    user: AdminUserResponse = Field(..., description="Authenticated admin")
