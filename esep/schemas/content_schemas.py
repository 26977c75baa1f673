from typing import Optional
from datetime import datetime
from pydantic import Field

from .camel_base_model import CamelCaseBaseModel


class AnnouncementRequest(CamelCaseBaseModel):
    """Request schema for creating or updating an announcement"""

    title: str = Field(..., min_length=1, max_length=300, description="Headline")
    content: str = Field(..., min_length=1, description="Announcement body")
    is_active: bool = Field(True, description="Shown on the public page when active")


class AnnouncementResponse(CamelCaseBaseModel):
    id: str
    title: str
    content: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class UtilityRequest(CamelCaseBaseModel):
    """Request schema for creating or updating a useful link"""

    name: str = Field(..., min_length=1, max_length=200, description="Link label")
    url: str = Field(..., min_length=1, max_length=1000, description="Target URL")
    description: Optional[str] = Field(None, description="Short description")
    is_active: bool = Field(True, description="Shown on the public page when active")


class UtilityResponse(CamelCaseBaseModel):
    id: str
    name: str
    url: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
