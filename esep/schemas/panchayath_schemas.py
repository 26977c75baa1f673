from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from .camel_base_model import CamelCaseBaseModel


class CreatePanchayathRequest(CamelCaseBaseModel):
    """Request schema for creating a panchayath"""

    name: str = Field(..., min_length=1, max_length=200, description="Panchayath name")
    district: str = Field(..., min_length=1, max_length=100, description="District")
    is_active: bool = Field(default=True, description="Whether the panchayath is active")


class UpdatePanchayathRequest(CamelCaseBaseModel):
    """Request schema for updating a panchayath"""

    name: str = Field(..., min_length=1, max_length=200, description="Panchayath name")
    district: str = Field(..., min_length=1, max_length=100, description="District")


class PanchayathListQueryParams(BaseModel):
    is_active: Optional[bool] = Field(None, description="Filter by active status")
    district: Optional[str] = Field(None, description="Filter by district")


class PanchayathResponse(CamelCaseBaseModel):
    """Response schema for panchayath data"""

    id: str
    name: str
    district: str
    is_active: bool
    created_at: datetime
