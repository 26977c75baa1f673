from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator

from .camel_base_model import CamelCaseBaseModel


class CategoryBase(CamelCaseBaseModel):
    name_english: str = Field(
        ..., min_length=1, max_length=200, description="Category name in English"
    )
    name_malayalam: str = Field(
        ..., min_length=1, max_length=200, description="Category name in Malayalam"
    )
    description: Optional[str] = Field(None, description="Category description")
    actual_fee: Optional[Decimal] = Field(
        None, ge=0, max_digits=12, decimal_places=2, description="Full fee"
    )
    offer_fee: Optional[Decimal] = Field(
        None, ge=0, max_digits=12, decimal_places=2, description="Discounted fee"
    )
    expiry_days: Optional[int] = Field(
        30, gt=0, description="Days after approval before the registration lapses"
    )

    @model_validator(mode="after")
    def check_offer_fee(self):
        if (
            self.offer_fee is not None
            and self.actual_fee is not None
            and self.offer_fee > self.actual_fee
        ):
            raise ValueError("Offer fee cannot exceed the actual fee")
        return self


class CreateCategoryRequest(CategoryBase):
    """Request schema for creating a new category"""

    is_active: bool = Field(default=True, description="Whether the category is active")


class UpdateCategoryRequest(CategoryBase):
    """Request schema for updating an existing category"""


class CategoryListQueryParams(BaseModel):
    """Query parameters for category list filtering and sorting"""

    is_active: Optional[bool] = Field(None, description="Filter by active status")
    sort_by: Optional[
        Literal["created_at", "name_english", "actual_fee", "expiry_days"]
    ] = Field("name_english", description="Field to sort by")
    order: Optional[Literal["asc", "desc"]] = Field("asc", description="Sort order")


class CategoryResponse(CamelCaseBaseModel):
    """Response schema for category data"""

    id: str = Field(..., description="Category ID")
    name_english: str
    name_malayalam: str
    description: Optional[str] = None
    actual_fee: Optional[Decimal] = None
    offer_fee: Optional[Decimal] = None
    expiry_days: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
