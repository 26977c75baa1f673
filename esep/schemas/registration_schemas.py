from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from .camel_base_model import CamelCaseBaseModel


class RegistrationCreateRequest(CamelCaseBaseModel):
    """Citizen submission. Required fields are checked by the service."""

    full_name: Optional[str] = Field(None, max_length=200, description="Full name")
    mobile_number: Optional[str] = Field(
        None, max_length=20, description="Mobile number"
    )
    address: Optional[str] = Field(None, description="Postal address")
    ward: Optional[str] = Field(None, max_length=100, description="Ward")
    agent: Optional[str] = Field(None, max_length=200, description="Referring agent")
    category_id: Optional[str] = Field(None, description="Registration category ID")
    preference_category_id: Optional[str] = Field(
        None, description="Preferred alternative category ID"
    )
    panchayath_id: Optional[str] = Field(None, description="Panchayath ID")


class RegistrationActionRequest(CamelCaseBaseModel):
    """Body for status and verification actions"""

    expected_version: Optional[int] = Field(
        None, ge=1, description="Version the caller last read; mismatches are rejected"
    )


class RegistrationListQueryParams(BaseModel):
    """Query parameters for registration list filtering"""

    status: Optional[Literal["pending", "approved", "rejected"]] = Field(
        None, description="Filter by status"
    )
    category_id: Optional[str] = Field(None, description="Filter by category")
    panchayath_id: Optional[str] = Field(None, description="Filter by panchayath")
    search: Optional[str] = Field(
        None, description="Substring of name, mobile number or customer ID"
    )
    expiring_within_days: Optional[int] = Field(
        None, ge=0, description="Only registrations expiring within this many days"
    )
    page: int = Field(1, ge=1, description="Page number")
    per_page: int = Field(50, ge=1, le=500, description="Items per page")


class RegistrationExportQueryParams(BaseModel):
    """Query parameters for registration exports"""

    status: Optional[Literal["pending", "approved", "rejected"]] = Field(
        None, description="Filter by status"
    )
    category_id: Optional[str] = Field(None, description="Filter by category")
    panchayath_id: Optional[str] = Field(None, description="Filter by panchayath")
    search: Optional[str] = Field(None, description="Search term")
    expiring_within_days: Optional[int] = Field(None, ge=0)


class StatusLookupQueryParams(BaseModel):
    """Public status lookup by customer ID or mobile number"""

    customer_id: Optional[str] = Field(None, description="ESEP customer ID")
    mobile_number: Optional[str] = Field(None, description="Registered mobile number")


class RegistrationResponse(CamelCaseBaseModel):
    """Response schema for registration data"""

    id: str
    customer_id: str
    full_name: str
    mobile_number: str
    address: str
    ward: str
    agent: Optional[str] = None
    category_id: str
    category_name: Optional[str] = None
    preference_category_id: Optional[str] = None
    preference_category_name: Optional[str] = None
    panchayath_id: Optional[str] = None
    panchayath_name: Optional[str] = None
    fee: Optional[Decimal] = None
    status: str
    created_at: datetime
    approved_date: Optional[datetime] = None
    approved_by: Optional[str] = None
    expiry_date: Optional[datetime] = None
    payment_verified: Optional[bool] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    version: int
    days_remaining: Optional[int] = Field(
        None, description="Whole days until expiry; absent when no expiry is set"
    )
    is_expired: bool = False


class RegistrationStatusResponse(CamelCaseBaseModel):
    """Public view of a registration"""

    customer_id: str
    full_name: str
    status: str
    category_name: Optional[str] = None
    fee: Optional[Decimal] = None
    created_at: datetime
    approved_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    days_remaining: Optional[int] = None


class ExpiringRegistrationItem(CamelCaseBaseModel):
    """Row of the expiring-registrations alert"""

    id: str
    name: str
    phone: str
    esep_id: str
    category: str
    location: str
    created_at: datetime
    days_remaining: int
