from typing import List, Optional
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field

from .camel_base_model import CamelCaseBaseModel
from .registration_schemas import RegistrationResponse


class ReportQueryParams(BaseModel):
    """Approval date range, inclusive on both ends"""

    from_date: Optional[date] = Field(None, description="First approval day")
    to_date: Optional[date] = Field(None, description="Last approval day")
    include_rows: bool = Field(False, description="Return the matching registrations")


class ReportSummary(CamelCaseBaseModel):
    """Aggregate over approved registrations in a date range"""

    count: int = 0
    total_fees: Decimal = Decimal("0.00")
    distinct_categories: int = 0
    distinct_panchayaths: int = 0


class StatusCounts(CamelCaseBaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0


class ReportResponse(CamelCaseBaseModel):
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    summary: ReportSummary
    pending_amount: Decimal = Field(
        ..., description="Fees of all pending registrations, independent of the range"
    )
    status_counts: StatusCounts
    registrations: Optional[List[RegistrationResponse]] = None
