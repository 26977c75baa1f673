from decimal import Decimal
from typing import Any, Iterable, List, Optional
from datetime import date

from fastapi import Depends
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select

from esep.db.models import Registration, RegistrationStatus
from esep.db.session import get_sync_session
from esep.schemas.report_schemas import (
    ReportQueryParams,
    ReportResponse,
    ReportSummary,
    StatusCounts,
)
from esep.services.base import BaseService
from esep.services.registration_service import RegistrationService
from esep.utils.datetime_utils import start_of_day, end_of_day, naive_utc_now
from esep.utils.errors import ValidationError
from esep.utils.logging import get_logger

logger = get_logger()


def _is_status(registration: Any, status: RegistrationStatus) -> bool:
    value = registration.status
    return value == status or value == status.value


class ReportAggregator:
    """Pure aggregation over a snapshot of registrations"""

    @staticmethod
    def filter_by_approval_date(
        registrations: Iterable[Any],
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[Any]:
        """Approved registrations whose approval falls inside the range.

        Bounds are whole days. With one bound the range is open on the other
        side; with no bounds nothing matches.
        """
        if from_date is None and to_date is None:
            return []

        lower = start_of_day(from_date) if from_date else None
        upper = end_of_day(to_date) if to_date else None

        matched = []
        for registration in registrations:
            approved_date = registration.approved_date
            if not _is_status(registration, RegistrationStatus.APPROVED):
                continue
            if approved_date is None:
                continue
            if lower is not None and approved_date < lower:
                continue
            if upper is not None and approved_date > upper:
                continue
            matched.append(registration)
        return matched

    @staticmethod
    def aggregate(
        registrations: Iterable[Any],
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> ReportSummary:
        matched = ReportAggregator.filter_by_approval_date(
            registrations, from_date, to_date
        )
        return ReportSummary(
            count=len(matched),
            total_fees=sum(
                (Decimal(str(r.fee or 0)) for r in matched), Decimal("0.00")
            ),
            distinct_categories=len({r.category_id for r in matched if r.category_id}),
            distinct_panchayaths=len(
                {r.panchayath_id for r in matched if r.panchayath_id}
            ),
        )

    @staticmethod
    def pending_amount(registrations: Iterable[Any]) -> Decimal:
        """Fees over pending registrations; ignores any date range"""
        return sum(
            (
                Decimal(str(r.fee or 0))
                for r in registrations
                if _is_status(r, RegistrationStatus.PENDING)
            ),
            Decimal("0.00"),
        )

    @staticmethod
    def status_counts(registrations: Iterable[Any]) -> StatusCounts:
        counts = StatusCounts()
        for registration in registrations:
            for status in RegistrationStatus:
                if _is_status(registration, status):
                    setattr(counts, status.value, getattr(counts, status.value) + 1)
            counts.total += 1
        return counts


class ReportService(BaseService):
    """Loads registration snapshots and runs the aggregator over them"""

    async def load_snapshot(self) -> List[Registration]:
        result = self.db.execute(
            select(Registration)
            .options(
                selectinload(Registration.category),
                selectinload(Registration.preference_category),
                selectinload(Registration.panchayath),
            )
            .order_by(Registration.approved_date.desc(), Registration.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_report(self, query_params: ReportQueryParams) -> ReportResponse:
        self._validate_range(query_params.from_date, query_params.to_date)
        registrations = await self.load_snapshot()
        summary = ReportAggregator.aggregate(
            registrations, query_params.from_date, query_params.to_date
        )

        rows = None
        if query_params.include_rows:
            now = naive_utc_now()
            rows = [
                RegistrationService.to_response(registration, now)
                for registration in ReportAggregator.filter_by_approval_date(
                    registrations, query_params.from_date, query_params.to_date
                )
            ]

        logger.info(
            f"Report {query_params.from_date or '-'} to {query_params.to_date or '-'}: "
            f"{summary.count} registrations, {summary.total_fees} collected"
        )
        return ReportResponse(
            from_date=query_params.from_date,
            to_date=query_params.to_date,
            summary=summary,
            pending_amount=ReportAggregator.pending_amount(registrations),
            status_counts=ReportAggregator.status_counts(registrations),
            registrations=rows,
        )

    async def get_report_rows(
        self, from_date: Optional[date], to_date: Optional[date]
    ) -> List[Registration]:
        self._validate_range(from_date, to_date)
        registrations = await self.load_snapshot()
        return ReportAggregator.filter_by_approval_date(registrations, from_date, to_date)

    @staticmethod
    def _validate_range(from_date: Optional[date], to_date: Optional[date]) -> None:
        if from_date and to_date and from_date > to_date:
            raise ValidationError(
                "The start date must not be after the end date", "INVALID_DATE_RANGE"
            )


def get_report_service(
    db_session: Session = Depends(get_sync_session),
) -> ReportService:
    """Dependency function to get ReportService instance"""
    return ReportService(db_session)
