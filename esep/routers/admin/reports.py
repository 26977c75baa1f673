from typing import Annotated

from fastapi import APIRouter, Depends, Request

from esep.middlewares.auth_middleware import require_permissions
from esep.services.report_service import (
    ReportService,
    ReportAggregator,
    get_report_service,
)
from esep.services.registration_service import RegistrationService
from esep.services.export_service import ExportService, REGISTRATION_COLUMNS
from esep.services.permission_service import VIEW_REPORTS
from esep.schemas.report_schemas import ReportQueryParams, ReportResponse
from esep.utils.datetime_utils import naive_utc_now
from esep.utils.responses import ResponseBuilder

reports_router = APIRouter(dependencies=[Depends(require_permissions(VIEW_REPORTS))])


def _report_summary_lines(query_params: ReportQueryParams, rows) -> dict:
    summary = ReportAggregator.aggregate(
        rows, query_params.from_date, query_params.to_date
    )
    return {
        "From": query_params.from_date,
        "To": query_params.to_date,
        "Approved registrations": summary.count,
        "Total fees": summary.total_fees,
        "Categories": summary.distinct_categories,
        "Panchayaths": summary.distinct_panchayaths,
    }


@reports_router.get(
    "/",
    response_model=ReportResponse,
    summary="Approved registrations report",
    description="Count, fee total and distinct categories and panchayaths over an approval date range",
)
async def get_report(
    request: Request,
    query_params: Annotated[ReportQueryParams, Depends()],
    report_service: ReportService = Depends(get_report_service),
):
    report = await report_service.get_report(query_params)
    return ResponseBuilder.success(
        request=request,
        data=report.model_dump(by_alias=True),
        message="Report generated successfully",
    )


@reports_router.get("/export/csv", summary="Export report rows as CSV")
async def export_report_csv(
    query_params: Annotated[ReportQueryParams, Depends()],
    report_service: ReportService = Depends(get_report_service),
):
    registrations = await report_service.get_report_rows(
        query_params.from_date, query_params.to_date
    )
    now = naive_utc_now()
    content = ExportService.to_csv(
        [RegistrationService.to_response(r, now) for r in registrations],
        REGISTRATION_COLUMNS,
    )
    return ResponseBuilder.file(
        content, ExportService.export_filename("report", "csv"), "text/csv"
    )


@reports_router.get("/export/html", summary="Printable report")
async def export_report_html(
    query_params: Annotated[ReportQueryParams, Depends()],
    report_service: ReportService = Depends(get_report_service),
):
    registrations = await report_service.get_report_rows(
        query_params.from_date, query_params.to_date
    )
    now = naive_utc_now()
    content = ExportService.to_html(
        "Approved Registrations Report",
        [RegistrationService.to_response(r, now) for r in registrations],
        REGISTRATION_COLUMNS,
        summary=_report_summary_lines(query_params, registrations),
        heading=lambda r: f"{r.full_name} ({r.customer_id})",
        generated_at=now,
    )
    return ResponseBuilder.file(
        content,
        ExportService.export_filename("report", "html"),
        "text/html",
        disposition="inline",
    )
