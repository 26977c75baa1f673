import csv
import io
from html import escape
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from datetime import date, datetime

from esep.templates.registration_report_template import (
    report_document_template,
    summary_line_template,
    record_block_template,
    record_field_template,
    highlighted_field_template,
    empty_records_template,
)
from esep.utils.datetime_utils import naive_utc_now

# (header, getter) pairs; getters receive one record
Column = Tuple[str, Callable[[Any], Any]]


def _attr(name: str) -> Callable[[Any], Any]:
    def getter(record: Any) -> Any:
        if isinstance(record, dict):
            return record.get(name)
        return getattr(record, name, None)

    return getter


REGISTRATION_COLUMNS: List[Column] = [
    ("Customer ID", _attr("customer_id")),
    ("Full Name", _attr("full_name")),
    ("Mobile Number", _attr("mobile_number")),
    ("Address", _attr("address")),
    ("Ward", _attr("ward")),
    ("Agent", _attr("agent")),
    ("Category", _attr("category_name")),
    ("Preference Category", _attr("preference_category_name")),
    ("Panchayath", _attr("panchayath_name")),
    ("Fee", _attr("fee")),
    ("Status", _attr("status")),
    ("Created Date", _attr("created_at")),
    ("Approved Date", _attr("approved_date")),
    ("Approved By", _attr("approved_by")),
    ("Expiry Date", _attr("expiry_date")),
    ("Days Remaining", _attr("days_remaining")),
    ("Payment Verified", _attr("payment_verified")),
]

EXPIRING_ALERT_COLUMNS: List[Column] = [
    ("Name", _attr("name")),
    ("Phone", _attr("phone")),
    ("ESEP ID", _attr("esep_id")),
    ("Category", _attr("category")),
    ("Location", _attr("location")),
    ("Created Date", _attr("created_at")),
    ("Days Remaining", _attr("days_remaining")),
]


class ExportService:
    """Renders already-derived records as CSV text or a printable HTML page"""

    @staticmethod
    def format_value(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "Yes" if value else "No"
        if isinstance(value, Enum):
            return str(value.value)
        if isinstance(value, datetime):
            return value.strftime("%d/%m/%Y")
        if isinstance(value, date):
            return value.strftime("%d/%m/%Y")
        if isinstance(value, Decimal):
            return f"{value:.2f}"
        return str(value)

    @staticmethod
    def to_csv(records: Iterable[Any], columns: Sequence[Column]) -> str:
        """Header row plus one row per record, every row ending in a newline.

        Fields holding a comma, quote or line break are quoted and inner
        quotes doubled.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
        writer.writerow([header for header, _ in columns])
        for record in records:
            writer.writerow(
                [ExportService.format_value(getter(record)) for _, getter in columns]
            )
        return buffer.getvalue()

    @staticmethod
    def to_html(
        title: str,
        records: Iterable[Any],
        columns: Sequence[Column],
        summary: Optional[Dict[str, Any]] = None,
        heading: Optional[Callable[[Any], Any]] = None,
        highlight: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ) -> str:
        """Static printable document with summary lines and one block per record.

        ``heading`` picks the block title (first column by default) and
        ``highlight`` names a column rendered emphasised. Every value is
        HTML-escaped.
        """
        heading = heading or columns[0][1]
        generated_at = generated_at or naive_utc_now()

        summary_lines = [
            summary_line_template.format(
                label=escape(str(label)), value=escape(ExportService.format_value(value))
            )
            for label, value in (summary or {}).items()
        ]

        blocks = []
        for record in records:
            fields = []
            for header, getter in columns:
                template = (
                    highlighted_field_template
                    if header == highlight
                    else record_field_template
                )
                fields.append(
                    template.format(
                        label=escape(header),
                        value=escape(ExportService.format_value(getter(record))),
                    )
                )
            blocks.append(
                record_block_template.format(
                    heading=escape(ExportService.format_value(heading(record))),
                    fields="\n".join(fields),
                )
            )

        return report_document_template.format(
            title=escape(title),
            generated_on=generated_at.strftime("%d/%m/%Y %H:%M"),
            summary="\n".join(summary_lines),
            records="\n".join(blocks) if blocks else empty_records_template,
        )

    @staticmethod
    def export_filename(stem: str, extension: str, day: Optional[date] = None) -> str:
        day = day or naive_utc_now().date()
        return f"{stem}-{day.strftime('%Y-%m-%d')}.{extension}"
