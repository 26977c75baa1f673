import csv
import io
from datetime import date, datetime
from decimal import Decimal

from esep.services.export_service import (
    ExportService,
    REGISTRATION_COLUMNS,
    EXPIRING_ALERT_COLUMNS,
)


COLUMNS = [
    ("Name", lambda r: r["name"]),
    ("Address", lambda r: r["address"]),
    ("Fee", lambda r: r["fee"]),
]


class TestFormatValue:
    """Test cell formatting."""

    def test_formats(self):
        assert ExportService.format_value(None) == ""
        assert ExportService.format_value(True) == "Yes"
        assert ExportService.format_value(False) == "No"
        assert ExportService.format_value(datetime(2025, 7, 1, 15, 45)) == "01/07/2025"
        assert ExportService.format_value(date(2025, 12, 31)) == "31/12/2025"
        assert ExportService.format_value(Decimal("300")) == "300.00"
        assert ExportService.format_value(7) == "7"


class TestCsvExport:
    """Test CSV rendering."""

    def test_header_and_trailing_newline_per_record(self):
        records = [
            {"name": "Fathima", "address": "Kondotty", "fee": Decimal("300")},
            {"name": "Suresh", "address": "Feroke", "fee": None},
        ]

        content = ExportService.to_csv(records, COLUMNS)

        assert content == (
            "Name,Address,Fee\n" "Fathima,Kondotty,300.00\n" "Suresh,Feroke,\n"
        )

    def test_comma_in_address_round_trips(self):
        address = 'House 12, Near "Juma" Masjid, Kondotty'
        records = [{"name": "Fathima", "address": address, "fee": Decimal("300")}]

        content = ExportService.to_csv(records, COLUMNS)

        assert '"House 12, Near ""Juma"" Masjid, Kondotty"' in content
        rows = list(csv.reader(io.StringIO(content)))
        assert rows[1][1] == address

    def test_empty_records_yield_header_only(self):
        assert ExportService.to_csv([], COLUMNS) == "Name,Address,Fee\n"

    def test_registration_columns_read_response_attributes(self):
        header = ExportService.to_csv([], REGISTRATION_COLUMNS).strip().split(",")

        assert header[0] == "Customer ID"
        assert "Days Remaining" in header
        assert header[-1] == "Payment Verified"

    def test_expiring_alert_columns(self):
        record = {
            "name": "Fathima",
            "phone": "9847012345",
            "esep_id": "ESEP252345AB12",
            "category": "Pennyekka",
            "location": "Kondotty, Ward 12",
            "created_at": datetime(2025, 6, 1),
            "days_remaining": 2,
        }

        content = ExportService.to_csv([record], EXPIRING_ALERT_COLUMNS)

        rows = list(csv.reader(io.StringIO(content)))
        assert rows[0] == [
            "Name",
            "Phone",
            "ESEP ID",
            "Category",
            "Location",
            "Created Date",
            "Days Remaining",
        ]
        assert rows[1] == [
            "Fathima",
            "9847012345",
            "ESEP252345AB12",
            "Pennyekka",
            "Kondotty, Ward 12",
            "01/06/2025",
            "2",
        ]


class TestHtmlExport:
    """Test printable HTML rendering."""

    def test_values_are_escaped(self):
        records = [
            {"name": "<script>alert(1)</script>", "address": "A & B", "fee": None}
        ]

        content = ExportService.to_html("Registrations", records, COLUMNS)

        assert "<script>alert(1)</script>" not in content
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in content
        assert "A &amp; B" in content

    def test_summary_generated_on_and_highlight(self):
        records = [{"name": "Fathima", "address": "Kondotty", "fee": Decimal("300")}]

        content = ExportService.to_html(
            "Expiring Registrations",
            records,
            COLUMNS,
            summary={"Total registrations": 1},
            highlight="Fee",
            generated_at=datetime(2025, 7, 10, 9, 5),
        )

        assert "<title>Expiring Registrations</title>" in content
        assert "10/07/2025 09:05" in content
        assert "Total registrations" in content
        assert '<span class="highlight">300.00</span>' in content
        assert content.count("Fathima") == 2

    def test_no_records_renders_placeholder(self):
        content = ExportService.to_html("Registrations", [], COLUMNS)

        assert "No registrations to show." in content


def test_export_filename():
    assert (
        ExportService.export_filename("registrations", "csv", date(2025, 7, 1))
        == "registrations-2025-07-01.csv"
    )
