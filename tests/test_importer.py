"""Tests for license import mapping and validation."""

from datetime import date

from renovahub.domain.licenses.importer import (
    normalize_row,
    parse_amount,
    parse_renewal_date,
    read_csv_rows,
    sheet_row_to_dict,
)


class TestParsing:
    def test_iso_and_export_date_formats(self):
        assert parse_renewal_date("2025-06-30") == date(2025, 6, 30)
        assert parse_renewal_date("2025-06-30T00:00:00.000Z") == date(2025, 6, 30)
        assert parse_renewal_date("05/06/2025") == date(2025, 6, 5)

    def test_invalid_date_is_none(self):
        assert parse_renewal_date("next year") is None
        assert parse_renewal_date("") is None

    def test_formatted_amounts(self):
        assert parse_amount("$1,200.50") == 1200.5
        assert parse_amount(99) == 99.0
        assert parse_amount("n/a") is None
        assert parse_amount(None) is None


class TestNormalizeRow:
    def test_valid_row_with_legacy_amount_key(self):
        values, error = normalize_row(
            {
                "software_name": " Jira ",
                "renewal_date": "2025-09-01",
                "ammount": "450",
                "currency": "cop",
                "responsible_email": "ana@renovahub.app",
            }
        )
        assert error is None
        assert values["software_name"] == "Jira"
        assert values["amount"] == 450.0
        assert values["currency"] == "COP"
        assert values["status"] == "active"
        assert values["renewal_url"] is None

    def test_missing_required_fields(self):
        values, error = normalize_row({"software_name": "Jira", "amount": 10})
        assert values is None
        assert error == "Skipping invalid license: missing required fields for Jira"

    def test_invalid_date_is_rejected(self):
        _, error = normalize_row(
            {"software_name": "Jira", "renewal_date": "soon", "amount": 10, "responsible_email": "a@b.co"}
        )
        assert error == "Invalid renewal date for Jira: soon"

    def test_zero_amount_is_rejected(self):
        _, error = normalize_row(
            {"software_name": "Jira", "renewal_date": "2025-09-01", "amount": 0, "responsible_email": "a@b.co"}
        )
        assert "amount must be greater than 0" in error

    def test_export_headers_are_accepted(self):
        """A CSV produced by the export can be imported back."""
        values, error = normalize_row(
            {
                "ID": "x",
                "Software Name": "Zoom",
                "Renewal Date": "15/01/2026",
                "Amount": "14.99",
                "Currency": "USD",
                "Responsible Email": "ana@renovahub.app",
                "Renewal URL": "",
                "Status": "inactive",
            }
        )
        assert error is None
        assert values["renewal_date"] == date(2026, 1, 15)
        assert values["status"] == "inactive"

    def test_source_sheet_overrides_row_value(self):
        values, _ = normalize_row(
            {
                "software_name": "Zoom",
                "renewal_date": "2026-01-15",
                "amount": 5,
                "responsible_email": "a@b.co",
                "sourceSheet": "old",
            },
            source_sheet="Marketing",
        )
        assert values["source_sheet"] == "Marketing"


class TestSheetRows:
    def test_short_rows_are_padded(self):
        row = sheet_row_to_dict(["Notion", "2025-12-01", "$96"])
        assert row["software_name"] == "Notion"
        assert row["amount"] == "$96"
        assert row["responsible_email"] == ""
        assert row["status"] == ""


class TestReadCsv:
    def test_bom_and_blank_lines(self):
        content = "\ufeffSoftware Name,Renewal Date,Amount\nFigma,2025-05-01,120\n,,\n"
        rows = read_csv_rows(content)
        assert len(rows) == 1
        assert rows[0]["Software Name"] == "Figma"
