"""Tests for Google Sheets import and export with a mocked Sheets client."""

from datetime import date
from unittest.mock import MagicMock

from googleapiclient.errors import HttpError

from renovahub.models import License

HEADER = ["Software", "Renewal Date", "Amount", "Currency", "Email", "URL", "Status"]


def sheets_metadata(*titles):
    return {"sheets": [{"properties": {"title": title}} for title in titles]}


def http_error(status=403):
    return HttpError(MagicMock(status=status, reason="Forbidden"), b"")


class TestImport:
    def test_imports_every_tab(self, client, admin_user, sheets_client, db):
        spreadsheets = sheets_client.spreadsheets.return_value
        spreadsheets.get.return_value.execute.return_value = sheets_metadata("Marketing", "Ventas", "Vacía")
        spreadsheets.values.return_value.get.return_value.execute.side_effect = [
            {
                "values": [
                    HEADER,
                    ["Figma", "2025-05-01", "$120", "USD", "ana@renovahub.app"],
                    ["Canva", "someday", "50", "USD", "ana@renovahub.app"],
                ]
            },
            {"values": [HEADER, ["Salesforce", "15/08/2025", "1,500", "usd", "ventas@renovahub.app", "", "active"]]},
            {"values": [HEADER]},
        ]

        response = client.post("/google-sheets/import", json={"spreadsheetId": "sheet-123"})

        body = response.json()
        assert response.status_code == 200
        assert body["totalSuccessCount"] == 2
        assert body["importedSheets"] == ["Marketing", "Ventas"]
        assert body["errors"] == ["Sheet Marketing, row 3: Invalid renewal date for Canva: someday"]

        salesforce = db.query(License).filter(License.software_name == "Salesforce").one()
        assert salesforce.renewal_date == date(2025, 8, 15)
        assert salesforce.amount == 1500.0
        assert salesforce.currency == "USD"
        assert salesforce.source_sheet == "Ventas"

    def test_ranges_read_by_tab(self, client, admin_user, sheets_client):
        spreadsheets = sheets_client.spreadsheets.return_value
        spreadsheets.get.return_value.execute.return_value = sheets_metadata("Licencias")
        spreadsheets.values.return_value.get.return_value.execute.return_value = {"values": []}

        client.post("/google-sheets/import", json={"spreadsheetId": "sheet-123"})

        spreadsheets.values.return_value.get.assert_called_once_with(
            spreadsheetId="sheet-123", range="Licencias!A:Z"
        )

    def test_no_tabs(self, client, admin_user, sheets_client):
        sheets_client.spreadsheets.return_value.get.return_value.execute.return_value = {"sheets": []}
        response = client.post("/google-sheets/import", json={"spreadsheetId": "sheet-123"})
        assert response.json() == {"message": "No sheets found in the specified spreadsheet"}

    def test_unreadable_spreadsheet(self, client, admin_user, sheets_client):
        sheets_client.spreadsheets.return_value.get.return_value.execute.side_effect = http_error()
        response = client.post("/google-sheets/import", json={"spreadsheetId": "sheet-123"})
        assert response.status_code == 400

    def test_blank_spreadsheet_id(self, client, admin_user):
        response = client.post("/google-sheets/import", json={"spreadsheetId": " "})
        assert response.status_code == 422

    def test_requires_admin(self, client, auth_claims, regular_user):
        auth_claims["uid"] = "user-uid"
        response = client.post("/google-sheets/import", json={"spreadsheetId": "sheet-123"})
        assert response.status_code == 403


class TestExport:
    def test_writes_header_and_rows(self, client, admin_user, sheets_client, make_license):
        make_license(software_name="Zoom", renewal_date=date(2025, 7, 4))
        update = sheets_client.spreadsheets.return_value.values.return_value.update
        update.return_value.execute.return_value = {"updatedRange": "Licencias!A1:J2"}

        response = client.post("/google-sheets/export", json={"spreadsheetId": "sheet-123"})

        assert response.json()["exportedCount"] == 1
        assert response.json()["updatedRange"] == "Licencias!A1:J2"
        kwargs = update.call_args.kwargs
        assert kwargs["range"] == "Licencias!A1"
        assert kwargs["valueInputOption"] == "RAW"
        header, row = kwargs["body"]["values"]
        assert header[:3] == ["ID", "Software Name", "Renewal Date"]
        assert row[1:3] == ["Zoom", "04/07/2025"]

    def test_nothing_is_written_without_licenses(self, client, admin_user, sheets_client):
        response = client.post("/google-sheets/export", json={"spreadsheetId": "sheet-123"})

        assert response.json() == {"message": "No licenses to export", "exportedCount": 0}
        sheets_client.spreadsheets.return_value.values.return_value.update.assert_not_called()

    def test_custom_tab(self, client, admin_user, sheets_client, make_license):
        make_license()
        update = sheets_client.spreadsheets.return_value.values.return_value.update
        update.return_value.execute.return_value = {}

        client.post("/google-sheets/export", json={"spreadsheetId": "sheet-123", "sheetName": "Backup"})

        assert update.call_args.kwargs["range"] == "Backup!A1"
