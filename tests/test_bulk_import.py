"""
WealthDesk - Bulk Import Tests

Client and ledger uploads through BulkImportService and the upload routes.
"""

import io
import json
from datetime import date, datetime

import pytest
import xlwt
from openpyxl import Workbook
from sqlalchemy import func, select

from app.models import Client, Transaction, User
from app.models.transaction import Indicator
from app.services import bulk_import_service
from app.services.bulk_import_service import (
    BulkImportService,
    excel_date,
    optional_int,
    positive_amount,
    read_rows,
    sheet_row_to_client,
    transaction_date,
)
from app.utils.error_handling import ValidationException

from conftest import make_client


def client_rows(count=5, missing_email_at=None):
    rows = []
    for i in range(1, count + 1):
        rows.append({
            "client_code": f"BK{i:03d}",
            "name": f"Bulk Client {i}",
            "mobile": f"98000000{i:02d}",
            "email": "" if i == missing_email_at else f"bulk{i}@example.com",
            "pan_no": f"ABCDE{i:04d}F",
        })
    return rows


def as_csv(rows):
    header = list(rows[0].keys())
    lines = [",".join(header)] + [",".join(str(r[h]) for h in header) for r in rows]
    return "\n".join(lines).encode()


def as_xlsx(header, rows):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(header)
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def as_xls(header, rows):
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Sheet1")
    date_style = xlwt.easyxf(num_format_str="DD-MM-YYYY")
    for col, value in enumerate(header):
        sheet.write(0, col, value)
    for r, row in enumerate(rows, start=1):
        for col, value in enumerate(row):
            if isinstance(value, datetime):
                sheet.write(r, col, value, date_style)
            elif value is not None:
                sheet.write(r, col, value)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


async def count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestValueParsing:

    def test_excel_serial_date(self):
        assert excel_date(45658) == date(2025, 1, 1)

    def test_day_first_string(self):
        assert excel_date("31-12-2025") == date(2025, 12, 31)

    def test_datetime_cell(self):
        assert excel_date(datetime(2025, 6, 1, 10, 30)) == date(2025, 6, 1)

    def test_unparseable_date_falls_back_to_today(self):
        assert transaction_date("not a date", 5) == date.today()

    def test_free_form_transaction_date(self):
        assert transaction_date("March 3, 2025", 2) == date(2025, 3, 3)

    @pytest.mark.parametrize("value", ["0", "-5", "abc", None, "NaN"])
    def test_positive_amount_rejects(self, value):
        with pytest.raises(ValidationException):
            positive_amount(value)

    def test_positive_amount_strips_grouping(self):
        assert str(positive_amount("1,250.5")) == "1250.50"

    def test_missing_required_columns(self):
        with pytest.raises(ValidationException) as exc_info:
            sheet_row_to_client({"client_code": "X", "name": "Y"})
        assert "mobile" in exc_info.value.message
        assert "email" in exc_info.value.message

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf", float("nan"), float("inf"), "12a"])
    def test_optional_int_ignores_non_numbers(self, value):
        assert optional_int(value) is None

    def test_optional_int_reads_spreadsheet_floats(self):
        assert optional_int(400001.0) == 400001

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_serial_date(self, value):
        assert excel_date(value) is None


class TestReadRows:

    def test_unsupported_extension(self):
        with pytest.raises(ValidationException) as exc_info:
            read_rows(b"data", "clients.txt")
        assert exc_info.value.code.value == "INVALID_FILE"

    def test_empty_file(self):
        with pytest.raises(ValidationException):
            read_rows(b"", "clients.csv")

    def test_header_only(self):
        with pytest.raises(ValidationException):
            read_rows(b"client_code,name,mobile,email\n", "clients.csv")

    def test_csv_rows_start_after_header(self):
        rows, first_row = read_rows(as_csv(client_rows(2)), "clients.csv")
        assert len(rows) == 2
        assert first_row == 2

    def test_json_object_with_key(self):
        rows, first_row = read_rows(json.dumps({"clients": client_rows(1)}).encode(), "c.json")
        assert rows[0]["client_code"] == "BK001"
        assert first_row == 1

    def test_corrupt_spreadsheet(self):
        with pytest.raises(ValidationException):
            read_rows(b"not really a workbook", "clients.xlsx")

    def test_legacy_xls_workbook(self):
        content = as_xls(
            ["client_code", "name", "dob", "pincode"],
            [["OLD01", "Legacy One", datetime(1985, 7, 9), 560001], ["OLD02", "Legacy Two", None, None]],
        )

        rows, first_row = read_rows(content, "clients.xls")

        assert first_row == 2
        assert [r["client_code"] for r in rows] == ["OLD01", "OLD02"]
        assert rows[0]["dob"] == datetime(1985, 7, 9)
        assert rows[0]["pincode"] == 560001
        assert rows[1]["dob"] is None

    def test_corrupt_xls(self):
        with pytest.raises(ValidationException) as exc_info:
            read_rows(b"not really a workbook", "clients.xls")
        assert exc_info.value.code.value == "INVALID_FILE"


class TestClientImport:

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_other_rows(self, db_session):
        content = json.dumps(client_rows(5, missing_email_at=3)).encode()

        report = await BulkImportService(db_session).import_clients(content, "clients.json")

        assert report.success is False
        assert report.success_count == 4
        assert report.processed == 5
        assert [e.row for e in report.errors] == [3]
        assert "email" in report.errors[0].reason
        assert await count(db_session, Client) == 4

    @pytest.mark.asyncio
    async def test_csv_error_rows_count_the_header(self, db_session):
        report = await BulkImportService(db_session).import_clients(
            as_csv(client_rows(5, missing_email_at=3)), "clients.csv"
        )
        assert report.success_count == 4
        assert [e.row for e in report.errors] == [4]

    @pytest.mark.asyncio
    async def test_reimport_is_idempotent(self, db_session):
        content = json.dumps(client_rows(3)).encode()
        service = BulkImportService(db_session)

        first = await service.import_clients(content, "clients.json")
        second = await service.import_clients(content, "clients.json")

        assert first.success_count == 3
        assert second.success_count == 0
        assert second.skipped_count == 3
        assert await count(db_session, Client) == 3

    @pytest.mark.asyncio
    async def test_creates_client_logins(self, db_session):
        await BulkImportService(db_session).import_clients(json.dumps(client_rows(2)).encode(), "c.json")

        users = (await db_session.execute(select(User).where(User.email == "bulk1@example.com"))).scalars().all()
        assert len(users) == 1
        assert users[0].role_id == 3
        assert users[0].client_id is not None

    @pytest.mark.asyncio
    async def test_credentials_returned_when_mail_is_unavailable(self, db_session):
        report = await BulkImportService(db_session).import_clients(json.dumps(client_rows(2)).encode(), "c.json")

        assert report.email_results.sent == 0
        assert report.email_results.failed == 2
        assert report.email_results.failed_emails[0].credentials.startswith("Login: bulk1@example.com, Password: ")

    @pytest.mark.asyncio
    async def test_welcome_mail_sent(self, db_session, mail_outbox):
        report = await BulkImportService(db_session).import_clients(json.dumps(client_rows(2)).encode(), "c.json")

        assert report.email_results.sent == 2
        assert len(mail_outbox) == 2
        assert mail_outbox[0].to == ["bulk1@example.com"]

    @pytest.mark.asyncio
    async def test_unknown_reference_fails_the_row(self, db_session):
        rows = client_rows(2)
        rows[1]["reference_code"] = 999
        report = await BulkImportService(db_session).import_clients(json.dumps(rows).encode(), "c.json")

        assert report.success_count == 1
        assert report.errors[0].row == 2
        assert "999" in report.errors[0].reason

    @pytest.mark.asyncio
    async def test_xlsx_upload(self, db_session):
        header = ["client_code", "name", "mobile", "email", "dob", "pincode"]
        content = as_xlsx(header, [
            ["XL001", "Sheet One", 9811111111, "xl1@example.com", datetime(1990, 4, 2), 400001],
            ["XL002", "Sheet Two", 9822222222, "xl2@example.com", 33000, None],
        ])

        report = await BulkImportService(db_session).import_clients(content, "clients.xlsx")

        assert report.success_count == 2
        imported = (await db_session.execute(select(Client).where(Client.code == "XL001"))).scalar_one()
        assert imported.mobile == "9811111111"
        assert imported.dob == date(1990, 4, 2)
        assert imported.pincode == 400001

    @pytest.mark.asyncio
    async def test_xls_upload(self, db_session):
        header = ["client_code", "name", "mobile", "email", "dob", "pincode"]
        content = as_xls(header, [
            ["XS001", "Biff One", "9833333333", "xs1@example.com", datetime(1979, 1, 15), 110001],
            ["XS002", "Biff Two", "9844444444", "", None, None],
        ])

        report = await BulkImportService(db_session).import_clients(content, "clients.xls")

        assert report.success_count == 1
        assert [e.row for e in report.errors] == [3]
        imported = (await db_session.execute(select(Client).where(Client.code == "XS001"))).scalar_one()
        assert imported.dob == date(1979, 1, 15)
        assert imported.pincode == 110001

    @pytest.mark.asyncio
    async def test_non_numeric_optional_cells_do_not_abort(self, db_session):
        rows = client_rows(3)
        for row, pincode in zip(rows, ["400001", "NaN", "Infinity"]):
            row["pincode"] = pincode

        report = await BulkImportService(db_session).import_clients(as_csv(rows), "clients.csv")

        assert report.success is True
        assert report.success_count == 3
        pincodes = (await db_session.execute(select(Client.pincode).order_by(Client.code))).scalars().all()
        assert pincodes == [400001, None, None]

    @pytest.mark.asyncio
    async def test_non_finite_json_values(self, db_session):
        rows = client_rows(2)
        rows[0]["dob"] = float("nan")
        rows[1]["reference_code"] = float("inf")

        report = await BulkImportService(db_session).import_clients(json.dumps(rows).encode(), "c.json")

        assert report.success_count == 2
        assert report.errors == []

    @pytest.mark.asyncio
    async def test_row_that_cannot_be_mapped_is_reported(self, db_session, monkeypatch):
        def mapper(row):
            if row["client_code"] == "BK002":
                raise TypeError("unsupported cell")
            return sheet_row_to_client(row)

        monkeypatch.setattr(bulk_import_service, "sheet_row_to_client", mapper)

        report = await BulkImportService(db_session).import_clients(json.dumps(client_rows(3)).encode(), "c.json")

        assert report.success_count == 2
        assert [e.row for e in report.errors] == [2]
        assert "unsupported cell" in report.errors[0].reason


class TestTransactionImport:

    @pytest.mark.asyncio
    async def test_import_matches_clients_by_pan(self, db_session):
        owner = await make_client(db_session, "PAN1", pan_no="ABCDE1234F")
        header = ["Client PAN No", "Payout Date", "Payout No", "Payout Details", "Amount"]
        content = as_xlsx(header, [
            ["ABCDE1234F", "15-01-2026", "P-1", "January payout", 1500],
            ["ZZZZZ0000Z", "15-01-2026", "P-2", "Unknown client", 100],
            ["ABCDE1234F", "15-01-2026", "P-3", "Bad amount", -1],
        ])

        report = await BulkImportService(db_session).import_transactions(content, "payouts.xlsx", "payout")

        assert report.processed == 1
        assert [e.row for e in report.errors] == [3, 4]
        txn = (await db_session.execute(select(Transaction))).scalar_one()
        assert txn.client_id == owner.client_id
        assert txn.indicator_id == int(Indicator.PAYOUT)
        assert txn.transaction_date == date(2026, 1, 15)
        assert txn.guiid == "P-1"

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, db_session):
        with pytest.raises(ValidationException):
            await BulkImportService(db_session).import_transactions(b"x", "t.xlsx", "dividend")

    @pytest.mark.asyncio
    async def test_errors_are_capped(self, db_session):
        header = ["Client PAN No", "Investment Date", "Investment No", "Investment Details", "Amount"]
        content = as_xlsx(header, [[f"NOPAN{i}", "01-01-2026", f"I-{i}", "x", 10] for i in range(15)])

        report = await BulkImportService(db_session).import_transactions(content, "inv.xlsx", "investment")

        assert report.processed == 0
        assert report.success is False
        assert len(report.errors) == 10


class TestUploadRoutes:

    @pytest.mark.asyncio
    async def test_bulk_upload_route(self, client, admin_headers):
        response = await client.post(
            "/api/clients/bulk-upload",
            headers=admin_headers,
            files={"file": ("clients.csv", as_csv(client_rows(2)), "text/csv")},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["successCount"] == 2
        assert body["emailResults"]["failed"] == 2

    @pytest.mark.asyncio
    async def test_bulk_upload_requires_admin(self, client, team):
        response = await client.post(
            "/api/clients/bulk-upload",
            headers=team["member_headers"],
            files={"file": ("clients.csv", as_csv(client_rows(1)), "text/csv")},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_bad_file_is_400(self, client, admin_headers):
        response = await client.post(
            "/api/clients/bulk-upload",
            headers=admin_headers,
            files={"file": ("clients.pdf", b"%PDF", "application/pdf")},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE"

    @pytest.mark.asyncio
    async def test_transaction_upload_route(self, client, admin_headers, db_session):
        await make_client(db_session, "PAN2", pan_no="PQRST6789K")
        csv_body = b"Client PAN No,Closure Date,Closure No,Closure Details,Amount\nPQRST6789K,2026-02-01,CL-1,Closed,900\n"

        response = await client.post(
            "/api/transactions/upload",
            headers=admin_headers,
            files={"file": ("closures.csv", csv_body, "text/csv")},
            data={"type": "closure"},
        )

        assert response.status_code == 200
        assert response.json()["processed"] == 1
