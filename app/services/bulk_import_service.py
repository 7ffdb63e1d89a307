"""
WealthDesk - Bulk Import Service

Parses uploaded spreadsheets, CSV and JSON into rows and imports them one
row at a time. Each row runs inside its own SAVEPOINT: a bad row is rolled
back and reported, and never aborts the batch.

Client import is idempotent on the client code.
"""

import csv
import io
import json
import logging
import math
import struct
import zipfile
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import xlrd
from dateutil import parser as date_parser
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from xlrd.compdoc import CompDocError

from app.config import settings
from app.models import Client, Transaction, User
from app.models.transaction import Indicator
from app.schemas.bulk import (
    ClientImportReport,
    EmailResults,
    FailedEmail,
    TransactionImportReport,
)
from app.schemas.common import RowError
from app.services.email_service import EmailService
from app.services.store import EntityStore
from app.utils.error_handling import AppException, ErrorCode, ValidationException
from app.utils.security import generate_random_password, get_password_hash

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")
CLIENT_REQUIRED_COLUMNS = ("client_code", "name", "mobile", "email")
TRANSACTION_TYPES = ("investment", "withdrawal", "payout", "closure")
MAX_TRANSACTION_ERRORS = 10

# Day zero of spreadsheet serial dates (accounts for the 1900 leap-year bug)
EXCEL_EPOCH = date(1899, 12, 30)

ROW_ERRORS = (AppException, SQLAlchemyError, ValueError)

# Raised by malformed cells while a row is mapped to model fields
MAPPING_ERRORS = (ValueError, TypeError, ArithmeticError)


# ===========================================
# FILE READING
# ===========================================

def _extension(filename: Optional[str]) -> str:
    name = (filename or "").lower()
    return name[name.rfind("."):] if "." in name else ""


# OLE2 compound document signature of legacy BIFF .xls workbooks
BIFF_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _sheet_records(header: Optional[Sequence[Any]], rows: Iterable[Sequence[Any]]) -> List[Dict[str, Any]]:
    if header is None:
        return []
    columns = [str(h).strip() if h is not None else "" for h in header]

    records = []
    for values in rows:
        if values is None or all(v is None or str(v).strip() == "" for v in values):
            continue
        records.append({
            column: value
            for column, value in zip(columns, values)
            if column
        })
    return records


def _read_xlsx(content: bytes) -> List[Dict[str, Any]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise ValidationException(
            f"Unable to read spreadsheet: {e}", field="file", code=ErrorCode.INVALID_FILE
        )

    try:
        rows = workbook.worksheets[0].iter_rows(values_only=True)
        return _sheet_records(next(rows, None), rows)
    finally:
        workbook.close()


def _xls_cell(cell: Any, datemode: int) -> Any:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
        except (xlrd.xldate.XLDateError, ValueError, OverflowError):
            return cell.value
    return cell.value


def _read_xls(content: bytes) -> List[Dict[str, Any]]:
    try:
        book = xlrd.open_workbook(file_contents=content, on_demand=True)
    except (xlrd.XLRDError, CompDocError, struct.error, IndexError, ValueError, OSError) as e:
        raise ValidationException(
            f"Unable to read spreadsheet: {e}", field="file", code=ErrorCode.INVALID_FILE
        )

    try:
        sheet = book.sheet_by_index(0)
        rows = (
            [_xls_cell(cell, book.datemode) for cell in sheet.row(index)]
            for index in range(sheet.nrows)
        )
        return _sheet_records(next(rows, None), rows)
    finally:
        book.release_resources()


def _read_spreadsheet(content: bytes) -> List[Dict[str, Any]]:
    """Read the first sheet; BIFF workbooks go through xlrd whatever their extension."""
    if content.startswith(BIFF_SIGNATURE):
        return _read_xls(content)
    return _read_xlsx(content)


def _read_csv(content: bytes) -> List[Dict[str, Any]]:
    try:
        decoded = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationException("CSV file must be UTF-8 encoded", field="file", code=ErrorCode.INVALID_FILE)
    reader = csv.DictReader(io.StringIO(decoded))
    return [
        {(k or "").strip(): v for k, v in row.items()}
        for row in reader
        if any((v or "").strip() for v in row.values() if isinstance(v, str))
    ]


def _read_json(content: bytes, key: str) -> List[Dict[str, Any]]:
    try:
        payload = json.loads(content.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationException(f"Invalid JSON file: {e}", field="file", code=ErrorCode.INVALID_FILE)

    if isinstance(payload, dict):
        payload = payload.get(key)
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise ValidationException(
            f"JSON file must contain an array of objects or a '{key}' array",
            field="file",
            code=ErrorCode.INVALID_FILE,
        )
    return payload


def read_rows(
    content: bytes,
    filename: Optional[str],
    json_key: str = "clients",
    allowed: Sequence[str] = (".xlsx", ".xls", ".csv", ".json"),
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Parse an upload into row dicts.

    Returns:
        (rows, number of the first data row): 2 for spreadsheets and CSV
        (row 1 is the header), 1 for JSON arrays

    Raises:
        ValidationException: unsupported extension, unreadable or empty file
    """
    ext = _extension(filename)
    if ext not in allowed:
        raise ValidationException(
            f"Unsupported file type. Allowed: {', '.join(allowed)}",
            field="file",
            code=ErrorCode.INVALID_FILE,
        )
    if not content:
        raise ValidationException("Uploaded file is empty", field="file", code=ErrorCode.INVALID_FILE)

    if ext in SPREADSHEET_EXTENSIONS:
        rows, first_row = _read_spreadsheet(content), 2
    elif ext == ".csv":
        rows, first_row = _read_csv(content), 2
    else:
        rows, first_row = _read_json(content, json_key), 1

    if not rows:
        raise ValidationException("No data found in the uploaded file", field="file", code=ErrorCode.INVALID_FILE)
    return rows, first_row


# ===========================================
# VALUE PARSING
# ===========================================

def text(value: Any) -> Optional[str]:
    """Cell value as stripped text; integral floats lose their ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    result = str(value).strip()
    return result or None


def optional_int(value: Any) -> Optional[int]:
    raw = text(value)
    if raw is None:
        return None
    try:
        return int(Decimal(raw))
    except (InvalidOperation, ValueError, OverflowError):
        return None


def excel_date(value: Any) -> Optional[date]:
    """
    Parse a date cell.

    Accepts datetime/date cells, spreadsheet serial numbers, DD-MM-YYYY and
    ISO strings. Anything else gives None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        try:
            return EXCEL_EPOCH + timedelta(days=int(value))
        except (ValueError, OverflowError):
            return None

    raw = str(value).strip()
    if not raw:
        return None
    for fmt in ("%d-%m-%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            pass
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def transaction_date(value: Any, row_number: int) -> date:
    """Like ``excel_date`` but lenient with free-form strings, falling back to today."""
    parsed = excel_date(value)
    if parsed is None and isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.parse(value, dayfirst=True).date()
        except (ValueError, OverflowError):
            parsed = None
    if parsed is None:
        logger.warning(f"Row {row_number}: unparseable date {value!r}; using today")
        parsed = date.today()
    return parsed


def positive_amount(value: Any) -> Decimal:
    """
    Raises:
        ValidationException: not a number, or not greater than zero
    """
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except (InvalidOperation, AttributeError):
        raise ValidationException("Amount must be a valid positive number", field="amount")
    if not amount.is_finite() or amount <= 0:
        raise ValidationException("Amount must be a valid positive number", field="amount")
    return amount.quantize(Decimal("0.01"))


def _json_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    # NaN and Infinity are not valid JSON
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


def json_safe(row: Dict[str, Any]) -> Dict[str, Any]:
    """Echo a raw row back in an error report."""
    return {key: _json_value(value) for key, value in row.items()}


def sheet_row_to_client(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a client spreadsheet row to model fields.

    Raises:
        ValidationException: a required column is missing or blank
    """
    missing = [column for column in CLIENT_REQUIRED_COLUMNS if not text(row.get(column))]
    if missing:
        raise ValidationException(f"Missing required fields: {', '.join(missing)}")

    return {
        "code": text(row["client_code"]),
        "name": text(row["name"]),
        "mobile": text(row["mobile"]),
        "email": text(row["email"]),
        "dob": excel_date(row.get("dob")),
        "pan_no": text(row.get("pan_no")),
        "aadhaar_no": text(row.get("aadhaar_no")),
        "branch": text(row.get("branch")),
        "address": text(row.get("address")),
        "city": text(row.get("city")),
        "pincode": optional_int(row.get("pincode")),
        "reference_id": optional_int(row.get("reference_code")),
    }


# ===========================================
# IMPORT SERVICE
# ===========================================

class BulkImportService:
    """Row-by-row importer for clients and ledger entries."""

    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.store = EntityStore(db)
        self.email_service = email_service or EmailService()

    async def _create_client(self, fields: Dict[str, Any], actor_id: Optional[int], source: str) -> Tuple[Client, Optional[str]]:
        """
        Insert a client and, when its email is new, a linked Client-role user.

        Returns:
            (client, generated password or None when no user was created)
        """
        reference_id = fields.get("reference_id")
        if reference_id is not None and await self.store.get_client(reference_id) is None:
            raise ValidationException(
                f"Referenced client {reference_id} does not exist", field="referenceId"
            )

        client = Client(
            **fields,
            is_active=True,
            created_by_id=actor_id,
            created_by_user=source,
        )
        await self.store.add(client)

        email = fields.get("email")
        if not email or await self.store.get_user_by_email(email):
            return client, None

        password = generate_random_password(12)
        await self.store.add(User(
            user_name=email,
            password=get_password_hash(password),
            email=email,
            mobile=fields.get("mobile"),
            role_id=settings.default_client_role_id,
            client_id=client.client_id,
            is_active=True,
            created_by_id=actor_id,
            created_by_user=source,
        ))
        return client, password

    async def import_client_records(
        self,
        records: Iterable[Tuple[int, Dict[str, Any], Dict[str, Any]]],
        actor_id: Optional[int],
        source: str,
    ) -> Tuple[int, int, List[RowError], EmailResults]:
        """
        Import already-mapped client records.

        Args:
            records: (row number, model fields, raw row) triples; ``fields``
                may be an exception instance when mapping the row failed
            actor_id: audit user id
            source: audit label, e.g. ``bulk-upload`` or ``sync-api``

        Returns:
            (inserted, skipped, errors, email results)
        """
        inserted = 0
        skipped = 0
        errors: List[RowError] = []
        emails = EmailResults()
        welcome: List[Tuple[Client, str]] = []

        for row_number, fields, raw in records:
            if isinstance(fields, AppException):
                errors.append(RowError(row=row_number, reason=fields.message, data=json_safe(raw)))
                continue

            try:
                if await self.store.get_client_by_code(fields["code"]):
                    skipped += 1
                    continue

                async with self.db.begin_nested():
                    client, password = await self._create_client(fields, actor_id, source)
            except ROW_ERRORS as e:
                reason = e.message if isinstance(e, AppException) else str(e)
                logger.warning(f"{source} row {row_number} failed: {reason}")
                errors.append(RowError(row=row_number, reason=reason, data=json_safe(raw)))
                continue

            inserted += 1
            if password:
                welcome.append((client, password))

        await self.store.commit()

        for client, password in welcome:
            sent = await self.email_service.send_welcome_email(client.email, client.name or "Client", password)
            if sent:
                emails.sent += 1
            else:
                emails.failed += 1
                emails.failed_emails.append(FailedEmail(
                    email=client.email,
                    credentials=f"Login: {client.email}, Password: {password}",
                ))

        return inserted, skipped, errors, emails

    async def import_clients(
        self,
        content: bytes,
        filename: Optional[str],
        actor_id: Optional[int] = None,
    ) -> ClientImportReport:
        """Import a client upload and report per-row outcomes."""
        rows, first_row = read_rows(content, filename, json_key="clients")

        records = []
        for offset, raw in enumerate(rows):
            try:
                fields: Any = sheet_row_to_client(raw)
            except ValidationException as e:
                fields = e
            except MAPPING_ERRORS as e:
                fields = ValidationException(f"Invalid row: {e}")
            records.append((first_row + offset, fields, raw))

        inserted, skipped, errors, emails = await self.import_client_records(records, actor_id, "bulk-upload")

        success = not errors
        message = (
            f"Successfully processed {inserted} client records"
            if success
            else f"Processed {inserted} clients with {len(errors)} errors"
        )
        logger.info(
            f"Client import {filename}: {inserted} inserted, {skipped} skipped, {len(errors)} errors"
        )
        return ClientImportReport(
            success=success,
            message=message,
            processed=inserted + skipped + len(errors),
            success_count=inserted,
            skipped_count=skipped,
            errors=errors,
            email_results=emails,
            timestamp=datetime.utcnow().isoformat() + "Z",
        )

    async def import_transactions(
        self,
        content: bytes,
        filename: Optional[str],
        transaction_type: Optional[str],
        actor_id: Optional[int] = None,
        actor_label: str = "excel-upload",
    ) -> TransactionImportReport:
        """
        Import ledger entries of one type from a spreadsheet.

        Raises:
            ValidationException: unknown type, or the file cannot be read
        """
        kind = (transaction_type or "").strip().lower()
        if kind not in TRANSACTION_TYPES:
            raise ValidationException(
                f"Invalid transaction type. Use one of: {', '.join(TRANSACTION_TYPES)}",
                field="type",
            )
        indicator = Indicator.from_label(kind)
        title = kind.capitalize()
        date_col, no_col, details_col = f"{title} Date", f"{title} No", f"{title} Details"
        required = ("Client PAN No", date_col, no_col, details_col, "Amount")

        rows, first_row = read_rows(content, filename, json_key="transactions")

        processed = 0
        errors: List[RowError] = []
        for offset, row in enumerate(rows):
            row_number = first_row + offset
            missing = [column for column in required if not text(row.get(column))]
            if missing:
                errors.append(RowError(row=row_number, reason=f"Missing required fields: {', '.join(missing)}"))
                continue

            try:
                amount = positive_amount(row["Amount"])
                pan = text(row["Client PAN No"])
                client = await self.store.get_client_by_pan(pan)
                if client is None:
                    raise ValidationException(f"Client with PAN {pan} not found")

                async with self.db.begin_nested():
                    await self.store.add(Transaction(
                        transaction_date=transaction_date(row[date_col], row_number),
                        client_id=client.client_id,
                        indicator_id=int(indicator),
                        amount=amount,
                        remark=(text(row[details_col]) or "")[:50],
                        guiid=text(row[no_col]),
                        created_by_id=actor_id,
                        created_by_user=actor_label,
                    ))
            except ROW_ERRORS as e:
                reason = e.message if isinstance(e, AppException) else f"Processing error: {e}"
                errors.append(RowError(row=row_number, reason=reason))
                continue

            processed += 1

        await self.store.commit()

        success = not errors
        message = (
            f"Successfully processed {processed} {kind} transactions"
            if success
            else f"Processed {processed} transactions with {len(errors)} errors"
        )
        logger.info(f"{title} upload {filename}: {processed} processed, {len(errors)} errors")
        return TransactionImportReport(
            success=success,
            message=message,
            processed=processed,
            errors=errors[:MAX_TRANSACTION_ERRORS],
        )
