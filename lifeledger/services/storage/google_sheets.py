"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the initial storage backend because:
1. Users can view their records directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (a save replaces one row at a time)
- Limited query capabilities (we filter in Python)

Each record type lives in its own worksheet. Columns are the model's
field names, so a row converts back through normal model validation.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Optional, get_args
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from lifeledger.aggregation import filter_records, record_date
from lifeledger.config import get_settings
from lifeledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from lifeledger.models.records import Budget, Currency, Expense, Income
from lifeledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    RecordStorageInterface,
    StorageError,
    StoredRecord,
    validate_for_write,
)


# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


def _to_cell(value) -> str:
    """Render a field value as sheet text."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class GoogleSheetsRecordStorage(RecordStorageInterface):
    """
    Google Sheets implementation of record storage.

    One record per row; the first column is always the record id.
    """

    def __init__(
        self,
        record_type: type,
        sheet_name: str,
        client: Optional[GoogleSheetsClient] = None,
    ):
        self._record_type = record_type
        self._sheet_name = sheet_name
        self._client = client or GoogleSheetsClient()
        self._columns = list(record_type.model_fields)
        self._nullable = {
            name for name, field in record_type.model_fields.items()
            if type(None) in get_args(field.annotation)
        }

    @classmethod
    def for_expenses(cls, client: Optional[GoogleSheetsClient] = None) -> "GoogleSheetsRecordStorage":
        client = client or GoogleSheetsClient()
        return cls(Expense, client.settings.expenses_sheet_name, client)

    @classmethod
    def for_incomes(cls, client: Optional[GoogleSheetsClient] = None) -> "GoogleSheetsRecordStorage":
        client = client or GoogleSheetsClient()
        return cls(Income, client.settings.incomes_sheet_name, client)

    @classmethod
    def for_budgets(cls, client: Optional[GoogleSheetsClient] = None) -> "GoogleSheetsRecordStorage":
        client = client or GoogleSheetsClient()
        return cls(Budget, client.settings.budgets_sheet_name, client)

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._sheet_name, self._columns)

    def _record_to_row(self, record: StoredRecord) -> list:
        """Convert a record to a spreadsheet row."""
        return [_to_cell(getattr(record, column)) for column in self._columns]

    def _row_to_record(self, row: list) -> StoredRecord:
        """
        Convert a spreadsheet row back to a record.

        A blank cell is None for nullable fields and the model default otherwise.
        """
        data = {}
        for column, cell in zip(self._columns, row):
            if cell != "":
                data[column] = cell
            elif column in self._nullable:
                data[column] = None
        return self._record_type.model_validate(data)

    def _find_row_index(self, all_rows: list, record_id: UUID) -> Optional[int]:
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
            if row and row[0] == str(record_id):
                return idx
        return None

    async def save(self, record: StoredRecord) -> bool:
        """Append a new record or overwrite its existing row."""
        validate_for_write(record)
        try:
            sheet = self._sheet()
            new_row = self._record_to_row(record)
            idx = self._find_row_index(sheet.get_all_values(), record.id)
            if idx is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                for col_idx, value in enumerate(new_row, start=1):
                    sheet.update_cell(idx, col_idx, value)
            return True
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Failed to save {self._record_type.__name__}: {e}")

    async def get_by_id(self, record_id: UUID) -> Optional[StoredRecord]:
        try:
            all_rows = self._sheet().get_all_values()
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Failed to get {self._record_type.__name__}: {e}")

        idx = self._find_row_index(all_rows, record_id)
        if idx is None:
            return None
        return self._row_to_record(all_rows[idx - 1])

    async def delete(self, record_id: UUID) -> bool:
        try:
            sheet = self._sheet()
            idx = self._find_row_index(sheet.get_all_values(), record_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Failed to delete {self._record_type.__name__}: {e}")

    async def find_by_user_and_date_range(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        currency: Optional[Currency] = None,
    ) -> list[StoredRecord]:
        try:
            all_rows = self._sheet().get_all_values()[1:]  # Skip header
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Failed to list {self._record_type.__name__}: {e}")

        user_column = self._columns.index("user_id")
        records = [
            self._row_to_record(row)
            for row in all_rows
            if row and row[0] and len(row) > user_column and row[user_column] == user_id
        ]
        matches = filter_records(records, start_date, end_date, currency)
        matches.sort(key=lambda r: record_date(r) or date.min, reverse=True)
        return matches


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.audit_sheet_name,
            AUDIT_COLUMNS,
        )

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Failed to write audit event: {e}")

    def _all_events(self) -> list[AuditEvent]:
        try:
            all_rows = self._sheet().get_all_values()[1:]
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Failed to get audit events: {e}")
        return [self._row_to_event(row) for row in all_rows if row and row[0]]

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._all_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._all_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
