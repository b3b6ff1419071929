"""
Google Sheets Remote Store Implementation

DESIGN DECISION: Google Sheets is offered as a remote backend because:
1. A small business can read its daily entries directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- No unique constraints: we check (business_id, entry_date) ourselves
  before appending, so two devices racing on the same day can still
  both append (acceptable for a single-till business)
- No transactions (sub-records are appended after the primary row)
- Limited query capabilities (we filter in Python)
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from daybook.config import get_settings
from daybook.models.entry import (
    DailyEntryRecord,
    IncomeBreakdownRow,
    ParameterRow,
    ProductUsageRow,
    ReceiptRow,
)
from daybook.services.remote.interface import (
    DuplicateRemoteRecord,
    RemoteStoreInterface,
    TransientSubmissionFailure,
)


# Column mappings per worksheet
DAILY_ENTRY_COLUMNS = [
    "id",
    "business_id",
    "entry_date",
    "total_register",
    "labor_cost",
    "labor_hours",
    "discounts",
    "day_factor",
    "manager_daily_cost",
    "created_by",
    "created_at",
]

INCOME_BREAKDOWN_COLUMNS = ["daily_entry_id", "income_source_id", "amount", "orders_count"]
RECEIPT_COLUMNS = ["daily_entry_id", "receipt_type_id", "amount"]
PARAMETER_COLUMNS = ["daily_entry_id", "parameter_id", "value"]
PRODUCT_USAGE_COLUMNS = [
    "daily_entry_id",
    "product_id",
    "opening_stock",
    "received_quantity",
    "closing_stock",
    "quantity",
    "unit_cost_at_time",
]
PRODUCT_COLUMNS = ["id", "name", "current_stock"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and retries the authorization call.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication. A missing
        credentials file fails at once; only the authorization call is
        retried.
        """
        if self._client is None:
            credentials_path = self._settings.credentials_path
            if not Path(credentials_path).is_file():
                raise TransientSubmissionFailure(
                    f"Google credentials file not found: {credentials_path}"
                )
            try:
                self._client = self._authorize(credentials_path)
            except Exception as e:
                raise TransientSubmissionFailure(f"Failed to connect to Google Sheets: {e}")

        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _authorize(self, credentials_path: str) -> gspread.Client:
        scopes = [
            "https://www.googleapis.com/auth/spreadsheets",
            "https://www.googleapis.com/auth/drive",
        ]
        credentials = Credentials.from_service_account_file(credentials_path, scopes=scopes)
        return gspread.authorize(credentials)

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise TransientSubmissionFailure(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
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


class GoogleSheetsRemoteStore(RemoteStoreInterface):
    """
    Google Sheets implementation of the remote store.

    One worksheet per remote table, one row per record.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._settings = get_settings().google_sheets

    def _read_rows(self, title: str, columns: list[str]) -> list[list[str]]:
        """All rows of a worksheet including the header. Not retried, the next drain retries."""
        return self._client.get_worksheet(title, columns).get_all_values()

    def _append(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        # Appends are not retried: a retried append that already landed
        # would duplicate sub-records.
        if not rows:
            return
        try:
            sheet = self._client.get_worksheet(title, columns)
            sheet.append_rows(rows, value_input_option="RAW")
        except TransientSubmissionFailure:
            raise
        except Exception as e:
            raise TransientSubmissionFailure(f"Failed to append to {title}: {e}")

    async def create_daily_entry(self, record: DailyEntryRecord) -> str:
        title = self._settings.daily_entries_sheet_name
        try:
            existing = self._read_rows(title, DAILY_ENTRY_COLUMNS)[1:]
        except TransientSubmissionFailure:
            raise
        except Exception as e:
            raise TransientSubmissionFailure(f"Failed to read {title}: {e}")

        entry_date = record.entry_date.isoformat()
        for row in existing:
            if len(row) > 2 and row[1] == record.business_id and row[2] == entry_date:
                raise DuplicateRemoteRecord(
                    f"Daily entry exists for {record.business_id} on {entry_date}"
                )

        remote_id = str(uuid4())
        self._append(title, DAILY_ENTRY_COLUMNS, [[
            remote_id,
            record.business_id,
            entry_date,
            str(record.total_register),
            str(record.labor_cost),
            str(record.labor_hours),
            str(record.discounts),
            str(record.day_factor),
            str(record.manager_daily_cost),
            record.created_by or "",
            datetime.utcnow().isoformat(),
        ]])
        return remote_id

    async def add_income_breakdown(self, rows: list[IncomeBreakdownRow]) -> None:
        self._append(
            self._settings.income_breakdown_sheet_name,
            INCOME_BREAKDOWN_COLUMNS,
            [
                [r.daily_entry_id, r.income_source_id, str(r.amount), str(r.orders_count)]
                for r in rows
            ],
        )

    async def add_receipts(self, rows: list[ReceiptRow]) -> None:
        self._append(
            self._settings.receipts_sheet_name,
            RECEIPT_COLUMNS,
            [[r.daily_entry_id, r.receipt_type_id, str(r.amount)] for r in rows],
        )

    async def add_parameters(self, rows: list[ParameterRow]) -> None:
        self._append(
            self._settings.parameters_sheet_name,
            PARAMETER_COLUMNS,
            [[r.daily_entry_id, r.parameter_id, str(r.value)] for r in rows],
        )

    async def add_product_usage(self, rows: list[ProductUsageRow]) -> None:
        self._append(
            self._settings.product_usage_sheet_name,
            PRODUCT_USAGE_COLUMNS,
            [
                [
                    r.daily_entry_id,
                    r.product_id,
                    str(r.opening_stock),
                    str(r.received_quantity),
                    str(r.closing_stock),
                    str(r.quantity),
                    str(r.unit_cost_at_time),
                ]
                for r in rows
            ],
        )

    async def update_product_stock(self, product_id: str, current_stock: Decimal) -> None:
        title = self._settings.products_sheet_name
        try:
            sheet = self._client.get_worksheet(title, PRODUCT_COLUMNS)
            all_rows = sheet.get_all_values()
            if not all_rows:
                return
            header = all_rows[0]
            stock_col = header.index("current_stock") + 1 if "current_stock" in header else 3

            for idx, row in enumerate(all_rows[1:], start=2):  # row 1 is header
                if row and row[0] == product_id:
                    sheet.update_cell(idx, stock_col, str(current_stock))
                    return
        except TransientSubmissionFailure:
            raise
        except Exception as e:
            raise TransientSubmissionFailure(f"Failed to update stock for {product_id}: {e}")
