"""
Supabase Remote Store Implementation

Talks to the project's PostgREST endpoint (/rest/v1) with httpx.

The uniqueness constraint on daily_entries (business_id, entry_date) is
enforced by Postgres. PostgREST reports its violation as an error body
whose "code" is the Postgres SQLSTATE 23505; that body, and only that
body, is turned into DuplicateRemoteRecord.
"""

from decimal import Decimal
from typing import Any, Optional

import httpx
from pydantic import BaseModel

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


DAILY_ENTRIES_TABLE = "daily_entries"
INCOME_BREAKDOWN_TABLE = "daily_income_breakdown"
RECEIPTS_TABLE = "daily_receipts"
PARAMETERS_TABLE = "daily_parameters"
PRODUCT_USAGE_TABLE = "daily_product_usage"
PRODUCTS_TABLE = "managed_products"


class SupabaseRemoteStore(RemoteStoreInterface):
    """
    PostgREST implementation of the remote store.

    Pass an httpx.AsyncClient to share a connection pool or to mock the
    transport; otherwise one is created on first use.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        duplicate_error_code: Optional[str] = None,
    ):
        if url is None or api_key is None:
            settings = get_settings().supabase
            url = url or settings.url
            api_key = api_key or settings.api_key
            timeout = timeout or settings.timeout_seconds
            duplicate_error_code = duplicate_error_code or settings.duplicate_error_code

        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout or 30.0
        self._duplicate_code = duplicate_error_code or "23505"
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        table: str,
        json: Any,
        params: Optional[dict[str, str]] = None,
        prefer: str = "return=minimal",
    ) -> httpx.Response:
        """Send one request, mapping every failure onto the remote error taxonomy."""
        headers = {**self._headers, "Prefer": prefer}
        try:
            response = await self._get_client().request(
                method,
                f"{self._base_url}/{table}",
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise TransientSubmissionFailure(f"{method} {table} failed: {e}")

        if response.is_success:
            return response

        error_code = None
        message = response.text
        try:
            body = response.json()
            if isinstance(body, dict):
                error_code = body.get("code")
                message = body.get("message") or message
        except ValueError:
            pass

        if error_code == self._duplicate_code:
            raise DuplicateRemoteRecord(f"{table}: {message}")
        raise TransientSubmissionFailure(
            f"{method} {table} returned {response.status_code}: {message}"
        )

    async def _insert(self, table: str, rows: list[BaseModel]) -> None:
        if not rows:
            return
        await self._request(
            "POST",
            table,
            json=[row.model_dump(mode="json", exclude_none=True) for row in rows],
        )

    async def create_daily_entry(self, record: DailyEntryRecord) -> str:
        response = await self._request(
            "POST",
            DAILY_ENTRIES_TABLE,
            json=record.model_dump(mode="json", exclude_none=True),
            prefer="return=representation",
        )
        try:
            created = response.json()
            if isinstance(created, list):
                created = created[0]
            return str(created["id"])
        except (ValueError, LookupError, TypeError) as e:
            raise TransientSubmissionFailure(f"Unexpected daily_entries response: {e}")

    async def add_income_breakdown(self, rows: list[IncomeBreakdownRow]) -> None:
        await self._insert(INCOME_BREAKDOWN_TABLE, rows)

    async def add_receipts(self, rows: list[ReceiptRow]) -> None:
        await self._insert(RECEIPTS_TABLE, rows)

    async def add_parameters(self, rows: list[ParameterRow]) -> None:
        await self._insert(PARAMETERS_TABLE, rows)

    async def add_product_usage(self, rows: list[ProductUsageRow]) -> None:
        await self._insert(PRODUCT_USAGE_TABLE, rows)

    async def update_product_stock(self, product_id: str, current_stock: Decimal) -> None:
        await self._request(
            "PATCH",
            PRODUCTS_TABLE,
            json={"current_stock": str(current_stock)},
            params={"id": f"eq.{product_id}"},
        )
