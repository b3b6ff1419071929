"""
Entry Models for Daybook Sync

A PendingEntry is one business day captured on the device and waiting
to be submitted. The remote rows (primary record and sub-records) are
derived from it at submission time and never stored locally.

DESIGN DECISION: Values are kept exactly as the capture form produced
them (strings or numbers). Parsing happens only when the remote rows
are built, so a queued entry always reflects what the user typed.
"""

import re
import time
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from daybook.models.settlement import IncomeSource


RawValue = Union[str, int, float, None]

_LEADING_NUMBER = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_LEADING_INTEGER = re.compile(r"^\s*[+-]?\d+")

ZERO = Decimal("0")


def parse_number(value: RawValue, default: Decimal = ZERO) -> Decimal:
    """
    Parse a captured value the lenient way the entry form does.

    The longest numeric prefix is used ("12.5kg" -> 12.5); anything without
    one, and zero itself, yields `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        text = repr(value)
    else:
        text = str(value)
    match = _LEADING_NUMBER.match(text)
    if not match:
        return default
    try:
        number = Decimal(match.group(0).strip())
    except InvalidOperation:
        return default
    if not number.is_finite() or number == 0:
        return default
    return number


def parse_count(value: RawValue) -> int:
    """Integer counterpart of parse_number (truncates, never raises)."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else 0
    match = _LEADING_INTEGER.match(str(value))
    return int(match.group(0)) if match else 0


def now_millis() -> int:
    return time.time_ns() // 1_000_000


# =============================================================================
# CAPTURED DATA
# =============================================================================

class IncomeAmount(BaseModel):
    """Amount and order count for one income source on one day."""
    model_config = ConfigDict(frozen=True)

    amount: RawValue = None
    orders_count: RawValue = None


class ProductUsage(BaseModel):
    """Stock counts for one managed product on one day."""
    model_config = ConfigDict(frozen=True)

    opening_stock: RawValue = None
    received_quantity: RawValue = None
    closing_stock: RawValue = None


class PendingEntry(BaseModel):
    """
    One offline-captured business day awaiting submission.

    CRITICAL: Immutable. An entry is either removed whole from the queue
    or left untouched; it is never edited in place.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Locally generated identifier, also the queue key"
    )
    business_id: str = Field(
        ...,
        min_length=1,
        description="Owning business"
    )
    timestamp: int = Field(
        default_factory=now_millis,
        ge=0,
        description="Capture time in epoch milliseconds (FIFO ordering key)"
    )

    core_fields: dict[str, RawValue] = Field(
        default_factory=dict,
        description="entry_date, total_register, labor_cost, labor_hours, discounts, day_factor"
    )
    income_breakdown: dict[str, IncomeAmount] = Field(default_factory=dict)
    receipts: dict[str, RawValue] = Field(default_factory=dict)
    custom_parameters: dict[str, RawValue] = Field(default_factory=dict)
    product_usage: dict[str, ProductUsage] = Field(default_factory=dict)

    user_id: Optional[str] = None

    @property
    def entry_date(self) -> Optional[date]:
        """The business day this entry records, if it parses."""
        raw = self.core_fields.get("entry_date")
        if isinstance(raw, date):
            return raw
        if not raw:
            return None
        try:
            return date.fromisoformat(str(raw).strip()[:10])
        except ValueError:
            return None


class BusinessConfigCache(BaseModel):
    """
    Reference configuration cached per business so the entry form
    can be built offline.

    Last write wins; staleness is the caller's concern.
    """
    business_id: str
    cached_at: datetime = Field(default_factory=datetime.utcnow)

    income_sources: list[IncomeSource] = Field(default_factory=list)
    receipt_types: list[dict[str, Any]] = Field(default_factory=list)
    custom_parameters: list[dict[str, Any]] = Field(default_factory=list)
    managed_products: list[dict[str, Any]] = Field(default_factory=list)
    goals: Optional[dict[str, Any]] = None
    business: Optional[dict[str, Any]] = None


# =============================================================================
# REMOTE ROWS - built from a PendingEntry at submission time
# =============================================================================

class DailyEntryRecord(BaseModel):
    """The day's primary record. Unique per (business_id, entry_date)."""

    business_id: str
    entry_date: date
    total_register: Decimal = ZERO
    labor_cost: Decimal = ZERO
    labor_hours: Decimal = ZERO
    discounts: Decimal = ZERO
    day_factor: Decimal = Decimal("1")
    manager_daily_cost: Decimal = ZERO
    created_by: Optional[str] = None


class IncomeBreakdownRow(BaseModel):
    daily_entry_id: str
    income_source_id: str
    amount: Decimal
    orders_count: int


class ReceiptRow(BaseModel):
    daily_entry_id: str
    receipt_type_id: str
    amount: Decimal


class ParameterRow(BaseModel):
    daily_entry_id: str
    parameter_id: str
    value: Decimal


class ProductUsageRow(BaseModel):
    """
    Stock movement for one product.

    quantity is what was used: opening + received - closing.
    """
    daily_entry_id: str
    product_id: str
    opening_stock: Decimal
    received_quantity: Decimal
    closing_stock: Decimal
    quantity: Decimal
    unit_cost_at_time: Decimal = ZERO

