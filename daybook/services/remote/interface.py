"""
Abstract Remote Store Interface

DESIGN DECISION: The sync engine only needs to create a day's primary
record, attach its sub-records and move product stock. Keeping the
interface this small lets the same engine drain into Supabase, Google
Sheets, or an in-memory fake in tests.

The one contract every backend must honour: a second primary record for
the same (business_id, entry_date) is refused with DuplicateRemoteRecord,
distinguishable from any other failure.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from daybook.models.entry import (
    DailyEntryRecord,
    IncomeBreakdownRow,
    ParameterRow,
    ProductUsageRow,
    ReceiptRow,
)


class RemoteStoreInterface(ABC):
    """Remote data collaborator receiving synchronized entries."""

    @abstractmethod
    async def create_daily_entry(self, record: DailyEntryRecord) -> str:
        """
        Create the day's primary record.

        Returns:
            The remote id of the created record

        Raises:
            DuplicateRemoteRecord: A record for (business_id, entry_date) exists
            TransientSubmissionFailure: Any other failure
        """
        pass

    @abstractmethod
    async def add_income_breakdown(self, rows: list[IncomeBreakdownRow]) -> None:
        pass

    @abstractmethod
    async def add_receipts(self, rows: list[ReceiptRow]) -> None:
        pass

    @abstractmethod
    async def add_parameters(self, rows: list[ParameterRow]) -> None:
        pass

    @abstractmethod
    async def add_product_usage(self, rows: list[ProductUsageRow]) -> None:
        pass

    @abstractmethod
    async def update_product_stock(self, product_id: str, current_stock: Decimal) -> None:
        """Set a managed product's current stock. Unknown products are ignored."""
        pass


class RemoteError(Exception):
    """Base exception for remote store operations."""
    pass


class DuplicateRemoteRecord(RemoteError):
    """
    The primary record already exists remotely.

    Not a failure: the day was committed by an earlier attempt.
    """
    pass


class TransientSubmissionFailure(RemoteError):
    """Network, timeout or remote-side error. The entry is retried later."""
    pass
