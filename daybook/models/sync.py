"""
Sync Models

Results of submitting entries and of whole drain cycles.

DESIGN DECISION: The user only ever sees an aggregate: how the last
drain went and how many entries are still waiting. Which field of
which entry failed goes to the audit log, not to the status.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class SyncResult(str, Enum):
    """Classification of one drain cycle."""
    SUCCESS = "success"  # every attempted entry committed
    PARTIAL = "partial"  # some, not all, committed
    ERROR = "error"      # none committed
    NONE = "none"        # queue was empty, nothing attempted


class SubmissionResult(str, Enum):
    """Terminal outcome of submitting one entry."""
    COMMITTED = "committed"
    DUPLICATE = "duplicate"  # primary record already existed remotely


class CaptureResult(str, Enum):
    """What happened to an entry handed to the capture path."""
    SUBMITTED = "submitted"
    DUPLICATE = "duplicate"
    QUEUED = "queued"
    LOST = "lost"


class SyncOutcome(BaseModel):
    """Counts and classification for one drain cycle."""

    correlation_id: UUID = Field(default_factory=uuid4)
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None

    attempted: int = Field(default=0, ge=0)
    committed: int = Field(
        default=0,
        ge=0,
        description="Entries removed after commit, duplicates included"
    )
    duplicates: int = Field(default=0, ge=0)
    failed: int = Field(
        default=0,
        ge=0,
        description="Entries left in the queue for the next drain"
    )
    rejected: int = Field(
        default=0,
        ge=0,
        description="Entries that can never be submitted and were dropped"
    )
    pending_after: int = Field(default=0, ge=0)

    result: SyncResult = SyncResult.NONE

    def classify(self) -> SyncResult:
        """Derive success/partial/error from the counts."""
        if self.attempted == 0:
            return SyncResult.NONE
        if self.committed == self.attempted:
            return SyncResult.SUCCESS
        if self.committed > 0:
            return SyncResult.PARTIAL
        return SyncResult.ERROR


class SyncStatus(BaseModel):
    """Observable snapshot for status indicators."""

    is_online: bool
    is_syncing: bool
    pending_count: int
    last_result: Optional[SyncResult] = None
