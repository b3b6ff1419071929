"""
Remote Store Package

Abstract interface for the remote data collaborator plus two backends:
Supabase (PostgREST over httpx) and Google Sheets.
"""

from daybook.services.remote.interface import (
    DuplicateRemoteRecord,
    RemoteError,
    RemoteStoreInterface,
    TransientSubmissionFailure,
)
from daybook.services.remote.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
)
from daybook.services.remote.supabase import SupabaseRemoteStore

__all__ = [
    # Interface
    "RemoteStoreInterface",
    # Exceptions
    "DuplicateRemoteRecord",
    "RemoteError",
    "TransientSubmissionFailure",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsRemoteStore",
    "SupabaseRemoteStore",
]
