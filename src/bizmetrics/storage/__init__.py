"""Record-storage collaborator clients."""

from .store import FILTER_OPERATORS, Filter, InMemoryRecordStore, RecordStore, StorageError
from .supabase import SupabaseRecordStore

__all__ = [
    "FILTER_OPERATORS",
    "Filter",
    "InMemoryRecordStore",
    "RecordStore",
    "StorageError",
    "SupabaseRecordStore",
]
