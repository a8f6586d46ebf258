"""Bookmarked shell commands: an append-only JSONL log plus fuzzy lookup.

Layout (in the home directory, see bm.config):
    .bm_bookmark_data         # one record per line, oldest first
    .bm_bookmark_data.lock    # flock(LOCK_EX) held for the whole invocation

Record line:
    {"ID": "<name or base-36 counter>", "Command": "...", "Date": "<RFC 3339>"}

Deletes rewrite the whole file (temp file + rename). Lookups are a linear
scan ranked exact > prefix > fuzzy, see bm.match.
"""

from bm.config import BMConfig, load_config
from bm.errors import (
    BMError,
    CorruptRecordError,
    DeleteFailedError,
    IDSpaceExhaustedError,
    LockUnavailableError,
    NoMatchError,
    StoreUnavailableError,
)
from bm.match import match_records, must_match_one
from bm.models import CommandRecord
from bm.store import RecordStore, open_store

__all__ = [
    "BMConfig",
    "BMError",
    "CommandRecord",
    "CorruptRecordError",
    "DeleteFailedError",
    "IDSpaceExhaustedError",
    "LockUnavailableError",
    "NoMatchError",
    "RecordStore",
    "StoreUnavailableError",
    "load_config",
    "match_records",
    "must_match_one",
    "open_store",
]
