"""Rank stored records against a query.

Records are sorted into three buckets by how tightly the query matches the
selected field (the ID with by_name, the command text otherwise):

    exact   the query covers the whole field
    prefix  the field starts with the query
    fuzzy   the query appears somewhere in the field

Results come back fuzzy + prefix + exact, each bucket in file order, so the
best and most recent match is always last.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from bm.errors import NoMatchError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bm.models import CommandRecord
    from bm.store import RecordStore

logger = logging.getLogger("bm.match")

# Query words may be separated by any run of whitespace in the stored text.
_WORD_SEPARATOR = r"[ \t\n]+?"


def query_pattern(words: Sequence[str]) -> str:
    """Join literal query words into one pattern; no word is treated as regex syntax."""
    return _WORD_SEPARATOR.join(re.escape(word) for word in words)


def match_records(store: RecordStore, words: Sequence[str], *, by_name: bool = False) -> list[CommandRecord]:
    """Return matching records ordered from least to most relevant."""
    pattern = re.compile(query_pattern(words))

    fuzzy: list[CommandRecord] = []
    prefix: list[CommandRecord] = []
    exact: list[CommandRecord] = []
    for record in store.scan():
        value = record.id if by_name else record.command
        if pattern.fullmatch(value):
            exact.append(record)
        elif pattern.match(value):
            prefix.append(record)
        elif pattern.search(value):
            fuzzy.append(record)

    logger.debug(
        "query %r: %d exact, %d prefix, %d fuzzy", words, len(exact), len(prefix), len(fuzzy)
    )
    return fuzzy + prefix + exact


def must_match_one(store: RecordStore, words: Sequence[str], *, by_name: bool = False) -> CommandRecord:
    """Return the most relevant record, raising NoMatchError when nothing matches."""
    records = match_records(store, words, by_name=by_name)
    if not records:
        msg = "no records match the query"
        raise NoMatchError(msg)
    return records[-1]
