"""Data model for stored commands."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from bm.errors import CorruptRecordError

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def base36(n: int) -> str:
    """Encode a non-negative integer in lowercase base 36 (0 -> "0", 36 -> "10")."""
    if n < 0:
        msg = f"cannot encode negative number: {n}"
        raise ValueError(msg)
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _lookup(d: dict[str, Any], key: str) -> Any:
    """Exact key first, then a case-insensitive match ("id" reads as "ID")."""
    if key in d:
        return d[key]
    folded = key.casefold()
    for k, v in d.items():
        if k.casefold() == folded:
            return v
    return ""


@dataclass
class CommandRecord:
    """A single line of the data file."""

    id: str
    command: str
    date: str = field(default_factory=_now)   # RFC 3339, advisory only

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CommandRecord:
        values = {key: _lookup(d, key) for key in ("ID", "Command", "Date")}
        for key, value in values.items():
            if not isinstance(value, str):
                msg = f"record field {key!r} is not a string: {value!r}"
                raise CorruptRecordError(msg)
        if values["Date"]:
            # Validate only; the original text is kept so foreign timestamps round-trip.
            try:
                datetime.fromisoformat(values["Date"])
            except ValueError as exc:
                msg = f"record date is not a timestamp: {values['Date']!r}"
                raise CorruptRecordError(msg) from exc
        return cls(id=values["ID"], command=values["Command"], date=values["Date"])

    def to_dict(self) -> dict[str, Any]:
        return {"ID": self.id, "Command": self.command, "Date": self.date}

    @classmethod
    def from_line(cls, line: bytes) -> CommandRecord:
        """Decode one line (without its trailing newline)."""
        try:
            obj = json.loads(line)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            msg = f"unparseable record: {line[:80]!r}"
            raise CorruptRecordError(msg) from exc
        if not isinstance(obj, dict):
            msg = f"record is not an object: {line[:80]!r}"
            raise CorruptRecordError(msg)
        return cls.from_dict(obj)

    def to_line(self) -> bytes:
        """Encode as one newline-terminated line; embedded newlines are escaped."""
        return (json.dumps(self.to_dict()) + "\n").encode("utf-8")
