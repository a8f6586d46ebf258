"""Tests for the record model and its line codec."""

from __future__ import annotations

import json

import pytest

from bm.errors import CorruptRecordError
from bm.models import CommandRecord, base36


class TestBase36:
    @pytest.mark.parametrize(
        ("n", "expected"),
        [(0, "0"), (9, "9"), (10, "a"), (35, "z"), (36, "10"), (1295, "zz"), (1296, "100")],
    )
    def test_encoding(self, n: int, expected: str):
        assert base36(n) == expected

    def test_matches_int_parsing(self):
        for n in (1, 77, 46655, 999_999):
            assert int(base36(n), 36) == n

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            base36(-1)


class TestCodec:
    def test_line_uses_capitalized_keys(self):
        record = CommandRecord(id="0", command="ls -la", date="2026-01-02T03:04:05+00:00")
        line = record.to_line()
        assert line.endswith(b"\n")
        assert json.loads(line) == {"ID": "0", "Command": "ls -la", "Date": "2026-01-02T03:04:05+00:00"}

    def test_embedded_newline_stays_on_one_line(self):
        record = CommandRecord(id="x", command="echo a\necho b")
        line = record.to_line()
        assert line.count(b"\n") == 1
        assert CommandRecord.from_line(line[:-1]).command == "echo a\necho b"

    def test_default_date_is_utc_iso(self):
        record = CommandRecord(id="0", command="true")
        assert record.date.endswith("+00:00")

    def test_foreign_date_preserved(self):
        raw = b'{"ID":"a","Command":"make","Date":"2021-03-04T05:06:07.123456789-08:00"}'
        record = CommandRecord.from_line(raw)
        assert record.date == "2021-03-04T05:06:07.123456789-08:00"

    def test_missing_fields_default_to_empty(self):
        record = CommandRecord.from_line(b"{}")
        assert (record.id, record.command, record.date) == ("", "", "")

    @pytest.mark.parametrize(
        "raw",
        [
            b"",
            b"not json",
            b'{"ID": "a"',
            b"[1, 2]",
            b'"text"',
            b'{"ID": 5}',
            b'{"Command": null}',
            b'{"Date": "nope"}',
            b'{"ID": "a", "Command": "ls", "Date": "2026-13-45T99:00:00Z"}',
        ],
    )
    def test_bad_lines_are_corrupt(self, raw: bytes):
        with pytest.raises(CorruptRecordError):
            CommandRecord.from_line(raw)

    def test_invalid_utf8_is_corrupt(self):
        with pytest.raises(CorruptRecordError):
            CommandRecord.from_line(b'{"ID": "\xff"}')

    def test_keys_match_case_insensitively(self):
        record = CommandRecord.from_line(b'{"id": "x", "command": "ls", "DATE": "2026-01-02T03:04:05Z"}')
        assert (record.id, record.command, record.date) == ("x", "ls", "2026-01-02T03:04:05Z")

    def test_exact_key_preferred(self):
        record = CommandRecord.from_line(b'{"id": "lower", "ID": "upper", "Command": "ls"}')
        assert record.id == "upper"
