"""Shared fixtures: every test gets its own home directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from bm.config import BMConfig, load_config
from bm.models import CommandRecord
from bm.store import RecordStore, open_store

FIXED_DATE = "2026-01-02T03:04:05+00:00"


def make_record(record_id: str, command: str) -> CommandRecord:
    return CommandRecord(id=record_id, command=command, date=FIXED_DATE)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("BM_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def cfg(home: Path) -> BMConfig:
    return load_config()


@pytest.fixture
def store(cfg: BMConfig):
    s = open_store(cfg)
    yield s
    s.close()


@pytest.fixture
def filled(store: RecordStore) -> RecordStore:
    for record_id, command in [("0", "git status"), ("1", "git commit"), ("deploy", "make deploy")]:
        store.append(make_record(record_id, command))
    return store
