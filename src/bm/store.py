"""Append-only record log guarded by a process-wide flock.

RecordStore is the public API:
    with open_store(cfg) as store:
        store.append(CommandRecord(id=store.generate_unique_id(), command="ls -la"))
        for record in store.scan():
            ...
        store.delete("0")

Data file layout (one JSON object per line, newest last):
    {"ID": "0", "Command": "ls -la", "Date": "2026-10-19T09:43:00+00:00"}
    {"ID": "deploy", "Command": "make deploy", "Date": "..."}

The lock is taken when the store is opened and held until close(), so a
whole bm invocation is serialized against every other one. Writes go through
an O_SYNC descriptor. A final line without its newline is a torn append and
is reported as CorruptRecordError, never silently dropped.
"""

from __future__ import annotations

import fcntl
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from bm.errors import (
    CorruptRecordError,
    DeleteFailedError,
    IDSpaceExhaustedError,
    LockUnavailableError,
    StoreUnavailableError,
)
from bm.models import CommandRecord, base36

if TYPE_CHECKING:
    from collections.abc import Iterator
    from io import FileIO
    from types import TracebackType

    from bm.config import BMConfig

logger = logging.getLogger("bm.store")

MAX_GENERATED_IDS = 1_000_000
_READ_CHUNK = 64 * 1024
_FILE_MODE = 0o600


def _acquire_lock(path: Path, *, blocking: bool) -> int:
    try:
        fd = os.open(path, os.O_RDWR | os.O_CREAT, _FILE_MODE)
    except OSError as exc:
        msg = f"cannot open lock file {path}: {exc}"
        raise LockUnavailableError(msg) from exc
    flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
    try:
        fcntl.flock(fd, flags)
    except OSError as exc:
        os.close(fd)
        msg = f"cannot lock {path}: {exc}"
        raise LockUnavailableError(msg) from exc
    return fd


def _release_lock(fd: int) -> None:
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


def _open_data(path: Path, *, create: bool) -> FileIO:
    flags = os.O_RDWR | os.O_SYNC
    if create:
        flags |= os.O_CREAT
    fd = os.open(path, flags, _FILE_MODE)
    # Unbuffered: read_next() keeps its own buffer so EOF handling stays explicit.
    return open(fd, "r+b", buffering=0)  # noqa: SIM115


def _write_all(f: FileIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        n = f.write(view)
        view = view[n:]


class RecordStore:
    """Locked, line-delimited JSON log of CommandRecords."""

    def __init__(self, data_path: Path | str, lock_path: Path | str, *, blocking: bool = True) -> None:
        self.data_path = Path(data_path)
        self.lock_path = Path(lock_path)
        self._pending = bytearray()
        self._invalidated = False
        self._file: FileIO | None = None

        logger.debug("locking %s", self.lock_path)
        self._lock_fd: int | None = _acquire_lock(self.lock_path, blocking=blocking)
        try:
            self._file = _open_data(self.data_path, create=True)
        except OSError as exc:
            _release_lock(self._lock_fd)
            self._lock_fd = None
            msg = f"cannot open data file {self.data_path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        logger.debug("opened %s", self.data_path)

    def __enter__(self) -> RecordStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _require_file(self) -> FileIO:
        if self._file is None:
            if self._invalidated:
                msg = f"store {self.data_path} is unusable after a failed delete"
            else:
                msg = f"store {self.data_path} is closed"
            raise StoreUnavailableError(msg)
        return self._file

    def reset(self) -> None:
        """Move the read cursor back to the first record."""
        f = self._require_file()
        try:
            f.seek(0)
        except OSError as exc:
            msg = f"cannot seek {self.data_path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        self._pending.clear()

    def read_next(self) -> CommandRecord | None:
        """Return the record at the cursor, or None at a clean end of file.

        A trailing fragment with no newline means an append was interrupted;
        that raises CorruptRecordError instead of looking like the end.
        """
        f = self._require_file()
        while True:
            nl = self._pending.find(b"\n")
            if nl >= 0:
                line = bytes(self._pending[:nl])
                del self._pending[: nl + 1]
                return CommandRecord.from_line(line)
            try:
                chunk = f.read(_READ_CHUNK)
            except OSError as exc:
                msg = f"cannot read {self.data_path}: {exc}"
                raise StoreUnavailableError(msg) from exc
            if not chunk:
                break
            self._pending += chunk

        fragment = bytes(self._pending)
        self._pending.clear()
        if fragment.strip():
            msg = f"torn record at end of {self.data_path}: {fragment[:80]!r}"
            raise CorruptRecordError(msg)
        return None

    def scan(self) -> Iterator[CommandRecord]:
        """Yield every record from the start of the file, oldest first."""
        self.reset()
        while True:
            record = self.read_next()
            if record is None:
                return
            yield record

    def id_in_use(self, record_id: str) -> bool:
        """Scan the whole file (leaving the cursor at EOF) for record_id."""
        found = False
        for record in self.scan():
            found = found or record.id == record_id
        return found

    def generate_unique_id(self) -> str:
        """Return the smallest base-36 counter not used as an ID.

        The ID is not reserved: two calls without an append in between
        return the same value.
        """
        ids = {record.id for record in self.scan()}
        for i in range(MAX_GENERATED_IDS):
            candidate = base36(i)
            if candidate not in ids:
                return candidate
        msg = f"all {MAX_GENERATED_IDS} generated IDs are in use"
        raise IDSpaceExhaustedError(msg)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, record: CommandRecord) -> None:
        """Write record at the end of the file. Leaves the cursor at EOF."""
        f = self._require_file()
        self._pending.clear()
        data = record.to_line()
        try:
            offset = f.seek(0, os.SEEK_END)
        except OSError as exc:
            msg = f"cannot seek {self.data_path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        try:
            _write_all(f, data)
        except OSError as exc:
            # Best effort only: if this fails too the file keeps a torn line.
            try:
                f.truncate(offset)
                f.seek(0, os.SEEK_END)
            except OSError:
                logger.warning("could not truncate %s back to %d bytes", self.data_path, offset)
            msg = f"cannot append to {self.data_path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        logger.debug("appended record %s at offset %d", record.id, offset)

    def delete(self, record_id: str) -> None:
        """Rewrite the data file without records whose ID is record_id.

        On DeleteFailedError the handle must not be used again except to
        close() it.
        """
        self._require_file()
        try:
            tmp_dir = Path(tempfile.mkdtemp(prefix=".bm-", dir=self.data_path.parent))
        except OSError as exc:
            msg = f"cannot create temporary directory next to {self.data_path}: {exc}"
            raise DeleteFailedError(msg) from exc

        try:
            tmp_path = tmp_dir / "history.tmp"
            removed = 0
            try:
                tmp_fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, _FILE_MODE)
                with open(tmp_fd, "wb") as out:
                    for record in self.scan():
                        if record.id == record_id:
                            removed += 1
                            continue
                        out.write(record.to_line())
                    out.flush()
                    os.fsync(out.fileno())
            except OSError as exc:
                msg = f"cannot write {tmp_path}: {exc}"
                raise DeleteFailedError(msg) from exc

            try:
                self._close_data()
                os.replace(tmp_path, self.data_path)
                self._file = _open_data(self.data_path, create=False)
            except OSError as exc:
                self._invalidated = True
                msg = f"cannot replace {self.data_path}: {exc}"
                raise DeleteFailedError(msg) from exc
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)

        logger.debug("deleted %d record(s) with ID %s", removed, record_id)

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    def _close_data(self) -> None:
        f, self._file = self._file, None
        self._pending.clear()
        if f is not None:
            f.close()

    def close(self) -> None:
        """Close the data file, then release the lock. Safe to call twice."""
        errors: list[OSError] = []
        try:
            self._close_data()
        except OSError as exc:
            errors.append(exc)
        if self._lock_fd is not None:
            fd, self._lock_fd = self._lock_fd, None
            try:
                _release_lock(fd)
            except OSError as exc:
                errors.append(exc)
            logger.debug("released %s", self.lock_path)
        if errors:
            msg = f"error closing store {self.data_path}: {errors[0]}"
            raise StoreUnavailableError(msg) from errors[0]


def open_store(cfg: BMConfig, *, blocking: bool = True) -> RecordStore:
    """Open the store described by cfg, waiting for the lock unless blocking=False."""
    return RecordStore(cfg.data_path, cfg.lock_path, blocking=blocking)
