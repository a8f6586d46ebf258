"""bm CLI: bookmark shell commands and find them again.

Commands (append `n` to work on names instead of command text):
    bm s  [args]           save an un-named command
    bm sn <name> [args]    save a named command
    bm un <name> [args]    like sn, but may replace an existing command
    bm c  [args]           save and run an un-named command
    bm cn <name> [args]    save and run a named command
    bm xn <name> [args]    like cn, but may replace an existing command
    bm q  [query]          search saved commands by content
    bm qn [query]          search saved commands by name
    bm r  [query]          look up and run a command by content
    bm rn [query]          look up and run a command by name
    bm d  [query]          delete a command by content
    bm dn [query]          delete a command by name
    bm a  [query]          list all matching commands in order
    bm an [query]          list all commands with matching names
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

import click

from bm.config import BMConfig, load_config
from bm.errors import BMError, NoMatchError
from bm.match import match_records, must_match_one
from bm.models import CommandRecord
from bm.runner import run_record
from bm.store import RecordStore, open_store

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

# Everything after the sub-command belongs to the saved command or the query,
# including --help; usage lives on `bm --help`.
_PASSTHROUGH = {
    "ignore_unknown_options": True,
    "allow_interspersed_args": False,
    "help_option_names": [],
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> BMConfig:
    try:
        return load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


@contextlib.contextmanager
def _opened_store(cfg: BMConfig) -> Iterator[RecordStore]:
    """Open the store for one operation, turning store errors into CLI errors."""
    try:
        with open_store(cfg) as store:
            yield store
    except NoMatchError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1) from exc
    except BMError as exc:
        raise click.ClickException(str(exc)) from exc


def _save(store: RecordStore, args: Sequence[str], name: str | None = None, *, replace: bool = False) -> CommandRecord:
    if name is None:
        record_id = store.generate_unique_id()
    elif store.id_in_use(name):
        if not replace:
            raise click.ClickException(f"cannot use name: {name}")
        store.delete(name)
        record_id = name
    else:
        record_id = name

    record = CommandRecord(id=record_id, command=" ".join(args))
    store.append(record)
    click.echo(f"created record with ID {record.id}", err=True)
    return record


def _run(cfg: BMConfig, record: CommandRecord) -> None:
    try:
        code = run_record(record, cfg.shell)
    except FileNotFoundError as exc:
        raise click.ClickException(f"shell not found: {cfg.shell}") from exc
    raise SystemExit(code)


def print_records(records: Sequence[CommandRecord]) -> None:
    """Print records one per line with right-aligned IDs; roomier on a terminal."""
    width = max((len(r.id) for r in records), default=0)
    is_tty = click.get_text_stream("stdout").isatty()
    if is_tty and records:
        click.echo()
    for r in records:
        padded = r.id.rjust(width)
        if is_tty:
            padded = click.style(padded, fg="green", bold=True)
        click.echo(f" {padded}  {r.command}")
        if is_tty:
            click.echo()


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="bm")
@click.option("-v", "--verbose", is_flag=True, help="Log store activity to stderr")
def cli(verbose: bool) -> None:
    """bm: bookmark shell commands and find them again."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")


# ---------------------------------------------------------------------------
# bm s / sn / un
# ---------------------------------------------------------------------------


@cli.command("s", context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def save(args: tuple[str, ...]) -> None:
    """Save an un-named command."""
    with _opened_store(_load_cfg()) as store:
        _save(store, args)


@cli.command("sn", context_settings=_PASSTHROUGH)
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def save_named(name: str, args: tuple[str, ...]) -> None:
    """Save a named command."""
    with _opened_store(_load_cfg()) as store:
        _save(store, args, name)


@cli.command("un", context_settings=_PASSTHROUGH)
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def update_named(name: str, args: tuple[str, ...]) -> None:
    """Like sn, but may replace an existing command."""
    with _opened_store(_load_cfg()) as store:
        _save(store, args, name, replace=True)


# ---------------------------------------------------------------------------
# bm c / cn / xn
# ---------------------------------------------------------------------------


@cli.command("c", context_settings=_PASSTHROUGH)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def save_and_run(args: tuple[str, ...]) -> None:
    """Save and run an un-named command."""
    cfg = _load_cfg()
    with _opened_store(cfg) as store:
        record = _save(store, args)
    _run(cfg, record)


@cli.command("cn", context_settings=_PASSTHROUGH)
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def save_and_run_named(name: str, args: tuple[str, ...]) -> None:
    """Save and run a named command."""
    cfg = _load_cfg()
    with _opened_store(cfg) as store:
        record = _save(store, args, name)
    _run(cfg, record)


@cli.command("xn", context_settings=_PASSTHROUGH)
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def replace_and_run_named(name: str, args: tuple[str, ...]) -> None:
    """Like cn, but may replace an existing command."""
    cfg = _load_cfg()
    with _opened_store(cfg) as store:
        record = _save(store, args, name, replace=True)
    _run(cfg, record)


# ---------------------------------------------------------------------------
# bm q / qn / a
# ---------------------------------------------------------------------------


def _list(words: Sequence[str], *, by_name: bool, limited: bool, empty_msg: str) -> None:
    cfg = _load_cfg()
    with _opened_store(cfg) as store:
        records = match_records(store, words, by_name=by_name)
    if not records:
        click.echo(empty_msg, err=True)
        raise SystemExit(1)
    if limited:
        records = records[-cfg.max_matches:]
    print_records(records)


@cli.command("q", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def query(query: tuple[str, ...]) -> None:
    """Search saved commands by content."""
    _list(query, by_name=False, limited=True, empty_msg="no records match the query")


@cli.command("qn", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def query_named(query: tuple[str, ...]) -> None:
    """Search saved commands by name."""
    _list(query, by_name=True, limited=True, empty_msg="no records match the query")


@cli.command("a", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def list_all(query: tuple[str, ...]) -> None:
    """List all saved commands in order (optionally filtered by content)."""
    _list(query, by_name=False, limited=False, empty_msg="no records found")


@cli.command("an", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def list_all_named(query: tuple[str, ...]) -> None:
    """List all saved commands in order (optionally filtered by name)."""
    _list(query, by_name=True, limited=False, empty_msg="no records found")


# ---------------------------------------------------------------------------
# bm r / rn
# ---------------------------------------------------------------------------


def _lookup_and_run(words: Sequence[str], *, by_name: bool) -> None:
    cfg = _load_cfg()
    with _opened_store(cfg) as store:
        record = must_match_one(store, words, by_name=by_name)
    _run(cfg, record)


@cli.command("r", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def run(query: tuple[str, ...]) -> None:
    """Look up and run a command by content."""
    _lookup_and_run(query, by_name=False)


@cli.command("rn", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def run_named(query: tuple[str, ...]) -> None:
    """Look up and run a command by name."""
    _lookup_and_run(query, by_name=True)


# ---------------------------------------------------------------------------
# bm d / dn
# ---------------------------------------------------------------------------


def _lookup_and_delete(words: Sequence[str], *, by_name: bool) -> None:
    with _opened_store(_load_cfg()) as store:
        record = must_match_one(store, words, by_name=by_name)
        click.echo(f"deleting record '{record.id}' with command: {record.command}", err=True)
        store.delete(record.id)


@cli.command("d", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def delete(query: tuple[str, ...]) -> None:
    """Delete a command by content."""
    _lookup_and_delete(query, by_name=False)


@cli.command("dn", context_settings=_PASSTHROUGH)
@click.argument("query", nargs=-1, type=click.UNPROCESSED)
def delete_named(query: tuple[str, ...]) -> None:
    """Delete a command by name."""
    _lookup_and_delete(query, by_name=True)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
