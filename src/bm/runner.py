"""Run a stored command through the user's shell."""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from bm.models import CommandRecord

logger = logging.getLogger("bm.runner")


def run_record(record: CommandRecord, shell: str = "bash") -> int:
    """Run record.command with `<shell> -c` and return its exit status.

    stdin/stdout/stderr are inherited. The caller must have closed the store
    already so the lock is not held while the command runs.
    """
    click.echo(f"running command '{record.id}': {record.command}", err=True)
    logger.debug("exec %s -c %r", shell, record.command)
    result = subprocess.run([shell, "-c", record.command], check=False)
    logger.debug("command %s exited with %d", record.id, result.returncode)
    if result.returncode < 0:
        # Killed by a signal: report it the way shells do.
        return 128 - result.returncode
    return result.returncode
