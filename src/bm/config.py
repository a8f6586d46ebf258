"""BMConfig: where the data file lives and how commands are listed and run.

Everything is optional. Defaults reproduce the classic layout in the user's
home directory:

    ~/.bm_bookmark_data        # records, one JSON object per line
    ~/.bm_bookmark_data.lock   # flock target held while a command runs
    ~/.bm.toml                 # optional overrides (below)

.bm.toml example:

    [bm]
    data_file = ".bm_bookmark_data"        # relative to home, or absolute
    lock_file = ".bm_bookmark_data.lock"
    max_matches = 10                       # results shown by `bm q`
    shell = "bash"                         # runs `<shell> -c <command>`

Set BM_HOME to use a different home directory (handy for tests and for
keeping several bookmark sets apart).
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = ".bm.toml"
_DEFAULT_DATA_FILE = ".bm_bookmark_data"
_DEFAULT_LOCK_FILE = ".bm_bookmark_data.lock"
_DEFAULT_MAX_MATCHES = 10
_DEFAULT_SHELL = "bash"

HOME_ENV = "BM_HOME"


@dataclass
class BMConfig:
    """Resolved configuration."""

    home: Path = field(default_factory=Path.home)
    data_file: str = _DEFAULT_DATA_FILE
    lock_file: str = _DEFAULT_LOCK_FILE
    max_matches: int = _DEFAULT_MAX_MATCHES
    shell: str = _DEFAULT_SHELL

    @property
    def data_path(self) -> Path:
        return self.home / self.data_file

    @property
    def lock_path(self) -> Path:
        return self.home / self.lock_file


def _resolve_home(home: Path | str | None) -> Path:
    if home:
        return Path(home).expanduser()
    env_home = os.environ.get(HOME_ENV)
    if env_home:
        return Path(env_home).expanduser()
    return Path.home()


def load_config(home: Path | str | None = None) -> BMConfig:
    """Load .bm.toml from home (argument > $BM_HOME > ~), falling back to defaults."""
    home_path = _resolve_home(home)
    config_path = home_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            msg = f"invalid config file {config_path}: {exc}"
            raise ValueError(msg) from exc

    section = raw.get("bm", {})
    max_matches = int(section.get("max_matches", _DEFAULT_MAX_MATCHES))
    if max_matches < 1:
        msg = f"max_matches must be at least 1, got {max_matches} in {config_path}"
        raise ValueError(msg)

    return BMConfig(
        home=home_path,
        data_file=str(section.get("data_file", _DEFAULT_DATA_FILE)),
        lock_file=str(section.get("lock_file", _DEFAULT_LOCK_FILE)),
        max_matches=max_matches,
        shell=str(section.get("shell", _DEFAULT_SHELL)),
    )
