"""Centralized storage paths for yt2anki."""

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import BinaryIO, Callable

# Base data directory for persistent settings
DATA_DIR = Path(os.environ.get("YT2ANKI_HOME", Path.home() / ".yt2anki"))

# Configuration
CONFIG_FILE = DATA_DIR / "config.json"


def _current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return 0o666 & ~_current_umask()


def atomic_write(path: Path, write: Callable[[BinaryIO], None], *, suffix: str = ".tmp") -> None:
    """Write a file atomically via ``write(fileobj)``.

    Writes to a temporary file in the target's directory, then renames it
    over the target. The parent directory must already exist. On any
    failure the temporary file is removed and the target is left untouched,
    so a crash never leaves a truncated file at ``path``.

    The result keeps the mode of an existing target; a new file gets the
    usual umask-derived mode rather than mkstemp's 0600.
    """
    path = Path(path)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            write(f)
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_json_write(path: Path, data, *, indent: int = 2, ensure_ascii: bool = False) -> None:
    """Write JSON data to a file atomically, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, indent=indent, ensure_ascii=ensure_ascii).encode("utf-8")
    atomic_write(path, lambda f: f.write(payload))
