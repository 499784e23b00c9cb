"""
Env file rewriting.

Backing files are UTF-8 text with one ``KEY=VALUE`` per line, no quoting.
A key is matched by the literal prefix ``KEY=``, the same rule the config
cache reads them with. Rewrites keep line order, untouched lines and the
file's line endings; missing keys are appended at the end.

Every read-modify-write of a file runs under that file's lock, so two
threads updating different variables of the same file cannot lose writes.
"""
import os
import logging
import threading
from pathlib import Path
from typing import Union
from contextlib import contextmanager
from collections.abc import Iterator

from ..cache import parse_env_lines
from ..exceptions import ConfigIOError

logger = logging.getLogger("envault.vault")

PathLike = Union[str, os.PathLike]

_file_locks: dict[Path, threading.RLock] = {}
_file_locks_guard = threading.Lock()


def _key_for(path: PathLike) -> Path:
    return Path(path).resolve()


@contextmanager
def file_lock(path: PathLike) -> Iterator[None]:
    """Hold the process-wide lock for ``path`` (reentrant)."""
    key = _key_for(path)
    with _file_locks_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = _file_locks[key] = threading.RLock()
    with lock:
        yield


def update_lines(lines: list[str], name: str, value: str) -> list[str]:
    """Replace the ``name=`` line with ``name=value``, or append it."""
    prefix = f"{name}="
    updated = False
    result = []
    for line in lines:
        if line.startswith(prefix):
            result.append(f"{prefix}{value}")
            updated = True
        else:
            result.append(line)
    if not updated:
        result.append(f"{prefix}{value}")
    return result


def _read_text(path: PathLike) -> str:
    # newline="" keeps "\r\n" as written
    try:
        with open(path, encoding="utf-8", newline="") as fp:
            return fp.read()
    except OSError as err:
        raise ConfigIOError(f"Failed to read env file {path}: {err}") from err


def read_lines(path: PathLike) -> list[str]:
    """Return the lines of ``path`` without line terminators."""
    return _read_text(path).splitlines()


def read_variables(path: PathLike) -> dict[str, str]:
    """Parse ``path`` into the mapping the config cache would load."""
    return parse_env_lines(read_lines(path))


def _write_text(path: PathLike, text: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as fp:
            fp.write(text)
    except OSError as err:
        raise ConfigIOError(f"Failed to write env file {path}: {err}") from err


def update_variable(path: PathLike, name: str, value: str) -> None:
    """Set ``name=value`` in the env file at ``path``.

    The file keeps its line ending ("\\r\\n" or "\\n") and whether it ends
    with one.

    Raises:
        ConfigIOError: If the file cannot be read or written.
    """
    with file_lock(path):
        text = _read_text(path)
        newline = "\r\n" if "\r\n" in text else "\n"
        lines = update_lines(text.splitlines(), name, value)
        content = newline.join(lines)
        if not text or text.endswith(("\n", "\r")):
            content += newline
        _write_text(path, content)
    logger.info("Environment variable '%s' updated in %s", name, path)


def ensure_file(path: PathLike) -> Path:
    """Create ``path`` and its parent directories if they do not exist."""
    file_path = Path(path)
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.touch(exist_ok=True)
    except OSError as err:
        raise ConfigIOError(
            f"Failed to ensure env file {file_path} exists: {err}"
        ) from err
    return file_path
