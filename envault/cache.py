"""
Config Cache: load-once, thread-safe key/value stores keyed by alias.

Each alias ("base", "uat", "global", ...) maps to one ``ConfigSource``
loaded from a flat file:

- ``*.properties`` files: ``key=value`` or ``key: value`` lines.
- every other file (``.env``, ``.env.uat``, ...): literal ``KEY=VALUE`` lines,
  split at the first ``=`` with no quoting, escaping or inline comments.

Lookups consult the override mapping first (the process environment by
default), then the cached file values.

Security Note:
    Values may be encrypted envelopes or master keys.
    Only log aliases, key names and paths, never values.
"""
import os
import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union
from collections.abc import Iterable, Iterator, Mapping

from .exceptions import (
    ConfigIOError,
    MissingKeyError,
    NotFoundError,
    NotLoadedError,
)

logger = logging.getLogger("envault.cache")

PathLike = Union[str, os.PathLike]

_PROPERTIES_SUFFIX = ".properties"
_TRUE_VALUES = ("true",)


def _parse_properties(text: str) -> dict[str, str]:
    """Parse a key/value properties file (``=`` or ``:`` separated)."""
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", "!")):
            continue
        positions = [pos for pos in (line.find("="), line.find(":")) if pos > 0]
        if not positions:
            values[line] = ""
            continue
        sep = min(positions)
        values[line[:sep].strip()] = line[sep + 1:].strip()
    return values


def parse_env_lines(lines: Iterable[str]) -> dict[str, str]:
    """Parse env file lines into a mapping; later duplicates win.

    A line ``NAME=VALUE`` defines exactly the key that a rewrite of ``NAME``
    matches by its ``NAME=`` prefix. Nothing is stripped or unquoted, so
    ``P=pa55 #word`` and ``U='alice'`` keep their full text. Blank lines,
    ``#`` comments and lines without ``=`` are ignored.
    """
    values: dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition("=")
        if sep and name and not name.lstrip().startswith("#"):
            values[name] = value
    return values


def _to_int(value: str) -> int:
    return int(value.strip())


def _to_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _to_float(value: str) -> float:
    return float(value.strip())


_CONVERTERS = {
    str: str,
    "str": str,
    "string": str,
    int: _to_int,
    "int": _to_int,
    "integer": _to_int,
    "long": _to_int,
    bool: _to_bool,
    "bool": _to_bool,
    "boolean": _to_bool,
    float: _to_float,
    "float": _to_float,
    "double": _to_float,
}


class ConfigSource(Mapping[str, str]):
    """Read-only snapshot of one configuration file."""

    def __init__(self, alias: str, path: PathLike, data: Mapping[str, str]):
        self._alias = alias
        self._path = Path(path)
        self._data = dict(data)

    @classmethod
    def from_file(cls, alias: str, path: PathLike) -> "ConfigSource":
        """Read ``path`` fully into memory.

        Raises:
            NotFoundError: If the file does not exist.
            ConfigIOError: If the file cannot be read.
        """
        file_path = Path(path)
        if not file_path.is_file():
            logger.error("Configuration file not found: '%s'", file_path)
            raise NotFoundError(f"Configuration file not found: {file_path}")
        try:
            text = file_path.read_text(encoding="utf-8")
            if file_path.suffix == _PROPERTIES_SUFFIX:
                data = _parse_properties(text)
            else:
                data = parse_env_lines(text.splitlines())
        except (OSError, UnicodeDecodeError) as err:
            raise ConfigIOError(
                f"Failed to read configuration file {file_path}: {err}"
            ) from err
        return cls(alias, file_path, data)

    @property
    def alias(self) -> str:
        return self._alias

    @property
    def path(self) -> Path:
        return self._path

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return (
            f"<ConfigSource alias={self._alias!r} path='{self._path}' "
            f"keys={len(self._data)}>"
        )


class ConfigCache:
    """Registry of loaded configuration sources.

    Loading is compute-if-absent: concurrent ``load()`` calls for the same
    alias read the file once and every caller sees the same instance;
    loads for different aliases do not block each other.

    Create one per test for isolation; application code uses
    ``default_cache()``.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self._sources: dict[str, ConfigSource] = {}
        self._alias_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._overrides = os.environ if overrides is None else overrides

    def _lock_for(self, alias: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._alias_locks.get(alias)
            if lock is None:
                lock = self._alias_locks[alias] = threading.Lock()
            return lock

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, alias: str, path: PathLike) -> ConfigSource:
        """Load ``path`` under ``alias`` unless the alias is already cached.

        Returns:
            The cached ConfigSource for ``alias``.

        Raises:
            NotFoundError: If ``path`` does not exist.
            ConfigIOError: If the file cannot be read.
        """
        if not alias:
            raise ValueError("Configuration alias cannot be empty")
        source = self._sources.get(alias)
        if source is not None:
            return source
        with self._lock_for(alias):
            source = self._sources.get(alias)
            if source is None:
                source = ConfigSource.from_file(alias, path)
                self._sources[alias] = source
                logger.info(
                    "Configuration with alias '%s' loaded from '%s'",
                    alias, source.path,
                )
            return source

    def load_many(self, sources: Mapping[str, PathLike]) -> None:
        """Load several aliases after checking every file exists.

        Raises:
            NotFoundError: Listing every missing file; nothing is loaded.
        """
        missing = [str(path) for path in sources.values() if not Path(path).is_file()]
        if missing:
            logger.error("Missing required configuration files: %s", missing)
            raise NotFoundError(
                f"Missing required configuration files: {missing}"
            )
        for alias, path in sources.items():
            self.load(alias, path)

    def reload(self, alias: str) -> ConfigSource:
        """Re-read the file behind ``alias`` and swap it in atomically.

        Raises:
            NotLoadedError: If ``alias`` was never loaded.
        """
        existing = self._sources.get(alias)
        if existing is None:
            raise NotLoadedError(alias)
        with self._lock_for(alias):
            source = ConfigSource.from_file(alias, existing.path)
            self._sources[alias] = source
        logger.info("Configuration with alias '%s' reloaded", alias)
        return source

    def is_loaded(self, alias: str) -> bool:
        return alias in self._sources

    def loaded_aliases(self) -> frozenset[str]:
        return frozenset(self._sources)

    def source(self, alias: str) -> ConfigSource:
        """Return the cached source for ``alias``.

        Raises:
            NotLoadedError: If ``alias`` was never loaded.
        """
        try:
            return self._sources[alias]
        except KeyError:
            logger.error("Configuration with alias '%s' not loaded", alias)
            raise NotLoadedError(alias) from None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _lookup(self, alias: str, key: str) -> Optional[str]:
        source = self.source(alias)
        override = self._overrides.get(key)
        if override:
            logger.debug("Using override value for '%s'", key)
            return override
        value = source.get(key)
        return value or None

    def get(self, alias: str, key: str) -> str:
        """Return ``key`` from ``alias``, overrides first.

        Raises:
            NotLoadedError: If ``alias`` was never loaded.
            MissingKeyError: If ``key`` is absent or empty.
        """
        value = self._lookup(alias, key)
        if value is None:
            logger.warning(
                "Key '%s' not found or empty in configuration '%s'", key, alias
            )
            raise MissingKeyError(alias, key)
        return value

    def get_or_default(self, alias: str, key: str, default: Any = None) -> Any:
        """Like ``get()`` but returns ``default`` when the key is missing.

        Raises:
            NotLoadedError: If ``alias`` was never loaded.
        """
        value = self._lookup(alias, key)
        if value is None:
            logger.debug(
                "Key '%s' not found in '%s', using default", key, alias
            )
            return default
        return value

    def get_typed(self, alias: str, key: str, kind: Any = str) -> Optional[Any]:
        """Return ``key`` converted to ``kind``, or None.

        ``kind`` is one of ``str``, ``int``, ``bool``, ``float`` or the names
        "string", "integer", "long", "boolean", "float", "double".
        Missing keys and unparsable values give None so callers can apply
        their own defaults.

        Raises:
            NotLoadedError: If ``alias`` was never loaded.
            ValueError: If ``kind`` is not supported.
        """
        try:
            converter = _CONVERTERS[kind.lower() if isinstance(kind, str) else kind]
        except KeyError:
            raise ValueError(f"Unsupported type conversion: {kind!r}") from None
        value = self._lookup(alias, key)
        if value is None:
            return None
        try:
            return converter(value)
        except ValueError:
            logger.warning(
                "Failed to convert '%s' from configuration '%s' to %s",
                key, alias, kind,
            )
            return None


_default_cache: Optional[ConfigCache] = None
_default_lock = threading.Lock()


def default_cache() -> ConfigCache:
    """Process-wide cache used by the command line and application glue."""
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = ConfigCache()
        return _default_cache
