"""Envault.

Keeps test-automation credentials encrypted at rest inside flat env files.
"""
from .version import __version__
from .cache import ConfigCache, ConfigSource, default_cache
from .conf import Environment
from .exceptions import (
    EnvaultError,
    ConfigError,
    NotFoundError,
    NotLoadedError,
    MissingKeyError,
    ConfigIOError,
    CryptoError,
    AuthenticationError,
    KeyResolutionError,
)
from .vault import CredentialVault, Credentials, VaultConfig, generate_master_key

__all__ = (
    "__version__",
    "ConfigCache",
    "ConfigSource",
    "default_cache",
    "Environment",
    "CredentialVault",
    "Credentials",
    "VaultConfig",
    "generate_master_key",
    "EnvaultError",
    "ConfigError",
    "NotFoundError",
    "NotLoadedError",
    "MissingKeyError",
    "ConfigIOError",
    "CryptoError",
    "AuthenticationError",
    "KeyResolutionError",
)
