"""Envault exceptions.

Security Note:
    Messages carry aliases, variable names and paths only.
    Never put key material, plaintext or ciphertext in an exception.
"""


class EnvaultError(Exception):
    """Base class for every error raised by envault."""


class ConfigError(EnvaultError):
    """Config Cache failure."""


class NotFoundError(ConfigError, FileNotFoundError):
    """A backing configuration file does not exist."""


class NotLoadedError(ConfigError):
    """An alias was used before being loaded into the cache."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(
            f"Configuration with alias '{alias}' not loaded. Call load() first."
        )


class MissingKeyError(ConfigError, KeyError):
    """A key is absent or empty in both the overrides and the cache."""

    def __init__(self, alias: str, key: str):
        self.alias = alias
        self.key = key
        super().__init__(
            f"Key '{key}' not found or empty in configuration '{alias}'"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class ConfigIOError(ConfigError, OSError):
    """Reading or writing a backing file failed."""


class CryptoError(EnvaultError):
    """Key derivation, cipher or envelope failure."""


class AuthenticationError(CryptoError):
    """Authentication tag mismatch: wrong key, corrupted or tampered envelope."""


class KeyResolutionError(EnvaultError):
    """The master key for an environment could not be resolved."""
