"""
CredentialVault: Encrypted credentials kept in flat env files.

Provides the public API of the vault:
- ``encrypt_variable(file_path, alias, key_ref, name)``: encrypt one value in place
- ``encrypt_variables(...)``: same for several names, stops at the first failure
- ``decrypt_variable(alias, key_ref, name)`` / ``decrypt_variables(...)``: read-only
- ``bootstrap_master_key(base_path, key_name, encoded_key)``: write-once key setup
- ``get_master_key(alias, key_ref)``: resolve a master key from the cache

A credential only moves PLAINTEXT → ENCRYPTED. Values longer than
``encrypted_length_threshold`` are taken as already encrypted and skipped.

Security Note:
    Never log plaintext or ciphertext values. Only log variable names,
    aliases and file paths.
"""
import logging
from pathlib import Path
from typing import NamedTuple, Optional
from collections.abc import Iterable

from ..cache import ConfigCache
from ..conf import BASE_ALIAS
from ..exceptions import ConfigError, CryptoError, KeyResolutionError
from . import crypto
from .config import VaultConfig, decode_master_key
from .envfile import (
    PathLike,
    ensure_file,
    file_lock,
    read_variables,
    update_variable,
)

logger = logging.getLogger("envault.vault")


class Credentials(NamedTuple):
    """Decrypted login pair handed to UI flows."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


class CredentialVault:
    """Encrypts and decrypts env file variables under per-environment master keys.

    Master keys are read from the base alias of ``cache``; the variables
    themselves from the alias of their environment ("uat", "production", ...).
    """

    def __init__(
        self,
        cache: ConfigCache,
        config: Optional[VaultConfig] = None,
        base_alias: str = BASE_ALIAS,
    ):
        self._cache = cache
        self._config = config or VaultConfig()
        self._base_alias = base_alias

    @property
    def config(self) -> VaultConfig:
        return self._config

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def is_encrypted(self, value: str) -> bool:
        """Length heuristic: envelopes are longer than typical plaintext."""
        return len(value) > self._config.encrypted_length_threshold

    def _read_value(self, alias: str, name: str) -> str:
        return self._cache.get(alias, name)

    def _refresh(self, alias: str, file_path: PathLike) -> None:
        """Reload ``alias`` if it is backed by ``file_path``."""
        if not self._cache.is_loaded(alias):
            return
        if self._cache.source(alias).path.resolve() == Path(file_path).resolve():
            self._cache.reload(alias)

    # ------------------------------------------------------------------
    # Master keys
    # ------------------------------------------------------------------

    def get_master_key(self, alias: str, key_ref: str) -> bytes:
        """Resolve the raw master key ``key_ref`` from store ``alias``.

        Raises:
            KeyResolutionError: If the store is not loaded, the key is missing
                or it is not a valid base64 32-byte key.
        """
        try:
            encoded = self._cache.get(alias, key_ref)
            return decode_master_key(encoded)
        except (ConfigError, ValueError) as err:
            logger.error("Failed to get master key '%s' from '%s'", key_ref, alias)
            raise KeyResolutionError(
                f"Master key '{key_ref}' unavailable in configuration '{alias}'"
            ) from err

    def bootstrap_master_key(
        self,
        base_path: PathLike,
        key_name: str,
        encoded_key: str,
    ) -> bool:
        """Store ``key_name=encoded_key`` in the base env file, write-once.

        Creates the file and its directory when needed. An existing
        non-empty value is never overwritten: envelopes encrypted under it
        would become undecryptable.

        Returns:
            True if the key was written, False if one already existed.

        Raises:
            ValueError: If ``encoded_key`` is not a base64 32-byte key.
            ConfigIOError: If the file cannot be created, read or written.
        """
        decode_master_key(encoded_key)
        path = ensure_file(base_path)
        with file_lock(path):
            if read_variables(path).get(key_name):
                logger.info(
                    "Master key '%s' already exists in %s. Remove it before "
                    "updating.", key_name, path,
                )
                return False
            update_variable(path, key_name, encoded_key)
            self._refresh(self._base_alias, path)
        logger.info("Master key saved for variable '%s'", key_name)
        return True

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    def encrypt_variable(
        self,
        file_path: PathLike,
        alias: str,
        key_ref: str,
        name: str,
    ) -> bool:
        """Encrypt variable ``name`` of ``alias`` and rewrite it in ``file_path``.

        Returns:
            True if the value was encrypted, False if it already was.

        Raises:
            ConfigError: If ``alias`` is not loaded or ``name`` is missing.
            KeyResolutionError: If the master key cannot be resolved.
            CryptoError: If encryption fails.
            ConfigIOError: If the file cannot be rewritten.
        """
        with file_lock(file_path):
            value = self._read_value(alias, name)
            if self.is_encrypted(value):
                logger.info(
                    "Skipping encryption: variable '%s' is already encrypted. "
                    "Provide a plain-text value if re-encryption is required.",
                    name,
                )
                return False
            master_key = self.get_master_key(self._base_alias, key_ref)
            envelope = crypto.encrypt(master_key, value, self._config)
            update_variable(file_path, name, envelope)
            self._refresh(alias, file_path)
        logger.info("Variable '%s' encrypted successfully", name)
        return True

    def encrypt_variables(
        self,
        file_path: PathLike,
        alias: str,
        key_ref: str,
        names: Iterable[str],
    ) -> list[str]:
        """Encrypt several variables one at a time.

        The first failure aborts the remaining names; names already
        processed stay encrypted.

        Returns:
            Names that were encrypted by this call.
        """
        encrypted = []
        for name in names:
            try:
                if self.encrypt_variable(file_path, alias, key_ref, name):
                    encrypted.append(name)
            except Exception as err:
                logger.error("Failed to encrypt variable '%s': %s", name, err)
                raise
        return encrypted

    # ------------------------------------------------------------------
    # Decryption
    # ------------------------------------------------------------------

    def _decrypt_value(self, alias: str, master_key: bytes, name: str) -> str:
        try:
            return crypto.decrypt(
                master_key, self._read_value(alias, name), self._config
            )
        except CryptoError:
            logger.error("Failed to decrypt variable '%s'", name)
            raise

    def decrypt_variable(self, alias: str, key_ref: str, name: str) -> str:
        """Return the plaintext of variable ``name``; storage is untouched.

        Raises:
            KeyResolutionError: If the master key cannot be resolved.
            ConfigError: If ``alias`` is not loaded or ``name`` is missing.
            CryptoError: If the envelope is malformed or fails authentication.
        """
        master_key = self.get_master_key(self._base_alias, key_ref)
        return self._decrypt_value(alias, master_key, name)

    def decrypt_variables(
        self,
        alias: str,
        key_ref: str,
        names: Optional[Iterable[str]],
    ) -> list[str]:
        """Decrypt several variables under one master key, in input order."""
        names = list(names or [])
        if not names:
            return []
        master_key = self.get_master_key(self._base_alias, key_ref)
        return [self._decrypt_value(alias, master_key, name) for name in names]

    def get_credentials(
        self,
        alias: str,
        key_ref: str,
        username_key: str,
        password_key: str,
    ) -> Credentials:
        """Decrypt a username/password pair for a login flow."""
        username, password = self.decrypt_variables(
            alias, key_ref, [username_key, password_key]
        )
        return Credentials(username=username, password=password)
