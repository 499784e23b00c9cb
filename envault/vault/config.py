"""
Vault Configuration: Master key helpers and validated settings.

Master keys live Base64-encoded in the base env file, one per environment:
    UAT_SECRET_KEY=<base64-encoded 32-byte key>

Tunables live in the global properties file:
    ENCRYPTED_LENGTH_THRESHOLD = <integer, default 90>

Security Note:
    Never log key material. Only log key names and aliases.
"""
import base64
import binascii
import secrets
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, model_validator

from ..conf import (
    DEFAULT_ENCRYPTED_LENGTH_THRESHOLD,
    ENCRYPTED_LENGTH_THRESHOLD,
    GLOBAL_CONFIG_ALIAS,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..cache import ConfigCache

logger = logging.getLogger("envault.vault")

MASTER_KEY_SIZE = 32  # AES-256

# Argon2id defaults: 3 passes, 64 MiB, 4 lanes
KDF_ITERATIONS = 3
KDF_MEMORY_KIB = 65536
KDF_PARALLELISM = 4


def generate_master_key() -> str:
    """Generate a random 32-byte master key and return as base64 string.

    This is a utility for operators to generate new keys.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(MASTER_KEY_SIZE)).decode("ascii")


def decode_master_key(encoded: str) -> bytes:
    """Decode a Base64 master key and check its size.

    Raises:
        ValueError: If the value is not Base64 or not 32 bytes long.
    """
    try:
        key_bytes = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError("Master key is not valid base64") from err
    if len(key_bytes) != MASTER_KEY_SIZE:
        raise ValueError(
            f"Master key must decode to exactly {MASTER_KEY_SIZE} bytes, "
            f"got {len(key_bytes)}"
        )
    return key_bytes


class VaultConfig(BaseModel):
    """Validated vault configuration.

    KDF parameters are not stored in envelopes: changing them makes
    existing envelopes undecryptable.
    """

    kdf_iterations: int = Field(default=KDF_ITERATIONS, ge=1)
    kdf_memory_kib: int = Field(default=KDF_MEMORY_KIB, ge=8)
    kdf_parallelism: int = Field(default=KDF_PARALLELISM, ge=1, le=255)
    encrypted_length_threshold: int = Field(
        default=DEFAULT_ENCRYPTED_LENGTH_THRESHOLD, ge=1
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_memory_cost(self) -> "VaultConfig":
        """Argon2 needs at least 8 KiB of memory per lane."""
        if self.kdf_memory_kib < 8 * self.kdf_parallelism:
            raise ValueError(
                f"kdf_memory_kib must be at least 8 * kdf_parallelism "
                f"({8 * self.kdf_parallelism}), got {self.kdf_memory_kib}"
            )
        return self

    @classmethod
    def from_cache(
        cls,
        cache: "ConfigCache",
        alias: str = GLOBAL_CONFIG_ALIAS,
    ) -> "VaultConfig":
        """Create VaultConfig reading tunables from a loaded properties alias.

        Falls back to defaults when the alias is not loaded or a value is
        missing or malformed.

        Returns:
            Populated VaultConfig instance.
        """
        if not cache.is_loaded(alias):
            logger.debug(
                "Configuration '%s' not loaded, using vault defaults", alias
            )
            return cls()
        threshold = cache.get_typed(alias, ENCRYPTED_LENGTH_THRESHOLD, int)
        if threshold is None:
            threshold = DEFAULT_ENCRYPTED_LENGTH_THRESHOLD
        return cls(encrypted_length_threshold=threshold)
