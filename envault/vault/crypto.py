"""
Vault Crypto Core: Key derivation, envelope encryption and decryption.

Each value is encrypted under its own key:
    Argon2id(master_key, salt) → AES-256-GCM → Base64[salt 32B|nonce 16B|payload+tag 16B]

Security Note:
    Never log plaintext, ciphertext or key material.
    Derived keys live in a bytearray that is zeroed on every exit path.
    The intermediate ``bytes`` returned by the KDF cannot be scrubbed;
    it is dropped as soon as it is copied.
"""
import os
import base64
import asyncio
import binascii
import logging
from typing import Optional
from contextlib import contextmanager
from collections.abc import Iterator
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import AuthenticationError, CryptoError
from .config import VaultConfig

logger = logging.getLogger("envault.vault")

SALT_SIZE = 32
NONCE_SIZE = 16
TAG_SIZE = 16  # 128-bit GCM tag
KEY_LENGTH = 32  # AES-256

_DEFAULT_CONFIG = VaultConfig()


# ---------------------------------------------------------------------------
# Envelope layout
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Envelope:
    """Decoded envelope: salt, nonce and ciphertext with its trailing tag."""

    salt: bytes
    nonce: bytes
    ciphertext: bytes

    def pack(self) -> str:
        """Return the Base64 text form ``salt|nonce|ciphertext+tag``."""
        return base64.b64encode(
            self.salt + self.nonce + self.ciphertext
        ).decode("ascii")

    @classmethod
    def unpack(cls, text: str) -> "Envelope":
        """Split Base64 envelope text into its parts.

        Raises:
            CryptoError: If the text is not Base64 or is too short.
        """
        try:
            combined = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as err:
            raise CryptoError("Envelope is not valid base64") from err
        _min = SALT_SIZE + NONCE_SIZE
        if len(combined) < _min:
            raise CryptoError(
                f"Envelope too short: {len(combined)} bytes (minimum {_min})"
            )
        return cls(
            salt=combined[:SALT_SIZE],
            nonce=combined[SALT_SIZE:_min],
            ciphertext=combined[_min:],
        )


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(
    master_key: bytes,
    salt: bytes,
    config: Optional[VaultConfig] = None,
) -> bytearray:
    """Derive a 32-byte key with Argon2id.

    Deterministic for a given ``(master_key, salt, config)``.

    Args:
        master_key: Raw master key bytes.
        salt: Per-envelope random salt.
        config: KDF parameters, engine defaults when omitted.

    Returns:
        Mutable buffer holding the derived key; callers must zero it.

    Raises:
        CryptoError: If the KDF is unavailable or fails.
    """
    cfg = config or _DEFAULT_CONFIG
    try:
        kdf = Argon2id(
            salt=salt,
            length=KEY_LENGTH,
            iterations=cfg.kdf_iterations,
            lanes=cfg.kdf_parallelism,
            memory_cost=cfg.kdf_memory_kib,
        )
        return bytearray(kdf.derive(master_key))
    except Exception as err:
        logger.error("Failed to derive key: %s", type(err).__name__)
        raise CryptoError("Failed to derive key") from err


def _zero(buffer: bytearray) -> None:
    for i in range(len(buffer)):
        buffer[i] = 0


@contextmanager
def derived_key(
    master_key: bytes,
    salt: bytes,
    config: Optional[VaultConfig] = None,
) -> Iterator[bytearray]:
    """Yield a derived key and zero it on exit, normal or not."""
    key = derive_key(master_key, salt, config)
    try:
        yield key
    finally:
        _zero(key)


def _check_input(value, name: str) -> None:
    if value is None:
        raise CryptoError(f"{name} cannot be None")
    if len(value) == 0:
        raise CryptoError(f"{name} cannot be empty")


# ---------------------------------------------------------------------------
# Envelope encryption
# ---------------------------------------------------------------------------

def encrypt(
    master_key: bytes,
    plaintext: str,
    config: Optional[VaultConfig] = None,
) -> str:
    """Encrypt a string into Base64 envelope text.

    A fresh salt and nonce are drawn for every call, so encrypting the
    same value twice gives different envelopes.

    Args:
        master_key: Raw master key bytes.
        plaintext: Value to encrypt (UTF-8).
        config: KDF parameters, engine defaults when omitted.

    Returns:
        Base64 of ``salt|nonce|ciphertext+tag``.

    Raises:
        CryptoError: On empty input or any cryptographic failure.
    """
    _check_input(master_key, "Master key")
    _check_input(plaintext, "Plaintext")
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    try:
        with derived_key(master_key, salt, config) as key:
            ct = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    except CryptoError:
        raise
    except Exception as err:
        logger.error("Failed to encrypt data: %s", type(err).__name__)
        raise CryptoError("Encryption failed") from err
    return Envelope(salt=salt, nonce=nonce, ciphertext=ct).pack()


def decrypt(
    master_key: bytes,
    envelope_text: str,
    config: Optional[VaultConfig] = None,
) -> str:
    """Decrypt Base64 envelope text produced by ``encrypt()``.

    Args:
        master_key: Raw master key bytes.
        envelope_text: Base64 of ``salt|nonce|ciphertext+tag``.
        config: KDF parameters, must match those used to encrypt.

    Returns:
        Decrypted plaintext string.

    Raises:
        AuthenticationError: Tag mismatch (wrong key, corruption, tampering).
        CryptoError: Malformed envelope or any other failure.
    """
    _check_input(master_key, "Master key")
    _check_input(envelope_text, "Envelope")
    envelope = Envelope.unpack(envelope_text)
    try:
        with derived_key(master_key, envelope.salt, config) as key:
            data = AESGCM(key).decrypt(envelope.nonce, envelope.ciphertext, None)
    except InvalidTag as err:
        logger.error(
            "Tag mismatch: incorrect key or corrupted/tampered envelope"
        )
        raise AuthenticationError(
            "Decryption failed: tag mismatch. Ensure the correct key is used."
        ) from err
    except CryptoError:
        raise
    except Exception as err:
        logger.error("Failed to decrypt data: %s", type(err).__name__)
        raise CryptoError("Decryption failed") from err
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise CryptoError("Decrypted value is not valid UTF-8") from err


async def decrypt_async(
    master_key: bytes,
    envelope_text: str,
    config: Optional[VaultConfig] = None,
) -> str:
    """Run ``decrypt()`` in a worker thread; the KDF is CPU and memory bound."""
    return await asyncio.to_thread(decrypt, master_key, envelope_text, config)
