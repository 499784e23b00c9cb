"""Credential Vault: Encrypted credentials stored in flat env files.

Security Note (Threat Model):
    Master keys sit Base64-encoded in the base env file, next to the
    envelopes they protect in the environment files. Anyone able to read
    both files can recover every credential. Keep the base env file out of
    version control; envelopes alone are safe to commit.
"""

from .credentials import CredentialVault, Credentials
from .config import VaultConfig, generate_master_key, decode_master_key
from .crypto import Envelope, encrypt, decrypt, decrypt_async, derive_key

__all__ = [
    "CredentialVault",
    "Credentials",
    "VaultConfig",
    "generate_master_key",
    "decode_master_key",
    "Envelope",
    "encrypt",
    "decrypt",
    "decrypt_async",
    "derive_key",
]
