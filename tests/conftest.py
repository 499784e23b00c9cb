"""Shared fixtures for the envault test suite."""
import base64

import pytest

from envault.cache import ConfigCache
from envault.vault import CredentialVault, VaultConfig, generate_master_key


@pytest.fixture
def fast_config():
    """Cheap KDF parameters; the defaults are exercised in test_crypto."""
    return VaultConfig(kdf_iterations=1, kdf_memory_kib=64, kdf_parallelism=1)


@pytest.fixture
def master_key_b64():
    return generate_master_key()


@pytest.fixture
def master_key(master_key_b64):
    return base64.b64decode(master_key_b64)


@pytest.fixture
def cache():
    """Isolated cache that ignores the process environment."""
    return ConfigCache(overrides={})


@pytest.fixture
def env_dir(tmp_path):
    path = tmp_path / "envs"
    path.mkdir()
    return path


@pytest.fixture
def base_file(env_dir, master_key_b64):
    path = env_dir / ".env"
    path.write_text(f"UAT_SECRET_KEY={master_key_b64}\n", encoding="utf-8")
    return path


@pytest.fixture
def uat_file(env_dir):
    path = env_dir / ".env.uat"
    path.write_text(
        "# UAT credentials\n"
        "PORTAL_URL=https://uat.example.com/login\n"
        "PORTAL_USERNAME=alice\n"
        "PORTAL_PASSWORD=s3cr3t-P@ss\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def vault(cache, base_file, uat_file, fast_config):
    """CredentialVault over loaded "base" and "uat" aliases."""
    cache.load("base", base_file)
    cache.load("uat", uat_file)
    return CredentialVault(cache, fast_config)
