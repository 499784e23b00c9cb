"""Tests for the ``python -m envault`` command line."""
import pytest

from envault.__main__ import main
from envault.cache import ConfigCache
from envault.conf import GLOBAL_CONFIG_FILE, Environment
from envault.vault.envfile import read_variables


@pytest.fixture
def cli_cache():
    return ConfigCache(overrides={})


class TestCommandLine:
    """End-to-end runs of generate-key, encrypt and decrypt."""

    def test_generate_encrypt_decrypt(self, tmp_path, cli_cache, capsys):
        base = tmp_path / "envs" / ".env"
        uat = tmp_path / "envs" / ".env.uat"
        props = tmp_path / "global-config.properties"
        props.write_text("ENCRYPTED_LENGTH_THRESHOLD=90\n", encoding="utf-8")

        assert main(
            ["generate-key", "-e", "uat", "--base-file", str(base)], cache=ConfigCache()
        ) == 0
        key = read_variables(base)["UAT_SECRET_KEY"]
        assert key

        # a second run must not replace the key
        assert main(
            ["generate-key", "-e", "uat", "--base-file", str(base)], cache=ConfigCache()
        ) == 0
        assert read_variables(base)["UAT_SECRET_KEY"] == key

        uat.write_text("PORTAL_USERNAME=alice\nPORTAL_PASSWORD=pw\n", encoding="utf-8")
        assert main([
            "encrypt", "-e", "uat",
            "--base-file", str(base), "--env-file", str(uat),
            "--properties", str(props),
            "PORTAL_USERNAME", "PORTAL_PASSWORD",
        ], cache=cli_cache) == 0
        stored = read_variables(uat)
        assert stored["PORTAL_USERNAME"] != "alice"
        assert stored["PORTAL_PASSWORD"] != "pw"

        assert main([
            "decrypt", "-e", "uat",
            "--base-file", str(base), "--env-file", str(uat),
            "PORTAL_USERNAME", "PORTAL_PASSWORD",
        ], cache=cli_cache) == 0
        out = capsys.readouterr().out.splitlines()
        assert "PORTAL_USERNAME=alice" in out
        assert "PORTAL_PASSWORD=pw" in out

    def test_default_properties_file(self, tmp_path, cli_cache, monkeypatch):
        """Test the global properties file under the config directory is used."""
        monkeypatch.chdir(tmp_path)
        props = tmp_path / GLOBAL_CONFIG_FILE
        props.parent.mkdir(parents=True)
        props.write_text("ENCRYPTED_LENGTH_THRESHOLD=3\n", encoding="utf-8")
        base = tmp_path / ".env"
        uat = tmp_path / ".env.uat"
        assert main(
            ["generate-key", "-e", "uat", "--base-file", str(base)], cache=ConfigCache()
        ) == 0
        uat.write_text("PORTAL_USERNAME=alice\n", encoding="utf-8")
        assert main([
            "encrypt", "-e", "uat",
            "--base-file", str(base), "--env-file", str(uat),
            "PORTAL_USERNAME",
        ], cache=cli_cache) == 0
        # "alice" is longer than the threshold of 3, so it is left as is
        assert read_variables(uat) == {"PORTAL_USERNAME": "alice"}
        assert cli_cache.is_loaded("global")

    def test_missing_files_fail(self, tmp_path, cli_cache):
        """Test a missing env file gives a non-zero exit code."""
        assert main([
            "decrypt", "-e", "uat",
            "--base-file", str(tmp_path / ".env"),
            "--env-file", str(tmp_path / ".env.uat"),
            "PORTAL_USERNAME",
        ], cache=cli_cache) == 1

    def test_environment_defaults(self):
        assert Environment.UAT.path.endswith(".env.uat")
        assert Environment.UAT.secret_key_name == "UAT_SECRET_KEY"
        assert Environment.PRODUCTION.secret_key_name == "PRODUCTION_SECRET_KEY"
        with pytest.raises(ValueError):
            Environment.BASE.secret_key_name
