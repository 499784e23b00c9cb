"""
Envault defaults.

Aliases, file locations and key names shared by the config cache,
the credential vault and the command line.
"""
import os
from enum import Enum


ENV_DIRECTORY = os.environ.get("ENVAULT_ENV_DIRECTORY", "envs")
PROPERTIES_DIRECTORY = os.environ.get(
    "ENVAULT_PROPERTIES_DIRECTORY", "config"
)
GLOBAL_CONFIG_FILE = os.path.join(PROPERTIES_DIRECTORY, "global-config.properties")

# Config Cache aliases
BASE_ALIAS = "base"
GLOBAL_CONFIG_ALIAS = "global"

# Tunable read from the global properties store
ENCRYPTED_LENGTH_THRESHOLD = "ENCRYPTED_LENGTH_THRESHOLD"
DEFAULT_ENCRYPTED_LENGTH_THRESHOLD = 90


class Environment(str, Enum):
    """Named environments, each with its own env file and master key."""

    BASE = "base"
    DEVELOPMENT = "development"
    UAT = "uat"
    PRODUCTION = "production"

    @property
    def alias(self) -> str:
        return self.value

    @property
    def filename(self) -> str:
        return _ENV_FILENAMES[self]

    @property
    def path(self) -> str:
        return os.path.join(ENV_DIRECTORY, self.filename)

    @property
    def secret_key_name(self) -> str:
        if self is Environment.BASE:
            raise ValueError("The base environment has no master key of its own")
        return f"{self.name}_SECRET_KEY"


_ENV_FILENAMES = {
    Environment.BASE: ".env",
    Environment.DEVELOPMENT: ".env.dev",
    Environment.UAT: ".env.uat",
    Environment.PRODUCTION: ".env.prod",
}
