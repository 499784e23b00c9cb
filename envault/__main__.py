"""Command line for master key setup and credential encryption.

    python -m envault generate-key --environment uat
    python -m envault encrypt --environment uat PORTAL_USERNAME PORTAL_PASSWORD
    python -m envault decrypt --environment uat PORTAL_USERNAME
"""
import os
import sys
import argparse
import logging
from typing import Optional

from .cache import ConfigCache, default_cache
from .conf import BASE_ALIAS, GLOBAL_CONFIG_ALIAS, GLOBAL_CONFIG_FILE, Environment
from .exceptions import EnvaultError
from .vault import CredentialVault, VaultConfig, generate_master_key

logger = logging.getLogger("envault")

_ENVIRONMENTS = [env.value for env in Environment if env is not Environment.BASE]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envault",
        description="Manage encrypted credentials in env files.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    def common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--environment", "-e", choices=_ENVIRONMENTS, required=True,
        )
        sub.add_argument("--base-file", help="Base env file holding master keys")
        sub.add_argument("--key-name", help="Master key variable name")

    gen = commands.add_parser("generate-key", help="Create a master key (write-once)")
    common(gen)

    for name, text in (
        ("encrypt", "Encrypt variables in place"),
        ("decrypt", "Print decrypted variables"),
    ):
        sub = commands.add_parser(name, help=text)
        common(sub)
        sub.add_argument("--env-file", help="Environment file holding the variables")
        sub.add_argument(
            "--properties",
            help="Properties file with vault tunables "
            f"(default: {GLOBAL_CONFIG_FILE} when present)",
        )
        sub.add_argument("variables", nargs="+")
    return parser


def _vault(args: argparse.Namespace, cache: ConfigCache) -> CredentialVault:
    properties = args.properties
    if properties is None and os.path.isfile(GLOBAL_CONFIG_FILE):
        properties = GLOBAL_CONFIG_FILE
    if properties:
        cache.load(GLOBAL_CONFIG_ALIAS, properties)
    return CredentialVault(cache, VaultConfig.from_cache(cache))


def main(argv: Optional[list[str]] = None, cache: Optional[ConfigCache] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cache = cache or default_cache()
    env = Environment(args.environment)
    base_file = args.base_file or Environment.BASE.path
    key_name = args.key_name or env.secret_key_name
    try:
        if args.command == "generate-key":
            vault = CredentialVault(cache)
            vault.bootstrap_master_key(base_file, key_name, generate_master_key())
            return 0
        env_file = args.env_file or env.path
        cache.load(BASE_ALIAS, base_file)
        cache.load(env.alias, env_file)
        vault = _vault(args, cache)
        if args.command == "encrypt":
            done = vault.encrypt_variables(
                env_file, env.alias, key_name, args.variables
            )
            logger.info("Encrypted %d of %d variable(s)", len(done), len(args.variables))
        else:
            values = vault.decrypt_variables(env.alias, key_name, args.variables)
            for name, value in zip(args.variables, values):
                print(f"{name}={value}")
    except EnvaultError as err:
        logger.error("%s failed: %s", args.command, err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
