"""Command line entry point.

Usage:
    python -m gaspump serve
    python -m gaspump provision [CHAIN]
    python -m gaspump sweep
    python -m gaspump precalculate [CHAIN] [--from N] [--to M]
    python -m gaspump keygen
    python -m gaspump encrypt-key
    python -m gaspump rotate-key NEW_KEY
"""

import argparse
import asyncio
import json
import logging
import sys
from getpass import getpass
from typing import Callable, Optional

import uvicorn

from gaspump.config import Settings, get_settings
from gaspump.crypto import SecretCipher, SecretDecryptionError, generate_master_key
from gaspump.errors import ConfigurationError, GasPumpError
from gaspump.ledger.database import close_db, init_db
from gaspump.services.provisioner import create_provisioner
from gaspump.services.sweeper import create_sweeper

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def _provision(chain: Optional[str]) -> int:
    await init_db()
    try:
        child = await create_provisioner().provision_address(chain)
    finally:
        await close_db()

    if child is None:
        print("Address not provisioned (deployment not confirmed); try again later.")
        return 2
    print(child)
    return 0


async def _sweep() -> int:
    await init_db()
    try:
        report = await create_sweeper().run_sweep()
    finally:
        await close_db()

    print(json.dumps(report.to_dict(), indent=2))
    return 0


async def _precalculate(chain: Optional[str], from_index: int, to_index: int) -> int:
    addresses = await create_provisioner().precalculate_addresses(chain, from_index, to_index)
    print(json.dumps(addresses, indent=2))
    return 0


def _cipher(master_key: Optional[str]) -> SecretCipher:
    if not master_key:
        raise ConfigurationError("MASTER_KEY not set; generate one with `gaspump keygen`")
    try:
        return SecretCipher(master_key)
    except SecretDecryptionError as e:
        raise ConfigurationError(f"Invalid MASTER_KEY: {e}") from e


def keygen() -> str:
    """New Fernet key for MASTER_KEY."""
    return generate_master_key()


def encrypt_key(settings: Settings, read_secret: Callable[[str], str] = getpass) -> str:
    """Encrypt the owner signing key for MASTER_PRIVATE_KEY_ENCRYPTED.

    The key is read interactively and never echoed.
    """
    cipher = _cipher(settings.master_key)
    secret = read_secret("Owner signing key: ").strip()
    if not secret:
        raise ConfigurationError("No signing key entered")
    return cipher.encrypt(secret)


def rotate_key(settings: Settings, new_key: str) -> str:
    """Re-encrypt MASTER_PRIVATE_KEY_ENCRYPTED under new_key.

    Raises:
        ConfigurationError: Nothing to rotate, or the old or new key is unusable
    """
    if not settings.master_private_key_encrypted:
        raise ConfigurationError("MASTER_PRIVATE_KEY_ENCRYPTED not set; nothing to rotate")
    cipher = _cipher(settings.master_key)
    try:
        return cipher.rotate_key(new_key, settings.master_private_key_encrypted)
    except SecretDecryptionError as e:
        raise ConfigurationError(f"Cannot rotate owner signing key: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gaspump", description="Custodial wallet sweeper")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Run the HTTP API")

    provision = sub.add_parser("provision", help="Provision the next custodial address")
    provision.add_argument("chain", nargs="?", help="Chain (ETH, POLYGON, BSC, ...)")

    sub.add_parser("sweep", help="Sweep every custodial address")

    precalc = sub.add_parser("precalculate", help="Precalculate gas pump addresses")
    precalc.add_argument("chain", nargs="?", help="Chain (ETH, POLYGON, BSC, ...)")
    precalc.add_argument("--from", dest="from_index", type=int, default=0)
    precalc.add_argument("--to", dest="to_index", type=int, default=1)

    sub.add_parser("keygen", help="Print a new MASTER_KEY")
    sub.add_parser("encrypt-key", help="Encrypt the owner signing key with MASTER_KEY")

    rotate = sub.add_parser("rotate-key", help="Re-encrypt the owner signing key under a new key")
    rotate.add_argument("new_key", help="New MASTER_KEY")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    if args.command == "serve":
        logger.info(f"Starting gaspump API on {settings.api_host}:{settings.api_port}")
        uvicorn.run(
            "gaspump.api.app:create_app",
            factory=True,
            host=settings.api_host,
            port=settings.api_port,
            log_level="debug" if settings.debug else "info",
        )
        return 0

    try:
        if args.command == "provision":
            return asyncio.run(_provision(args.chain))
        if args.command == "sweep":
            return asyncio.run(_sweep())
        if args.command == "keygen":
            print(keygen())
            return 0
        if args.command == "encrypt-key":
            print(encrypt_key(settings))
            return 0
        if args.command == "rotate-key":
            print(rotate_key(settings, args.new_key))
            return 0
        return asyncio.run(_precalculate(args.chain, args.from_index, args.to_index))
    except GasPumpError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
