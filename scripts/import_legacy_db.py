#!/usr/bin/env python3
"""Import a legacy JSON wallet file into the wallet store.

The file has the shape {"wallets": [{"address": ..., "index": ..., ...}]}.

Usage:
    python scripts/import_legacy_db.py src/db.json [--dry-run]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv

from gaspump.chains import normalize_chain_code
from gaspump.ledger.database import close_db, init_db
from gaspump.ledger.models import ManagedWallet
from gaspump.ledger.repository import WalletStore
from gaspump.utils.locks import wallet_store_lock

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def load_legacy_wallets(path: Path) -> list[ManagedWallet]:
    """Parse the legacy file; an empty or missing file yields no wallets."""
    if not path.exists():
        return []
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return []

    wallets = []
    for entry in json.loads(raw).get("wallets", []):
        wallet = ManagedWallet.from_dict(entry)
        wallet.chain = normalize_chain_code(wallet.chain)
        wallets.append(wallet)
    return wallets


async def main():
    parser = argparse.ArgumentParser(description="Import legacy JSON wallets")
    parser.add_argument("path", type=Path, help="Path to the legacy db.json")
    parser.add_argument("--dry-run", action="store_true", help="Only show what would be imported")
    args = parser.parse_args()

    wallets = load_legacy_wallets(args.path)
    logger.info(f"Found {len(wallets)} wallet(s) in {args.path}")

    indices = [w.index for w in wallets]
    if len(set(indices)) != len(indices):
        logger.error("Legacy file contains duplicate indices; refusing to import")
        sys.exit(1)

    if args.dry_run:
        for wallet in wallets:
            logger.info(f"  #{wallet.index} {wallet.chain} {wallet.address}")
        return

    await init_db()
    try:
        store = WalletStore()
        async with wallet_store_lock(operation="import"):
            existing = {w.index: w for w in await store.load_wallets()}
            for wallet in wallets:
                current = existing.get(wallet.index)
                if current is not None and current.address.lower() != wallet.address.lower():
                    logger.error(
                        f"Index {wallet.index} already holds {current.address}; "
                        f"not overwriting with {wallet.address}"
                    )
                    sys.exit(1)
            await store.save_wallets(wallets)
        logger.info(f"Imported {len(wallets)} wallet(s)")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
