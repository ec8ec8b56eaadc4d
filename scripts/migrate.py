#!/usr/bin/env python3
"""Database migration script - creates the wallet store tables."""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gaspump.config import get_settings
from gaspump.ledger.database import close_db, init_db


async def main():
    """Run database migrations."""
    settings = get_settings()

    print(f"Database URL: {settings._redact_url(settings.database_url)}")
    print("Creating wallet store tables...")

    try:
        await init_db()
        print("Wallet store tables created successfully!")
    except Exception as e:
        print(f"Error creating tables: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
