"""Single-writer lock for the wallet store.

Provisioning and sweeping both rewrite wallet records. Within one process
they are serialized by this lock; separate processes sharing one store must
be serialized externally.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)

_store_lock: Optional[asyncio.Lock] = None


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


def get_store_lock() -> asyncio.Lock:
    """Get or create the process-wide wallet store lock."""
    global _store_lock
    if _store_lock is None:
        _store_lock = asyncio.Lock()
    return _store_lock


@asynccontextmanager
async def wallet_store_lock(
    timeout: Optional[float] = 30.0,
    operation: str = "store_operation",
):
    """Hold exclusive write access to the wallet store.

    Args:
        timeout: Maximum time to wait for lock (None = wait forever)
        operation: Description for logging

    Example:
        async with wallet_store_lock(operation="sweep"):
            wallets = await store.load_wallets()
            ...
    """
    lock = get_store_lock()

    try:
        if timeout:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        else:
            await lock.acquire()
    except asyncio.TimeoutError:
        logger.warning(f"Wallet store lock timeout after {timeout}s: {operation}")
        raise LockTimeoutError(
            f"Could not acquire wallet store lock within {timeout}s ({operation})"
        )

    logger.debug(f"Wallet store lock acquired: {operation}")
    try:
        yield
    finally:
        lock.release()
        logger.debug(f"Wallet store lock released: {operation}")


def reset_store_lock() -> None:
    """Drop the lock (useful for testing across event loops)."""
    global _store_lock
    _store_lock = None
