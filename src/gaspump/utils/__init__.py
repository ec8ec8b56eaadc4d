"""Utility modules for gaspump."""

from gaspump.utils.locks import LockTimeoutError, wallet_store_lock
from gaspump.utils.polling import PollResult, poll_until

__all__ = ["LockTimeoutError", "PollResult", "poll_until", "wallet_store_lock"]
