"""Wallet store for managed custodial addresses."""

from gaspump.ledger.models import Base, ManagedWallet, ManagedWalletRow
from gaspump.ledger.repository import WalletRepository, WalletStore

__all__ = ["Base", "ManagedWallet", "ManagedWalletRow", "WalletRepository", "WalletStore"]
