"""Repository and store for managed custodial wallets.

Single-writer contract: the store has no transaction isolation across a
whole sweep or provisioning run. Callers that mutate it hold
gaspump.utils.locks.wallet_store_lock for the duration of the run; separate
processes sharing one database must be serialized externally.
"""

from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gaspump.ledger.database import get_db
from gaspump.ledger.models import ManagedWallet, ManagedWalletRow


class WalletRepository:
    """Repository for managed wallet rows within one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_wallets(self) -> list[ManagedWallet]:
        """Load every wallet ordered by index."""
        stmt = select(ManagedWalletRow).order_by(ManagedWalletRow.index)
        result = await self.session.execute(stmt)
        return [ManagedWallet.from_row(row) for row in result.scalars().all()]

    async def get_wallet(self, address: str) -> Optional[ManagedWallet]:
        """Look up a wallet by address (case-insensitive)."""
        stmt = select(ManagedWalletRow).where(
            func.lower(ManagedWalletRow.address) == address.lower()
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return ManagedWallet.from_row(row) if row else None

    async def count(self) -> int:
        """Number of persisted wallets (also the next free index)."""
        result = await self.session.execute(select(func.count()).select_from(ManagedWalletRow))
        return int(result.scalar_one())

    async def save_wallets(self, wallets: Iterable[ManagedWallet]) -> None:
        """Write back a whole wallet list, keyed by index."""
        for wallet in wallets:
            await self.session.merge(wallet.to_row())
        await self.session.flush()

    async def append_wallet(self, wallet: ManagedWallet) -> None:
        """Add a new wallet; its index must not be taken yet."""
        existing = await self.session.get(ManagedWalletRow, wallet.index)
        if existing is not None:
            raise ValueError(f"Wallet index {wallet.index} is already assigned")
        self.session.add(wallet.to_row())
        await self.session.flush()


class WalletStore:
    """Wallet store where every operation runs in its own committed session."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    async def load_wallets(self) -> list[ManagedWallet]:
        async with get_db(self._session_factory) as session:
            return await WalletRepository(session).load_wallets()

    async def get_wallet(self, address: str) -> Optional[ManagedWallet]:
        async with get_db(self._session_factory) as session:
            return await WalletRepository(session).get_wallet(address)

    async def count(self) -> int:
        async with get_db(self._session_factory) as session:
            return await WalletRepository(session).count()

    async def save_wallets(self, wallets: Iterable[ManagedWallet]) -> None:
        async with get_db(self._session_factory) as session:
            await WalletRepository(session).save_wallets(wallets)

    async def append_wallet(self, wallet: ManagedWallet) -> None:
        async with get_db(self._session_factory) as session:
            await WalletRepository(session).append_wallet(wallet)
