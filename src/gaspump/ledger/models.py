"""SQLAlchemy model and domain record for managed custodial wallets."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class ManagedWalletRow(Base):
    """Persisted custodial deposit address.

    Keyed by derivation index; a row exists only once deployment was confirmed.
    """

    __tablename__ = "managed_wallets"

    index: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    address: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    chain: Mapped[str] = mapped_column(String(20), nullable=False)
    activated_tx: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    confirmed_deployed: Mapped[bool] = mapped_column(Boolean, default=False)

    # Sweep state
    last_sweep_tx_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    swept: Mapped[bool] = mapped_column(Boolean, default=False)
    last_sweep_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


@dataclass
class ManagedWallet:
    """In-memory wallet record handled by the services."""

    address: str
    index: int
    chain: str
    activated_tx: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    confirmed_deployed: bool = False
    last_sweep_tx_id: Optional[str] = None
    swept: bool = False
    last_sweep_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: ManagedWalletRow) -> "ManagedWallet":
        return cls(
            address=row.address,
            index=row.index,
            chain=row.chain,
            activated_tx=row.activated_tx,
            created_at=row.created_at,
            confirmed_deployed=row.confirmed_deployed,
            last_sweep_tx_id=row.last_sweep_tx_id,
            swept=row.swept,
            last_sweep_at=row.last_sweep_at,
        )

    def to_row(self) -> ManagedWalletRow:
        return ManagedWalletRow(
            index=self.index,
            address=self.address,
            chain=self.chain,
            activated_tx=self.activated_tx,
            created_at=self.created_at,
            confirmed_deployed=self.confirmed_deployed,
            last_sweep_tx_id=self.last_sweep_tx_id,
            swept=self.swept,
            last_sweep_at=self.last_sweep_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the keys of the legacy JSON wallet file."""
        return {
            "address": self.address,
            "index": self.index,
            "chain": self.chain,
            "activatedTx": self.activated_tx,
            "createdAt": _iso(self.created_at),
            "confirmedDeployed": self.confirmed_deployed,
            "lastSweepTxId": self.last_sweep_tx_id,
            "swept": self.swept,
            "lastSweepAt": _iso(self.last_sweep_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManagedWallet":
        return cls(
            address=data["address"],
            index=int(data["index"]),
            chain=data.get("chain") or "ETH",
            activated_tx=data.get("activatedTx"),
            created_at=_parse_dt(data.get("createdAt")) or utcnow(),
            confirmed_deployed=bool(data.get("confirmedDeployed", False)),
            last_sweep_tx_id=data.get("lastSweepTxId"),
            swept=bool(data.get("swept", False)),
            last_sweep_at=_parse_dt(data.get("lastSweepAt")),
        )
