"""Custodial service adapter base interface and transfer data types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import SecretStr

# Placeholder token id; only fungible assets are swept
DEFAULT_TOKEN_ID = "0"

# Contract reference used for the native asset
NATIVE_CONTRACT = "0"

CUSTODIAL_TRANSFER = "TRANSFER_CUSTODIAL"


class AssetKind(str, Enum):
    """Kind of asset moved by a sweep leg."""

    NATIVE = "native"
    TOKEN = "token"

    @property
    def contract_type(self) -> int:
        """Asset-type marker understood by the custodial service."""
        return 3 if self is AssetKind.NATIVE else 0


@dataclass(frozen=True)
class SweepLeg:
    """One asset movement within a batch transfer."""

    kind: AssetKind
    amount: str  # whole units, decimal string
    recipient: str
    contract_address: str = NATIVE_CONTRACT
    token_id: str = DEFAULT_TOKEN_ID


@dataclass(frozen=True)
class EstimateRequest:
    """Single-leg fee estimate for a custodial transfer."""

    chain: str
    sender: str
    recipient: str
    custodial_address: str
    kind: AssetKind
    amount: str
    contract_address: Optional[str] = None
    type: str = CUSTODIAL_TRANSFER

    @classmethod
    def for_leg(cls, chain: str, sender: str, custodial_address: str, leg: SweepLeg) -> "EstimateRequest":
        return cls(
            chain=chain,
            sender=sender,
            recipient=leg.recipient,
            custodial_address=custodial_address,
            kind=leg.kind,
            amount=leg.amount,
            contract_address=leg.contract_address if leg.kind is AssetKind.TOKEN else None,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chain": self.chain,
            "type": self.type,
            "sender": self.sender,
            "recipient": self.recipient,
            "custodialAddress": self.custodial_address,
            "tokenType": self.kind.contract_type,
            "amount": self.amount,
        }
        if self.contract_address:
            payload["contractAddress"] = self.contract_address
        return payload


@dataclass(frozen=True)
class BatchTransferRequest:
    """Aggregated custodial transfer of every leg of one wallet.

    The per-leg sequences sent to the service are all derived from the single
    `legs` list, so they always have equal length and matching positions.
    Exactly one credential is carried, as a SecretStr.
    """

    chain: str
    custodial_address: str
    sender: str
    legs: tuple[SweepLeg, ...]
    signature_id: Optional[SecretStr] = None
    signing_secret: Optional[SecretStr] = None

    def __post_init__(self):
        if not self.legs:
            raise ValueError("Batch transfer needs at least one leg")
        if (self.signature_id is None) == (self.signing_secret is None):
            raise ValueError("Batch transfer needs exactly one of signature_id or signing_secret")

    @property
    def recipients(self) -> list[str]:
        return [leg.recipient for leg in self.legs]

    @property
    def contract_types(self) -> list[int]:
        return [leg.kind.contract_type for leg in self.legs]

    @property
    def token_addresses(self) -> list[str]:
        return [leg.contract_address for leg in self.legs]

    @property
    def amounts(self) -> list[str]:
        return [leg.amount for leg in self.legs]

    @property
    def token_ids(self) -> list[str]:
        return [leg.token_id for leg in self.legs]

    def to_payload(self, reveal: bool = False) -> dict[str, Any]:
        """Build the request body.

        Credentials stay SecretStr unless reveal=True, which only the HTTP
        client passes when serializing the request.
        """
        payload: dict[str, Any] = {
            "chain": self.chain,
            "custodialAddress": self.custodial_address,
            "sender": self.sender,
            "recipient": self.recipients,
            "contractType": self.contract_types,
            "tokenAddress": self.token_addresses,
            "amount": self.amounts,
            "tokenId": self.token_ids,
        }
        if self.signature_id is not None:
            payload["signatureId"] = (
                self.signature_id.get_secret_value() if reveal else self.signature_id
            )
        else:
            payload["fromPrivateKey"] = (
                self.signing_secret.get_secret_value() if reveal else self.signing_secret
            )
        return payload


@dataclass
class EstimateResult:
    """Outcome of a fee estimate."""

    success: bool
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ExecutionResult:
    """Outcome of a submitted batch; tx_id may be unknown."""

    tx_id: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)


class CustodialProvider(ABC):
    """Abstract base class for custodial wallet services."""

    @abstractmethod
    async def derive_addresses(
        self, chain: str, owner: str, from_index: int, to_index: int
    ) -> list[str]:
        """Precalculate custodial addresses for an index range (inclusive).

        Args:
            chain: Chain code (normalized by the adapter)
            owner: Owner (EOA) address
            from_index: First index
            to_index: Last index

        Returns:
            Derived addresses in index order
        """
        raise NotImplementedError()

    @abstractmethod
    async def activate_indices(
        self,
        chain: str,
        owner: str,
        from_index: int,
        to_index: int,
        fees_covered: bool = True,
    ) -> dict[str, Any]:
        """Activate an index range so the addresses can send funds."""
        raise NotImplementedError()

    @abstractmethod
    async def estimate(self, request: EstimateRequest) -> EstimateResult:
        """Estimate a single-leg custodial transfer."""
        raise NotImplementedError()

    @abstractmethod
    async def transfer_batch(self, request: BatchTransferRequest) -> ExecutionResult:
        """Submit an aggregated custodial transfer."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        raise NotImplementedError()
