"""Custodial wallet service adapters."""

from gaspump.providers.base import (
    AssetKind,
    BatchTransferRequest,
    CustodialProvider,
    EstimateRequest,
    EstimateResult,
    ExecutionResult,
    SweepLeg,
)
from gaspump.providers.factory import get_provider

__all__ = [
    "AssetKind",
    "BatchTransferRequest",
    "CustodialProvider",
    "EstimateRequest",
    "EstimateResult",
    "ExecutionResult",
    "SweepLeg",
    "get_provider",
]
