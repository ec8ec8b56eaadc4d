"""Two-phase estimate/execute protocol for custodial batch transfers."""

import logging
from typing import Optional, Sequence

from pydantic import SecretStr

from gaspump.chains import ChainProfile, explorer_tx_url
from gaspump.config import Settings
from gaspump.errors import ConfigurationError
from gaspump.ledger.models import ManagedWallet
from gaspump.providers.base import (
    BatchTransferRequest,
    CustodialProvider,
    EstimateRequest,
    ExecutionResult,
    SweepLeg,
)
from gaspump.redaction import redact

logger = logging.getLogger(__name__)

Credential = tuple[Optional[SecretStr], Optional[SecretStr]]


class TransferExecutor:
    """Estimates every leg of a wallet, then submits them as one batch.

    Phase 1 sends one estimate per leg and stops at the first failure, so
    no batch is ever submitted for a wallet whose legs did not all pass.
    The credential is resolved before phase 1: the remote signature id when
    configured, otherwise the raw owner key. With neither, nothing is sent.
    """

    def __init__(self, provider: CustodialProvider, settings: Settings):
        self.provider = provider
        self.settings = settings

    @property
    def owner(self) -> str:
        if not self.settings.gas_pump_master:
            raise ConfigurationError("GAS_PUMP_MASTER not set")
        return self.settings.gas_pump_master

    async def estimate_legs(
        self, wallet: ManagedWallet, profile: ChainProfile, legs: Sequence[SweepLeg]
    ) -> None:
        """Estimate each leg on its own.

        Raises:
            RemoteServiceError: On the first leg the service rejects
        """
        for leg in legs:
            request = EstimateRequest.for_leg(profile.code, self.owner, wallet.address, leg)
            logger.info(
                f"Estimating {profile.code} {leg.kind.value} sweep of {leg.amount}: "
                f"{redact(request.to_payload())}"
            )
            await self.provider.estimate(request)

    def resolve_credential(self) -> Credential:
        """Pick the batch credential: signature id first, then the signing key.

        Returns:
            (signature_id, signing_secret) with exactly one of them set

        Raises:
            ConfigurationError: If neither a signature id nor a signing key is set
        """
        signature_id = self.settings.signature_id.get_secret_value()
        if signature_id:
            return SecretStr(signature_id), None

        secret = self.settings.signing_secret()
        if secret:
            return None, SecretStr(secret)

        raise ConfigurationError(
            "No SIGNATURE_ID or MASTER_PRIVATE_KEY set; sweep cannot sign transaction"
        )

    def preflight(self) -> Credential:
        """Check the owner and resolve the credential without calling out."""
        if not self.settings.gas_pump_master:
            raise ConfigurationError("GAS_PUMP_MASTER not set")
        return self.resolve_credential()

    def build_batch(
        self,
        wallet: ManagedWallet,
        profile: ChainProfile,
        legs: Sequence[SweepLeg],
        credential: Optional[Credential] = None,
    ) -> BatchTransferRequest:
        """Aggregate legs into one request carrying exactly one credential."""
        signature_id, signing_secret = credential or self.resolve_credential()
        return BatchTransferRequest(
            chain=profile.code,
            custodial_address=wallet.address,
            sender=self.owner,
            legs=tuple(legs),
            signature_id=signature_id,
            signing_secret=signing_secret,
        )

    async def execute(self, request: BatchTransferRequest, profile: ChainProfile) -> ExecutionResult:
        result = await self.provider.transfer_batch(request)

        if result.tx_id:
            link = explorer_tx_url(profile, result.tx_id)
            logger.info(f"Batch sweep submitted: {link or result.tx_id}")
        else:
            logger.info("No txId returned in response; check the custodial service dashboard")
        return result

    async def sweep_legs(
        self, wallet: ManagedWallet, profile: ChainProfile, legs: Sequence[SweepLeg]
    ) -> ExecutionResult:
        """Run estimate then execute for one wallet.

        Raises:
            ConfigurationError: Missing owner, collection wallet or credential,
                always before the first remote call
        """
        if not legs:
            raise ValueError("Nothing to transfer")
        if any(not leg.recipient for leg in legs):
            raise ConfigurationError(f"No collection wallet configured for {profile.code}")

        credential = self.preflight()

        await self.estimate_legs(wallet, profile, legs)
        request = self.build_batch(wallet, profile, legs, credential)
        return await self.execute(request, profile)
