"""Custodial address provisioning: derive, activate, confirm deployment.

Flow per attempt:
1. Requested - next index is the number of stored wallets
2. Derived - the custodial service derives the address for that one index
3. ActivationAttempted - activation failures are only logged
4. PollingDeployment - bytecode is checked until present or the bound is hit
5. Deployed - wallet is stored with confirmed_deployed=True
6. TimedOut - nothing is stored; the same index is used by the next attempt
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from gaspump.chains import ChainProfile, normalize_chain_code, resolve_profile
from gaspump.config import Settings, get_settings
from gaspump.errors import ConfigurationError, RemoteServiceError
from gaspump.ledger.models import ManagedWallet
from gaspump.ledger.repository import WalletStore
from gaspump.providers.base import CustodialProvider
from gaspump.providers.factory import get_provider
from gaspump.redaction import redact
from gaspump.services.balances import BalanceInspector
from gaspump.utils.locks import wallet_store_lock
from gaspump.utils.polling import PollResult, SleepFunc, poll_until

logger = logging.getLogger(__name__)


class ProvisionState(str, Enum):
    """States of one provisioning attempt."""

    REQUESTED = "requested"
    DERIVED = "derived"
    ACTIVATION_ATTEMPTED = "activation_attempted"
    POLLING_DEPLOYMENT = "polling_deployment"
    DEPLOYED = "deployed"
    TIMED_OUT = "timed_out"


def has_bytecode(code: Optional[str]) -> bool:
    """True if an eth_getCode result shows a deployed contract."""
    return bool(code) and code != "0x" and len(code) > 2


class CustodialAddressProvisioner:
    """Provisions custodial deposit addresses one index at a time."""

    def __init__(
        self,
        settings: Settings,
        provider: CustodialProvider,
        inspector: BalanceInspector,
        store: WalletStore,
        sleep: SleepFunc = asyncio.sleep,
        lock_timeout: Optional[float] = None,
    ):
        self.settings = settings
        self.provider = provider
        self.inspector = inspector
        self.store = store
        self._sleep = sleep
        self._lock_timeout = lock_timeout

    def _require_owner(self) -> str:
        if not self.settings.gas_pump_master:
            raise ConfigurationError("GAS_PUMP_MASTER not set")
        return self.settings.gas_pump_master

    def _resolve(self, chain_hint: Optional[str]) -> ChainProfile:
        chain = normalize_chain_code(chain_hint or self.settings.default_chain)
        return resolve_profile(chain, self.settings)

    async def precalculate_addresses(
        self, chain: Optional[str] = None, from_index: int = 0, to_index: int = 10
    ) -> list[str]:
        """Derive a range of addresses without activating or storing them."""
        owner = self._require_owner()
        profile = self._resolve(chain)
        if from_index < 0 or to_index < from_index:
            raise ValueError(f"Invalid index range {from_index}..{to_index}")

        logger.info(
            f"Precalculating gas pump addresses (chain={profile.code}, owner={owner}, "
            f"{from_index}..{to_index})"
        )
        return await self.provider.derive_addresses(profile.code, owner, from_index, to_index)

    async def derive_address(self, profile: ChainProfile, owner: str, index: int) -> str:
        """Derive the single address at index.

        Raises:
            RemoteServiceError: If the service returns no address
        """
        addresses = await self.provider.derive_addresses(profile.code, owner, index, index)
        if not addresses:
            raise RemoteServiceError("No address returned from derive endpoint")
        return addresses[0]

    async def activate(self, profile: ChainProfile, owner: str, index: int) -> Optional[str]:
        """Activate index with fees covered; failures are non-fatal."""
        try:
            response = await self.provider.activate_indices(
                profile.code, owner, index, index, fees_covered=True
            )
        except Exception as e:
            logger.warning(f"Activation failed or deferred for index {index}: {e}")
            return None

        logger.info(f"Activation response for index {index}: {redact(response)}")
        return response.get("txId") or None

    async def confirm_deployment(
        self,
        profile: ChainProfile,
        address: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PollResult:
        """Poll for bytecode at address within the configured bound."""

        async def deployed() -> bool:
            return has_bytecode(await self.inspector.get_code(profile, address))

        result = await poll_until(
            deployed,
            interval=self.settings.deployment_poll_interval,
            max_attempts=self.settings.deployment_poll_attempts,
            sleep=self._sleep,
            cancel_event=cancel_event,
            label=f"deployment of {address} on {profile.code}",
        )
        if result.success:
            logger.info(f"Contract deployed at {address} on {profile.code} after {result.checks} check(s)")
        else:
            logger.warning(f"Contract not deployed at {address} on {profile.code} after waiting")
        return result

    async def provision_address(
        self,
        chain_hint: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[str]:
        """Provision the next custodial address.

        Returns:
            The address once deployment is confirmed, None if it was not
            confirmed in time (nothing is stored; try again later)

        Raises:
            ConfigurationError: Owner not configured
            UnknownChain: Chain cannot be resolved
            RemoteServiceError: Derivation failed
        """
        owner = self._require_owner()
        profile = self._resolve(chain_hint)

        async with wallet_store_lock(timeout=self._lock_timeout, operation="provision"):
            state = ProvisionState.REQUESTED
            index = await self.store.count()
            logger.info(f"[{state.value}] Requesting child address index {index} for chain {profile.code}")

            address = await self.derive_address(profile, owner, index)
            state = ProvisionState.DERIVED
            logger.info(f"[{state.value}] Got child address {address}")

            existing = await self.store.get_wallet(address)
            if existing is not None:
                raise RemoteServiceError(
                    f"Derived address {address} for index {index} is already stored "
                    f"under index {existing.index}"
                )

            activated_tx = await self.activate(profile, owner, index)
            state = ProvisionState.ACTIVATION_ATTEMPTED
            logger.debug(f"[{state.value}] Index {index} activation tx: {activated_tx}")

            state = ProvisionState.POLLING_DEPLOYMENT
            logger.info(f"[{state.value}] Waiting for deployment of {address} on {profile.code}")
            result = await self.confirm_deployment(profile, address, cancel_event)
            if not result.success:
                state = ProvisionState.TIMED_OUT
                logger.warning(f"[{state.value}] Skipping save, {address} not yet deployed on {profile.code}")
                return None

            await self.store.append_wallet(
                ManagedWallet(
                    address=address,
                    index=index,
                    chain=profile.code,
                    activated_tx=activated_tx,
                    confirmed_deployed=True,
                )
            )
            state = ProvisionState.DEPLOYED
            logger.info(f"[{state.value}] Saved deployed child address #{index}: {address}")
            return address


def create_provisioner(
    settings: Optional[Settings] = None,
    provider: Optional[CustodialProvider] = None,
    store: Optional[WalletStore] = None,
) -> CustodialAddressProvisioner:
    """Build a CustodialAddressProvisioner from settings."""
    settings = settings or get_settings()
    return CustodialAddressProvisioner(
        settings=settings,
        provider=provider or get_provider(settings),
        inspector=BalanceInspector(timeout=settings.http_timeout),
        store=store or WalletStore(),
    )
