"""Batch sweep of every managed wallet into the per-chain collection wallet."""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from gaspump.chains import resolve_profile
from gaspump.config import Settings, get_settings
from gaspump.errors import PerWalletSweepError
from gaspump.ledger.models import ManagedWallet, utcnow
from gaspump.ledger.repository import WalletStore
from gaspump.providers.base import CustodialProvider, ExecutionResult
from gaspump.providers.factory import get_provider
from gaspump.services.balances import BalanceInspector
from gaspump.services.planner import PlanOutcome, SweepPlanner
from gaspump.services.transfer import TransferExecutor
from gaspump.utils.locks import wallet_store_lock

logger = logging.getLogger(__name__)


@dataclass
class WalletSweepResult:
    """Per-wallet outcome of a sweep run."""

    address: str
    index: int
    chain: str
    status: str  # sweep | already_swept | nothing_to_sweep | failed
    tx_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SweepReport:
    """Summary of one sweep run."""

    attempted: int = 0
    swept: int = 0
    skipped: int = 0
    failed: int = 0
    results: list[WalletSweepResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class SweepOrchestrator:
    """Sweeps wallets one after another, isolating per-wallet failures.

    Wallets are never processed concurrently: every batch is signed by the
    same owner identity and the store has no write isolation. The full list
    is written back after each successful wallet.
    """

    def __init__(
        self,
        settings: Settings,
        store: WalletStore,
        planner: SweepPlanner,
        executor: TransferExecutor,
        lock_timeout: Optional[float] = None,
    ):
        self.settings = settings
        self.store = store
        self.planner = planner
        self.executor = executor
        self._lock_timeout = lock_timeout

    async def sweep_wallet(self, wallet: ManagedWallet) -> tuple[PlanOutcome, Optional[ExecutionResult]]:
        """Plan and, if there are legs, transfer for one wallet."""
        profile = resolve_profile(wallet.chain or self.settings.default_chain, self.settings)
        logger.info(f"Sweeping child address {wallet.address} index {wallet.index} chain {profile.code}")

        plan = await self.planner.plan(wallet, profile)
        if not plan.has_legs:
            if plan.outcome is PlanOutcome.ALREADY_SWEPT:
                logger.info(f"Already swept previously (tx: {wallet.last_sweep_tx_id})")
            else:
                logger.info("Nothing to sweep from this wallet")
            return plan.outcome, None

        result = await self.executor.sweep_legs(wallet, profile, plan.legs)
        return PlanOutcome.SWEEP, result

    async def run_sweep(self) -> SweepReport:
        """Sweep every stored wallet.

        Returns:
            SweepReport; `attempted` counts every wallet visited

        Raises:
            ConfigurationError: Owner or signing credential missing; raised
                before any balance read or remote call
        """
        self.executor.preflight()
        report = SweepReport()

        async with wallet_store_lock(timeout=self._lock_timeout, operation="sweep"):
            wallets = await self.store.load_wallets()
            logger.info(f"Starting batch sweep, wallet count: {len(wallets)}")

            for wallet in wallets:
                report.attempted += 1
                try:
                    outcome, result = await self.sweep_wallet(wallet)
                except Exception as e:
                    error = PerWalletSweepError(wallet.address, wallet.index, e)
                    logger.error(f"Error sweeping wallet: {error}")
                    report.failed += 1
                    report.results.append(
                        WalletSweepResult(
                            address=wallet.address,
                            index=wallet.index,
                            chain=wallet.chain,
                            status="failed",
                            error=str(e),
                        )
                    )
                    continue

                if result is None:
                    report.skipped += 1
                    report.results.append(
                        WalletSweepResult(
                            address=wallet.address,
                            index=wallet.index,
                            chain=wallet.chain,
                            status=outcome.value,
                            tx_id=wallet.last_sweep_tx_id,
                        )
                    )
                    continue

                wallet.last_sweep_tx_id = result.tx_id
                wallet.swept = True
                wallet.last_sweep_at = utcnow()
                await self.store.save_wallets(wallets)

                report.swept += 1
                report.results.append(
                    WalletSweepResult(
                        address=wallet.address,
                        index=wallet.index,
                        chain=wallet.chain,
                        status=outcome.value,
                        tx_id=result.tx_id,
                    )
                )

        logger.info(
            f"Batch sweep complete: attempted={report.attempted} swept={report.swept} "
            f"skipped={report.skipped} failed={report.failed}"
        )
        return report


def create_sweeper(
    settings: Optional[Settings] = None,
    provider: Optional[CustodialProvider] = None,
    store: Optional[WalletStore] = None,
) -> SweepOrchestrator:
    """Build a SweepOrchestrator from settings."""
    settings = settings or get_settings()
    inspector = BalanceInspector(timeout=settings.http_timeout)
    return SweepOrchestrator(
        settings=settings,
        store=store or WalletStore(),
        planner=SweepPlanner(inspector, dust_floor=settings.sweep_dust_floor),
        executor=TransferExecutor(provider or get_provider(settings), settings),
    )


async def run_sweep(settings: Optional[Settings] = None) -> SweepReport:
    """Run one sweep with the default service graph."""
    return await create_sweeper(settings).run_sweep()
