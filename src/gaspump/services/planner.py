"""Decides which asset legs of a custodial wallet qualify for sweeping."""

import logging
from dataclasses import dataclass, field
from decimal import Context, Decimal
from enum import Enum

from gaspump.chains import ChainProfile
from gaspump.ledger.models import ManagedWallet
from gaspump.providers.base import AssetKind, SweepLeg
from gaspump.services.balances import BalanceInspector

logger = logging.getLogger(__name__)

DEFAULT_DUST_FLOOR = Decimal("0.00001")

# Enough precision for uint256 amounts with 18 decimals
_AMOUNT_CONTEXT = Context(prec=100)


class PlanOutcome(str, Enum):
    """What the planner decided for a wallet."""

    SWEEP = "sweep"
    ALREADY_SWEPT = "already_swept"
    NOTHING_TO_SWEEP = "nothing_to_sweep"


@dataclass
class SweepPlan:
    """Ordered sweep legs for one wallet (native first, token second)."""

    wallet: ManagedWallet
    profile: ChainProfile
    legs: list[SweepLeg] = field(default_factory=list)
    native_balance: str = "0.0"
    token_balance: str = "0.0"

    @property
    def outcome(self) -> PlanOutcome:
        if self.legs:
            return PlanOutcome.SWEEP
        if self.wallet.last_sweep_tx_id:
            return PlanOutcome.ALREADY_SWEPT
        return PlanOutcome.NOTHING_TO_SWEEP

    @property
    def has_legs(self) -> bool:
        return bool(self.legs)


def fixed_amount(value: str, places: int) -> str:
    """Render a decimal string with exactly `places` fractional digits."""
    quantum = Decimal(1).scaleb(-places)
    return format(Decimal(value).quantize(quantum, context=_AMOUNT_CONTEXT), "f")


class SweepPlanner:
    """Builds the sweep legs of a wallet from its on-chain balances."""

    def __init__(self, inspector: BalanceInspector, dust_floor: Decimal = DEFAULT_DUST_FLOOR):
        self.inspector = inspector
        self.dust_floor = Decimal(dust_floor)

    async def plan(self, wallet: ManagedWallet, profile: ChainProfile) -> SweepPlan:
        """Read balances and return the qualifying legs.

        Native qualifies above the dust floor; the tracked token qualifies
        for any positive balance.
        """
        native = await self.inspector.native_balance(profile, wallet.address)

        token = "0.0"
        if profile.token_address:
            balance = await self.inspector.token_balance(profile.token_address, wallet.address, profile)
            token = balance.formatted

        plan = SweepPlan(wallet=wallet, profile=profile, native_balance=native, token_balance=token)

        if Decimal(native) > self.dust_floor:
            plan.legs.append(
                SweepLeg(
                    kind=AssetKind.NATIVE,
                    amount=fixed_amount(native, profile.decimals),
                    recipient=profile.hot_wallet,
                )
            )
        else:
            logger.info(f"{profile.code} native balance too small to sweep ({native})")

        if profile.token_address and Decimal(token) > 0:
            plan.legs.append(
                SweepLeg(
                    kind=AssetKind.TOKEN,
                    amount=token,
                    recipient=profile.hot_wallet,
                    contract_address=profile.token_address,
                )
            )
        elif not plan.legs:
            logger.info(f"No token balance to sweep on {profile.code}")

        return plan
