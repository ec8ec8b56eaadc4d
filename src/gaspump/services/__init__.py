"""Sweep and provisioning services."""

from gaspump.services.balances import BalanceInspector, TokenBalance
from gaspump.services.planner import PlanOutcome, SweepPlan, SweepPlanner
from gaspump.services.provisioner import CustodialAddressProvisioner, create_provisioner
from gaspump.services.sweeper import SweepOrchestrator, SweepReport, create_sweeper, run_sweep
from gaspump.services.transfer import TransferExecutor

__all__ = [
    "BalanceInspector",
    "CustodialAddressProvisioner",
    "PlanOutcome",
    "SweepOrchestrator",
    "SweepPlan",
    "SweepPlanner",
    "SweepReport",
    "TokenBalance",
    "TransferExecutor",
    "create_provisioner",
    "create_sweeper",
    "run_sweep",
]
