"""Sweep trigger endpoint."""

from fastapi import APIRouter, Depends

from gaspump.api.deps import get_sweeper, require_admin_token
from gaspump.services.sweeper import SweepOrchestrator

router = APIRouter()


@router.post("/sweep", dependencies=[Depends(require_admin_token)])
async def sweep(sweeper: SweepOrchestrator = Depends(get_sweeper)):
    """Run a batch sweep of every wallet (synchronous)."""
    report = await sweeper.run_sweep()
    return {"ok": True, "result": report.to_dict()}
