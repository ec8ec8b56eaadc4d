"""Shared FastAPI dependencies."""

from fastapi import Header, HTTPException

from gaspump.config import get_settings
from gaspump.ledger.repository import WalletStore
from gaspump.services.provisioner import CustodialAddressProvisioner, create_provisioner
from gaspump.services.sweeper import SweepOrchestrator, create_sweeper


async def require_admin_token(x_admin_token: str = Header(None)) -> bool:
    """Verify admin token when one is configured."""
    settings = get_settings()
    if settings.admin_token and x_admin_token != settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")
    return True


def get_store() -> WalletStore:
    return WalletStore()


def get_provisioner() -> CustodialAddressProvisioner:
    return create_provisioner()


def get_sweeper() -> SweepOrchestrator:
    return create_sweeper()
