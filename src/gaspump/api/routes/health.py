"""Health check endpoints."""

from fastapi import APIRouter, Depends

from gaspump.api.deps import get_store
from gaspump.config import get_settings
from gaspump.ledger.repository import WalletStore

router = APIRouter()


@router.get("/")
async def index():
    """Service information."""
    settings = get_settings()
    return {
        "ok": True,
        "service": "gaspump - custodial wallet sweeper",
        "env": settings.environment,
        "defaultChain": settings.default_chain,
        "docs": "Use /wallets, /wallets/{address}, /wallets (POST), /setup-master (POST), /sweep (POST)",
    }


@router.get("/health")
async def health_check(store: WalletStore = Depends(get_store)):
    """Health check that also proves the wallet store is readable."""
    return {"ok": True, "status": "healthy", "dbWalletCount": await store.count()}


@router.get("/health/detailed")
async def detailed_health(store: WalletStore = Depends(get_store)):
    """Detailed health check with configuration info."""
    settings = get_settings()
    return {
        "ok": True,
        "status": "healthy",
        "dbWalletCount": await store.count(),
        "config": settings.get_safe_dict(),
    }
