"""Custodial wallet endpoints: listing, provisioning and precalculation."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from gaspump.api.deps import get_provisioner, get_store, require_admin_token
from gaspump.ledger.repository import WalletStore
from gaspump.services.provisioner import CustodialAddressProvisioner

router = APIRouter()


class CreateWalletRequest(BaseModel):
    """Request to provision a custodial address."""
    chain: Optional[str] = None


class SetupMasterRequest(BaseModel):
    """Request to precalculate gas pump addresses."""
    model_config = ConfigDict(populate_by_name=True)

    chain: Optional[str] = None
    from_index: int = Field(default=0, ge=0, alias="from")
    to_index: int = Field(default=10, ge=0, alias="to")


@router.get("/wallets")
async def list_wallets(store: WalletStore = Depends(get_store)):
    """Return every stored custodial wallet."""
    wallets = await store.load_wallets()
    return {"ok": True, "wallets": [w.to_dict() for w in wallets]}


@router.get("/wallets/{address}")
async def get_wallet(address: str, store: WalletStore = Depends(get_store)):
    """Return a single wallet."""
    wallet = await store.get_wallet(address)
    if wallet is None:
        raise HTTPException(status_code=404, detail="Wallet not found")
    return {"ok": True, "wallet": wallet.to_dict()}


@router.post("/wallets", dependencies=[Depends(require_admin_token)])
async def create_wallet(
    body: Optional[CreateWalletRequest] = None,
    provisioner: CustodialAddressProvisioner = Depends(get_provisioner),
    store: WalletStore = Depends(get_store),
):
    """Provision the next custodial address for a chain.

    `created` is null when deployment was not confirmed in time.
    """
    chain = body.chain if body else None
    child = await provisioner.provision_address(chain)
    saved = await store.get_wallet(child) if child else None
    return {"ok": True, "created": child, "wallet": saved.to_dict() if saved else None}


@router.post("/setup-master", dependencies=[Depends(require_admin_token)])
async def setup_master(
    body: Optional[SetupMasterRequest] = None,
    provisioner: CustodialAddressProvisioner = Depends(get_provisioner),
):
    """Precalculate gas pump addresses for the owner."""
    body = body or SetupMasterRequest()
    addresses = await provisioner.precalculate_addresses(body.chain, body.from_index, body.to_index)
    return {
        "ok": True,
        "chain": body.chain,
        "from": body.from_index,
        "to": body.to_index,
        "response": addresses,
    }
