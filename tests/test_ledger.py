"""Tests for the wallet store."""

from datetime import datetime, timezone

import pytest

from conftest import make_wallet
from gaspump.ledger.models import ManagedWallet


class TestWalletStore:
    """Tests for WalletStore operations."""

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        assert await store.load_wallets() == []
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_append_and_load_in_index_order(self, store):
        await store.append_wallet(make_wallet(1))
        await store.append_wallet(make_wallet(0))

        wallets = await store.load_wallets()

        assert [w.index for w in wallets] == [0, 1]
        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_append_rejects_taken_index(self, store):
        await store.append_wallet(make_wallet(0))

        with pytest.raises(ValueError):
            await store.append_wallet(make_wallet(0, address="0x" + "f" * 40))

        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_get_wallet_ignores_case(self, store):
        wallet = make_wallet(0, address="0x" + "AB" * 20)
        await store.append_wallet(wallet)

        found = await store.get_wallet(wallet.address.lower())

        assert found is not None
        assert found.index == 0
        assert await store.get_wallet("0x" + "0" * 40) is None

    @pytest.mark.asyncio
    async def test_save_wallets_updates_existing(self, store):
        await store.append_wallet(make_wallet(0))
        await store.append_wallet(make_wallet(1))

        wallets = await store.load_wallets()
        wallets[1].last_sweep_tx_id = "0xabc"
        wallets[1].swept = True
        await store.save_wallets(wallets)

        reloaded = await store.load_wallets()
        assert reloaded[0].swept is False
        assert reloaded[1].last_sweep_tx_id == "0xabc"
        assert reloaded[1].swept is True
        assert await store.count() == 2


class TestManagedWalletDict:
    """Tests for the camelCase dictionary form."""

    def test_to_dict_keys(self):
        wallet = make_wallet(0, activated_tx="0xact")

        data = wallet.to_dict()

        assert data["address"] == wallet.address
        assert data["index"] == 0
        assert data["chain"] == "ETH"
        assert data["activatedTx"] == "0xact"
        assert data["confirmedDeployed"] is True
        assert data["lastSweepTxId"] is None
        assert data["swept"] is False
        assert "createdAt" in data

    def test_from_legacy_dict(self):
        wallet = ManagedWallet.from_dict(
            {
                "address": "0xabc",
                "index": 7,
                "chain": "MATIC",
                "createdAt": "2024-01-02T03:04:05Z",
                "confirmedDeployed": True,
                "lastSweepTxId": "0xdef",
                "swept": True,
            }
        )

        assert wallet.index == 7
        assert wallet.created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert wallet.last_sweep_tx_id == "0xdef"
        assert wallet.swept is True
        assert wallet.activated_tx is None
