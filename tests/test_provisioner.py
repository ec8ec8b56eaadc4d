"""Tests for custodial address provisioning."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import OWNER, FakeInspector, FakeSleep, make_settings, make_wallet
from gaspump.errors import ConfigurationError, RemoteServiceError, UnknownChain
from gaspump.services.provisioner import CustodialAddressProvisioner, has_bytecode

CHILD = "0x00000000000000000000000000000000000000c1"
DEPLOYED_CODE = "0x6080604052"


@pytest.fixture
def provider():
    mock = AsyncMock()
    mock.derive_addresses = AsyncMock(return_value=[CHILD])
    mock.activate_indices = AsyncMock(return_value={"txId": "0xactivate"})
    return mock


def build(store, provider, inspector, sleep, **overrides) -> CustodialAddressProvisioner:
    return CustodialAddressProvisioner(
        settings=make_settings(**overrides),
        provider=provider,
        inspector=inspector,
        store=store,
        sleep=sleep,
    )


class TestHasBytecode:
    """Tests for bytecode detection."""

    def test_empty_results(self):
        assert has_bytecode(None) is False
        assert has_bytecode("") is False
        assert has_bytecode("0x") is False

    def test_deployed(self):
        assert has_bytecode(DEPLOYED_CODE) is True


class TestProvisionAddress:
    """Tests for CustodialAddressProvisioner.provision_address."""

    @pytest.mark.asyncio
    async def test_missing_owner_makes_no_calls(self, store, provider):
        inspector = FakeInspector()
        provisioner = build(store, provider, inspector, FakeSleep(), gas_pump_master="")

        with pytest.raises(ConfigurationError, match="GAS_PUMP_MASTER"):
            await provisioner.provision_address()

        provider.derive_addresses.assert_not_awaited()
        provider.activate_indices.assert_not_awaited()
        assert inspector.code_checks == 0

    @pytest.mark.asyncio
    async def test_unknown_chain(self, store, provider):
        provisioner = build(store, provider, FakeInspector(), FakeSleep())

        with pytest.raises(UnknownChain):
            await provisioner.provision_address("TRON")

        provider.derive_addresses.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_immediate_deployment(self, store, provider):
        """Bytecode on the first check stores the wallet without sleeping."""
        inspector = FakeInspector(codes=[DEPLOYED_CODE])
        sleep = FakeSleep()

        address = await build(store, provider, inspector, sleep).provision_address("ether")

        assert address == CHILD
        assert inspector.code_checks == 1
        assert sleep.calls == []
        provider.derive_addresses.assert_awaited_once_with("ETH", OWNER, 0, 0)
        provider.activate_indices.assert_awaited_once_with("ETH", OWNER, 0, 0, fees_covered=True)

        saved = await store.get_wallet(CHILD)
        assert saved.index == 0
        assert saved.chain == "ETH"
        assert saved.confirmed_deployed is True
        assert saved.activated_tx == "0xactivate"
        assert saved.swept is False

    @pytest.mark.asyncio
    async def test_deployment_after_retries(self, store, provider):
        inspector = FakeInspector(codes=["0x", "0x", "0x", DEPLOYED_CODE])
        sleep = FakeSleep()

        address = await build(store, provider, inspector, sleep).provision_address()

        assert address == CHILD
        assert inspector.code_checks == 4
        assert sleep.calls == [10.0, 10.0, 10.0]

    @pytest.mark.asyncio
    async def test_timeout_stores_nothing_and_reuses_index(self, store, provider):
        inspector = FakeInspector()
        sleep = FakeSleep()
        provisioner = build(store, provider, inspector, sleep)

        assert await provisioner.provision_address() is None

        assert inspector.code_checks == 7
        assert sleep.total == 60.0
        assert await store.count() == 0

        inspector.codes = [DEPLOYED_CODE]
        assert await provisioner.provision_address() == CHILD
        assert provider.derive_addresses.await_args_list[1].args == ("ETH", OWNER, 0, 0)

    @pytest.mark.asyncio
    async def test_next_index_follows_store_size(self, store, provider):
        await store.append_wallet(make_wallet(0))
        await store.append_wallet(make_wallet(1))
        inspector = FakeInspector(codes=[DEPLOYED_CODE])

        await build(store, provider, inspector, FakeSleep()).provision_address()

        provider.derive_addresses.assert_awaited_once_with("ETH", OWNER, 2, 2)
        assert (await store.get_wallet(CHILD)).index == 2

    @pytest.mark.asyncio
    async def test_activation_failure_is_not_fatal(self, store, provider):
        provider.activate_indices.side_effect = RemoteServiceError("Tatum activate failed", 403, "denied")
        inspector = FakeInspector(codes=[DEPLOYED_CODE])

        address = await build(store, provider, inspector, FakeSleep()).provision_address()

        assert address == CHILD
        saved = await store.get_wallet(CHILD)
        assert saved.activated_tx is None
        assert saved.confirmed_deployed is True

    @pytest.mark.asyncio
    async def test_activation_response_is_logged_redacted(self, store, provider, caplog):
        provider.activate_indices.return_value = {"txId": "0xactivate", "signatureId": "sig-secret"}
        inspector = FakeInspector(codes=[DEPLOYED_CODE])

        with caplog.at_level("INFO"):
            await build(store, provider, inspector, FakeSleep()).provision_address()

        assert "0xactivate" in caplog.text
        assert "sig-secret" not in caplog.text
        assert (await store.get_wallet(CHILD)).activated_tx == "0xactivate"

    @pytest.mark.asyncio
    async def test_empty_derivation_fails(self, store, provider):
        provider.derive_addresses.return_value = []
        inspector = FakeInspector()

        with pytest.raises(RemoteServiceError, match="No address returned"):
            await build(store, provider, inspector, FakeSleep()).provision_address()

        provider.activate_indices.assert_not_awaited()
        assert inspector.code_checks == 0
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_already_stored_address_fails(self, store, provider):
        await store.append_wallet(make_wallet(0, address=CHILD))

        with pytest.raises(RemoteServiceError, match="already stored"):
            await build(store, provider, FakeInspector(), FakeSleep()).provision_address()

        provider.activate_indices.assert_not_awaited()
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_cancel_stops_polling(self, store, provider):
        cancel = asyncio.Event()
        cancel.set()
        inspector = FakeInspector()
        sleep = FakeSleep()

        result = await build(store, provider, inspector, sleep).provision_address(cancel_event=cancel)

        assert result is None
        assert inspector.code_checks == 1
        assert sleep.calls == []
        assert await store.count() == 0


class TestPrecalculate:
    """Tests for precalculate_addresses."""

    @pytest.mark.asyncio
    async def test_returns_range(self, store, provider):
        provider.derive_addresses.return_value = ["0xa", "0xb", "0xc"]
        provisioner = build(store, provider, FakeInspector(), FakeSleep())

        addresses = await provisioner.precalculate_addresses("polygon", 0, 2)

        assert addresses == ["0xa", "0xb", "0xc"]
        provider.derive_addresses.assert_awaited_once_with("MATIC", OWNER, 0, 2)
        provider.activate_indices.assert_not_awaited()
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_rejects_reversed_range(self, store, provider):
        provisioner = build(store, provider, FakeInspector(), FakeSleep())

        with pytest.raises(ValueError):
            await provisioner.precalculate_addresses(None, 5, 2)
