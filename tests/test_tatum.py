"""Tests for the Tatum gas pump provider."""

import json

import httpx
import pytest
from pydantic import SecretStr

from conftest import HOT_WALLET, OWNER, USDT
from gaspump.errors import ConfigurationError, RemoteServiceError
from gaspump.providers.base import (
    AssetKind,
    BatchTransferRequest,
    EstimateRequest,
    SweepLeg,
)
from gaspump.providers.tatum import TatumProvider

CUSTODIAL = "0x00000000000000000000000000000000000000c1"


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, status_code: int = 200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def make_provider(recorder: Recorder, api_key: str = "test-api-key") -> TatumProvider:
    return TatumProvider(
        api_key=SecretStr(api_key),
        base_url="https://tatum.test/v3/",
        transport=httpx.MockTransport(recorder),
    )


class TestDerive:
    """Tests for address derivation."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        recorder = Recorder(body=[CUSTODIAL])
        provider = make_provider(recorder)

        addresses = await provider.derive_addresses("polygon", OWNER, 3, 3)

        assert addresses == [CUSTODIAL]
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://tatum.test/v3/gas-pump"
        assert request.headers["x-api-key"] == "test-api-key"
        assert recorder.last_json == {"chain": "MATIC", "owner": OWNER, "from": 3, "to": 3}

    @pytest.mark.asyncio
    async def test_addresses_wrapper(self):
        provider = make_provider(Recorder(body={"addresses": ["0xa", "0xb"]}))

        assert await provider.derive_addresses("ETH", OWNER, 0, 1) == ["0xa", "0xb"]

    @pytest.mark.asyncio
    async def test_unexpected_shape_yields_nothing(self):
        provider = make_provider(Recorder(body={"unexpected": True}))

        assert await provider.derive_addresses("ETH", OWNER, 0, 0) == []

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        recorder = Recorder()
        provider = make_provider(recorder, api_key="")

        with pytest.raises(ConfigurationError):
            await provider.derive_addresses("ETH", OWNER, 0, 0)
        assert recorder.requests == []


class TestActivate:
    """Tests for index activation."""

    @pytest.mark.asyncio
    async def test_fees_covered(self):
        recorder = Recorder(body={"txId": "0xact"})
        provider = make_provider(recorder)

        response = await provider.activate_indices("BSC", OWNER, 4, 4)

        assert response == {"txId": "0xact"}
        assert str(recorder.requests[0].url).endswith("/gas-pump/activate")
        assert recorder.last_json["feesCovered"] is True

    @pytest.mark.asyncio
    async def test_error_status(self):
        provider = make_provider(Recorder(status_code=403, body={"message": "not allowed"}))

        with pytest.raises(RemoteServiceError) as exc_info:
            await provider.activate_indices("ETH", OWNER, 0, 0)

        assert exc_info.value.status_code == 403
        assert "not allowed" in str(exc_info.value)


class TestEstimate:
    """Tests for transfer estimation."""

    @pytest.mark.asyncio
    async def test_token_leg(self):
        recorder = Recorder(body={"gasLimit": "60000"})
        provider = make_provider(recorder)
        leg = SweepLeg(kind=AssetKind.TOKEN, amount="15.5", recipient=HOT_WALLET, contract_address=USDT)

        result = await provider.estimate(EstimateRequest.for_leg("polygon", OWNER, CUSTODIAL, leg))

        assert result.success is True
        assert result.data == {"gasLimit": "60000"}
        assert str(recorder.requests[0].url).endswith("/blockchain/estimate")
        body = recorder.last_json
        assert body["chain"] == "MATIC"
        assert body["tokenType"] == 0
        assert body["contractAddress"] == USDT
        assert body["custodialAddress"] == CUSTODIAL

    @pytest.mark.asyncio
    async def test_rejection_body_is_redacted(self):
        body = {"message": "insufficient funds", "privateKey": "leaked"}
        provider = make_provider(Recorder(status_code=400, body=body))
        leg = SweepLeg(kind=AssetKind.NATIVE, amount="1.0", recipient=HOT_WALLET)

        with pytest.raises(RemoteServiceError) as exc_info:
            await provider.estimate(EstimateRequest.for_leg("ETH", OWNER, CUSTODIAL, leg))

        message = str(exc_info.value)
        assert "insufficient funds" in message
        assert "leaked" not in message
        assert "REDACTED" in message


class TestTransferBatch:
    """Tests for the batch custodial transfer."""

    @pytest.mark.asyncio
    async def test_sends_credential_and_reads_tx_id(self, caplog):
        recorder = Recorder(body={"txId": "0xbatch"})
        provider = make_provider(recorder)
        request = BatchTransferRequest(
            chain="ETH",
            custodial_address=CUSTODIAL,
            sender=OWNER,
            legs=(SweepLeg(kind=AssetKind.NATIVE, amount="0.5", recipient=HOT_WALLET),),
            signing_secret=SecretStr("K-secret"),
        )

        with caplog.at_level("DEBUG"):
            result = await provider.transfer_batch(request)

        assert result.tx_id == "0xbatch"
        assert str(recorder.requests[0].url).endswith("/blockchain/sc/custodial/transfer/batch")
        body = recorder.last_json
        assert body["fromPrivateKey"] == "K-secret"
        assert body["contractType"] == [3]
        assert body["tokenId"] == ["0"]
        assert "K-secret" not in caplog.text
        assert "test-api-key" not in caplog.text

    @pytest.mark.asyncio
    async def test_missing_tx_id(self):
        provider = make_provider(Recorder(body={"status": "pending"}))
        request = BatchTransferRequest(
            chain="ETH",
            custodial_address=CUSTODIAL,
            sender=OWNER,
            legs=(SweepLeg(kind=AssetKind.NATIVE, amount="0.5", recipient=HOT_WALLET),),
            signature_id=SecretStr("sig-1"),
        )

        result = await provider.transfer_batch(request)

        assert result.tx_id is None
        assert result.raw == {"status": "pending"}
