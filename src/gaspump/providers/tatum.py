"""Tatum gas pump provider.

Docs: https://apidoc.tatum.io/tag/Gas-pump
"""

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import SecretStr

from gaspump.chains import normalize_chain_code
from gaspump.errors import ConfigurationError, RemoteServiceError
from gaspump.providers.base import (
    BatchTransferRequest,
    CustodialProvider,
    EstimateRequest,
    EstimateResult,
    ExecutionResult,
)
from gaspump.redaction import redact

logger = logging.getLogger(__name__)

TATUM_BASE_URL = "https://api.tatum.io/v3"


def _safe_body(text: str) -> str:
    """Redact a response body before it goes into an error message."""
    try:
        data = json.loads(text)
    except ValueError:
        return text
    return json.dumps(redact(data))


class TatumProvider(CustodialProvider):
    """Tatum custodial (gas pump) wallet service."""

    def __init__(
        self,
        api_key: SecretStr,
        base_url: str = TATUM_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Tatum provider.

        Args:
            api_key: Tatum API key
            base_url: REST base URL (v3)
            timeout: Timeout for every request, in seconds
            transport: Optional httpx transport override
        """
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "tatum"

    async def _post(self, path: str, body: dict[str, Any], operation: str) -> Any:
        api_key = self._api_key.get_secret_value()
        if not api_key:
            raise ConfigurationError("TATUM_API_KEY is not set")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}{path}",
                headers={
                    "accept": "application/json",
                    "content-type": "application/json",
                    "x-api-key": api_key,
                },
                json=body,
            )

        text = response.text
        if not response.is_success:
            raise RemoteServiceError(
                f"Tatum {operation} failed", response.status_code, _safe_body(text)
            )
        if not text:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteServiceError(
                f"Tatum {operation} returned invalid JSON", response.status_code, text[:200]
            ) from e

    async def derive_addresses(
        self, chain: str, owner: str, from_index: int, to_index: int
    ) -> list[str]:
        body = {
            "chain": normalize_chain_code(chain),
            "owner": owner,
            "from": from_index,
            "to": to_index,
        }
        logger.debug(f"Deriving gas pump addresses: {redact(body)}")
        data = await self._post("/gas-pump", body, "derive")

        if isinstance(data, list):
            return [str(a) for a in data]
        if isinstance(data, dict) and isinstance(data.get("addresses"), list):
            return [str(a) for a in data["addresses"]]
        return []

    async def activate_indices(
        self,
        chain: str,
        owner: str,
        from_index: int,
        to_index: int,
        fees_covered: bool = True,
    ) -> dict[str, Any]:
        body = {
            "chain": normalize_chain_code(chain),
            "owner": owner,
            "from": from_index,
            "to": to_index,
            "feesCovered": fees_covered,
        }
        logger.debug(f"Activating gas pump indices: {redact(body)}")
        data = await self._post("/gas-pump/activate", body, "activate")
        return data if isinstance(data, dict) else {"result": data}

    async def estimate(self, request: EstimateRequest) -> EstimateResult:
        body = request.to_payload()
        body["chain"] = normalize_chain_code(body["chain"])
        logger.debug(f"Estimate request: {redact(body)}")
        data = await self._post("/blockchain/estimate", body, "estimate")
        return EstimateResult(success=True, data=data if isinstance(data, dict) else {"result": data})

    async def transfer_batch(self, request: BatchTransferRequest) -> ExecutionResult:
        logger.info(f"Batch sweep payload (redacted): {redact(request.to_payload())}")
        body = request.to_payload(reveal=True)
        body["chain"] = normalize_chain_code(body["chain"])
        data = await self._post("/blockchain/sc/custodial/transfer/batch", body, "batch transfer")

        raw = data if isinstance(data, dict) else {"result": data}
        tx_id = raw.get("txId") or None
        return ExecutionResult(tx_id=tx_id, raw=redact(raw))
