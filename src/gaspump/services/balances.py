"""On-chain reads for custodial addresses: native/token balances and bytecode."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from gaspump.chains import ChainProfile
from gaspump.errors import RemoteServiceError

logger = logging.getLogger(__name__)

# ERC20 function selectors
BALANCE_OF_SELECTOR = "0x70a08231"
DECIMALS_SELECTOR = "0x313ce567"

DEFAULT_TOKEN_DECIMALS = 18
# decimals() is an ABI uint8
MAX_TOKEN_DECIMALS = 255


def format_units(raw: int, decimals: int) -> str:
    """Convert a smallest-unit integer to a whole-unit decimal string.

    Exact (no float); keeps at least one fractional digit, e.g. "0.5", "3.0".
    """
    sign = "-" if raw < 0 else ""
    raw = abs(raw)
    if decimals <= 0:
        return f"{sign}{raw}.0"
    base = 10**decimals
    whole, frac = divmod(raw, base)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"


@dataclass
class TokenBalance:
    """ERC20 balance of one address."""

    raw: int
    decimals: int
    formatted: str


class EvmRpcClient:
    """Minimal JSON-RPC client for an EVM node."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._transport = transport

    async def request(self, method: str, params: list[Any]) -> Any:
        """Issue a JSON-RPC call and return its result.

        Raises:
            RemoteServiceError: On a non-200 response or a JSON-RPC error
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "method": method, "params": params, "id": 1},
            )

        if response.status_code != 200:
            raise RemoteServiceError(f"RPC {method} failed", response.status_code, response.text[:500])

        data = response.json()
        if "error" in data:
            raise RemoteServiceError(f"RPC {method} error", response.status_code, str(data["error"]))
        if "result" not in data:
            raise RemoteServiceError(f"RPC {method} returned no result", response.status_code)
        return data["result"]

    async def get_balance(self, address: str) -> int:
        """Native balance in the smallest unit."""
        result = await self.request("eth_getBalance", [address, "latest"])
        return int(result, 16)

    async def get_code(self, address: str) -> str:
        """Deployed bytecode at an address ("0x" when none)."""
        result = await self.request("eth_getCode", [address, "latest"])
        return result or "0x"

    async def call(self, to: str, data: str) -> str:
        return await self.request("eth_call", [{"to": to, "data": data}, "latest"])


def _hex_to_int(value: str) -> int:
    if not value or value == "0x":
        return 0
    return int(value, 16)


class BalanceInspector:
    """Reads balances and bytecode on a resolved network."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport

    def client_for(self, profile: ChainProfile) -> EvmRpcClient:
        return EvmRpcClient(profile.rpc_url, timeout=self.timeout, transport=self._transport)

    async def native_balance(self, profile: ChainProfile, address: str) -> str:
        """Native balance in whole units as a decimal string."""
        wei = await self.client_for(profile).get_balance(address)
        return format_units(wei, profile.decimals)

    async def token_balance(
        self, token_address: str, address: str, profile: ChainProfile
    ) -> TokenBalance:
        """ERC20 balance of address.

        If decimals() cannot be read or is not a uint8 the token is assumed
        to use 18 decimals rather than failing the whole read.
        """
        client = self.client_for(profile)
        address_padded = address.lower().replace("0x", "").zfill(64)
        raw = _hex_to_int(await client.call(token_address, f"{BALANCE_OF_SELECTOR}{address_padded}"))

        try:
            result = await client.call(token_address, DECIMALS_SELECTOR)
            decimals = _hex_to_int(result) if result and result != "0x" else DEFAULT_TOKEN_DECIMALS
            if not 0 <= decimals <= MAX_TOKEN_DECIMALS:
                raise ValueError(f"decimals() returned {decimals}, not a uint8")
        except (RemoteServiceError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"decimals() failed for token {token_address} on {profile.code}, assuming 18: {e}")
            decimals = DEFAULT_TOKEN_DECIMALS

        return TokenBalance(raw=raw, decimals=decimals, formatted=format_units(raw, decimals))

    async def get_code(self, profile: ChainProfile, address: str) -> str:
        return await self.client_for(profile).get_code(address)
