"""Chain registry for the networks served by the gas pump.

Maps user-facing chain names to the canonical codes the custodial service
expects and resolves per-network sweep configuration.
"""

from dataclasses import dataclass
from typing import Optional

from gaspump.config import Settings
from gaspump.errors import UnknownChain

# User-facing aliases -> canonical custodial-service chain codes
CHAIN_ALIASES: dict[str, str] = {
    "POLYGON": "MATIC",
    "MATIC": "MATIC",
    "ETH": "ETH",
    "ETHER": "ETH",
    "EVM": "ETH",
    "BSC": "BSC",
    "BINANCE": "BSC",
    "CELO": "CELO",
    "ONE": "ONE",
    "KLAY": "KLAY",
    "TRON": "TRON",
}


@dataclass(frozen=True)
class Network:
    """Static facts about an EVM network."""

    symbol: str
    chain_id: int
    explorer_url: Optional[str] = None
    decimals: int = 18


# Static network table; endpoints and wallets come from Settings
NETWORKS: dict[str, Network] = {
    "ETH": Network(symbol="ETH", chain_id=1, explorer_url="https://etherscan.io/tx"),
    "MATIC": Network(symbol="MATIC", chain_id=137, explorer_url="https://polygonscan.com/tx"),
    "BSC": Network(symbol="BNB", chain_id=56, explorer_url="https://bscscan.com/tx"),
    "CELO": Network(symbol="CELO", chain_id=42220, explorer_url="https://celoscan.io/tx"),
    "ONE": Network(symbol="ONE", chain_id=1666600000, explorer_url="https://explorer.harmony.one/tx"),
    "KLAY": Network(symbol="KLAY", chain_id=8217, explorer_url="https://klaytnscope.com/tx"),
}


@dataclass(frozen=True)
class ChainProfile:
    """Resolved configuration for one network."""

    code: str
    symbol: str
    rpc_url: str
    chain_id: int
    hot_wallet: str
    token_address: Optional[str] = None
    decimals: int = 18
    explorer_url: Optional[str] = None


def normalize_chain_code(value: Optional[str]) -> Optional[str]:
    """Normalize a chain alias to the custodial-service code.

    Example: 'polygon' -> 'MATIC'. Unknown values come back uppercased.
    """
    if not value:
        return value
    code = str(value).strip().upper()
    return CHAIN_ALIASES.get(code, code)


def supported_chains() -> list[str]:
    """Canonical codes that have a network entry."""
    return list(NETWORKS)


def resolve_profile(chain: str, settings: Settings) -> ChainProfile:
    """Resolve the sweep profile for a chain.

    Raises:
        UnknownChain: If the chain has no network entry or no RPC endpoint
    """
    code = normalize_chain_code(chain) or ""
    network = NETWORKS.get(code)
    if network is None:
        raise UnknownChain(code or str(chain), "unsupported network")

    rpc_url = settings.get_rpc_url(code)
    if not rpc_url:
        raise UnknownChain(code, "no RPC endpoint configured")

    return ChainProfile(
        code=code,
        symbol=network.symbol,
        rpc_url=rpc_url,
        chain_id=network.chain_id,
        hot_wallet=settings.get_hot_wallet(code),
        token_address=settings.get_token_address(code),
        decimals=network.decimals,
        explorer_url=network.explorer_url,
    )


def explorer_tx_url(profile: ChainProfile, tx_id: str) -> Optional[str]:
    """Block explorer link for a transaction, if the network has one."""
    if not profile.explorer_url or not tx_id:
        return None
    return f"{profile.explorer_url}/{tx_id}"
