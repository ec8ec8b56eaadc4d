"""Application configuration using pydantic-settings.

One immutable Settings object is built per process and passed explicitly to
every service. Nothing downstream reads the environment directly.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from gaspump.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/gaspump.db",
        description="Wallet store connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=3000, description="API server port")
    admin_token: str = Field(default="", description="Admin token for mutating endpoints")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    # ======================
    # Custodial service (Tatum)
    # ======================
    tatum_api_key: SecretStr = Field(default=SecretStr(""), description="Tatum API key")
    tatum_base_url: str = Field(
        default="https://api.tatum.io/v3", description="Tatum REST base URL"
    )
    http_timeout: float = Field(
        default=30.0, description="Timeout in seconds for every outbound HTTP call"
    )

    # ======================
    # Owner identity / signing
    # ======================
    gas_pump_master: str = Field(default="", description="Gas pump owner (EOA) address")
    signature_id: SecretStr = Field(
        default=SecretStr(""), description="Tatum KMS signature id for the owner"
    )
    master_private_key: SecretStr = Field(
        default=SecretStr(""), description="Raw owner signing key (fallback to signature id)"
    )
    master_private_key_encrypted: str = Field(
        default="", description="Fernet-encrypted owner signing key"
    )
    master_key: Optional[str] = Field(
        default=None, description="Fernet key used to decrypt the owner signing key"
    )

    default_chain: str = Field(default="ETH", description="Chain used when none is given")

    # ======================
    # Chain RPC Endpoints
    # ======================
    # RPC_URL_<CHAIN> spellings are accepted for existing .env files
    eth_rpc_url: str = Field(
        default="https://eth.llamarpc.com",
        validation_alias=AliasChoices("eth_rpc_url", "rpc_url_eth", "rpc_url"),
        description="Ethereum RPC URL",
    )
    matic_rpc_url: str = Field(
        default="https://polygon-rpc.com",
        validation_alias=AliasChoices("matic_rpc_url", "rpc_url_polygon", "rpc_url_matic"),
        description="Polygon RPC URL",
    )
    bsc_rpc_url: str = Field(
        default="https://bsc-dataseed.binance.org",
        validation_alias=AliasChoices("bsc_rpc_url", "rpc_url_bsc"),
        description="BSC RPC URL",
    )
    celo_rpc_url: str = Field(default="", description="Celo RPC URL")
    one_rpc_url: str = Field(default="", description="Harmony RPC URL")
    klay_rpc_url: str = Field(default="", description="Klaytn RPC URL")

    # ======================
    # Collection (hot) wallets
    # ======================
    hot_wallet_default: str = Field(default="", description="Fallback collection address")
    hot_wallet_eth: str = Field(default="", description="ETH collection address")
    hot_wallet_matic: str = Field(
        default="",
        validation_alias=AliasChoices("hot_wallet_matic", "hot_wallet_polygon"),
        description="Polygon collection address",
    )
    hot_wallet_bsc: str = Field(default="", description="BSC collection address")
    hot_wallet_celo: str = Field(default="", description="Celo collection address")
    hot_wallet_one: str = Field(default="", description="Harmony collection address")
    hot_wallet_klay: str = Field(default="", description="Klaytn collection address")

    # ======================
    # Tracked token contracts (USDT)
    # ======================
    usdt_contract_eth: str = Field(default="", description="USDT contract on Ethereum")
    usdt_contract_matic: str = Field(
        default="",
        validation_alias=AliasChoices("usdt_contract_matic", "usdt_contract_polygon"),
        description="USDT contract on Polygon",
    )
    usdt_contract_bsc: str = Field(default="", description="USDT contract on BSC")
    usdt_contract_celo: str = Field(default="", description="USDT contract on Celo")
    usdt_contract_one: str = Field(default="", description="USDT contract on Harmony")
    usdt_contract_klay: str = Field(default="", description="USDT contract on Klaytn")

    # ======================
    # Sweep / provisioning tunables
    # ======================
    sweep_dust_floor: Decimal = Field(
        default=Decimal("0.00001"), description="Native balance at or below this is not swept"
    )
    deployment_poll_interval: float = Field(
        default=10.0, description="Seconds between deployment checks"
    )
    deployment_poll_attempts: int = Field(
        default=6, description="Deployment checks after the first one"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_rpc_url(self, chain: str) -> str:
        """Get RPC URL for a canonical chain code ("" when not configured)."""
        rpc_map = {
            "ETH": self.eth_rpc_url,
            "MATIC": self.matic_rpc_url,
            "BSC": self.bsc_rpc_url,
            "CELO": self.celo_rpc_url,
            "ONE": self.one_rpc_url,
            "KLAY": self.klay_rpc_url,
        }
        return rpc_map.get(chain.upper(), "")

    def get_hot_wallet(self, chain: str) -> str:
        """Get the collection address for a chain.

        Falls back to the ETH collection address, then to the default.
        """
        specific = getattr(self, f"hot_wallet_{chain.lower()}", "")
        return specific or self.hot_wallet_eth or self.hot_wallet_default

    def get_token_address(self, chain: str) -> Optional[str]:
        """Get the tracked token contract for a chain (None when untracked)."""
        return getattr(self, f"usdt_contract_{chain.lower()}", "") or None

    def signing_secret(self) -> Optional[str]:
        """Return the raw owner signing key, decrypting it if stored encrypted.

        Raises:
            ConfigurationError: If an encrypted key is set but cannot be decrypted
        """
        plain = self.master_private_key.get_secret_value()
        if plain:
            return plain
        if not self.master_private_key_encrypted:
            return None
        if not self.master_key:
            raise ConfigurationError(
                "MASTER_PRIVATE_KEY_ENCRYPTED is set but MASTER_KEY is missing"
            )

        from gaspump.crypto import SecretCipher, SecretDecryptionError

        try:
            return SecretCipher(self.master_key).decrypt(self.master_private_key_encrypted)
        except SecretDecryptionError as e:
            raise ConfigurationError(f"Cannot decrypt owner signing key: {e}") from e

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        chains = {}
        for code in ("ETH", "MATIC", "BSC", "CELO", "ONE", "KLAY"):
            chains[code] = {
                "rpc": self.get_rpc_url(code) or "(not set)",
                "hot_wallet": self.get_hot_wallet(code) or "(not set)",
                "token": self.get_token_address(code) or "(not tracked)",
            }

        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "default_chain": self.default_chain,
            "owner": self.gas_pump_master or "(not set)",
            "tatum_api_key": "***" if self.tatum_api_key.get_secret_value() else "(not set)",
            "signature_id": "***" if self.signature_id.get_secret_value() else "(not set)",
            "signing_key": (
                "***"
                if self.master_private_key.get_secret_value() or self.master_private_key_encrypted
                else "(not set)"
            ),
            "http_timeout": self.http_timeout,
            "chains": chains,
            "sweep": {
                "dust_floor": str(self.sweep_dust_floor),
                "poll_interval": self.deployment_poll_interval,
                "poll_attempts": self.deployment_poll_attempts,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
