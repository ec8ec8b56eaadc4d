"""Pytest configuration and fixtures."""

import os
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["ADMIN_TOKEN"] = ""

from gaspump.chains import ChainProfile
from gaspump.config import Settings
from gaspump.ledger.models import Base, ManagedWallet
from gaspump.ledger.repository import WalletStore
from gaspump.providers.factory import reset_provider
from gaspump.services.balances import TokenBalance
from gaspump.utils.locks import reset_store_lock

OWNER = "0x00000000000000000000000000000000000000aa"
HOT_WALLET = "0x00000000000000000000000000000000000000bb"
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


@pytest.fixture(autouse=True)
def _fresh_singletons():
    """Each test gets its own store lock and provider."""
    reset_store_lock()
    reset_provider()
    yield
    reset_store_lock()
    reset_provider()


def make_settings(**overrides) -> Settings:
    """Settings isolated from the real environment and .env file."""
    values = dict(
        tatum_api_key="test-api-key",
        gas_pump_master=OWNER,
        hot_wallet_eth=HOT_WALLET,
        deployment_poll_interval=10.0,
        deployment_poll_attempts=6,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def eth_profile() -> ChainProfile:
    return ChainProfile(
        code="ETH",
        symbol="ETH",
        rpc_url="http://eth.test",
        chain_id=1,
        hot_wallet=HOT_WALLET,
        token_address=None,
        explorer_url="https://etherscan.io/tx",
    )


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def store(db_engine) -> WalletStore:
    """Wallet store backed by the in-memory database."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return WalletStore(session_factory)


class FakeInspector:
    """Balance inspector with canned balances and bytecode answers."""

    def __init__(
        self,
        native: Optional[dict[str, str]] = None,
        tokens: Optional[dict[str, str]] = None,
        codes: Optional[list[str]] = None,
    ):
        self.native = native or {}
        self.tokens = tokens or {}
        self.codes = list(codes or [])
        self.native_reads = 0
        self.code_checks = 0
        self.token_reads = 0

    async def native_balance(self, profile, address):
        self.native_reads += 1
        return self.native.get(address, "0.0")

    async def token_balance(self, token_address, address, profile):
        self.token_reads += 1
        formatted = self.tokens.get(address, "0.0")
        return TokenBalance(raw=0, decimals=6, formatted=formatted)

    async def get_code(self, profile, address):
        self.code_checks += 1
        if self.codes:
            return self.codes.pop(0)
        return "0x"


class FakeSleep:
    """Records requested sleeps instead of waiting."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


def make_wallet(index: int, address: Optional[str] = None, chain: str = "ETH", **kwargs) -> ManagedWallet:
    return ManagedWallet(
        address=address or f"0x{index + 1:040x}",
        index=index,
        chain=chain,
        confirmed_deployed=True,
        **kwargs,
    )
