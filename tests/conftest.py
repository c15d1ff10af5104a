"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from goldify.chains.evm.abi import ContractFunction
from goldify.config import (
    AaveDeploymentConfig,
    AppConfig,
    ChainConfig,
    FluidConfig,
    FluidVaultConfig,
    MorphoConfig,
    MorphoMarketConfig,
    RetryConfig,
    TokenConfig,
)
from goldify.models import (
    BorrowAsset,
    Chain,
    CollateralToken,
    LendingMarket,
    Protocol,
)
from goldify.retry import RetryExecutor

XAUT = "0x68749665FF8D2d112Fa859AA293F07A622782F38"
PAXG = "0x45804880De22913dAFE09f4980848ECE6EcbAf78"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
DATA_PROVIDER = "0x7B4EB56E7CD4b454BA8ff71E4518426369a138a3"
MORPHO = "0xBBBBBbbBBb9cC5e90e3b3Af64bdAF62C37EEFFCb"
MORPHO_MARKET_ID = "0x" + "ab" * 32
FLUID_VAULT = "0x0000000000000000000000000000000000000001"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
        probe_timeout=2.0,
    )


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(
        chains={"ethereum": sample_chain_config},
        tokens={
            "ethereum": TokenConfig(
                collateral={"XAUT": XAUT, "PAXG": PAXG},
                borrow={"USDC": USDC, "USDT": USDT},
            )
        },
        aave={
            "ethereum": AaveDeploymentConfig(pool="0xPOOL", data_provider=DATA_PROVIDER)
        },
        morpho=MorphoConfig(
            deployments={"ethereum": MORPHO},
            markets=(
                MorphoMarketConfig(
                    market_id=MORPHO_MARKET_ID,
                    chain="ethereum",
                    collateral="XAUT",
                    loan_token="USDC",
                    lltv=0.80,
                ),
            ),
        ),
        fluid=FluidConfig(
            deployments={"ethereum": "0xFLUID"},
            vaults=(
                FluidVaultConfig(
                    vault_address=FLUID_VAULT,
                    chain="ethereum",
                    collateral="XAUT",
                    loan_token="USDC",
                    max_ltv=0.75,
                    liquidation_threshold=0.80,
                ),
            ),
        ),
        call_retry=RetryConfig(max_retries=1, base_delay=0.0, max_delay=0.0),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


def _make_asset(
    symbol: str = "USDC",
    borrow_apr: float = 4.0,
    available_liquidity: float = 500_000.0,
) -> BorrowAsset:
    return BorrowAsset(
        symbol=symbol,
        address=USDC,
        borrow_apr=borrow_apr,
        available_liquidity=available_liquidity,
        decimals=6,
    )


def _make_market(
    protocol: Protocol = Protocol.AAVE,
    chain: Chain = Chain.ETHEREUM,
    assets: tuple[BorrowAsset, ...] | None = None,
    max_ltv: float = 0.70,
    liquidation_threshold: float = 0.75,
) -> LendingMarket:
    return LendingMarket(
        protocol=protocol,
        chain=chain,
        collateral=CollateralToken.XAUT,
        collateral_address=XAUT,
        borrow_assets=assets if assets is not None else (_make_asset(),),
        max_ltv=max_ltv,
        liquidation_threshold=liquidation_threshold,
    )


@pytest.fixture()
def sample_market() -> LendingMarket:
    return _make_market()


@pytest.fixture()
def make_asset() -> Callable[..., BorrowAsset]:
    return _make_asset


@pytest.fixture()
def make_market() -> Callable[..., LendingMarket]:
    return _make_market


# ---------------------------------------------------------------------------
# Chain client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def no_sleep_executor() -> RetryExecutor:
    return RetryExecutor(sleep=AsyncMock(), rand=lambda: 0.0)


def _contract_responder(responses: dict[str, Any]) -> Callable[..., Any]:
    """Build a side effect for ``client.call`` keyed by function name.

    A response that is an exception instance is raised instead of returned.
    """

    async def _call(address: str, function: ContractFunction, *args: Any) -> Any:
        response = responses[function.name]
        if callable(response):
            response = response(address, *args)
        if isinstance(response, Exception):
            raise response
        return response

    return _call


@pytest.fixture()
def contract_responder() -> Callable[[dict[str, Any]], Callable[..., Any]]:
    return _contract_responder


@pytest.fixture()
def mock_chain_client() -> MagicMock:
    client = MagicMock()
    client.endpoint = "https://rpc1.example.com"
    client.block_number = AsyncMock(return_value=19_000_000)
    client.call = AsyncMock()
    return client


@pytest.fixture()
def mock_selector(mock_chain_client: MagicMock) -> MagicMock:
    selector = MagicMock()
    selector.get_connection = AsyncMock(return_value=mock_chain_client)
    return selector


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chains:
      ethereum:
        rpc_endpoints: ["https://rpc.example.com", ""]
        rpc_timeout: 10
        probe_timeout: 3
      arbitrum:
        rpc_endpoints: ["https://arb.example.com"]
    tokens:
      ethereum:
        collateral: {XAUT: "0xXAUT", PAXG: "0xPAXG"}
        borrow: {USDC: "0xUSDC"}
    aave:
      ethereum:
        pool: "0xPOOL"
        data_provider: "0xDATA"
    morpho:
      deployments: {ethereum: "0xMORPHO"}
      markets:
        - id: "0x01"
          chain: ethereum
          collateral: XAUT
          loan_token: USDC
          lltv: 0.86
    fluid:
      deployments: {ethereum: "0xFLUID"}
      vaults:
        - address: "0xVAULT"
          chain: ethereum
          collateral: PAXG
          loan_token: USDC
          max_ltv: 0.75
          liquidation_threshold: 0.80
    retry:
      calls: {max_retries: 4, base_delay: 0.5}
      aggregator: {max_retries: 1}
    criteria:
      min_liquidity: 5000
      max_apr: 12
      min_liquidation_buffer: 0.04
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
