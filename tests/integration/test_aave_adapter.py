"""Integration tests for the Aave adapter with a mocked chain client."""
from __future__ import annotations

import dataclasses
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from goldify.config import AppConfig
from goldify.errors import ConfigurationError, RpcError
from goldify.models import Chain, CollateralToken, Protocol
from goldify.protocols.aave import AaveAdapter
from goldify.retry import RetryExecutor

RAY = 10**27


def _reserve_config(ltv: int, threshold: int) -> tuple:
    return (18, ltv, threshold, 10500, 1000, True, True, False, True, False)


def _reserve_data(available: int, variable_rate: int) -> tuple:
    return (available, 0, 0, 0, variable_rate, 0, 0, RAY, RAY, 1_700_000_000)


@pytest.fixture()
def adapter(
    mock_selector: MagicMock,
    sample_app_config: AppConfig,
    no_sleep_executor: RetryExecutor,
) -> AaveAdapter:
    return AaveAdapter(mock_selector, sample_app_config, executor=no_sleep_executor)


@pytest.fixture()
def addresses(sample_app_config: AppConfig) -> dict[str, str]:
    tokens = sample_app_config.tokens["ethereum"]
    return {**tokens.collateral, **tokens.borrow}


class TestAaveAdapter:
    def test_protocol_name(self, adapter: AaveAdapter) -> None:
        assert adapter.protocol_name == "Aave"

    def test_supported_chains(self, adapter: AaveAdapter) -> None:
        assert adapter.supported_chains() == [Chain.ETHEREUM]

    @pytest.mark.asyncio
    async def test_full_market_flow(
        self,
        adapter: AaveAdapter,
        mock_chain_client: MagicMock,
        contract_responder: Callable[..., Any],
        addresses: dict[str, str],
    ) -> None:
        reserves = {
            addresses["USDC"]: _reserve_data(2_500_000 * 10**6, 45 * 10**24),
            addresses["USDT"]: _reserve_data(750_000 * 10**6, 3 * 10**25),
        }
        mock_chain_client.call.side_effect = contract_responder(
            {
                "getReserveConfigurationData": _reserve_config(7500, 8000),
                "getReserveData": lambda _, asset: reserves[asset],
                "decimals": (6,),
            }
        )

        markets = await adapter.fetch_markets(CollateralToken.XAUT, Chain.ETHEREUM)

        assert len(markets) == 1
        market = markets[0]
        assert market.protocol is Protocol.AAVE
        assert market.collateral_address == addresses["XAUT"]
        assert market.max_ltv == 0.75
        assert market.liquidation_threshold == 0.80
        assert market.safety_buffer == pytest.approx(0.05)
        by_symbol = {a.symbol: a for a in market.borrow_assets}
        assert by_symbol["USDC"].available_liquidity == 2_500_000.0
        assert by_symbol["USDC"].borrow_apr == 4.5
        assert by_symbol["USDT"].borrow_apr == 3.0
        assert by_symbol["USDT"].decimals == 6

    @pytest.mark.asyncio
    async def test_failed_borrow_asset_is_omitted(
        self,
        adapter: AaveAdapter,
        mock_chain_client: MagicMock,
        contract_responder: Callable[..., Any],
        addresses: dict[str, str],
    ) -> None:
        def reserve_data(_: str, asset: str) -> Any:
            if asset == addresses["USDT"]:
                return RpcError("execution reverted")
            return _reserve_data(10**12, 5 * 10**25)

        mock_chain_client.call.side_effect = contract_responder(
            {
                "getReserveConfigurationData": _reserve_config(7000, 7500),
                "getReserveData": reserve_data,
                "decimals": (6,),
            }
        )

        (market,) = await adapter.fetch_markets(CollateralToken.XAUT, Chain.ETHEREUM)

        assert [a.symbol for a in market.borrow_assets] == ["USDC"]

    @pytest.mark.asyncio
    async def test_transient_error_retried(
        self,
        adapter: AaveAdapter,
        mock_chain_client: MagicMock,
        contract_responder: Callable[..., Any],
    ) -> None:
        config_results = [RpcError("timeout"), _reserve_config(7500, 8000)]
        mock_chain_client.call.side_effect = contract_responder(
            {
                "getReserveConfigurationData": lambda *_: config_results.pop(0),
                "getReserveData": _reserve_data(10**12, 5 * 10**25),
                "decimals": (6,),
            }
        )

        markets = await adapter.fetch_markets(CollateralToken.XAUT, Chain.ETHEREUM)

        assert len(markets) == 1
        assert config_results == []

    @pytest.mark.asyncio
    async def test_configuration_call_exhausted_returns_empty(
        self, adapter: AaveAdapter, mock_chain_client: MagicMock
    ) -> None:
        mock_chain_client.call.side_effect = RpcError("down")

        markets = await adapter.fetch_markets(CollateralToken.XAUT, Chain.ETHEREUM)

        assert markets == []
        # one initial attempt plus one retry
        assert mock_chain_client.call.await_count == 2

    @pytest.mark.asyncio
    async def test_unsupported_chain_returns_empty(
        self, adapter: AaveAdapter, mock_selector: MagicMock
    ) -> None:
        assert await adapter.fetch_markets(CollateralToken.XAUT, Chain.POLYGON) == []
        mock_selector.get_connection.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_collateral_returns_empty(
        self, adapter: AaveAdapter, mock_selector: MagicMock
    ) -> None:
        assert await adapter.fetch_markets(CollateralToken.KAU, Chain.ETHEREUM) == []
        mock_selector.get_connection.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_selector_configuration_error_not_retried(
        self, adapter: AaveAdapter, mock_selector: MagicMock
    ) -> None:
        mock_selector.get_connection.side_effect = ConfigurationError("no endpoints")

        assert await adapter.fetch_markets(CollateralToken.XAUT, Chain.ETHEREUM) == []
        mock_selector.get_connection.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_inconsistent_market_still_returned(
        self,
        adapter: AaveAdapter,
        mock_chain_client: MagicMock,
        contract_responder: Callable[..., Any],
    ) -> None:
        mock_chain_client.call.side_effect = contract_responder(
            {
                "getReserveConfigurationData": _reserve_config(8500, 8000),
                "getReserveData": _reserve_data(10**12, 5 * 10**25),
                "decimals": (6,),
            }
        )

        (market,) = await adapter.fetch_markets(CollateralToken.XAUT, Chain.ETHEREUM)

        assert not market.is_consistent

    def test_deployment_without_data_provider_skipped(
        self, mock_selector: MagicMock, sample_app_config: AppConfig
    ) -> None:
        config = dataclasses.replace(
            sample_app_config,
            aave={
                **sample_app_config.aave,
                "arbitrum": dataclasses.replace(
                    sample_app_config.aave["ethereum"], data_provider=""
                ),
            },
        )
        assert AaveAdapter(mock_selector, config).supported_chains() == [Chain.ETHEREUM]
