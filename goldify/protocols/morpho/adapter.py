"""Morpho Blue protocol adapter — one isolated market per registry entry."""
from __future__ import annotations

import logging

from ...chains.evm.abi import ContractFunction
from ...config import AppConfig
from ...interfaces.chain import ConnectionProvider
from ...interfaces.market_registry import MarketRegistry
from ...models import BorrowAsset, Chain, CollateralToken, LendingMarket, Protocol
from ...registry import MorphoMarketDescriptor, morpho_registry_from_config
from ...retry import RetryExecutor
from ...units import wad_to_ratio
from ..base import ContractReader, policy_from_config
from . import parser

logger = logging.getLogger(__name__)

MARKET = ContractFunction(
    "market",
    ("bytes32",),
    (
        "uint128",  # totalSupplyAssets
        "uint128",  # totalSupplyShares
        "uint128",  # totalBorrowAssets
        "uint128",  # totalBorrowShares
        "uint128",  # lastUpdate
        "uint128",  # fee
    ),
)

ID_TO_MARKET_PARAMS = ContractFunction(
    "idToMarketParams",
    ("bytes32",),
    ("address", "address", "address", "address", "uint256"),
)


class MorphoAdapter:
    """Fetch Morpho Blue markets listed in a market registry."""

    def __init__(
        self,
        selector: ConnectionProvider,
        config: AppConfig,
        registry: MarketRegistry[MorphoMarketDescriptor] | None = None,
        apr_model: parser.AprModel = parser.linear_utilization_apr,
        executor: RetryExecutor | None = None,
    ) -> None:
        self._reader = ContractReader(
            selector, policy_from_config(config.call_retry), executor, label="Morpho"
        )
        self._deployments: dict[Chain, str] = {
            Chain.parse(name): address
            for name, address in config.morpho.deployments.items()
            if address
        }
        self._registry = (
            registry if registry is not None else morpho_registry_from_config(config)
        )
        self._apr_model = apr_model

    @property
    def protocol_name(self) -> str:
        return Protocol.MORPHO.value

    def supported_chains(self) -> list[Chain]:
        return list(self._deployments)

    async def fetch_markets(
        self, collateral: CollateralToken, chain: Chain
    ) -> list[LendingMarket]:
        morpho_address = self._deployments.get(chain)
        if morpho_address is None:
            logger.warning("Chain %s not supported by Morpho adapter", chain.value)
            return []

        try:
            descriptors = self._registry.lookup(collateral, chain)
        except Exception as e:
            logger.error("[Morpho] Market registry lookup failed: %s", e)
            return []

        if not descriptors:
            logger.warning(
                "No Morpho markets found for %s on %s", collateral.value, chain.value
            )
            return []

        logger.info("[Morpho] Found %d markets to fetch", len(descriptors))

        markets: list[LendingMarket] = []
        for descriptor in descriptors:
            try:
                market = await self._fetch_market(morpho_address, descriptor)
            except Exception as e:
                logger.error(
                    "[Morpho] Error fetching market %s: %s", descriptor.market_id, e
                )
                continue
            markets.append(market)

        logger.info(
            "[Morpho] Fetched %d markets for %s on %s",
            len(markets), collateral.value, chain.value,
        )
        return markets

    async def _lltv(self, morpho_address: str, descriptor: MorphoMarketDescriptor) -> float:
        if descriptor.lltv is not None:
            return descriptor.lltv
        params = await self._reader.call(
            descriptor.chain, morpho_address, ID_TO_MARKET_PARAMS, descriptor.market_id
        )
        return wad_to_ratio(params[4])

    async def _fetch_market(
        self, morpho_address: str, descriptor: MorphoMarketDescriptor
    ) -> LendingMarket:
        chain = descriptor.chain
        state = await self._reader.call(
            chain, morpho_address, MARKET, descriptor.market_id
        )
        total_supply, total_borrow = int(state[0]), int(state[2])
        decimals = await self._reader.decimals(chain, descriptor.loan_address)

        if total_borrow > total_supply:
            logger.warning(
                "[Morpho] Market %s borrows exceed supply (%d > %d)",
                descriptor.market_id, total_borrow, total_supply,
            )

        borrow_asset = BorrowAsset(
            symbol=descriptor.loan_symbol,
            address=descriptor.loan_address,
            borrow_apr=self._apr_model(total_supply, total_borrow),
            available_liquidity=parser.available_liquidity(
                total_supply, total_borrow, decimals
            ),
            decimals=decimals,
        )
        logger.info(
            "[Morpho] %s: APR=%.2f%%, liquidity=%s",
            borrow_asset.symbol, borrow_asset.borrow_apr,
            f"{borrow_asset.available_liquidity:,.2f}",
        )

        liquidation_threshold = await self._lltv(morpho_address, descriptor)
        return LendingMarket(
            protocol=Protocol.MORPHO,
            chain=chain,
            collateral=descriptor.collateral,
            collateral_address=descriptor.collateral_address,
            borrow_assets=(borrow_asset,),
            max_ltv=parser.estimate_max_ltv(liquidation_threshold),
            liquidation_threshold=liquidation_threshold,
        )
