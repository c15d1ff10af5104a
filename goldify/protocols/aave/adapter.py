"""Aave V3 protocol adapter — reads reserve configuration and borrow reserves."""
from __future__ import annotations

import asyncio
import logging

from ...chains.evm.abi import ContractFunction
from ...config import AaveDeploymentConfig, AppConfig
from ...interfaces.chain import ConnectionProvider
from ...models import BorrowAsset, Chain, CollateralToken, LendingMarket, Protocol
from ...retry import RetryExecutor
from ..base import ContractReader, policy_from_config
from . import parser

logger = logging.getLogger(__name__)

GET_RESERVE_CONFIGURATION_DATA = ContractFunction(
    "getReserveConfigurationData",
    ("address",),
    (
        "uint256",  # decimals
        "uint256",  # ltv
        "uint256",  # liquidationThreshold
        "uint256",  # liquidationBonus
        "uint256",  # reserveFactor
        "bool",  # usageAsCollateralEnabled
        "bool",  # borrowingEnabled
        "bool",  # stableBorrowRateEnabled
        "bool",  # isActive
        "bool",  # isFrozen
    ),
)

GET_RESERVE_DATA = ContractFunction(
    "getReserveData",
    ("address",),
    (
        "uint256",  # availableLiquidity
        "uint256",  # totalStableDebt
        "uint256",  # totalVariableDebt
        "uint256",  # liquidityRate
        "uint256",  # variableBorrowRate
        "uint256",  # stableBorrowRate
        "uint256",  # averageStableBorrowRate
        "uint256",  # liquidityIndex
        "uint256",  # variableBorrowIndex
        "uint40",  # lastUpdateTimestamp
    ),
)


class AaveAdapter:
    """Fetch Aave V3 borrow markets for a gold collateral."""

    def __init__(
        self,
        selector: ConnectionProvider,
        config: AppConfig,
        executor: RetryExecutor | None = None,
    ) -> None:
        self._reader = ContractReader(
            selector, policy_from_config(config.call_retry), executor, label="Aave"
        )
        self._deployments: dict[Chain, AaveDeploymentConfig] = {
            Chain.parse(name): d for name, d in config.aave.items() if d.data_provider
        }
        self._collateral: dict[Chain, dict[str, str]] = {}
        self._borrow_assets: dict[Chain, dict[str, str]] = {}
        for name, tokens in config.tokens.items():
            chain = Chain.parse(name)
            self._collateral[chain] = dict(tokens.collateral)
            self._borrow_assets[chain] = dict(tokens.borrow)

    @property
    def protocol_name(self) -> str:
        return Protocol.AAVE.value

    def supported_chains(self) -> list[Chain]:
        return list(self._deployments)

    async def fetch_markets(
        self, collateral: CollateralToken, chain: Chain
    ) -> list[LendingMarket]:
        deployment = self._deployments.get(chain)
        if deployment is None:
            logger.warning("Chain %s not supported by Aave adapter", chain.value)
            return []

        collateral_address = self._collateral.get(chain, {}).get(collateral.value)
        if not collateral_address:
            logger.warning(
                "Collateral %s not found on %s for Aave", collateral.value, chain.value
            )
            return []

        logger.info("[Aave] Fetching %s market on %s", collateral.value, chain.value)

        try:
            config_words = await self._reader.call(
                chain,
                deployment.data_provider,
                GET_RESERVE_CONFIGURATION_DATA,
                collateral_address,
            )
            max_ltv, liquidation_threshold = parser.parse_reserve_configuration(
                config_words
            )
            logger.info(
                "[Aave] %s on %s: LTV %.2f%%, liquidation %.2f%%",
                collateral.value, chain.value,
                max_ltv * 100, liquidation_threshold * 100,
            )
            borrow_assets = await self._fetch_borrow_assets(chain, deployment)
        except Exception as e:
            logger.error(
                "[Aave] Error fetching market for %s on %s: %s",
                collateral.value, chain.value, e,
            )
            return []

        market = LendingMarket(
            protocol=Protocol.AAVE,
            chain=chain,
            collateral=collateral,
            collateral_address=collateral_address,
            borrow_assets=tuple(borrow_assets),
            max_ltv=max_ltv,
            liquidation_threshold=liquidation_threshold,
        )
        if not market.is_consistent:
            logger.warning(
                "[Aave] %s on %s reports liquidation threshold below max LTV",
                collateral.value, chain.value,
            )
        logger.info(
            "[Aave] Fetched %d borrow assets for %s on %s",
            len(borrow_assets), collateral.value, chain.value,
        )
        return [market]

    async def _fetch_borrow_asset(
        self, chain: Chain, deployment: AaveDeploymentConfig, symbol: str, address: str
    ) -> BorrowAsset | None:
        try:
            reserve_words, decimals = await asyncio.gather(
                self._reader.call(chain, deployment.data_provider, GET_RESERVE_DATA, address),
                self._reader.decimals(chain, address),
            )
            asset = parser.build_borrow_asset(symbol, address, reserve_words, decimals)
        except Exception as e:
            logger.error("[Aave] Error fetching data for %s on %s: %s", symbol, chain.value, e)
            return None

        logger.info(
            "[Aave] %s: APR=%.2f%%, liquidity=%s",
            symbol, asset.borrow_apr, f"{asset.available_liquidity:,.2f}",
        )
        return asset

    async def _fetch_borrow_assets(
        self, chain: Chain, deployment: AaveDeploymentConfig
    ) -> list[BorrowAsset]:
        """Fetch every configured borrow asset; failed assets are omitted."""
        assets = self._borrow_assets.get(chain, {})
        results = await asyncio.gather(
            *(
                self._fetch_borrow_asset(chain, deployment, symbol, address)
                for symbol, address in assets.items()
            )
        )
        return [asset for asset in results if asset is not None]
