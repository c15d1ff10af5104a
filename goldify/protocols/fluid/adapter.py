"""Fluid protocol adapter — vault loan-token balance as available liquidity."""
from __future__ import annotations

import logging

from ...chains.evm.abi import ERC20_BALANCE_OF
from ...config import AppConfig
from ...interfaces.chain import ConnectionProvider
from ...interfaces.market_registry import MarketRegistry
from ...models import BorrowAsset, Chain, CollateralToken, LendingMarket, Protocol
from ...registry import FluidVaultDescriptor, fluid_registry_from_config
from ...retry import RetryExecutor
from ...units import from_units
from ..base import ContractReader, policy_from_config
from . import parser

logger = logging.getLogger(__name__)


class FluidAdapter:
    """Fetch Fluid vault markets listed in a vault registry."""

    def __init__(
        self,
        selector: ConnectionProvider,
        config: AppConfig,
        registry: MarketRegistry[FluidVaultDescriptor] | None = None,
        apr_model: parser.AprModel = parser.tiered_liquidity_apr,
        executor: RetryExecutor | None = None,
    ) -> None:
        self._reader = ContractReader(
            selector, policy_from_config(config.call_retry), executor, label="Fluid"
        )
        self._deployments: dict[Chain, str] = {
            Chain.parse(name): address
            for name, address in config.fluid.deployments.items()
            if address
        }
        self._registry = (
            registry if registry is not None else fluid_registry_from_config(config)
        )
        self._apr_model = apr_model

    @property
    def protocol_name(self) -> str:
        return Protocol.FLUID.value

    def supported_chains(self) -> list[Chain]:
        return list(self._deployments)

    async def fetch_markets(
        self, collateral: CollateralToken, chain: Chain
    ) -> list[LendingMarket]:
        if chain not in self._deployments:
            logger.warning("Chain %s not supported by Fluid adapter", chain.value)
            return []

        try:
            vaults = self._registry.lookup(collateral, chain)
        except Exception as e:
            logger.error("[Fluid] Vault registry lookup failed: %s", e)
            return []

        if not vaults:
            logger.warning(
                "No Fluid vaults found for %s on %s", collateral.value, chain.value
            )
            return []

        markets: list[LendingMarket] = []
        for vault in vaults:
            try:
                markets.append(await self._fetch_vault(vault))
            except Exception as e:
                logger.error("[Fluid] Error fetching vault %s: %s", vault.vault_address, e)

        return markets

    async def _fetch_vault(self, vault: FluidVaultDescriptor) -> LendingMarket:
        decimals = await self._reader.decimals(vault.chain, vault.loan_address)
        (balance,) = await self._reader.call(
            vault.chain, vault.loan_address, ERC20_BALANCE_OF, vault.vault_address
        )
        available = from_units(balance, decimals)

        market = LendingMarket(
            protocol=Protocol.FLUID,
            chain=vault.chain,
            collateral=vault.collateral,
            collateral_address=vault.collateral_address,
            borrow_assets=(
                BorrowAsset(
                    symbol=vault.loan_symbol,
                    address=vault.loan_address,
                    borrow_apr=self._apr_model(available),
                    available_liquidity=available,
                    decimals=decimals,
                ),
            ),
            max_ltv=vault.max_ltv,
            liquidation_threshold=vault.liquidation_threshold,
        )
        if not market.is_consistent:
            logger.warning(
                "[Fluid] Vault %s liquidation threshold %.2f is below max LTV %.2f",
                vault.vault_address, vault.liquidation_threshold, vault.max_ltv,
            )
        return market
