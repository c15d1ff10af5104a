"""Market aggregation: fans adapter calls out across protocol x chain pairs."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, Sequence

from ..config import AppConfig
from ..interfaces.chain import ConnectionProvider
from ..interfaces.protocol_adapter import ProtocolAdapter
from ..models import Chain, CollateralToken, LendingMarket, Protocol
from ..protocols import AaveAdapter, FluidAdapter, MorphoAdapter
from ..protocols.base import policy_from_config
from ..retry import RetryExecutor, RetryPolicy
from ..rpc import EndpointSelector

logger = logging.getLogger(__name__)

DEFAULT_FETCH_POLICY = RetryPolicy(max_retries=2, base_delay=1.5)

# Registry of protocol adapter factories keyed by protocol name.
_PROTOCOL_FACTORIES: dict[str, Callable[[ConnectionProvider, AppConfig], Any]] = {
    "aave": lambda selector, cfg: AaveAdapter(selector, cfg),
    "morpho": lambda selector, cfg: MorphoAdapter(selector, cfg),
    "fluid": lambda selector, cfg: FluidAdapter(selector, cfg),
}


def _configured(config: AppConfig, name: str) -> bool:
    if name == "aave":
        return bool(config.aave)
    if name == "morpho":
        return bool(config.morpho.deployments)
    if name == "fluid":
        return bool(config.fluid.deployments)
    return False


def filter_markets(
    markets: Iterable[LendingMarket],
    chain: Chain | None = None,
    protocol: Protocol | None = None,
) -> list[LendingMarket]:
    """Narrow a market list to one chain and/or protocol (None = all)."""
    return [
        m for m in markets
        if (chain is None or m.chain == chain)
        and (protocol is None or m.protocol == protocol)
    ]


class MarketAggregator:
    """Fetches markets from every adapter concurrently.

    A failing adapter/chain task contributes an empty list; it never aborts
    or cancels its siblings. Result order across tasks is unspecified.
    """

    def __init__(
        self,
        adapters: Sequence[ProtocolAdapter],
        executor: RetryExecutor | None = None,
        policy: RetryPolicy = DEFAULT_FETCH_POLICY,
    ) -> None:
        self._adapters = list(adapters)
        self._executor = executor or RetryExecutor()
        self._policy = policy

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        selector: ConnectionProvider | None = None,
    ) -> "MarketAggregator":
        """Build the selector and one adapter per configured protocol."""
        selector = selector or EndpointSelector.from_config(config.chains)
        adapters: list[ProtocolAdapter] = []
        for name, factory in _PROTOCOL_FACTORIES.items():
            if _configured(config, name):
                adapters.append(factory(selector, config))
            else:
                logger.info("Protocol '%s' has no deployments configured", name)
        return cls(adapters, policy=policy_from_config(config.aggregator_retry))

    @property
    def adapters(self) -> list[ProtocolAdapter]:
        return list(self._adapters)

    async def _fetch_with_retry(
        self, adapter: ProtocolAdapter, collateral: CollateralToken, chain: Chain
    ) -> list[LendingMarket]:
        name = adapter.protocol_name

        def _on_retry(attempt: int, error: Exception) -> None:
            logger.warning("[%s/%s] Retry %d: %s", name, chain.value, attempt, error)

        try:
            return await self._executor.execute(
                lambda: adapter.fetch_markets(collateral, chain),
                self._policy,
                _on_retry,
            )
        except Exception as e:
            logger.error("Error fetching from %s on %s: %s", name, chain.value, e)
            return []

    async def _fetch_once(
        self, adapter: ProtocolAdapter, collateral: CollateralToken, chain: Chain
    ) -> list[LendingMarket]:
        try:
            return await adapter.fetch_markets(collateral, chain)
        except Exception as e:
            logger.error(
                "Error fetching from %s on %s: %s", adapter.protocol_name, chain.value, e
            )
            return []

    async def fetch_all_markets(self, collateral: CollateralToken) -> list[LendingMarket]:
        """Fetch ``collateral`` markets from every adapter on every supported chain."""
        tasks = [
            self._fetch_with_retry(adapter, collateral, chain)
            for adapter in self._adapters
            for chain in adapter.supported_chains()
        ]
        results = await asyncio.gather(*tasks)

        markets = [market for batch in results for market in batch]
        logger.info(
            "Fetched %d markets for %s from %d protocol/chain pairs",
            len(markets), collateral.value, len(tasks),
        )
        return markets

    async def fetch_markets_by_chain(
        self, collateral: CollateralToken, chain: Chain
    ) -> list[LendingMarket]:
        """Fetch ``collateral`` markets on one chain from all adapters in parallel."""
        results = await asyncio.gather(
            *(self._fetch_once(adapter, collateral, chain) for adapter in self._adapters)
        )
        return [market for batch in results for market in batch]

    def supported_chains(self) -> list[Chain]:
        """Union of adapter chains, in first-seen order."""
        chains: dict[Chain, None] = {}
        for adapter in self._adapters:
            for chain in adapter.supported_chains():
                chains.setdefault(chain, None)
        return list(chains)

    def protocols(self) -> list[str]:
        return [adapter.protocol_name for adapter in self._adapters]
