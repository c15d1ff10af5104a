"""RPC endpoint failover with a per-chain last-good cache."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping, Sequence
from urllib.parse import urlparse

from ..chains.evm.client import DEFAULT_CALL_TIMEOUT, EvmClient
from ..config import ChainConfig
from ..errors import ConfigurationError
from ..interfaces.chain import ChainClient
from ..models import Chain

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0

ClientFactory = Callable[[str], ChainClient]


def _host(url: str) -> str:
    return urlparse(url).hostname or url


class EndpointSelector:
    """Return a verified client per chain, trying endpoints in priority order.

    A cached client is re-probed (``eth_blockNumber``) on every request and
    dropped, together with its last-good record, when the probe fails; the
    failed endpoint is not retried within the same request.
    Candidates are tried last-good first, then in configured order. When
    nothing answers, a best-effort client for the first configured endpoint
    is returned so callers fail on their own error paths instead of here.
    """

    def __init__(
        self,
        endpoints: Mapping[Chain, Sequence[str]],
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        client_factory: ClientFactory | None = None,
        probe_timeouts: Mapping[Chain, float] | None = None,
    ) -> None:
        self._endpoints: dict[Chain, tuple[str, ...]] = {
            chain: tuple(urls) for chain, urls in endpoints.items()
        }
        self._probe_timeout = probe_timeout
        self._probe_timeouts = dict(probe_timeouts or {})
        self._client_factory: ClientFactory = client_factory or EvmClient
        self._cache: dict[Chain, ChainClient] = {}
        self._last_good: dict[Chain, str] = {}
        self._locks: dict[Chain, asyncio.Lock] = {}

    @classmethod
    def from_config(cls, chains: Mapping[str, ChainConfig]) -> "EndpointSelector":
        """Build from the ``chains`` config section, one timeout per chain."""
        endpoints: dict[Chain, tuple[str, ...]] = {}
        timeouts: dict[str, float] = {}
        probe_timeouts: dict[Chain, float] = {}
        for name, chain_cfg in chains.items():
            chain = Chain.parse(name)
            endpoints[chain] = chain_cfg.rpc_endpoints
            for url in chain_cfg.rpc_endpoints:
                timeouts[url] = float(chain_cfg.rpc_timeout)
            probe_timeouts[chain] = float(chain_cfg.probe_timeout)

        def factory(url: str) -> ChainClient:
            return EvmClient(url, timeout=timeouts.get(url, DEFAULT_CALL_TIMEOUT))

        return cls(endpoints, client_factory=factory, probe_timeouts=probe_timeouts)

    @property
    def chains(self) -> list[Chain]:
        return [chain for chain, urls in self._endpoints.items() if urls]

    def last_good_endpoint(self, chain: Chain) -> str | None:
        return self._last_good.get(chain)

    def clear_cache(self, chain: Chain | None = None) -> None:
        """Forget cached connections for one chain, or for all of them."""
        if chain is None:
            self._cache.clear()
            self._last_good.clear()
        else:
            self._cache.pop(chain, None)
            self._last_good.pop(chain, None)

    def _lock(self, chain: Chain) -> asyncio.Lock:
        lock = self._locks.get(chain)
        if lock is None:
            lock = self._locks[chain] = asyncio.Lock()
        return lock

    def _candidates(self, chain: Chain, skip: str | None = None) -> list[str]:
        configured = [url for url in self._endpoints[chain] if url != skip]
        last_good = self._last_good.get(chain)
        if last_good and last_good in configured:
            configured.remove(last_good)
            return [last_good, *configured]
        return configured

    async def _probe(self, chain: Chain, client: ChainClient) -> bool:
        timeout = self._probe_timeouts.get(chain, self._probe_timeout)
        try:
            await asyncio.wait_for(client.block_number(), timeout=timeout)
            return True
        except Exception as e:
            logger.warning("Failed to connect to %s: %s", client.endpoint, e)
            return False

    async def get_connection(self, chain: Chain) -> ChainClient:
        """Return a live client for ``chain``.

        The cached client is probed without holding the chain lock; the lock
        only guards dropping and replacing the cache entry.

        Raises:
            ConfigurationError: no endpoints are configured for the chain.
        """
        endpoints = self._endpoints.get(chain)
        if not endpoints:
            raise ConfigurationError(f"No RPC endpoints configured for {chain.value}")

        failed: str | None = None
        cached = self._cache.get(chain)
        if cached is not None:
            if await self._probe(chain, cached):
                return cached
            failed = cached.endpoint
            async with self._lock(chain):
                if self._cache.get(chain) is cached:
                    logger.warning(
                        "Cached %s connection via %s stopped responding",
                        chain.value, _host(cached.endpoint),
                    )
                    del self._cache[chain]
                    self._last_good.pop(chain, None)

        async with self._lock(chain):
            # Another caller may have connected while this one waited.
            fresh = self._cache.get(chain)
            if fresh is not None:
                return fresh

            for url in self._candidates(chain, skip=failed):
                client = self._client_factory(url)
                if await self._probe(chain, client):
                    self._cache[chain] = client
                    self._last_good[chain] = url
                    logger.info("Connected to %s via %s", chain.value, _host(url))
                    return client

        logger.error(
            "All RPC endpoints failed for %s, using %s", chain.value, _host(endpoints[0])
        )
        return self._client_factory(endpoints[0])
