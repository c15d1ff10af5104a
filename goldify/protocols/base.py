"""Contract reads routed through endpoint selection and retry."""
from __future__ import annotations

import logging
from typing import Any

from ..chains.evm.abi import ERC20_DECIMALS, ContractFunction
from ..config import RetryConfig
from ..interfaces.chain import ConnectionProvider
from ..models import Chain
from ..retry import RetryExecutor, RetryPolicy

logger = logging.getLogger(__name__)


def policy_from_config(cfg: RetryConfig) -> RetryPolicy:
    return RetryPolicy(
        max_retries=cfg.max_retries, base_delay=cfg.base_delay, max_delay=cfg.max_delay
    )


class ContractReader:
    """Performs one view call per ``call``: select a live endpoint, then eth_call.

    Each retry re-selects the connection, so a retry after a dead endpoint
    lands on the next healthy one.
    """

    def __init__(
        self,
        selector: ConnectionProvider,
        policy: RetryPolicy,
        executor: RetryExecutor | None = None,
        label: str = "",
    ) -> None:
        self._selector = selector
        self._policy = policy
        self._executor = executor or RetryExecutor()
        self._label = label

    async def call(
        self, chain: Chain, address: str, function: ContractFunction, *args: Any
    ) -> tuple[Any, ...]:
        async def _operation() -> tuple[Any, ...]:
            client = await self._selector.get_connection(chain)
            return await client.call(address, function, *args)

        def _on_retry(attempt: int, error: Exception) -> None:
            logger.warning(
                "[%s/%s] %s retry %d: %s",
                self._label, chain.value, function.name, attempt, error,
            )

        return await self._executor.execute(_operation, self._policy, _on_retry)

    async def decimals(self, chain: Chain, token: str) -> int:
        (value,) = await self.call(chain, token, ERC20_DECIMALS)
        return int(value)
