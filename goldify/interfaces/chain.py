"""Chain client protocol — EVM RPC abstraction."""
from typing import Any, Protocol

from ..chains.evm.abi import ContractFunction
from ..models import Chain


class ChainClient(Protocol):
    """Abstract interface for read-only blockchain RPC interactions."""

    endpoint: str

    async def block_number(self, timeout: float | None = None) -> int: ...

    async def call(
        self, address: str, function: ContractFunction, *args: Any
    ) -> tuple[Any, ...]: ...


class ConnectionProvider(Protocol):
    """Hands out a live client for a chain (see ``EndpointSelector``)."""

    async def get_connection(self, chain: Chain) -> ChainClient: ...
