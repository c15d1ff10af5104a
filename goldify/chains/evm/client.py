"""EVM JSON-RPC client bound to a single endpoint."""
from __future__ import annotations

import asyncio
import itertools
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...errors import RpcError
from .abi import ContractFunction

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT = 15.0

_request_ids = itertools.count(1)


class EvmClient:
    """Read-only EVM client speaking JSON-RPC to one endpoint.

    Endpoint failover lives in :class:`~goldify.rpc.EndpointSelector`; this
    client only bounds every request with a timeout and turns transport
    failures into :class:`RpcError`.
    """

    def __init__(self, endpoint: str, timeout: float = DEFAULT_CALL_TIMEOUT) -> None:
        self.endpoint = endpoint
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"EvmClient({self.endpoint!r})"

    async def rpc_call(
        self, method: str, params: list[Any], timeout: float | None = None
    ) -> Any:
        """Make a single JSON-RPC call and return its ``result`` field."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(_request_ids),
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        try:
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.endpoint,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=timeout or self.timeout),
                ) as response:
                    if response.status != 200:
                        raise RpcError(
                            f"{self.endpoint} returned HTTP {response.status} for {method}"
                        )
                    result = await response.json(content_type=None)
        except RpcError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise RpcError(f"{self.endpoint} {method} failed: {e!r}") from e

        if not isinstance(result, dict):
            raise RpcError(f"{self.endpoint} returned a malformed response for {method}")
        if "error" in result:
            raise RpcError(f"RPC Error from {self.endpoint}: {result['error']}")

        return result.get("result")

    async def block_number(self, timeout: float | None = None) -> int:
        """Current block height; doubles as the liveness probe."""
        result = await self.rpc_call("eth_blockNumber", [], timeout=timeout)
        try:
            return int(result, 16)
        except (TypeError, ValueError) as e:
            raise RpcError(f"Invalid block number from {self.endpoint}: {result!r}") from e

    async def call(
        self, address: str, function: ContractFunction, *args: Any
    ) -> tuple[Any, ...]:
        """``eth_call`` a view function at the latest block and decode it."""
        data = function.encode_call(*args)
        result = await self.rpc_call(
            "eth_call", [{"to": address, "data": data}, "latest"]
        )
        logger.debug("eth_call %s on %s → %s", function.signature, address, result)
        return function.decode_result(result)
