"""Minimal ABI codec for read-only contract calls."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import decode_hex, function_signature_to_4byte_selector, to_checksum_address

from ...errors import MarketDataError


def _normalize_arg(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type.startswith("bytes") and isinstance(value, str):
        return decode_hex(value)
    return value


@dataclass(frozen=True)
class ContractFunction:
    """A view function described by its name and ABI input/output types."""

    name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, *args: Any) -> str:
        """Build ``eth_call`` calldata as a 0x-prefixed hex string."""
        if len(args) != len(self.inputs):
            raise ValueError(
                f"{self.signature} expects {len(self.inputs)} args, got {len(args)}"
            )
        values = [_normalize_arg(t, v) for t, v in zip(self.inputs, args)]
        try:
            body = encode(list(self.inputs), values) if self.inputs else b""
        except EncodingError as e:
            raise ValueError(f"Cannot encode arguments for {self.signature}: {e}") from e
        return "0x" + (self.selector + body).hex()

    def decode_result(self, data: str) -> tuple[Any, ...]:
        """Decode the hex string returned by ``eth_call``."""
        raw = decode_hex(data or "0x")
        if not raw:
            raise MarketDataError(f"Empty return data from {self.signature}")
        try:
            return tuple(decode(list(self.outputs), raw))
        except DecodingError as e:
            raise MarketDataError(f"Cannot decode {self.signature} result: {e}") from e


ERC20_DECIMALS = ContractFunction("decimals", (), ("uint8",))
ERC20_BALANCE_OF = ContractFunction("balanceOf", ("address",), ("uint256",))
