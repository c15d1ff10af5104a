"""EVM chain client and ABI helpers."""
from .abi import ERC20_BALANCE_OF, ERC20_DECIMALS, ContractFunction
from .client import EvmClient

__all__ = ["ContractFunction", "ERC20_BALANCE_OF", "ERC20_DECIMALS", "EvmClient"]
