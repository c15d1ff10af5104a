"""Aave protocol support."""
from .adapter import AaveAdapter

__all__ = ["AaveAdapter"]
