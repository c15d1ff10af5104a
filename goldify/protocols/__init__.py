"""Lending protocol adapters."""
from .aave import AaveAdapter
from .fluid import FluidAdapter
from .morpho import MorphoAdapter

__all__ = ["AaveAdapter", "FluidAdapter", "MorphoAdapter"]
