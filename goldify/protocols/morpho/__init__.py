"""Morpho protocol support."""
from .adapter import MorphoAdapter

__all__ = ["MorphoAdapter"]
