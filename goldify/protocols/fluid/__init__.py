"""Fluid protocol support."""
from .adapter import FluidAdapter

__all__ = ["FluidAdapter"]
