"""Exact fixed-point conversions for on-chain integers — no I/O.

Every conversion shifts a Python ``int`` through ``Decimal`` and rounds to
``float`` exactly once, so repeated conversions never accumulate binary
floating-point error.
"""
from __future__ import annotations

from decimal import Decimal

from .errors import MarketDataError

BPS_DENOMINATOR = 10_000
RAY_DECIMALS = 27
# ray (1e27) → percent: divide by 1e25
RAY_TO_PERCENT_SHIFT = RAY_DECIMALS - 2
WAD_DECIMALS = 18


def _require_non_negative(raw: int, what: str) -> int:
    value = int(raw)
    if value < 0:
        raise MarketDataError(f"Negative {what}: {value}")
    return value


def from_units(raw: int, decimals: int) -> float:
    """Convert a native-decimals token amount to human-readable units.

    Examples:
        from_units(2_500_000, 6) → 2.5
    """
    if decimals < 0:
        raise MarketDataError(f"Invalid token decimals: {decimals}")
    value = _require_non_negative(raw, "token amount")
    return float(Decimal(value).scaleb(-decimals))


def bps_to_ratio(bps: int) -> float:
    """Basis points → 0-1 ratio (7500 → 0.75)."""
    value = _require_non_negative(bps, "basis points")
    return float(Decimal(value) / Decimal(BPS_DENOMINATOR))


def ray_to_percent(ray: int) -> float:
    """Ray-scaled annual rate → percentage (3e25 → 3.0)."""
    value = _require_non_negative(ray, "ray rate")
    return float(Decimal(value).scaleb(-RAY_TO_PERCENT_SHIFT))


def wad_to_ratio(wad: int) -> float:
    """1e18-scaled fraction → 0-1 ratio (Morpho LLTV)."""
    value = _require_non_negative(wad, "wad value")
    return float(Decimal(value).scaleb(-WAD_DECIMALS))
