"""Morpho Blue market math — no I/O."""
from __future__ import annotations

from decimal import Decimal
from typing import Callable

from ...units import from_units

# Morpho exposes only the liquidation LTV; max LTV is estimated below it.
MAX_LTV_FACTOR = 0.95
BASE_RATE = 2.0
SLOPE = 10.0

# (total_supply_assets, total_borrow_assets) → borrow APR percent
AprModel = Callable[[int, int], float]


def utilization(total_supply: int, total_borrow: int) -> float:
    return float(Decimal(int(total_borrow)) / Decimal(max(int(total_supply), 1)))


def linear_utilization_apr(total_supply: int, total_borrow: int) -> float:
    """``2% + 10% * utilization``; a stand-in for the market's IRM contract."""
    return BASE_RATE + SLOPE * utilization(total_supply, total_borrow)


def available_liquidity(total_supply: int, total_borrow: int, decimals: int) -> float:
    """Supplied minus borrowed in human units, floored at zero."""
    return from_units(max(int(total_supply) - int(total_borrow), 0), decimals)


def estimate_max_ltv(lltv: float) -> float:
    return lltv * MAX_LTV_FACTOR
