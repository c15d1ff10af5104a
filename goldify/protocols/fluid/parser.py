"""Fluid vault estimates — no I/O."""
from __future__ import annotations

from typing import Callable

# available liquidity (human units) → borrow APR percent
AprModel = Callable[[float], float]

LIQUIDITY_TIERS: tuple[tuple[float, float], ...] = (
    (1_000_000.0, 3.5),
    (100_000.0, 4.5),
)
FLOOR_APR = 6.0


def tiered_liquidity_apr(available_liquidity: float) -> float:
    """Deeper vaults borrow cheaper: >1M → 3.5%, >100k → 4.5%, else 6.0%."""
    for threshold, apr in LIQUIDITY_TIERS:
        if available_liquidity > threshold:
            return apr
    return FLOOR_APR
