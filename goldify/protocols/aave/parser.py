"""Pure decoding of Aave data-provider results — no I/O."""
from __future__ import annotations

from typing import Any, Sequence

from ...errors import MarketDataError
from ...models import BorrowAsset
from ...units import bps_to_ratio, from_units, ray_to_percent

# getReserveConfigurationData word positions
CONFIG_LTV = 1
CONFIG_LIQUIDATION_THRESHOLD = 2
# getReserveData word positions
DATA_AVAILABLE_LIQUIDITY = 0
DATA_VARIABLE_BORROW_RATE = 4


def parse_reserve_configuration(words: Sequence[Any]) -> tuple[float, float]:
    """Return ``(max_ltv, liquidation_threshold)`` as 0-1 ratios.

    Both values come back in basis points: 7500 → 0.75.
    """
    if len(words) <= CONFIG_LIQUIDATION_THRESHOLD:
        raise MarketDataError(f"Reserve configuration too short: {len(words)} words")
    return (
        bps_to_ratio(words[CONFIG_LTV]),
        bps_to_ratio(words[CONFIG_LIQUIDATION_THRESHOLD]),
    )


def parse_reserve_data(words: Sequence[Any], decimals: int) -> tuple[float, float]:
    """Return ``(available_liquidity, borrow_apr_percent)``.

    Liquidity is shifted by the asset's decimals; the variable borrow rate is
    a ray (1e27), so dividing by 1e25 yields a percentage.
    """
    if len(words) <= DATA_VARIABLE_BORROW_RATE:
        raise MarketDataError(f"Reserve data too short: {len(words)} words")
    return (
        from_units(words[DATA_AVAILABLE_LIQUIDITY], decimals),
        ray_to_percent(words[DATA_VARIABLE_BORROW_RATE]),
    )


def build_borrow_asset(
    symbol: str, address: str, reserve_words: Sequence[Any], decimals: int
) -> BorrowAsset:
    available, apr = parse_reserve_data(reserve_words, decimals)
    return BorrowAsset(
        symbol=symbol,
        address=address,
        borrow_apr=apr,
        available_liquidity=available,
        decimals=decimals,
    )
