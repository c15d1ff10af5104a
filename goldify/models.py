"""Data models — enums and frozen (immutable) records."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CollateralToken(str, Enum):
    """Gold-backed tokens that can be deposited as collateral."""

    XAUT = "XAUT"
    PAXG = "PAXG"
    KAU = "KAU"
    PMGT = "PMGT"
    DGX = "DGX"
    GOLD = "GOLD"


class Chain(str, Enum):
    ETHEREUM = "Ethereum"
    ARBITRUM = "Arbitrum"
    OPTIMISM = "Optimism"
    POLYGON = "Polygon"

    @classmethod
    def parse(cls, value: str) -> "Chain":
        """Case-insensitive lookup by value ("ethereum" → Chain.ETHEREUM)."""
        for chain in cls:
            if chain.value.lower() == value.strip().lower():
                return chain
        raise ValueError(f"Unknown chain '{value}'")


class Protocol(str, Enum):
    AAVE = "Aave"
    MORPHO = "Morpho"
    FLUID = "Fluid"

    @classmethod
    def parse(cls, value: str) -> "Protocol":
        for protocol in cls:
            if protocol.value.lower() == value.strip().lower():
                return protocol
        raise ValueError(f"Unknown protocol '{value}'")


@dataclass(frozen=True)
class BorrowAsset:
    """One asset that can be borrowed against a market's collateral."""

    symbol: str
    address: str
    borrow_apr: float  # percent, e.g. 4.25 == 4.25%
    available_liquidity: float  # human-readable token units
    decimals: int


@dataclass(frozen=True)
class LendingMarket:
    """One collateral / protocol / chain combination."""

    protocol: Protocol
    chain: Chain
    collateral: CollateralToken
    collateral_address: str
    borrow_assets: tuple[BorrowAsset, ...]
    max_ltv: float  # 0.75 == 75%
    liquidation_threshold: float  # 0.80 == 80%
    collateral_cap: float | None = None

    @property
    def safety_buffer(self) -> float:
        """Margin between max LTV and the liquidation threshold."""
        return self.liquidation_threshold - self.max_ltv

    @property
    def is_consistent(self) -> bool:
        return self.liquidation_threshold >= self.max_ltv


@dataclass(frozen=True)
class MarketRecommendation:
    market: LendingMarket
    borrow_asset: BorrowAsset
    score: float
    reasons: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class RecommendationCriteria:
    """Thresholds used by the recommendation engine."""

    min_liquidity: float = 10_000.0
    max_acceptable_apr: float = 15.0
    min_liquidation_buffer: float = 0.05
