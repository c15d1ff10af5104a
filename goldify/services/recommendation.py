"""Deterministic market scoring and ranking."""
from __future__ import annotations

import logging
from typing import Iterable

from ..formatting import format_percent, format_usd
from ..models import (
    BorrowAsset,
    Chain,
    LendingMarket,
    MarketRecommendation,
    Protocol,
    RecommendationCriteria,
)

logger = logging.getLogger(__name__)

EXCELLENT_LIQUIDITY = 1_000_000
EXCELLENT_APR = 3.0
GOOD_APR = 5.0
HIGH_LTV = 0.80
LOW_LTV = 0.60
MAX_SCORE = 100.0

PROTOCOL_BONUS: dict[Protocol, tuple[float, str]] = {
    Protocol.AAVE: (10, "Battle-tested protocol with strong track record"),
    Protocol.MORPHO: (5, "Efficient protocol with optimized rates"),
}

CHAIN_BONUS: dict[Chain, tuple[float, str]] = {
    Chain.ETHEREUM: (5, "Ethereum mainnet - highest security and liquidity"),
    Chain.ARBITRUM: (3, "Arbitrum - lower gas fees"),
}


class RecommendationEngine:
    """Scores every (market, borrow asset) pair out of 100 and ranks them.

    Each adjustment appends a human-readable reason (for bonuses and neutral
    findings) or warning (for penalties), so a score can always be explained.
    """

    def __init__(self, criteria: RecommendationCriteria | None = None) -> None:
        self.criteria = criteria or RecommendationCriteria()

    def analyze_markets(
        self, markets: Iterable[LendingMarket]
    ) -> list[MarketRecommendation]:
        """Return recommendations best-first; ties keep input order."""
        recommendations = [
            self.evaluate(market, asset)
            for market in markets
            for asset in market.borrow_assets
        ]
        return sorted(recommendations, key=lambda r: r.score, reverse=True)

    def evaluate(self, market: LendingMarket, asset: BorrowAsset) -> MarketRecommendation:
        criteria = self.criteria
        reasons: list[str] = []
        warnings: list[str] = []
        score = MAX_SCORE

        liquidity = asset.available_liquidity
        if liquidity < criteria.min_liquidity:
            score -= 40
            warnings.append(
                f"Low liquidity: {format_usd(liquidity)} "
                f"(min: {format_usd(criteria.min_liquidity)})"
            )
        elif liquidity > EXCELLENT_LIQUIDITY:
            score += 10
            reasons.append(f"Excellent liquidity: {format_usd(liquidity)}")
        else:
            reasons.append(f"Good liquidity: {format_usd(liquidity)}")

        apr = asset.borrow_apr
        if apr > criteria.max_acceptable_apr:
            score -= 30
            warnings.append(f"High borrow rate: {apr:.2f}%")
        elif apr < EXCELLENT_APR:
            score += 15
            reasons.append(f"Excellent borrow rate: {apr:.2f}%")
        elif apr < GOOD_APR:
            score += 5
            reasons.append(f"Good borrow rate: {apr:.2f}%")
        else:
            reasons.append(f"Moderate borrow rate: {apr:.2f}%")

        # Rounded so 0.80 - 0.75 compares equal to a 0.05 minimum.
        buffer = round(market.safety_buffer, 9)
        if buffer < criteria.min_liquidation_buffer:
            score -= 25
            warnings.append(
                f"Tight liquidation buffer: {format_percent(buffer)} "
                f"(recommended: {format_percent(criteria.min_liquidation_buffer)})"
            )
        else:
            score += 5
            reasons.append(
                f"Safe liquidation buffer: {format_percent(buffer)} "
                "between max LTV and liquidation"
            )

        if not market.is_consistent:
            warnings.append(
                "Inconsistent market data: liquidation threshold "
                f"{format_percent(market.liquidation_threshold, 0)} is below max LTV "
                f"{format_percent(market.max_ltv, 0)}"
            )

        if market.max_ltv >= HIGH_LTV:
            score += 5
            reasons.append(
                f"High capital efficiency: {format_percent(market.max_ltv, 0)} max LTV"
            )
        elif market.max_ltv < LOW_LTV:
            score -= 10
            warnings.append(
                f"Low capital efficiency: {format_percent(market.max_ltv, 0)} max LTV"
            )

        if market.protocol in PROTOCOL_BONUS:
            bonus, reason = PROTOCOL_BONUS[market.protocol]
            score += bonus
            reasons.append(reason)

        if market.chain in CHAIN_BONUS:
            bonus, reason = CHAIN_BONUS[market.chain]
            score += bonus
            reasons.append(reason)

        clamped = max(0.0, min(MAX_SCORE, score))
        logger.debug(
            "%s %s/%s %s: raw score %.0f, clamped %.0f",
            market.protocol.value, market.chain.value, market.collateral.value,
            asset.symbol, score, clamped,
        )
        return MarketRecommendation(
            market=market,
            borrow_asset=asset,
            score=clamped,
            reasons=tuple(reasons),
            warnings=tuple(warnings),
        )

    @staticmethod
    def top_recommendation_explanation(
        recommendations: list[MarketRecommendation],
    ) -> str:
        """Markdown summary of the first (best) recommendation."""
        if not recommendations:
            return "No markets available for the selected criteria."

        top = recommendations[0]
        market, asset = top.market, top.borrow_asset

        lines = [
            f"**Best Option: Borrow {asset.symbol} on "
            f"{market.protocol.value} ({market.chain.value})**",
            "",
            "**Why this is recommended:**",
        ]
        lines += [f"{i}. {reason}" for i, reason in enumerate(top.reasons, 1)]

        if top.warnings:
            lines += ["", "**Important considerations:**"]
            lines += [f"⚠️ {warning}" for warning in top.warnings]

        lines += [
            "",
            "**Key Metrics:**",
            f"- Borrow APR: {asset.borrow_apr:.2f}%",
            f"- Available Liquidity: {format_usd(asset.available_liquidity)}",
            f"- Max LTV: {format_percent(market.max_ltv, 0)}",
            f"- Liquidation Threshold: {format_percent(market.liquidation_threshold, 0)}",
            f"- Safety Buffer: {format_percent(market.safety_buffer)}",
        ]
        return "\n".join(lines) + "\n"

    @staticmethod
    def compare_markets(first: MarketRecommendation, second: MarketRecommendation) -> str:
        diff = first.score - second.score
        better, worse = (first, second) if diff > 0 else (second, first)

        lines = [
            f"**Comparing {first.market.protocol.value} vs "
            f"{second.market.protocol.value}**",
            "",
            f"{better.market.protocol.value} scores {abs(diff):.0f} points higher because:",
        ]

        apr_diff = worse.borrow_asset.borrow_apr - better.borrow_asset.borrow_apr
        if abs(apr_diff) > 0.1:
            lines.append(
                f"- {'Lower' if apr_diff > 0 else 'Higher'} borrow rate "
                f"({better.borrow_asset.borrow_apr:.2f}% vs "
                f"{worse.borrow_asset.borrow_apr:.2f}%)"
            )

        liquidity_diff = (
            better.borrow_asset.available_liquidity
            - worse.borrow_asset.available_liquidity
        )
        if abs(liquidity_diff) > 10_000:
            lines.append(
                f"- {'Higher' if liquidity_diff > 0 else 'Lower'} available liquidity "
                f"({format_usd(abs(liquidity_diff))} difference)"
            )

        return "\n".join(lines) + "\n"
