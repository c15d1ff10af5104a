"""Unit tests for data models."""
from __future__ import annotations

import dataclasses
from typing import Callable

import pytest

from goldify.models import (
    BorrowAsset,
    Chain,
    CollateralToken,
    LendingMarket,
    Protocol,
    RecommendationCriteria,
)


class TestEnums:
    def test_collateral_values(self) -> None:
        assert CollateralToken("XAUT") is CollateralToken.XAUT
        assert CollateralToken.PAXG.value == "PAXG"

    @pytest.mark.parametrize("raw", ["ethereum", "Ethereum", " ETHEREUM "])
    def test_chain_parse_case_insensitive(self, raw: str) -> None:
        assert Chain.parse(raw) is Chain.ETHEREUM

    def test_chain_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown chain"):
            Chain.parse("solana")

    def test_protocol_parse(self) -> None:
        assert Protocol.parse("morpho") is Protocol.MORPHO

    def test_protocol_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown protocol"):
            Protocol.parse("compound")


class TestLendingMarket:
    def test_safety_buffer(self, make_market: Callable[..., LendingMarket]) -> None:
        market = make_market(max_ltv=0.75, liquidation_threshold=0.80)
        assert market.safety_buffer == pytest.approx(0.05)
        assert market.is_consistent

    def test_inconsistent_market_is_flagged_not_clamped(
        self, make_market: Callable[..., LendingMarket]
    ) -> None:
        market = make_market(max_ltv=0.85, liquidation_threshold=0.80)
        assert not market.is_consistent
        assert market.safety_buffer == pytest.approx(-0.05)

    def test_frozen(self, sample_market: LendingMarket) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            sample_market.max_ltv = 0.9  # type: ignore[misc]

    def test_collateral_cap_defaults_to_none(self, sample_market: LendingMarket) -> None:
        assert sample_market.collateral_cap is None


class TestBorrowAsset:
    def test_frozen(self, make_asset: Callable[..., BorrowAsset]) -> None:
        asset = make_asset()
        with pytest.raises(dataclasses.FrozenInstanceError):
            asset.borrow_apr = 1.0  # type: ignore[misc]


class TestRecommendationCriteria:
    def test_defaults(self) -> None:
        criteria = RecommendationCriteria()
        assert criteria.min_liquidity == 10_000
        assert criteria.max_acceptable_apr == 15
        assert criteria.min_liquidation_buffer == 0.05
