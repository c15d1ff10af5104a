"""Command-line interface for the gold-collateral borrowing explorer."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .formatting import apr_label, format_percent, format_usd
from .logging_setup import configure_logging
from .models import Chain, CollateralToken, LendingMarket, MarketRecommendation, Protocol
from .services import MarketAggregator, RecommendationEngine, filter_markets


def _collateral(value: str) -> CollateralToken:
    try:
        return CollateralToken(value.strip().upper())
    except ValueError:
        choices = ", ".join(t.value for t in CollateralToken)
        raise argparse.ArgumentTypeError(
            f"unknown collateral '{value}' (choose from {choices})"
        ) from None


def _chain(value: str) -> Chain:
    try:
        return Chain.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _protocol(value: str) -> Protocol:
    try:
        return Protocol.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _add_market_filters(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("collateral", type=_collateral, help="Gold token, e.g. XAUT")
    parser.add_argument("--chain", type=_chain, default=None, help="Only this chain")
    parser.add_argument(
        "--protocol", type=_protocol, default=None, help="Only this protocol"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="goldify",
        description="Compare borrowing markets that accept gold-backed collateral",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: ./config.yaml, then the project root)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command")

    markets_parser = sub.add_parser("markets", help="List lending markets")
    _add_market_filters(markets_parser)

    recommend_parser = sub.add_parser("recommend", help="Rank borrowing options")
    _add_market_filters(recommend_parser)
    recommend_parser.add_argument(
        "--top",
        type=int,
        default=5,
        help="Number of ranked options to list (default: 5)",
    )

    sub.add_parser("chains", help="List supported chains")
    sub.add_parser("protocols", help="List supported protocols")

    return parser


def render_market(market: LendingMarket) -> str:
    lines = [
        f"{market.protocol.value} on {market.chain.value} ({market.collateral.value})",
        f"  Max LTV {format_percent(market.max_ltv, 0)}, "
        f"liquidation {format_percent(market.liquidation_threshold, 0)}, "
        f"buffer {format_percent(market.safety_buffer)}",
    ]
    for asset in market.borrow_assets:
        lines.append(
            f"  {asset.symbol:<6} APR {asset.borrow_apr:6.2f}% "
            f"({apr_label(asset.borrow_apr)}), "
            f"liquidity {format_usd(asset.available_liquidity)}"
        )
    return "\n".join(lines)


def render_recommendation(rank: int, rec: MarketRecommendation) -> str:
    market, asset = rec.market, rec.borrow_asset
    lines = [
        f"{rank}. [{rec.score:.0f}] Borrow {asset.symbol} on "
        f"{market.protocol.value} ({market.chain.value})"
    ]
    lines += [f"     + {reason}" for reason in rec.reasons]
    lines += [f"     ! {warning}" for warning in rec.warnings]
    return "\n".join(lines)


async def _fetch(aggregator: MarketAggregator, args: argparse.Namespace) -> list[LendingMarket]:
    if args.chain is not None:
        markets = await aggregator.fetch_markets_by_chain(args.collateral, args.chain)
    else:
        markets = await aggregator.fetch_all_markets(args.collateral)
    return filter_markets(markets, chain=args.chain, protocol=args.protocol)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    aggregator = MarketAggregator.from_config(config)

    if args.command == "chains":
        for chain in aggregator.supported_chains():
            print(chain.value)
    elif args.command == "protocols":
        for name in aggregator.protocols():
            print(name)
    elif args.command == "markets":
        markets = await _fetch(aggregator, args)
        if not markets:
            print(f"No {args.collateral.value} markets found.")
        for market in markets:
            print(render_market(market))
    elif args.command == "recommend":
        markets = await _fetch(aggregator, args)
        engine = RecommendationEngine(config.criteria)
        recommendations = engine.analyze_markets(markets)
        print(engine.top_recommendation_explanation(recommendations))
        for rank, rec in enumerate(recommendations[: args.top], 1):
            print(render_recommendation(rank, rec))
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
