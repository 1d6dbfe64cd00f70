#!/usr/bin/env python3
"""
EdgeFinder - Command Line Entry Point.

Odds-math toolkit that:
1. Computes EV, edge and Kelly stakes for a single price
2. Scans odds files for +EV prices and cross-book arbitrage
3. Serves the REST API

Usage:
    edgefinder ev --prob 0.55 --odds -110 --bankroll 1000
    edgefinder scan                         # Bundled sample events
    edgefinder scan odds.json --threshold 3 --hide fanduel
    edgefinder serve --port 8000
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from edgefinder.betting.aggregator import (
    AggregationResult,
    EvaluationConfig,
    OpportunityAggregator,
)
from edgefinder.betting.devig import DevigMethod
from edgefinder.betting.errors import EdgeFinderError
from edgefinder.betting.ev_calculator import expected_value_percent, kelly_fraction
from edgefinder.betting.kelly_calculator import KellyCalculator
from edgefinder.betting.odds_converter import (
    american_to_decimal,
    format_american_odds,
    implied_probability,
)
from edgefinder.config.constants import SPORTSBOOKS
from edgefinder.config.settings import get_settings
from edgefinder.data.odds_feed import DEFAULT_FIXTURES_PATH, load_events

logger = logging.getLogger(__name__)

console = Console()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def run_ev(args: argparse.Namespace) -> int:
    """Single-price EV, edge and Kelly."""
    if not 0 < args.prob < 1:
        console.print("[red]--prob must be between 0 and 1[/red]")
        return 2

    decimal_odds = american_to_decimal(args.odds)
    ev_pct = expected_value_percent(args.prob, decimal_odds)
    edge = args.prob - implied_probability(decimal_odds)
    full_kelly = kelly_fraction(args.prob, decimal_odds)

    table = Table(title="Expected Value", show_header=False, border_style="dim")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Odds", f"{format_american_odds(args.odds)} ({decimal_odds:.3f})")
    table.add_row("Implied probability", f"{implied_probability(decimal_odds):.2%}")
    table.add_row("Edge", f"{edge:+.2%}")
    table.add_row("Expected value", f"{ev_pct:+.2f}%")
    table.add_row("EV per $100", f"${ev_pct:+.2f}")
    table.add_row("Full Kelly", f"{full_kelly:.2%}")

    if args.bankroll is not None:
        settings = get_settings()
        kelly = KellyCalculator(
            fraction=settings.engine.kelly_multiplier,
            max_stake_pct=settings.engine.max_stake_percent,
        )
        stake = kelly.calculate_stake(args.bankroll, args.prob, decimal_odds)
        table.add_row(
            f"Stake ({settings.engine.kelly_multiplier:g} Kelly)",
            f"[green]${stake.recommended_stake:,.2f}[/green]",
        )

    console.print(table)
    return 0


def render_result(result: AggregationResult, show_skips: bool = False) -> None:
    """Print EV and arbitrage tables."""
    ev_table = Table(
        title="+EV Prices",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    ev_table.add_column("Event", no_wrap=True)
    ev_table.add_column("Market")
    ev_table.add_column("Side")
    ev_table.add_column("Book", style="dim")
    ev_table.add_column("Odds", justify="right")
    ev_table.add_column("Fair", justify="right")
    ev_table.add_column("EV", justify="right", style="green")
    ev_table.add_column("Kelly", justify="right")
    ev_table.add_column("Stake", justify="right")

    if not result.ev_opportunities:
        ev_table.add_row("[dim]No +EV prices found[/dim]", *[""] * 8)
    for opp in result.ev_opportunities:
        ev_table.add_row(
            opp.event_id,
            opp.market.value,
            opp.side,
            SPORTSBOOKS.get(opp.bookmaker, opp.bookmaker),
            format_american_odds(opp.american_odds),
            f"{opp.fair_price:.3f}",
            f"{opp.ev_percent:+.2f}%",
            f"{opp.kelly_fraction:.1%}",
            f"${opp.recommended_stake:,.2f}" if opp.recommended_stake else "",
        )

    arb_table = Table(
        title="Arbitrage",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    arb_table.add_column("Event", no_wrap=True)
    arb_table.add_column("Market")
    arb_table.add_column("Legs")
    arb_table.add_column("Profit", justify="right", style="green")
    arb_table.add_column("Books", justify="center")

    if not result.arbitrage_opportunities:
        arb_table.add_row("[dim]No arbitrage found[/dim]", "", "", "", "")
    for arb in result.arbitrage_opportunities:
        legs = "\n".join(
            f"{leg.side} @ {leg.price:.2f} "
            f"{SPORTSBOOKS.get(leg.bookmaker, leg.bookmaker)} ({leg.stake_ratio:.1%})"
            for leg in arb.legs
        )
        books = "distinct" if arb.is_executable else "[yellow]shared[/yellow]"
        arb_table.add_row(
            arb.event_id,
            arb.market.value,
            legs,
            f"{arb.profit_percent:.2f}%",
            books,
        )

    console.print(ev_table)
    console.print(arb_table)

    if show_skips and result.skipped:
        skip_table = Table(title="Skipped", header_style="bold", border_style="dim")
        skip_table.add_column("Event")
        skip_table.add_column("Market")
        skip_table.add_column("Stage")
        skip_table.add_column("Reason")
        for skip in result.skipped:
            label = f"{skip.stage} ({skip.bookmaker})" if skip.bookmaker else skip.stage
            skip_table.add_row(skip.event_id, skip.market.value, label, skip.reason)
        console.print(skip_table)

    console.print(
        f"[dim]{result.events_evaluated} events, {result.markets_evaluated} markets "
        f"evaluated at {result.evaluated_at:%Y-%m-%d %H:%M:%S} UTC[/dim]"
    )


def run_scan(args: argparse.Namespace) -> int:
    """Evaluate an odds file and print the opportunities."""
    settings = get_settings()
    events = load_events(args.file, settings.feed.supported_bookmakers)

    hidden = None
    if args.hide:
        hidden = frozenset(b.strip() for b in args.hide.split(",") if b.strip())

    config = EvaluationConfig.from_settings(
        settings,
        ev_threshold_percent=args.threshold,
        min_arb_profit_percent=args.min_profit,
        devig_method=args.devig,
        baseline_book=args.baseline,
        hidden_bookmakers=hidden,
        require_distinct_books=True if args.distinct_books else None,
        bankroll=args.bankroll,
    )
    result = OpportunityAggregator(config).evaluate(events)
    render_result(result, show_skips=args.show_skips)
    return 0


def run_serve(args: argparse.Namespace) -> int:
    """Run the REST API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="edgefinder",
        description="EdgeFinder - +EV and arbitrage detection across sportsbooks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    edgefinder ev --prob 0.55 --odds -110       EV of a single price
    edgefinder scan                             Scan the bundled sample events
    edgefinder scan odds.json --devig shin      Scan a file with Shin de-vig
    edgefinder serve --port 8000                Run the REST API
        """,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ev_parser = subparsers.add_parser("ev", help="EV and Kelly for one price")
    ev_parser.add_argument("--prob", type=float, required=True, help="True win probability (0-1)")
    ev_parser.add_argument("--odds", type=int, required=True, help="American odds (e.g. -110, 150)")
    ev_parser.add_argument("--bankroll", type=float, default=None, help="Bankroll for a stake suggestion")
    ev_parser.set_defaults(func=run_ev)

    scan_parser = subparsers.add_parser("scan", help="Scan an odds file for opportunities")
    scan_parser.add_argument(
        "file",
        nargs="?",
        default=str(DEFAULT_FIXTURES_PATH),
        help="Odds-API-shaped JSON file (default: bundled sample events)",
    )
    scan_parser.add_argument("--threshold", type=float, default=None, help="Minimum EV percent")
    scan_parser.add_argument("--min-profit", type=float, default=None, help="Minimum arbitrage profit percent")
    scan_parser.add_argument(
        "--devig",
        choices=[m.value for m in DevigMethod],
        default=None,
        help="De-vig method for the baseline",
    )
    scan_parser.add_argument("--baseline", default=None, help="Baseline bookmaker")
    scan_parser.add_argument("--hide", default=None, help="Comma-separated bookmakers to hide")
    scan_parser.add_argument(
        "--distinct-books",
        action="store_true",
        help="Only report arbitrage with a different bookmaker per leg",
    )
    scan_parser.add_argument("--bankroll", type=float, default=None, help="Bankroll for stake suggestions")
    scan_parser.add_argument("--show-skips", action="store_true", help="List skipped markets")
    scan_parser.set_defaults(func=run_scan)

    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    serve_parser.set_defaults(func=run_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    args.log_level = args.log_level or get_settings().log_level
    configure_logging(args.log_level)

    try:
        exit_code = args.func(args)
    except EdgeFinderError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        exit_code = 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 0

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
