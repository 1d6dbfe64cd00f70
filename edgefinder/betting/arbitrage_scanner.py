"""
Cross-book arbitrage scanner.

Identifies guaranteed profit opportunities by finding combinations of
opposite-side prices across bookmakers whose implied probabilities sum
below 1.
"""

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from .errors import InsufficientData
from .odds_converter import decimal_to_american, implied_probability
from .quotes import MarketSnapshot, MarketType

logger = logging.getLogger(__name__)

DEFAULT_MIN_PROFIT_PERCENT = 1.5


@dataclass(frozen=True)
class ArbCheck:
    """Outcome of testing one set of prices for arbitrage."""

    is_arb: bool
    profit_percent: float  # Negative when the book total is above 100%
    stake_ratios: tuple[float, ...]
    total_implied: float


def check_arbitrage(
    prices: Sequence[float],
    min_profit_percent: float = DEFAULT_MIN_PROFIT_PERCENT,
) -> ArbCheck:
    """
    Check if a set of prices, one per outcome, locks in a profit.

    Profit % = (1 - total_implied) / total_implied * 100, and each stake
    ratio is the leg's implied probability over the total, which pays the
    same amount whichever outcome wins.

    Args:
        prices: Decimal odds, one per outcome
        min_profit_percent: Minimum profit to report as an arb

    Returns:
        ArbCheck; ``is_arb`` requires total < 1 and profit >= minimum

    Examples:
        >>> check_arbitrage([1.95, 1.95]).is_arb
        False
        >>> round(check_arbitrage([2.20, 2.40]).profit_percent, 2)
        14.78
    """
    if len(prices) < 2:
        raise InsufficientData("Arbitrage needs at least 2 legs", outcomes=len(prices))

    implied = [implied_probability(p) for p in prices]
    total_implied = sum(implied)

    profit_percent = (1.0 - total_implied) / total_implied * 100.0
    stake_ratios = tuple(p / total_implied for p in implied)

    is_arb = total_implied < 1.0 and profit_percent >= min_profit_percent

    return ArbCheck(
        is_arb=is_arb,
        profit_percent=profit_percent,
        stake_ratios=stake_ratios,
        total_implied=total_implied,
    )


@dataclass(frozen=True)
class ArbitrageLeg:
    """One bet of an arbitrage: a side at a bookmaker."""

    side: str
    bookmaker: str
    price: float  # Decimal odds
    stake_ratio: float  # Share of total stake

    @property
    def american(self) -> int:
        return decimal_to_american(self.price)

    def to_dict(self) -> dict[str, Any]:
        return {
            "side": self.side,
            "bookmaker": self.bookmaker,
            "price": self.price,
            "american": self.american,
            "stake_ratio": self.stake_ratio,
        }


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """Represents a guaranteed profit arbitrage opportunity."""

    arb_id: str
    event_id: str
    market: MarketType
    legs: tuple[ArbitrageLeg, ...]
    profit_percent: float  # Guaranteed profit as % of total stake
    total_implied: float  # Sum of implied probs (< 1 = arb exists)
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def bookmakers(self) -> list[str]:
        return list(dict.fromkeys(leg.bookmaker for leg in self.legs))

    @property
    def shared_bookmakers(self) -> list[str]:
        """Bookmakers supplying more than one leg."""
        seen: dict[str, int] = {}
        for leg in self.legs:
            seen[leg.bookmaker] = seen.get(leg.bookmaker, 0) + 1
        return [book for book, count in seen.items() if count > 1]

    @property
    def is_executable(self) -> bool:
        """Every leg sits at a different bookmaker."""
        return not self.shared_bookmakers

    @property
    def stake_ratios(self) -> tuple[float, ...]:
        return tuple(leg.stake_ratio for leg in self.legs)

    def scale_stakes(self, target_total: float) -> tuple[list[float], float]:
        """
        Split a total stake across the legs.

        Args:
            target_total: Desired total stake

        Returns:
            Tuple of (stake per leg, guaranteed profit)
        """
        stakes = [round(target_total * leg.stake_ratio, 2) for leg in self.legs]
        payout = min(stake * leg.price for stake, leg in zip(stakes, self.legs))
        return stakes, round(payout - sum(stakes), 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "arb_id": self.arb_id,
            "event_id": self.event_id,
            "market": self.market.value,
            "legs": [leg.to_dict() for leg in self.legs],
            "profit_percent": self.profit_percent,
            "total_implied": self.total_implied,
            "is_executable": self.is_executable,
            "shared_bookmakers": self.shared_bookmakers,
            "detected_at": self.detected_at.isoformat(),
        }


@dataclass
class ScanResult:
    """Results from scanning several markets for arbitrage."""

    opportunities: list[ArbitrageOpportunity] = field(default_factory=list)
    scanned_markets: int = 0
    scanned_books: int = 0
    scan_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_opportunities(self) -> bool:
        return len(self.opportunities) > 0

    def get_top_opportunities(self, n: int = 5) -> list[ArbitrageOpportunity]:
        """Get top N opportunities sorted by profit percentage."""
        return sorted(
            self.opportunities, key=lambda x: x.profit_percent, reverse=True
        )[:n]


class ArbitrageScanner:
    """
    Scanner for cross-book arbitrage opportunities.

    Arbitrage exists when the sum of implied probabilities across
    bookmakers is less than 100%. This guarantees a profit regardless
    of outcome.

    Example:
        Book A: Home @ 2.20 (implied 45.5%)
        Book B: Away @ 2.40 (implied 41.7%)
        Total implied: 87.1% < 100% = 14.8% guaranteed profit

    Two-way markets are scanned pair by pair: for every two bookmakers both
    cross assignments are tested. Markets with three or more outcomes take
    the best price for each outcome across all bookmakers.

    Usage:
        >>> scanner = ArbitrageScanner(min_profit_percent=1.5)
        >>> for arb in scanner.scan(snapshot):
        ...     print(f"{arb.profit_percent:.2f}% on {arb.event_id}")
    """

    def __init__(
        self,
        min_profit_percent: float = DEFAULT_MIN_PROFIT_PERCENT,
        require_distinct_books: bool = False,
    ):
        """
        Initialize the arbitrage scanner.

        Args:
            min_profit_percent: Minimum profit percentage to report (1.5 = 1.5%)
            require_distinct_books: Only build N-way arbs whose legs all
                sit at different bookmakers
        """
        if min_profit_percent < 0:
            raise ValueError("Minimum profit percentage cannot be negative")
        self.min_profit_percent = min_profit_percent
        self.require_distinct_books = require_distinct_books

    def scan(self, snapshot: MarketSnapshot) -> list[ArbitrageOpportunity]:
        """
        Scan one market, picking the pairwise or best-of-leg strategy.

        Markets with fewer than 2 outcomes or 2 bookmakers yield nothing.
        """
        if not snapshot.is_evaluable:
            return []
        if snapshot.is_two_way:
            return self.scan_two_way(snapshot)
        return self.scan_n_way(snapshot)

    def scan_two_way(self, snapshot: MarketSnapshot) -> list[ArbitrageOpportunity]:
        """
        Test every bookmaker pair in both cross assignments.

        Returns:
            Opportunities sorted by profit, best first
        """
        if not snapshot.is_two_way:
            raise ValueError(
                f"scan_two_way needs a 2-outcome market, got {snapshot.size}"
            )
        if len(snapshot.prices) < 2:
            raise InsufficientData(
                "Arbitrage needs at least 2 bookmakers",
                outcomes=snapshot.size,
                bookmakers=len(snapshot.prices),
            )

        opportunities: list[ArbitrageOpportunity] = []

        for book1, book2 in itertools.combinations(snapshot.bookmakers, 2):
            prices1 = snapshot.prices[book1]
            prices2 = snapshot.prices[book2]

            # Side A at book1 + side B at book2, then the reverse
            candidates = (
                ([book1, book2], [prices1[0], prices2[1]]),
                ([book2, book1], [prices2[0], prices1[1]]),
            )
            for books, leg_prices in candidates:
                arb = self._build(snapshot, bookmakers=books, prices=leg_prices)
                if arb is not None:
                    opportunities.append(arb)

        opportunities.sort(key=lambda a: a.profit_percent, reverse=True)
        return opportunities

    def scan_n_way(self, snapshot: MarketSnapshot) -> list[ArbitrageOpportunity]:
        """
        Best-of-each-leg scan for markets with any number of outcomes.

        Picks the highest price per outcome across every bookmaker. With
        ``require_distinct_books`` the cheapest assignment that uses a
        different bookmaker for each leg is used instead.

        Returns:
            At most one opportunity for the market
        """
        if not snapshot.is_evaluable:
            return []

        if self.require_distinct_books:
            assignment = self._best_distinct_assignment(snapshot)
            if assignment is None:
                logger.debug(
                    f"{snapshot.event_id}/{snapshot.market.value}: fewer bookmakers "
                    f"than legs, no distinct-book assignment"
                )
                return []
            bookmakers = list(assignment)
            prices = [snapshot.prices[b][i] for i, b in enumerate(bookmakers)]
        else:
            best = snapshot.best_prices()
            bookmakers = [line.bookmaker for line in best]
            prices = [line.price for line in best]

        arb = self._build(snapshot, bookmakers=bookmakers, prices=prices)
        return [arb] if arb is not None else []

    def scan_many(self, snapshots: Iterable[MarketSnapshot]) -> ScanResult:
        """Scan several markets and collect every opportunity."""
        opportunities: list[ArbitrageOpportunity] = []
        books: set[str] = set()
        scanned = 0

        for snapshot in snapshots:
            scanned += 1
            books.update(snapshot.bookmakers)
            opportunities.extend(self.scan(snapshot))

        return ScanResult(
            opportunities=sorted(
                opportunities, key=lambda x: x.profit_percent, reverse=True
            ),
            scanned_markets=scanned,
            scanned_books=len(books),
        )

    def _best_distinct_assignment(
        self, snapshot: MarketSnapshot
    ) -> Optional[tuple[str, ...]]:
        """Bookmaker per outcome minimising total implied probability."""
        if len(snapshot.prices) < snapshot.size:
            return None

        best: Optional[tuple[str, ...]] = None
        best_total = float("inf")
        for books in itertools.permutations(snapshot.bookmakers, snapshot.size):
            total = sum(
                1.0 / snapshot.prices[book][i] for i, book in enumerate(books)
            )
            if total < best_total:
                best, best_total = books, total
        return best

    def _build(
        self,
        snapshot: MarketSnapshot,
        bookmakers: Sequence[str],
        prices: Sequence[float],
    ) -> Optional[ArbitrageOpportunity]:
        check = check_arbitrage(prices, self.min_profit_percent)
        if not check.is_arb:
            return None

        legs = tuple(
            ArbitrageLeg(side=side, bookmaker=book, price=price, stake_ratio=ratio)
            for side, book, price, ratio in zip(
                snapshot.outcomes, bookmakers, prices, check.stake_ratios
            )
        )
        arb_id = "_".join(
            ["arb", snapshot.event_id, snapshot.market.value]
            + [f"{leg.bookmaker}:{i}" for i, leg in enumerate(legs)]
        )

        logger.debug(
            f"Arb {check.profit_percent:.2f}% on {snapshot.event_id}/"
            f"{snapshot.market.value}: "
            + ", ".join(f"{leg.side}@{leg.bookmaker} {leg.price}" for leg in legs)
        )

        return ArbitrageOpportunity(
            arb_id=arb_id,
            event_id=snapshot.event_id,
            market=snapshot.market,
            legs=legs,
            profit_percent=check.profit_percent,
            total_implied=check.total_implied,
        )
