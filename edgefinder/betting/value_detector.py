"""
Value bet detection against a baseline bookmaker.

Identifies +EV betting opportunities by de-vigging the baseline book's
prices into fair probabilities and comparing every other bookmaker's
prices to them.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Optional

from ..config.constants import DEFAULT_BASELINE_BOOK, DEFAULT_EV_THRESHOLD_PERCENT
from .devig import DevigMethod, devig_decimal_odds, fair_prices
from .errors import InsufficientData, MissingBaseline
from .ev_calculator import expected_value_percent, kelly_fraction, meets_threshold
from .odds_converter import decimal_to_american, hold_percent
from .quotes import MarketSnapshot, MarketType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FairLine:
    """Baseline book's prices with the margin removed."""

    baseline_book: str
    outcomes: tuple[str, ...]
    probabilities: tuple[float, ...]
    prices: tuple[float, ...]
    hold_percent: float
    method: DevigMethod

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseline_book": self.baseline_book,
            "method": self.method.value,
            "hold_percent": self.hold_percent,
            "outcomes": [
                {"side": side, "fair_probability": p, "fair_price": price}
                for side, p, price in zip(self.outcomes, self.probabilities, self.prices)
            ],
        }


@dataclass(frozen=True)
class EVOpportunity:
    """
    Container for a detected +EV opportunity.

    Includes everything needed to evaluate and place the bet.
    """

    event_id: str
    market: MarketType
    side: str
    bookmaker: str
    quoted_price: float  # Decimal odds offered
    fair_price: float  # Decimal odds after de-vig of the baseline
    fair_probability: float
    ev_percent: float
    kelly_fraction: float  # Full Kelly
    hold_percent: float  # Baseline book margin
    baseline_book: str = DEFAULT_BASELINE_BOOK
    recommended_stake: Optional[float] = None
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def american_odds(self) -> int:
        return decimal_to_american(self.quoted_price)

    @property
    def is_value(self) -> bool:
        return self.ev_percent > 0

    @property
    def pick_description(self) -> str:
        odds = self.american_odds
        odds_str = f"+{odds}" if odds > 0 else str(odds)
        return f"{self.side} @ {odds_str} ({self.bookmaker})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_id": self.event_id,
            "market": self.market.value,
            "side": self.side,
            "bookmaker": self.bookmaker,
            "quoted_price": self.quoted_price,
            "american_odds": self.american_odds,
            "fair_price": self.fair_price,
            "fair_probability": self.fair_probability,
            "ev_percent": self.ev_percent,
            "kelly_fraction": self.kelly_fraction,
            "hold_percent": self.hold_percent,
            "baseline_book": self.baseline_book,
            "recommended_stake": self.recommended_stake,
            "detected_at": self.detected_at.isoformat(),
        }

    def summary(self) -> str:
        """Get formatted summary string."""
        return "\n".join(
            [
                self.pick_description,
                f"  EV: {self.ev_percent:+.2f}% | Kelly: {self.kelly_fraction:.1%}",
                f"  Fair: {self.fair_probability:.1%} ({self.fair_price:.3f}) "
                f"| Hold: {self.hold_percent:.2f}%",
            ]
        )


class ValueDetector:
    """
    Detects +EV prices by comparing bookmakers to a baseline's fair line.

    Example:
        >>> detector = ValueDetector(baseline_book="pinnacle", ev_threshold_percent=2.0)
        >>> for opp in detector.detect(snapshot):
        ...     print(opp.summary())
    """

    def __init__(
        self,
        baseline_book: str = DEFAULT_BASELINE_BOOK,
        devig_method: "DevigMethod | str" = DevigMethod.PROPORTIONAL,
        ev_threshold_percent: float = DEFAULT_EV_THRESHOLD_PERCENT,
    ):
        """
        Initialize the value detector.

        Args:
            baseline_book: Bookmaker treated as the fair-price anchor
            devig_method: How to strip the baseline's margin
            ev_threshold_percent: Minimum EV% to surface (2.0 = 2%)
        """
        self.baseline_book = baseline_book
        self.devig_method = DevigMethod.parse(devig_method)
        self.ev_threshold_percent = ev_threshold_percent

    def fair_line(self, snapshot: MarketSnapshot) -> FairLine:
        """
        De-vig the baseline bookmaker's prices.

        Raises:
            MissingBaseline: baseline has no usable quotes for this market
            InsufficientData: fewer than 2 outcomes
            UnsupportedDevigMethod: method can't handle the market shape
        """
        baseline_key = snapshot.find_bookmaker(self.baseline_book)
        if baseline_key is None:
            raise MissingBaseline(
                self.baseline_book, snapshot.event_id, snapshot.market.value
            )

        baseline_prices = snapshot.prices[baseline_key]
        probabilities = devig_decimal_odds(baseline_prices, self.devig_method)

        return FairLine(
            baseline_book=baseline_key,
            outcomes=snapshot.outcomes,
            probabilities=probabilities,
            prices=fair_prices(probabilities),
            hold_percent=hold_percent(baseline_prices),
            method=self.devig_method,
        )

    def evaluate(self, snapshot: MarketSnapshot) -> list[EVOpportunity]:
        """
        EV of every non-baseline price, regardless of sign.

        Raises:
            Same as ``fair_line``; InsufficientData if no other bookmaker
            quotes the market
        """
        fair = self.fair_line(snapshot)

        others = [b for b in snapshot.bookmakers if b != fair.baseline_book]
        if not others:
            raise InsufficientData(
                "No bookmakers besides the baseline",
                outcomes=snapshot.size,
                bookmakers=len(snapshot.prices),
            )

        results: list[EVOpportunity] = []
        for book in others:
            for i, side in enumerate(snapshot.outcomes):
                quoted = snapshot.prices[book][i]
                fair_p = fair.probabilities[i]
                results.append(
                    EVOpportunity(
                        event_id=snapshot.event_id,
                        market=snapshot.market,
                        side=side,
                        bookmaker=book,
                        quoted_price=quoted,
                        fair_price=fair.prices[i],
                        fair_probability=fair_p,
                        ev_percent=expected_value_percent(fair_p, quoted),
                        kelly_fraction=kelly_fraction(fair_p, quoted),
                        hold_percent=fair.hold_percent,
                        baseline_book=fair.baseline_book,
                    )
                )
        return results

    def detect(self, snapshot: MarketSnapshot) -> list[EVOpportunity]:
        """
        +EV opportunities at or above the threshold, best first.

        Raises:
            Same as ``evaluate``
        """
        value_bets = [
            opp
            for opp in self.evaluate(snapshot)
            if meets_threshold(opp.ev_percent, self.ev_threshold_percent)
        ]
        value_bets.sort(key=lambda o: o.ev_percent, reverse=True)

        logger.debug(
            f"{snapshot.event_id}/{snapshot.market.value}: {len(value_bets)} "
            f"value bets vs {self.baseline_book} ({self.devig_method.value})"
        )
        return value_bets
