"""
Opportunity aggregation over a batch of events.

Runs the value detector and the arbitrage scanner over every market of
every event, records why markets were skipped, applies display filters and
returns ranked opportunity lists for the presentation layer.
"""
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..config.constants import (
    DEFAULT_BASELINE_BOOK,
    DEFAULT_EV_THRESHOLD_PERCENT,
    DEFAULT_KELLY_MULTIPLIER,
    DEFAULT_MAX_STAKE_PERCENT,
    DEFAULT_MIN_ARB_PROFIT_PERCENT,
)
from .arbitrage_scanner import ArbitrageOpportunity, ArbitrageScanner
from .devig import DevigMethod
from .errors import (
    InsufficientData,
    InvalidOdds,
    MissingBaseline,
    UnsupportedDevigMethod,
)
from .kelly_calculator import KellyCalculator
from .quotes import Event, MarketSnapshot, MarketType, normalize_bookmaker
from .value_detector import EVOpportunity, ValueDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationConfig:
    """
    Everything one evaluation needs, passed explicitly per call.

    Hidden bookmakers are compared case- and whitespace-insensitively.
    """

    baseline_book: str = DEFAULT_BASELINE_BOOK
    devig_method: DevigMethod = DevigMethod.PROPORTIONAL
    ev_threshold_percent: float = DEFAULT_EV_THRESHOLD_PERCENT
    min_arb_profit_percent: float = DEFAULT_MIN_ARB_PROFIT_PERCENT
    hidden_bookmakers: frozenset[str] = frozenset()
    kelly_multiplier: float = DEFAULT_KELLY_MULTIPLIER
    max_stake_percent: float = DEFAULT_MAX_STAKE_PERCENT
    require_distinct_books: bool = False
    markets: Optional[frozenset[MarketType]] = None
    bankroll: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "devig_method", DevigMethod.parse(self.devig_method))
        object.__setattr__(
            self,
            "hidden_bookmakers",
            frozenset(normalize_bookmaker(b) for b in self.hidden_bookmakers if b),
        )
        if self.markets is not None:
            object.__setattr__(
                self,
                "markets",
                frozenset(MarketType.from_key(m) for m in self.markets),
            )

    @classmethod
    def from_settings(cls, settings: Any, **overrides: Any) -> "EvaluationConfig":
        """
        Build from ``Settings`` (or its ``engine`` section).

        Overrides with a value of None are ignored so request parameters
        can be passed straight through.
        """
        engine = getattr(settings, "engine", settings)
        values = dict(
            baseline_book=engine.baseline_book,
            devig_method=engine.devig_method,
            ev_threshold_percent=engine.ev_threshold_percent,
            min_arb_profit_percent=engine.min_arb_profit_percent,
            hidden_bookmakers=frozenset(engine.hidden_bookmakers),
            kelly_multiplier=engine.kelly_multiplier,
            max_stake_percent=engine.max_stake_percent,
            require_distinct_books=engine.require_distinct_books,
            bankroll=getattr(settings, "bankroll", None),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def replace(self, **changes: Any) -> "EvaluationConfig":
        return dataclasses.replace(self, **changes)

    def is_hidden(self, bookmaker: str) -> bool:
        return normalize_bookmaker(bookmaker) in self.hidden_bookmakers


@dataclass(frozen=True)
class MarketSkip:
    """A market (or one bookmaker in it) left out of an evaluation pass."""

    event_id: str
    market: MarketType
    stage: str  # "market", "bookmaker", "ev" or "arbitrage"
    reason: str
    bookmaker: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "market": self.market.value,
            "stage": self.stage,
            "reason": self.reason,
            "bookmaker": self.bookmaker,
        }


@dataclass
class AggregationResult:
    """Result of one evaluation cycle."""

    ev_opportunities: list[EVOpportunity] = field(default_factory=list)
    arbitrage_opportunities: list[ArbitrageOpportunity] = field(default_factory=list)
    skipped: list[MarketSkip] = field(default_factory=list)
    events_evaluated: int = 0
    markets_evaluated: int = 0
    evaluated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def best_ev(self) -> Optional[EVOpportunity]:
        if not self.ev_opportunities:
            return None
        return max(self.ev_opportunities, key=lambda o: o.ev_percent)

    @property
    def best_arbitrage(self) -> Optional[ArbitrageOpportunity]:
        if not self.arbitrage_opportunities:
            return None
        return max(self.arbitrage_opportunities, key=lambda a: a.profit_percent)

    def to_dict(self) -> dict[str, Any]:
        return {
            "evaluated_at": self.evaluated_at.isoformat(),
            "events_evaluated": self.events_evaluated,
            "markets_evaluated": self.markets_evaluated,
            "ev_opportunities": [o.to_dict() for o in self.ev_opportunities],
            "arbitrage_opportunities": [
                a.to_dict() for a in self.arbitrage_opportunities
            ],
            "skipped": [s.to_dict() for s in self.skipped],
        }


class OpportunityAggregator:
    """
    Evaluates batches of events for +EV prices and arbitrage.

    Holds no state between calls; the same instance can evaluate
    independent batches concurrently.

    Example:
        >>> aggregator = OpportunityAggregator(EvaluationConfig(ev_threshold_percent=2.0))
        >>> result = aggregator.evaluate(events)
        >>> for opp in result.ev_opportunities:
        ...     print(opp.summary())
    """

    def __init__(self, config: Optional[EvaluationConfig] = None):
        self.config = config or EvaluationConfig()
        self.value_detector = ValueDetector(
            baseline_book=self.config.baseline_book,
            devig_method=self.config.devig_method,
            ev_threshold_percent=self.config.ev_threshold_percent,
        )
        self.arbitrage_scanner = ArbitrageScanner(
            min_profit_percent=self.config.min_arb_profit_percent,
            require_distinct_books=self.config.require_distinct_books,
        )
        self.kelly = KellyCalculator(
            fraction=self.config.kelly_multiplier,
            max_stake_pct=self.config.max_stake_percent,
            min_stake=0.0,
        )

    def evaluate(self, events: Iterable[Event]) -> AggregationResult:
        """
        Evaluate every market of every event.

        Returns:
            AggregationResult with opportunities sorted best first
        """
        result = AggregationResult()

        for event in events:
            result.events_evaluated += 1
            for market in event.markets():
                if self.config.markets is not None and market not in self.config.markets:
                    continue
                result.markets_evaluated += 1
                evs, arbs, skips = self.evaluate_market(event.snapshot(market))
                result.ev_opportunities.extend(evs)
                result.arbitrage_opportunities.extend(arbs)
                result.skipped.extend(skips)

        result.ev_opportunities.sort(key=lambda o: o.ev_percent, reverse=True)
        result.arbitrage_opportunities.sort(key=lambda a: a.profit_percent, reverse=True)

        logger.info(
            f"Evaluated {result.events_evaluated} events / "
            f"{result.markets_evaluated} markets: "
            f"{len(result.ev_opportunities)} +EV, "
            f"{len(result.arbitrage_opportunities)} arbs, "
            f"{len(result.skipped)} skips"
        )
        return result

    def evaluate_event(
        self, event: Event, market: Optional[MarketType] = None
    ) -> AggregationResult:
        """Evaluate one event, optionally restricted to one market."""
        if market is None:
            return self.evaluate([event])

        result = AggregationResult(events_evaluated=1, markets_evaluated=1)
        evs, arbs, skips = self.evaluate_market(event.snapshot(market))
        result.ev_opportunities = sorted(evs, key=lambda o: o.ev_percent, reverse=True)
        result.arbitrage_opportunities = sorted(
            arbs, key=lambda a: a.profit_percent, reverse=True
        )
        result.skipped = skips
        return result

    def evaluate_market(
        self, snapshot: MarketSnapshot
    ) -> tuple[list[EVOpportunity], list[ArbitrageOpportunity], list[MarketSkip]]:
        """
        Run the EV and arbitrage passes over one market.

        A failure in the EV pass (no baseline, unsupported de-vig) never
        stops the arbitrage pass.
        """
        skips = [
            MarketSkip(
                event_id=snapshot.event_id,
                market=snapshot.market,
                stage="bookmaker",
                reason=reason,
                bookmaker=book,
            )
            for book, reason in snapshot.excluded.items()
        ]

        if not snapshot.is_evaluable:
            reason = (
                f"insufficient data: {snapshot.size} outcomes, "
                f"{len(snapshot.prices)} bookmakers"
            )
            logger.debug(f"Skipping {snapshot.event_id}/{snapshot.market.value}: {reason}")
            skips.append(
                MarketSkip(snapshot.event_id, snapshot.market, "market", reason)
            )
            return [], [], skips

        ev_opportunities: list[EVOpportunity] = []
        try:
            ev_opportunities = self.value_detector.detect(snapshot)
        except (MissingBaseline, InsufficientData, UnsupportedDevigMethod, InvalidOdds) as e:
            logger.debug(f"EV skipped for {snapshot.event_id}/{snapshot.market.value}: {e}")
            skips.append(MarketSkip(snapshot.event_id, snapshot.market, "ev", str(e)))

        try:
            arbitrage = self.arbitrage_scanner.scan(snapshot)
        except (InsufficientData, InvalidOdds) as e:
            logger.debug(
                f"Arbitrage skipped for {snapshot.event_id}/{snapshot.market.value}: {e}"
            )
            skips.append(
                MarketSkip(snapshot.event_id, snapshot.market, "arbitrage", str(e))
            )
            arbitrage = []

        # Hidden books are filtered only now: arbs need every price to find
        # the best legs
        ev_opportunities = [
            self._with_stake(o)
            for o in ev_opportunities
            if not self.config.is_hidden(o.bookmaker)
        ]
        arbitrage = [
            a
            for a in arbitrage
            if not any(self.config.is_hidden(leg.bookmaker) for leg in a.legs)
        ]

        return ev_opportunities, arbitrage, skips

    def _with_stake(self, opportunity: EVOpportunity) -> EVOpportunity:
        if not self.config.bankroll:
            return opportunity
        stake = self.kelly.calculate_stake(
            bankroll=self.config.bankroll,
            win_probability=opportunity.fair_probability,
            decimal_odds=opportunity.quoted_price,
        )
        return dataclasses.replace(opportunity, recommended_stake=stake.recommended_stake)
