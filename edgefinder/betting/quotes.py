"""
Quote and market snapshot containers.

A Quote is one bookmaker's decimal price for one outcome. A MarketSnapshot
lines up every bookmaker's prices for one market of one event so that the
de-vig, value and arbitrage passes can index prices by outcome position.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from .errors import InvalidOdds
from .odds_converter import decimal_to_american, validate_decimal

logger = logging.getLogger(__name__)


class MarketType(str, Enum):
    """Market types understood by the engine."""

    MONEYLINE = "moneyline"
    SPREAD = "spread"
    TOTAL = "total"
    PROP = "prop"
    THREE_WAY = "three_way"

    @classmethod
    def from_key(cls, key: "str | MarketType") -> "MarketType":
        """
        Resolve a provider market key (h2h, spreads, totals, ...) or a
        market type name.

        Raises:
            ValueError: for unknown keys
        """
        if isinstance(key, cls):
            return key
        normalized = str(key).strip().lower()
        if normalized in _MARKET_ALIASES:
            return _MARKET_ALIASES[normalized]
        if normalized.startswith("player_"):
            return cls.PROP
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown market '{key}'") from None


_MARKET_ALIASES: dict[str, MarketType] = {
    "h2h": MarketType.MONEYLINE,
    "ml": MarketType.MONEYLINE,
    "spreads": MarketType.SPREAD,
    "totals": MarketType.TOTAL,
    "props": MarketType.PROP,
    "h2h_3way": MarketType.THREE_WAY,
    "1x2": MarketType.THREE_WAY,
}


def normalize_bookmaker(name: str) -> str:
    """Canonical bookmaker key: lowercase with whitespace removed."""
    return "".join(str(name).lower().split())


@dataclass(frozen=True)
class Quote:
    """One bookmaker's price for one outcome of one market."""

    event_id: str
    bookmaker: str
    market: MarketType
    outcome: str
    price: float  # Decimal odds
    observed_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self) -> None:
        # Naive timestamps are taken as UTC so duplicates stay comparable
        if self.observed_at.tzinfo is None:
            object.__setattr__(
                self, "observed_at", self.observed_at.replace(tzinfo=timezone.utc)
            )

    @property
    def american(self) -> Optional[int]:
        """American odds, or None if the price is unusable."""
        try:
            return decimal_to_american(self.price)
        except InvalidOdds:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "bookmaker": self.bookmaker,
            "market": self.market.value,
            "outcome": self.outcome,
            "price": self.price,
            "american": self.american,
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass(frozen=True)
class BestLine:
    """Best available price for one outcome across bookmakers."""

    side: str
    bookmaker: str
    price: float

    @property
    def american(self) -> int:
        return decimal_to_american(self.price)


@dataclass(frozen=True)
class MarketSnapshot:
    """
    All bookmakers' prices for one market of one event.

    ``prices[book][i]`` is the decimal price for ``outcomes[i]``. Every
    bookmaker listed in ``prices`` quotes the full outcome set; bookmakers
    that didn't (or quoted unusable prices) are listed in ``excluded`` with
    the reason.
    """

    event_id: str
    market: MarketType
    outcomes: tuple[str, ...]
    prices: Mapping[str, tuple[float, ...]]
    excluded: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_quotes(
        cls,
        quotes: Iterable[Quote],
        event_id: Optional[str] = None,
        market: Optional[MarketType] = None,
    ) -> "MarketSnapshot":
        """
        Build a snapshot from raw quotes of a single event and market.

        Outcome order follows the first bookmaker seen. When a bookmaker
        repeats an outcome, the most recently observed quote wins.

        Raises:
            ValueError: if the quotes span several events or markets
        """
        by_book: dict[str, dict[str, Quote]] = {}
        outcome_order: dict[str, list[str]] = {}

        for quote in quotes:
            if event_id is None:
                event_id = quote.event_id
            if market is None:
                market = quote.market
            if quote.event_id != event_id or quote.market != market:
                raise ValueError(
                    "MarketSnapshot quotes must share one event and market "
                    f"(got {quote.event_id}/{quote.market.value}, "
                    f"expected {event_id}/{market.value})"
                )

            book_quotes = by_book.setdefault(quote.bookmaker, {})
            order = outcome_order.setdefault(quote.bookmaker, [])
            existing = book_quotes.get(quote.outcome)
            if existing is None:
                order.append(quote.outcome)
                book_quotes[quote.outcome] = quote
            elif quote.observed_at >= existing.observed_at:
                book_quotes[quote.outcome] = quote

        if market is None:
            market = MarketType.MONEYLINE

        # The outcome set quoted by most bookmakers defines the market;
        # ties go to the larger set
        reference: tuple[str, ...] = ()
        counts: dict[frozenset, int] = {}
        for order in outcome_order.values():
            key = frozenset(order)
            counts[key] = counts.get(key, 0) + 1
        if counts:
            top = max(counts, key=lambda k: (counts[k], len(k)))
            for order in outcome_order.values():
                if frozenset(order) == top:
                    reference = tuple(order)
                    break

        prices: dict[str, tuple[float, ...]] = {}
        excluded: dict[str, str] = {}

        for book, book_quotes in by_book.items():
            if set(book_quotes) != set(reference):
                excluded[book] = "outcome set does not match market"
                logger.debug(
                    f"Excluding {book} from {event_id}/{market.value}: "
                    f"outcomes {sorted(book_quotes)} != {sorted(reference)}"
                )
                continue
            try:
                prices[book] = tuple(
                    validate_decimal(book_quotes[outcome].price)
                    for outcome in reference
                )
            except InvalidOdds as e:
                excluded[book] = str(e)
                logger.debug(f"Excluding {book} from {event_id}/{market.value}: {e}")

        return cls(
            event_id=event_id or "",
            market=market,
            outcomes=reference,
            prices=prices,
            excluded=excluded,
        )

    @property
    def bookmakers(self) -> list[str]:
        return list(self.prices)

    @property
    def size(self) -> int:
        """Number of outcomes."""
        return len(self.outcomes)

    @property
    def is_two_way(self) -> bool:
        return self.size == 2

    @property
    def is_evaluable(self) -> bool:
        """At least 2 outcomes quoted by at least 2 bookmakers."""
        return self.size >= 2 and len(self.prices) >= 2

    def find_bookmaker(self, bookmaker: str) -> Optional[str]:
        """Key under which ``bookmaker`` is stored, matched loosely."""
        if bookmaker in self.prices:
            return bookmaker
        wanted = normalize_bookmaker(bookmaker)
        for book in self.prices:
            if normalize_bookmaker(book) == wanted:
                return book
        return None

    def has_bookmaker(self, bookmaker: str) -> bool:
        return self.find_bookmaker(bookmaker) is not None

    def prices_for(self, bookmaker: str) -> tuple[float, ...]:
        """
        Prices of one bookmaker in outcome order.

        Raises:
            KeyError: if the bookmaker has no usable quotes here
        """
        key = self.find_bookmaker(bookmaker)
        if key is None:
            raise KeyError(bookmaker)
        return self.prices[key]

    def best_prices(self) -> list[BestLine]:
        """Highest price per outcome; ties go to the first bookmaker seen."""
        best: list[BestLine] = []
        for i, outcome in enumerate(self.outcomes):
            line: Optional[BestLine] = None
            for book, book_prices in self.prices.items():
                if line is None or book_prices[i] > line.price:
                    line = BestLine(side=outcome, bookmaker=book, price=book_prices[i])
            if line is not None:
                best.append(line)
        return best


@dataclass(frozen=True)
class Event:
    """A sporting event with every quote currently known for it."""

    event_id: str
    home_team: str = ""
    away_team: str = ""
    commence_time: Optional[datetime] = None
    sport: str = ""
    quotes: tuple[Quote, ...] = ()

    @property
    def description(self) -> str:
        if self.home_team or self.away_team:
            return f"{self.home_team} vs {self.away_team}"
        return self.event_id

    @property
    def bookmakers(self) -> list[str]:
        return list(dict.fromkeys(q.bookmaker for q in self.quotes))

    def markets(self) -> list[MarketType]:
        """Market types present, in first-seen order."""
        return list(dict.fromkeys(q.market for q in self.quotes))

    def quotes_for(self, market: Optional[MarketType] = None) -> list[Quote]:
        if market is None:
            return list(self.quotes)
        return [q for q in self.quotes if q.market == market]

    def snapshot(self, market: MarketType) -> MarketSnapshot:
        return MarketSnapshot.from_quotes(
            self.quotes_for(market), event_id=self.event_id, market=market
        )

    def to_dict(self, market: Optional[MarketType] = None) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "sport": self.sport,
            "home_team": self.home_team,
            "away_team": self.away_team,
            "commence_time": (
                self.commence_time.isoformat() if self.commence_time else None
            ),
            "quotes": [q.to_dict() for q in self.quotes_for(market)],
        }
