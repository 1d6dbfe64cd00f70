"""
Odds feed normalisation and in-memory event store.

Turns Odds-API-shaped game payloads into ``Event``/``Quote`` objects and
keeps the latest event set for the REST layer. The engine itself never
fetches anything; an external collaborator (or the bundled fixtures) fills
the feed.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger

from ..betting.errors import EventNotFound, InvalidOdds, UpstreamFailure
from ..betting.odds_converter import american_to_decimal, validate_decimal
from ..betting.quotes import Event, MarketType, Quote, normalize_bookmaker

DEFAULT_FIXTURES_PATH = Path(__file__).parent / "fixtures" / "sample_odds.json"

log = logger.bind(component="feed")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        log.warning(f"Unparseable timestamp: {value!r}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def outcome_label(market: MarketType, name: str, point: Any = None) -> str:
    """
    Outcome label including the line where one applies.

    Examples:
        >>> outcome_label(MarketType.SPREAD, "Boston Celtics", -3.5)
        'Boston Celtics -3.5'
        >>> outcome_label(MarketType.TOTAL, "Over", 220.5)
        'Over 220.5'
    """
    if point is None:
        return name
    if market == MarketType.SPREAD:
        return f"{name} {float(point):+g}"
    if market in (MarketType.TOTAL, MarketType.PROP):
        return f"{name} {float(point):g}"
    return name


def _to_decimal(price: Any, odds_format: str) -> float:
    if odds_format == "american":
        return american_to_decimal(price)
    return validate_decimal(price)


def parse_event(
    payload: dict[str, Any],
    supported_bookmakers: Optional[Iterable[str]] = None,
) -> Event:
    """
    Normalise one game payload.

    Args:
        payload: Game dict (``id``, ``home_team``, ``away_team``,
            ``commence_time``, ``bookmakers``)
        supported_bookmakers: Bookmaker keys to keep (None or empty = all)

    Returns:
        Event with one Quote per bookmaker/market/outcome

    Raises:
        UpstreamFailure: if the payload has no event id
    """
    event_id = payload.get("id") or payload.get("event_id")
    if not event_id:
        raise UpstreamFailure("Event payload without an id")
    event_id = str(event_id)

    supported = {normalize_bookmaker(b) for b in supported_bookmakers or []}
    odds_format = str(payload.get("odds_format", "decimal")).lower()
    fallback_time = datetime.now(timezone.utc)

    quotes: list[Quote] = []
    for bookmaker in payload.get("bookmakers", []):
        book_key = normalize_bookmaker(bookmaker.get("key") or bookmaker.get("title", ""))
        if not book_key:
            continue
        if supported and book_key not in supported:
            log.debug(f"{event_id}: ignoring unsupported bookmaker {book_key}")
            continue

        observed_at = _parse_timestamp(bookmaker.get("last_update")) or fallback_time

        for market in bookmaker.get("markets", []):
            try:
                market_type = MarketType.from_key(market.get("key", ""))
            except ValueError:
                log.warning(f"{event_id}: unknown market {market.get('key')!r} at {book_key}")
                continue

            for outcome in market.get("outcomes", []):
                label = outcome_label(
                    market_type,
                    str(outcome.get("name", "")),
                    outcome.get("point"),
                )
                try:
                    price = _to_decimal(outcome.get("price"), odds_format)
                except InvalidOdds as e:
                    log.warning(f"{event_id}: dropping {book_key} {label}: {e}")
                    continue

                quotes.append(
                    Quote(
                        event_id=event_id,
                        bookmaker=book_key,
                        market=market_type,
                        outcome=label,
                        price=price,
                        observed_at=observed_at,
                    )
                )

    return Event(
        event_id=event_id,
        home_team=payload.get("home_team", ""),
        away_team=payload.get("away_team", ""),
        commence_time=_parse_timestamp(payload.get("commence_time")),
        sport=payload.get("sport_title") or payload.get("sport_key", ""),
        quotes=tuple(quotes),
    )


def parse_events(
    payload: Any,
    supported_bookmakers: Optional[Iterable[str]] = None,
) -> list[Event]:
    """Normalise a list of games, or a ``{"data": [...]}`` wrapper."""
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        raise UpstreamFailure(f"Expected a list of events, got {type(payload).__name__}")

    supported = list(supported_bookmakers or [])
    events = [parse_event(game, supported) for game in payload]
    log.info(f"Parsed {len(events)} events ({sum(len(e.quotes) for e in events)} quotes)")
    return events


def load_events(
    path: Path | str = DEFAULT_FIXTURES_PATH,
    supported_bookmakers: Optional[Iterable[str]] = None,
) -> list[Event]:
    """
    Read events from an Odds-API-shaped JSON file.

    Raises:
        UpstreamFailure: file missing, unreadable or not valid JSON
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise UpstreamFailure(f"Cannot load odds from {path}: {e}", source_name=str(path)) from e

    return parse_events(payload, supported_bookmakers)


class OddsFeed:
    """
    Latest known events, keyed by event id.

    Not thread-safe on its own; the API guards writes with a lock.
    """

    def __init__(self, supported_bookmakers: Optional[Iterable[str]] = None):
        self.supported_bookmakers = list(supported_bookmakers or [])
        self._events: dict[str, Event] = {}
        self.upstream_error: Optional[str] = None
        self.last_update: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._events

    @property
    def events(self) -> list[Event]:
        return list(self._events.values())

    def get(self, event_id: str) -> Event:
        """
        Raises:
            EventNotFound: unknown event id
        """
        try:
            return self._events[event_id]
        except KeyError:
            raise EventNotFound(event_id) from None

    def replace(self, event: Event) -> None:
        """Store ``event``, replacing any previous version."""
        self._events[event.event_id] = event
        self.last_update = datetime.now(timezone.utc)
        log.debug(f"Stored {event.event_id} with {len(event.quotes)} quotes")

    def load_file(self, path: Path | str = DEFAULT_FIXTURES_PATH) -> int:
        """
        Add the events of a JSON file.

        Returns:
            Number of events loaded
        """
        events = load_events(path, self.supported_bookmakers)
        for event in events:
            self.replace(event)
        log.info(f"Loaded {len(events)} events from {path}")
        return len(events)

    def clear(self) -> None:
        self._events.clear()
        self.upstream_error = None

    def mark_failed(self, message: str) -> None:
        """Record an upstream outage; reads fail until marked healthy."""
        log.error(f"Upstream failure: {message}")
        self.upstream_error = message

    def mark_healthy(self) -> None:
        if self.upstream_error:
            log.info("Upstream recovered")
        self.upstream_error = None
