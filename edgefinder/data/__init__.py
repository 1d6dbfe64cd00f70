"""
Data layer for the odds engine.

Normalises Odds-API-shaped payloads into events and quotes and keeps the
latest event set in memory.
"""
from .odds_feed import (
    DEFAULT_FIXTURES_PATH,
    OddsFeed,
    load_events,
    outcome_label,
    parse_event,
    parse_events,
)

__all__ = [
    "DEFAULT_FIXTURES_PATH",
    "OddsFeed",
    "load_events",
    "outcome_label",
    "parse_event",
    "parse_events",
]
