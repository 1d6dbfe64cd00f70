"""Shared fixtures: sample markets, fixture events and an API client."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from edgefinder.betting.quotes import MarketSnapshot, MarketType, Quote
from edgefinder.config.settings import EngineSettings, FeedSettings, Settings
from edgefinder.data.odds_feed import DEFAULT_FIXTURES_PATH, load_events

OBSERVED_AT = datetime(2024, 4, 15, 17, 0, tzinfo=timezone.utc)


def make_quotes(event_id, market, book_prices, observed_at=OBSERVED_AT):
    """Quotes from {bookmaker: {outcome: price}}."""
    return [
        Quote(
            event_id=event_id,
            bookmaker=book,
            market=market,
            outcome=outcome,
            price=price,
            observed_at=observed_at,
        )
        for book, prices in book_prices.items()
        for outcome, price in prices.items()
    ]


def make_snapshot(book_prices, event_id="evt_1", market=MarketType.MONEYLINE):
    return MarketSnapshot.from_quotes(make_quotes(event_id, market, book_prices))


@pytest.fixture
def mlb_snapshot():
    """Yankees/Red Sox moneyline: pinnacle even, fanduel and draftkings off."""
    return make_snapshot(
        {
            "pinnacle": {"Yankees": 1.95, "Red Sox": 1.95},
            "draftkings": {"Yankees": 1.85, "Red Sox": 2.10},
            "fanduel": {"Yankees": 2.20, "Red Sox": 1.75},
        },
        event_id="test_mlb_1",
    )


@pytest.fixture
def arb_snapshot():
    return make_snapshot(
        {
            "bookA": {"Home": 2.20, "Away": 1.60},
            "bookB": {"Home": 1.70, "Away": 2.40},
        },
        event_id="arb_1",
    )


@pytest.fixture
def three_way_snapshot():
    """Three-way market whose best prices sit at two bookmakers."""
    return make_snapshot(
        {
            "bookA": {"Home": 3.10, "Draw": 3.60, "Away": 2.50},
            "bookB": {"Home": 2.80, "Draw": 3.40, "Away": 3.90},
        },
        event_id="soccer_1",
        market=MarketType.THREE_WAY,
    )


@pytest.fixture
def fixture_events():
    return load_events(DEFAULT_FIXTURES_PATH)


@pytest.fixture
def test_settings():
    return Settings(
        engine=EngineSettings(),
        feed=FeedSettings(load_fixtures=True, fixtures_path=DEFAULT_FIXTURES_PATH),
        cors_origins=["http://testserver"],
    )


@pytest.fixture
def client(test_settings):
    from api.main import create_app

    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def later():
    return OBSERVED_AT + timedelta(minutes=5)
