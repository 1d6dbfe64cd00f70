"""Odds feed endpoints: read and push normalised quotes."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from api.common import (
    EventResponse,
    QuoteResponse,
    event_response,
    get_app_state,
    parse_market,
)
from edgefinder.betting.errors import InvalidOdds
from edgefinder.betting.odds_converter import american_to_decimal
from edgefinder.betting.quotes import Event, MarketType, Quote, normalize_bookmaker

logger = logging.getLogger(__name__)

router = APIRouter()


class OddsResponse(BaseModel):
    """Quotes of one event."""

    error: Optional[str] = None
    event: EventResponse
    data: list[QuoteResponse]


class QuoteIn(BaseModel):
    """One quote pushed by the feed collaborator."""

    bookmaker: str
    market: str = Field(description="Market key (h2h, spreads, totals, h2h_3way, ...)")
    outcome: str
    price: float
    observed_at: Optional[datetime] = None


class EventUpdate(BaseModel):
    """Full replacement of an event's quotes."""

    home_team: str = ""
    away_team: str = ""
    sport: str = ""
    commence_time: Optional[datetime] = None
    odds_format: str = Field("decimal", description="decimal or american")
    quotes: list[QuoteIn]


class FeedStatusUpdate(BaseModel):
    """Collaborator report on the upstream odds source."""

    error: Optional[str] = Field(None, description="Failure message; null marks the feed healthy")


@router.get("/odds/{event_id}", response_model=OddsResponse)
async def get_odds(
    request: Request,
    event_id: str,
    market: Optional[str] = Query(None, description="Market key (h2h, spreads, totals, h2h_3way)"),
) -> dict[str, Any]:
    """Normalised quotes for one event, optionally for one market."""
    market_type = parse_market(market)
    event = get_app_state(request).get_event(event_id)

    return {
        "error": None,
        "event": event_response(event),
        "data": [q.to_dict() for q in event.quotes_for(market_type)],
    }


@router.put("/odds/{event_id}", response_model=OddsResponse)
async def put_odds(request: Request, event_id: str, update: EventUpdate) -> dict[str, Any]:
    """
    Replace an event's quotes.

    Decimal prices are stored as given; bookmakers with unusable prices are
    excluded market by market at evaluation time. American prices that
    cannot be converted are dropped, which excludes that bookmaker from
    the market the same way.
    """
    now = datetime.now(timezone.utc)
    american = update.odds_format.lower() == "american"

    quotes = []
    for q in update.quotes:
        market_type = parse_market(q.market) or MarketType.MONEYLINE
        bookmaker = normalize_bookmaker(q.bookmaker)
        price = q.price
        if american:
            try:
                price = american_to_decimal(q.price)
            except InvalidOdds as e:
                logger.warning(f"Dropping {bookmaker} {q.outcome} on {event_id}: {e}")
                continue
        quotes.append(
            Quote(
                event_id=event_id,
                bookmaker=bookmaker,
                market=market_type,
                outcome=q.outcome,
                price=price,
                observed_at=q.observed_at or now,
            )
        )

    event = Event(
        event_id=event_id,
        home_team=update.home_team,
        away_team=update.away_team,
        commence_time=update.commence_time,
        sport=update.sport,
        quotes=tuple(quotes),
    )
    await get_app_state(request).replace_event(event)
    logger.info(f"Replaced {event_id} with {len(quotes)} quotes")

    return {
        "error": None,
        "event": event_response(event),
        "data": [q.to_dict() for q in event.quotes],
    }


@router.put("/feed/status")
async def put_feed_status(request: Request, update: FeedStatusUpdate) -> dict[str, Any]:
    """Flag or clear an upstream failure; reads return 502 while flagged."""
    app_state = get_app_state(request)
    if update.error:
        await app_state.mark_upstream_failed(update.error)
    else:
        await app_state.mark_upstream_healthy()
    return {"error": None, "data": {"upstream_error": update.error}}
