"""Response models and query parsing shared by the routers."""

from typing import Any, Optional

from fastapi import HTTPException, Request
from pydantic import BaseModel

from api.state import AppState
from edgefinder.betting.devig import DevigMethod
from edgefinder.betting.quotes import MarketType


def get_app_state(request: Request) -> AppState:
    return request.app.state.app_state


def parse_market(value: Optional[str]) -> Optional[MarketType]:
    """Market query parameter; 400 on unknown keys."""
    if not value:
        return None
    try:
        return MarketType.from_key(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


def parse_devig(value: Optional[str]) -> Optional[DevigMethod]:
    """De-vig query parameter; 400 on unknown methods."""
    if not value:
        return None
    try:
        return DevigMethod.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


def parse_csv(value: Optional[str]) -> Optional[frozenset[str]]:
    if value is None:
        return None
    return frozenset(part.strip() for part in value.split(",") if part.strip())


class SkipResponse(BaseModel):
    """A market or bookmaker left out of an evaluation."""

    event_id: str
    market: str
    stage: str
    reason: str
    bookmaker: Optional[str] = None


class QuoteResponse(BaseModel):
    """Response model for a normalised quote."""

    event_id: str
    bookmaker: str
    market: str
    outcome: str
    price: float
    american: Optional[int] = None
    observed_at: str


class EventResponse(BaseModel):
    """Event metadata without quotes."""

    event_id: str
    sport: str
    home_team: str
    away_team: str
    commence_time: Optional[str] = None
    bookmakers: list[str]
    markets: list[str]


class EVOpportunityResponse(BaseModel):
    """Response model for a +EV price."""

    event_id: str
    market: str
    side: str
    bookmaker: str
    quoted_price: float
    american_odds: int
    fair_price: float
    fair_probability: float
    ev_percent: float
    kelly_fraction: float
    hold_percent: float
    baseline_book: str
    recommended_stake: Optional[float] = None
    detected_at: str


class ArbitrageLegResponse(BaseModel):
    side: str
    bookmaker: str
    price: float
    american: int
    stake_ratio: float
    stake: Optional[float] = None


class ArbitrageResponse(BaseModel):
    """Response model for an arbitrage opportunity."""

    arb_id: str
    event_id: str
    market: str
    legs: list[ArbitrageLegResponse]
    profit_percent: float
    total_implied: float
    is_executable: bool
    shared_bookmakers: list[str]
    guaranteed_profit: Optional[float] = None
    detected_at: str


def event_response(event: Any) -> EventResponse:
    return EventResponse(
        event_id=event.event_id,
        sport=event.sport,
        home_team=event.home_team,
        away_team=event.away_team,
        commence_time=event.commence_time.isoformat() if event.commence_time else None,
        bookmakers=event.bookmakers,
        markets=[m.value for m in event.markets()],
    )


def arbitrage_response(arb: Any, total_stake: Optional[float] = None) -> ArbitrageResponse:
    """Serialize an opportunity, splitting ``total_stake`` across legs if given."""
    payload = arb.to_dict()
    if total_stake:
        stakes, profit = arb.scale_stakes(total_stake)
        for leg, stake in zip(payload["legs"], stakes):
            leg["stake"] = stake
        payload["guaranteed_profit"] = profit
    return ArbitrageResponse(**payload)
