"""Expected value endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from api.common import (
    EVOpportunityResponse,
    SkipResponse,
    get_app_state,
    parse_devig,
    parse_market,
)

router = APIRouter()


class EVListResponse(BaseModel):
    """Response model for the +EV list of one event."""

    error: Optional[str] = None
    data: list[EVOpportunityResponse]
    skipped: list[SkipResponse]


@router.get("/ev/{event_id}", response_model=EVListResponse)
async def get_ev(
    request: Request,
    event_id: str,
    market: Optional[str] = Query(None, description="Market key; all markets if omitted"),
    devig: Optional[str] = Query(None, description="proportional, shin, shin_iterative, power or additive"),
    baseline: Optional[str] = Query(None, description="Baseline bookmaker (default pinnacle)"),
    threshold: Optional[float] = Query(None, ge=0, description="Minimum EV percent"),
    bankroll: Optional[float] = Query(None, ge=0, description="Bankroll for Kelly stake suggestions"),
) -> dict[str, Any]:
    """
    +EV prices for one event, best first.

    A market without the baseline book yields no prices and a skip entry
    with the reason; this is not an error.
    """
    market_type = parse_market(market)
    devig_method = parse_devig(devig)

    app_state = get_app_state(request)
    event = app_state.get_event(event_id)
    aggregator = app_state.aggregator(
        baseline_book=baseline,
        devig_method=devig_method,
        ev_threshold_percent=threshold,
        bankroll=bankroll,
    )
    result = aggregator.evaluate_event(event, market_type)

    return {
        "error": None,
        "data": [o.to_dict() for o in result.ev_opportunities],
        "skipped": [s.to_dict() for s in result.skipped if s.stage != "arbitrage"],
    }
