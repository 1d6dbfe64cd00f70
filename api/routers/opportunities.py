"""Batch evaluation over the whole feed."""

from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from api.common import (
    ArbitrageResponse,
    EVOpportunityResponse,
    SkipResponse,
    arbitrage_response,
    get_app_state,
    parse_csv,
    parse_devig,
    parse_market,
)

router = APIRouter()


class OpportunitiesData(BaseModel):
    ev_opportunities: list[EVOpportunityResponse]
    arbitrage_opportunities: list[ArbitrageResponse]
    events_evaluated: int
    markets_evaluated: int
    evaluated_at: str


class OpportunitiesResponse(BaseModel):
    """Response model for a batch evaluation."""

    error: Optional[str] = None
    data: OpportunitiesData
    skipped: list[SkipResponse]


@router.get("/opportunities", response_model=OpportunitiesResponse)
async def get_opportunities(
    request: Request,
    threshold: Optional[float] = Query(None, ge=0, description="Minimum EV percent"),
    min_profit: Optional[float] = Query(None, alias="minProfit", ge=0, description="Minimum arbitrage profit percent"),
    hidden: Optional[str] = Query(None, description="Comma-separated bookmakers to hide"),
    market: Optional[str] = Query(None, description="Only evaluate this market"),
    devig: Optional[str] = Query(None, description="De-vig method"),
    baseline: Optional[str] = Query(None, description="Baseline bookmaker"),
    bankroll: Optional[float] = Query(None, ge=0, description="Bankroll for Kelly stake suggestions"),
) -> dict[str, Any]:
    """Every +EV price and arbitrage currently in the feed."""
    market_type = parse_market(market)

    app_state = get_app_state(request)
    events = app_state.list_events()
    aggregator = app_state.aggregator(
        ev_threshold_percent=threshold,
        min_arb_profit_percent=min_profit,
        hidden_bookmakers=parse_csv(hidden),
        markets=frozenset([market_type]) if market_type else None,
        devig_method=parse_devig(devig),
        baseline_book=baseline,
        bankroll=bankroll,
    )
    result = aggregator.evaluate(events)

    return {
        "error": None,
        "data": {
            "ev_opportunities": [o.to_dict() for o in result.ev_opportunities],
            "arbitrage_opportunities": [
                arbitrage_response(a) for a in result.arbitrage_opportunities
            ],
            "events_evaluated": result.events_evaluated,
            "markets_evaluated": result.markets_evaluated,
            "evaluated_at": result.evaluated_at.isoformat(),
        },
        "skipped": [s.to_dict() for s in result.skipped],
    }
