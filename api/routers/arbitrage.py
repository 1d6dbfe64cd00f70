"""Arbitrage endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from api.common import (
    ArbitrageResponse,
    SkipResponse,
    arbitrage_response,
    get_app_state,
    parse_market,
)

router = APIRouter()


class ArbitrageListResponse(BaseModel):
    """Response model for the arbitrage list of one event."""

    error: Optional[str] = None
    data: list[ArbitrageResponse]
    skipped: list[SkipResponse]


@router.get("/arbitrage/{event_id}", response_model=ArbitrageListResponse)
async def get_arbitrage(
    request: Request,
    event_id: str,
    market: Optional[str] = Query(None, description="Market key; all markets if omitted"),
    min_profit: Optional[float] = Query(None, alias="minProfit", ge=0, description="Minimum profit percent"),
    distinct_books: Optional[bool] = Query(
        None, alias="distinctBooks", description="Require a different bookmaker per leg"
    ),
    stake: Optional[float] = Query(None, gt=0, description="Total stake to split across legs"),
) -> dict[str, Any]:
    """Arbitrage opportunities for one event, best first."""
    market_type = parse_market(market)

    app_state = get_app_state(request)
    event = app_state.get_event(event_id)
    aggregator = app_state.aggregator(
        min_arb_profit_percent=min_profit,
        require_distinct_books=distinct_books,
    )
    result = aggregator.evaluate_event(event, market_type)

    return {
        "error": None,
        "data": [arbitrage_response(a, stake) for a in result.arbitrage_opportunities],
        "skipped": [s.to_dict() for s in result.skipped if s.stage != "ev"],
    }
