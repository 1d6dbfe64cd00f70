"""Bundled sample events."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.common import EventResponse, event_response, get_app_state
from edgefinder.data.odds_feed import load_events

logger = logging.getLogger(__name__)

router = APIRouter()


class FixturesResponse(BaseModel):
    error: Optional[str] = None
    data: list[EventResponse]


@router.get("/fixtures", response_model=FixturesResponse)
async def get_fixtures(request: Request) -> dict[str, Any]:
    """The bundled sample events, whether or not they are in the feed."""
    app_state = get_app_state(request)
    events = load_events(
        app_state.settings.feed.fixtures_path,
        app_state.settings.feed.supported_bookmakers,
    )
    return {"error": None, "data": [event_response(e) for e in events]}


@router.post("/fixtures/load", response_model=FixturesResponse)
async def load_fixtures(request: Request) -> dict[str, Any]:
    """Copy the bundled sample events into the feed."""
    app_state = get_app_state(request)
    events = load_events(
        app_state.settings.feed.fixtures_path,
        app_state.settings.feed.supported_bookmakers,
    )
    for event in events:
        await app_state.replace_event(event)
    logger.info(f"Loaded {len(events)} fixture events into the feed")
    return {"error": None, "data": [event_response(e) for e in events]}
