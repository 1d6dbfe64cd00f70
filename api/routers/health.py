"""Health check endpoints."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """
    Health check endpoint.

    Reports "degraded" while the feed collaborator has flagged an upstream
    failure or the state failed to initialize.
    """
    app_state = request.app.state.app_state

    components = app_state.get_health_status()

    if not components.get("initialized", False):
        status = "offline"
    elif components.get("upstream_error") or components.get("init_error"):
        status = "degraded"
    else:
        status = "healthy"

    return {
        "status": status,
        "timestamp": datetime.now().isoformat(),
        "components": components,
    }
