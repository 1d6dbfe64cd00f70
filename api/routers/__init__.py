"""API routers for EdgeFinder."""

from . import arbitrage, ev, fixtures, health, odds, opportunities

__all__ = [
    "arbitrage",
    "ev",
    "fixtures",
    "health",
    "odds",
    "opportunities",
]
