"""
Constants and defaults for the EdgeFinder engine.

Contains default thresholds and sportsbook display names.
"""
from typing import Final


# =============================================================================
# ENGINE DEFAULTS
# =============================================================================
DEFAULT_BASELINE_BOOK: Final[str] = "pinnacle"
DEFAULT_EV_THRESHOLD_PERCENT: Final[float] = 2.0
DEFAULT_MIN_ARB_PROFIT_PERCENT: Final[float] = 1.5
DEFAULT_KELLY_MULTIPLIER: Final[float] = 0.25
DEFAULT_MAX_STAKE_PERCENT: Final[float] = 0.05
DEFAULT_DEVIG_METHOD: Final[str] = "proportional"


# =============================================================================
# SPORTSBOOKS
# =============================================================================
SPORTSBOOKS: Final[dict[str, str]] = {
    "pinnacle": "Pinnacle",
    "draftkings": "DraftKings",
    "fanduel": "FanDuel",
    "betmgm": "BetMGM",
    "caesars": "Caesars",
    "pointsbet": "PointsBet",
    "betrivers": "BetRivers",
}

