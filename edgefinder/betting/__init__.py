"""
Betting math and opportunity detection.

Provides tools for:
- Odds conversion and hold calculation
- De-vigging bookmaker prices into fair probabilities
- Expected value and Kelly Criterion bet sizing
- Value bet detection against a baseline bookmaker
- Cross-book arbitrage scanning
- Batch aggregation of both
"""

from .errors import (
    EdgeFinderError,
    EventNotFound,
    InsufficientData,
    InvalidOdds,
    MissingBaseline,
    UnsupportedDevigMethod,
    UpstreamFailure,
)

from .odds_converter import (
    american_to_decimal,
    american_to_implied_probability,
    calculate_hold,
    convert_odds,
    decimal_to_american,
    hold_percent,
    implied_probability,
    probability_to_american,
    probability_to_decimal,
    validate_decimal,
)

from .devig import (
    DevigMethod,
    devig_decimal_odds,
    devig_probabilities,
    fair_prices,
    remove_vig,
)

from .ev_calculator import (
    expected_value_per_stake,
    expected_value_percent,
    kelly_fraction,
    meets_threshold,
)

from .kelly_calculator import (
    KellyCalculator,
    StakeRecommendation,
)

from .quotes import (
    BestLine,
    Event,
    MarketSnapshot,
    MarketType,
    Quote,
    normalize_bookmaker,
)

from .value_detector import (
    EVOpportunity,
    FairLine,
    ValueDetector,
)

from .arbitrage_scanner import (
    ArbCheck,
    ArbitrageLeg,
    ArbitrageOpportunity,
    ArbitrageScanner,
    ScanResult,
    check_arbitrage,
)

from .aggregator import (
    AggregationResult,
    EvaluationConfig,
    MarketSkip,
    OpportunityAggregator,
)

__all__ = [
    # Errors
    "EdgeFinderError",
    "EventNotFound",
    "InsufficientData",
    "InvalidOdds",
    "MissingBaseline",
    "UnsupportedDevigMethod",
    "UpstreamFailure",
    # Odds converter
    "american_to_decimal",
    "american_to_implied_probability",
    "calculate_hold",
    "convert_odds",
    "decimal_to_american",
    "hold_percent",
    "implied_probability",
    "probability_to_american",
    "probability_to_decimal",
    "validate_decimal",
    # De-vig
    "DevigMethod",
    "devig_decimal_odds",
    "devig_probabilities",
    "fair_prices",
    "remove_vig",
    # EV / Kelly
    "expected_value_per_stake",
    "expected_value_percent",
    "kelly_fraction",
    "meets_threshold",
    "KellyCalculator",
    "StakeRecommendation",
    # Quotes
    "BestLine",
    "Event",
    "MarketSnapshot",
    "MarketType",
    "Quote",
    "normalize_bookmaker",
    # Value detection
    "EVOpportunity",
    "FairLine",
    "ValueDetector",
    # Arbitrage
    "ArbCheck",
    "ArbitrageLeg",
    "ArbitrageOpportunity",
    "ArbitrageScanner",
    "ScanResult",
    "check_arbitrage",
    # Aggregation
    "AggregationResult",
    "EvaluationConfig",
    "MarketSkip",
    "OpportunityAggregator",
]
