"""
Odds conversion and calculation utilities.

Provides functions for converting between American, decimal and
implied-probability representations, and for measuring bookmaker hold.
Decimal odds are the canonical form everywhere in the engine.
"""
import math
from typing import Iterable, NamedTuple

from .errors import InvalidOdds


class OddsFormats(NamedTuple):
    """Container for odds in multiple formats."""

    american: int
    decimal: float
    implied_probability: float


def validate_decimal(decimal_odds: float) -> float:
    """
    Check that a decimal price is usable for implied-probability math.

    Args:
        decimal_odds: Decimal odds

    Returns:
        The price as a float

    Raises:
        InvalidOdds: if the price is not a finite number above 1.0
    """
    try:
        value = float(decimal_odds)
    except (TypeError, ValueError):
        raise InvalidOdds(decimal_odds, "not a number") from None

    if math.isnan(value) or math.isinf(value):
        raise InvalidOdds(decimal_odds, "not finite")
    if value <= 1.0:
        # 1.0 implies certainty, anything lower is a negative payout
        raise InvalidOdds(decimal_odds, "decimal odds must be greater than 1.0")
    return value


def american_to_decimal(american: int) -> float:
    """
    Convert American odds to decimal odds.

    Args:
        american: American odds (e.g., -110, +150)

    Returns:
        Decimal odds (e.g., 1.909, 2.50)

    Raises:
        InvalidOdds: for 0, non-finite values or magnitudes below 100

    Examples:
        >>> american_to_decimal(-110)
        1.9090909090909092
        >>> american_to_decimal(150)
        2.5
    """
    if american is None or isinstance(american, bool):
        raise InvalidOdds(american, "not a number")
    try:
        american = float(american)
    except (TypeError, ValueError):
        raise InvalidOdds(american, "not a number") from None
    if not math.isfinite(american):
        raise InvalidOdds(american, "not finite")
    if american == 0:
        raise InvalidOdds(american, "American odds cannot be zero")
    if abs(american) < 100:
        raise InvalidOdds(american, "American odds must have magnitude >= 100")

    if american > 0:
        return 1.0 + american / 100.0
    return 1.0 + 100.0 / abs(american)


def decimal_to_american(decimal_odds: float) -> int:
    """
    Convert decimal odds to American odds.

    Args:
        decimal_odds: Decimal odds (e.g., 1.91, 2.50)

    Returns:
        American odds (e.g., -110, +150)

    Examples:
        >>> decimal_to_american(1.91)
        -110
        >>> decimal_to_american(2.50)
        150
    """
    d = validate_decimal(decimal_odds)
    if d >= 2.0:
        return int(round((d - 1.0) * 100.0))
    return int(round(-100.0 / (d - 1.0)))


def implied_probability(decimal_odds: float) -> float:
    """
    Convert decimal odds to implied probability.

    Note: This includes the bookmaker's vig, so probabilities across a
    market won't sum to 1.

    Examples:
        >>> implied_probability(2.0)
        0.5
    """
    return 1.0 / validate_decimal(decimal_odds)


def american_to_implied_probability(american: int) -> float:
    """Convert American odds straight to implied probability."""
    return 1.0 / american_to_decimal(american)


def probability_to_decimal(probability: float) -> float:
    """
    Fair decimal price for a probability.

    Args:
        probability: True probability of outcome, in (0, 1]

    Returns:
        Decimal odds with no margin
    """
    if not 0.0 < probability <= 1.0:
        raise ValueError(f"Probability must be in (0, 1], got {probability}")
    return 1.0 / probability


def probability_to_american(probability: float) -> int:
    """
    Fair American odds for a probability.

    Examples:
        >>> probability_to_american(0.5)
        100
        >>> probability_to_american(0.6)
        -150
    """
    if not 0.0 < probability < 1.0:
        raise ValueError(f"Probability must be in (0, 1), got {probability}")
    return decimal_to_american(1.0 / probability)


def convert_odds(american: int) -> OddsFormats:
    """
    Convert American odds to all formats.

    Args:
        american: American odds

    Returns:
        OddsFormats with american, decimal, and implied probability
    """
    decimal_odds = american_to_decimal(american)
    return OddsFormats(
        american=american,
        decimal=decimal_odds,
        implied_probability=1.0 / decimal_odds,
    )


def total_implied_probability(prices: Iterable[float]) -> float:
    """Sum of implied probabilities across a set of decimal prices."""
    return sum(implied_probability(p) for p in prices)


def calculate_hold(prices: Iterable[float]) -> float:
    """
    Bookmaker margin (overround) for one market, as a fraction.

    Args:
        prices: Decimal odds for every outcome of the market

    Returns:
        Sum of implied probabilities minus 1

    Examples:
        >>> round(calculate_hold([1.91, 1.91]), 4)
        0.0471
    """
    return total_implied_probability(prices) - 1.0


def hold_percent(prices: Iterable[float]) -> float:
    """Bookmaker margin as a percentage (2.35 means 2.35%)."""
    return calculate_hold(prices) * 100.0


def format_american_odds(odds: int) -> str:
    """
    Format American odds with proper sign.

    Examples:
        >>> format_american_odds(-110)
        '-110'
        >>> format_american_odds(150)
        '+150'
    """
    if odds > 0:
        return f"+{odds}"
    return str(odds)


def format_probability_percent(probability: float, decimals: int = 1) -> str:
    """
    Format probability as percentage string.

    Examples:
        >>> format_probability_percent(0.5238)
        '52.4%'
    """
    percent = probability * 100
    return f"{percent:.{decimals}f}%"
