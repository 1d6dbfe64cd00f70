"""
Expected value and Kelly sizing against a fair probability.

All functions take a fair (no-vig) probability and a quoted decimal price.
Thresholds are never baked in here; callers pass them explicitly.
"""
from .odds_converter import implied_probability, validate_decimal


def expected_value_percent(fair_probability: float, quoted_decimal: float) -> float:
    """
    Edge of a quoted price over the fair price, in percent.

    EV% = (fair_p - implied) / implied * 100

    Args:
        fair_probability: No-vig probability of the outcome (0-1)
        quoted_decimal: Decimal odds offered by the bookmaker

    Returns:
        EV percentage (positive = the price overpays)

    Examples:
        >>> round(expected_value_percent(0.5, 2.20), 2)
        10.0
    """
    implied = implied_probability(quoted_decimal)
    return (fair_probability - implied) / implied * 100.0


def expected_value_per_stake(
    fair_probability: float,
    quoted_decimal: float,
    stake: float = 1.0,
) -> float:
    """
    Dollar expected value of a wager.

    EV = p * (d - 1) * stake - (1 - p) * stake

    Examples:
        >>> round(expected_value_per_stake(0.55, 1.909090909, 100), 2)
        5.0
    """
    d = validate_decimal(quoted_decimal)
    return fair_probability * (d - 1.0) * stake - (1.0 - fair_probability) * stake


def kelly_fraction(fair_probability: float, quoted_decimal: float) -> float:
    """
    Full Kelly fraction of bankroll.

    f* = (b*p - q) / b where b = decimal - 1, q = 1 - p.
    A negative result means no bet, so the fraction is floored at 0.

    Args:
        fair_probability: Probability of winning (0-1)
        quoted_decimal: Decimal odds

    Returns:
        Kelly fraction, never negative
    """
    b = validate_decimal(quoted_decimal) - 1.0
    p = fair_probability
    q = 1.0 - p

    if b * p <= q:
        return 0.0
    return max(0.0, (b * p - q) / b)


def meets_threshold(ev_percent: float, threshold_percent: float) -> bool:
    """Whether an EV% clears the caller's surfacing threshold."""
    return ev_percent >= threshold_percent
