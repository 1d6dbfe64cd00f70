"""
Margin removal (de-vig) for a single bookmaker's market.

Turns the implied probabilities of one bookmaker's prices into a fair
probability vector that sums to 1. The method is picked with ``DevigMethod``
and dispatched through a plain lookup table:

- proportional: divide each implied probability by the total (any N)
- shin: closed-form Shin approximation (two-way only)
- shin_iterative: Shin model with z solved numerically (any N)
- power: raise probabilities to the exponent k that makes them sum to 1
- additive: subtract an equal share of the overround from every outcome

Every method returns probabilities in (0, 1) that sum to 1 and keep the
favourite as the favourite.
"""
import math
from enum import Enum
from typing import Callable, Sequence

import numpy as np
from scipy.optimize import brentq

from .errors import InsufficientData, InvalidOdds, UnsupportedDevigMethod
from .odds_converter import validate_decimal

# Cap on the insider-trading share used by the closed-form Shin estimate
SHIN_MAX_Z = 0.10

# Floor applied by the additive method before renormalising
ADDITIVE_FLOOR = 1e-9

SUM_TOLERANCE = 1e-6


class DevigMethod(str, Enum):
    """Supported margin-removal strategies."""

    PROPORTIONAL = "proportional"
    SHIN = "shin"
    SHIN_ITERATIVE = "shin_iterative"
    POWER = "power"
    ADDITIVE = "additive"

    @classmethod
    def parse(cls, value: "str | DevigMethod") -> "DevigMethod":
        """Look up a method by name, case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Unknown de-vig method '{value}' (expected one of: {allowed})"
            ) from None


def _as_probabilities(implied: Sequence[float]) -> np.ndarray:
    probs = np.asarray(implied, dtype=float)
    if probs.ndim != 1 or probs.size < 2:
        raise InsufficientData(
            "De-vig needs at least 2 outcomes", outcomes=int(probs.size)
        )
    if not np.all(np.isfinite(probs)):
        raise InvalidOdds(list(implied), "implied probabilities must be finite")
    if np.any(probs <= 0.0) or np.any(probs >= 1.0):
        raise InvalidOdds(list(implied), "implied probabilities must be in (0, 1)")
    return probs


def _normalize(values: np.ndarray) -> np.ndarray:
    return values / values.sum()


def _proportional(probs: np.ndarray) -> np.ndarray:
    return _normalize(probs)


def _shin(probs: np.ndarray) -> np.ndarray:
    # Closed-form approximation: z is taken straight from the overround
    # instead of being solved for. Kept for parity with the legacy numbers.
    if probs.size != 2:
        raise UnsupportedDevigMethod(DevigMethod.SHIN.value, int(probs.size))

    overround = probs.sum() - 1.0
    if overround <= 0:
        return probs.copy()

    z = min(max(overround, 0.0), SHIN_MAX_Z)
    fair = (np.sqrt(z * z + 4.0 * (1.0 - z) * probs) - z) / (2.0 * (1.0 - z))
    return _normalize(fair)


def _shin_iterative(probs: np.ndarray) -> np.ndarray:
    booksum = probs.sum()
    if booksum <= 1.0:
        return probs.copy()

    def fair_for(z: float) -> np.ndarray:
        return (np.sqrt(z * z + 4.0 * (1.0 - z) * probs**2 / booksum) - z) / (
            2.0 * (1.0 - z)
        )

    z = brentq(lambda z: fair_for(z).sum() - 1.0, 0.0, 0.999, xtol=1e-12)
    return _normalize(fair_for(z))


def _power(probs: np.ndarray) -> np.ndarray:
    booksum = probs.sum()
    if math.isclose(booksum, 1.0, abs_tol=1e-12):
        return probs.copy()

    def excess(k: float) -> float:
        return float(np.power(probs, k).sum() - 1.0)

    # sum(p**k) falls as k grows, so bracket the root on the right side of 1
    if booksum > 1.0:
        lo, hi = 1.0, 2.0
        while excess(hi) > 0:
            hi *= 2.0
    else:
        lo, hi = 0.5, 1.0
        while excess(lo) < 0:
            lo /= 2.0

    k = brentq(excess, lo, hi, xtol=1e-12)
    return _normalize(np.power(probs, k))


def _additive(probs: np.ndarray) -> np.ndarray:
    overround = probs.sum() - 1.0
    fair = np.maximum(probs - overround / probs.size, ADDITIVE_FLOOR)
    return _normalize(fair)


_STRATEGIES: dict[DevigMethod, Callable[[np.ndarray], np.ndarray]] = {
    DevigMethod.PROPORTIONAL: _proportional,
    DevigMethod.SHIN: _shin,
    DevigMethod.SHIN_ITERATIVE: _shin_iterative,
    DevigMethod.POWER: _power,
    DevigMethod.ADDITIVE: _additive,
}


def devig_probabilities(
    implied: Sequence[float],
    method: "DevigMethod | str" = DevigMethod.PROPORTIONAL,
) -> tuple[float, ...]:
    """
    Remove the margin from a vector of implied probabilities.

    Args:
        implied: Implied probabilities for every outcome of one market
        method: De-vig strategy

    Returns:
        Fair probabilities in the same order, summing to 1

    Raises:
        InsufficientData: fewer than 2 outcomes
        InvalidOdds: a probability outside (0, 1)
        UnsupportedDevigMethod: the method can't handle this many outcomes
    """
    strategy = _STRATEGIES[DevigMethod.parse(method)]
    fair = strategy(_as_probabilities(implied))
    return tuple(float(p) for p in fair)


def devig_decimal_odds(
    prices: Sequence[float],
    method: "DevigMethod | str" = DevigMethod.PROPORTIONAL,
) -> tuple[float, ...]:
    """
    Fair probabilities for one bookmaker's decimal prices.

    Args:
        prices: Decimal odds for every outcome, in outcome order
        method: De-vig strategy

    Returns:
        Fair probability vector
    """
    implied = [1.0 / validate_decimal(p) for p in prices]
    return devig_probabilities(implied, method)


remove_vig = devig_decimal_odds


def fair_prices(probabilities: Sequence[float]) -> tuple[float, ...]:
    """Decimal fair prices for a fair probability vector."""
    return tuple(1.0 / p for p in probabilities)
