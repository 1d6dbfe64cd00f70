"""
Kelly Criterion bet sizing calculator.

Turns the full Kelly fraction from ``ev_calculator.kelly_fraction`` into a
dollar stake using a conservative fractional Kelly and bankroll caps.
"""

from dataclasses import dataclass

from .ev_calculator import kelly_fraction


@dataclass
class StakeRecommendation:
    """Recommended stake for a single bet."""

    bet_id: str
    full_kelly: float  # Full Kelly fraction (0-1)
    fractional_kelly: float  # After applying fraction (e.g., 25%)
    recommended_stake: float  # Dollar amount
    stake_percentage: float  # Fraction of bankroll

    # Constraints applied
    capped_by_max: bool = False
    capped_by_min: bool = False
    below_minimum: bool = False  # Stake too small to place

    # Input parameters for reference
    win_probability: float = 0.0
    decimal_odds: float = 0.0
    bankroll: float = 0.0

    def to_dict(self) -> dict:
        return {
            "bet_id": self.bet_id,
            "full_kelly": self.full_kelly,
            "fractional_kelly": self.fractional_kelly,
            "recommended_stake": self.recommended_stake,
            "stake_percentage": self.stake_percentage,
            "capped_by_max": self.capped_by_max,
            "capped_by_min": self.capped_by_min,
            "below_minimum": self.below_minimum,
        }


class KellyCalculator:
    """
    Kelly Criterion calculator for optimal bet sizing.

    Full Kelly is volatile, so stakes use fractional Kelly (25% by default)
    and are capped at a share of bankroll.

    Key formulas:
    - Full Kelly: f* = (bp - q) / b
      where b = net odds, p = win prob, q = lose prob
    - Fractional Kelly: f = f* x fraction

    Example:
        >>> kelly = KellyCalculator(fraction=0.25, max_stake_pct=0.05)
        >>> stake = kelly.calculate_stake(
        ...     bankroll=1000.0,
        ...     win_probability=0.5,
        ...     decimal_odds=2.2,
        ... )
        >>> stake.recommended_stake
        20.83
    """

    def __init__(
        self,
        fraction: float = 0.25,
        max_stake_pct: float = 0.05,
        min_stake: float = 1.0,
    ):
        """
        Initialize the Kelly calculator.

        Args:
            fraction: Kelly fraction to use (0.25 = quarter Kelly)
            max_stake_pct: Maximum stake as fraction of bankroll
            min_stake: Minimum dollar amount for a bet
        """
        if not 0 < fraction <= 1:
            raise ValueError("Fraction must be between 0 and 1")
        if not 0 < max_stake_pct <= 1:
            raise ValueError("Max stake percentage must be between 0 and 1")
        if min_stake < 0:
            raise ValueError("Minimum stake cannot be negative")

        self.fraction = fraction
        self.max_stake_pct = max_stake_pct
        self.min_stake = min_stake

    def full_kelly(self, win_probability: float, decimal_odds: float) -> float:
        """Full Kelly stake fraction, 0 if there is no edge."""
        if not 0 < win_probability < 1:
            return 0.0
        return min(kelly_fraction(win_probability, decimal_odds), 1.0)

    def fractional_kelly(self, win_probability: float, decimal_odds: float) -> float:
        """Full Kelly scaled by the configured fraction."""
        return self.full_kelly(win_probability, decimal_odds) * self.fraction

    def calculate_stake(
        self,
        bankroll: float,
        win_probability: float,
        decimal_odds: float,
        bet_id: str = "",
    ) -> StakeRecommendation:
        """
        Calculate recommended stake for a bet.

        Args:
            bankroll: Current bankroll in dollars
            win_probability: Probability of winning (0-1)
            decimal_odds: Decimal odds offered
            bet_id: Optional identifier for the bet

        Returns:
            StakeRecommendation with dollar amount and metadata
        """
        if bankroll < 0:
            raise ValueError("Bankroll cannot be negative")

        full = self.full_kelly(win_probability, decimal_odds)
        fractional = full * self.fraction

        stake = fractional * bankroll

        capped_by_max = False
        capped_by_min = False
        below_minimum = False

        max_stake = self.max_stake_pct * bankroll

        if stake > max_stake:
            stake = max_stake
            capped_by_max = True

        if stake < self.min_stake:
            if stake > 0 and stake >= self.min_stake * 0.5:
                stake = self.min_stake
                capped_by_min = True
            else:
                # Edge too small, don't bet
                below_minimum = True
                stake = 0.0

        stake_percentage = stake / bankroll if bankroll > 0 else 0.0

        return StakeRecommendation(
            bet_id=bet_id,
            full_kelly=full,
            fractional_kelly=fractional,
            recommended_stake=round(stake, 2),
            stake_percentage=stake_percentage,
            capped_by_max=capped_by_max,
            capped_by_min=capped_by_min,
            below_minimum=below_minimum,
            win_probability=win_probability,
            decimal_odds=decimal_odds,
            bankroll=bankroll,
        )
