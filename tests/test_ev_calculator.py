"""Unit tests for edgefinder/betting/ev_calculator.py and kelly_calculator.py."""

import pytest

from edgefinder.betting.errors import InvalidOdds
from edgefinder.betting.ev_calculator import (
    expected_value_per_stake,
    expected_value_percent,
    kelly_fraction,
    meets_threshold,
)
from edgefinder.betting.kelly_calculator import KellyCalculator


# ---------------------------------------------------------------------------
# Expected value
# ---------------------------------------------------------------------------

class TestExpectedValuePercent:
    def test_fair_coin_at_plus_120(self):
        assert expected_value_percent(0.5, 2.20) == pytest.approx(10.0)

    def test_fair_price_is_zero(self):
        assert expected_value_percent(0.5, 2.0) == pytest.approx(0.0)

    def test_negative_ev(self):
        assert expected_value_percent(0.5, 1.85) == pytest.approx(-7.5)

    def test_invalid_price(self):
        with pytest.raises(InvalidOdds):
            expected_value_percent(0.5, 1.0)


class TestExpectedValuePerStake:
    def test_dollar_ev(self):
        assert expected_value_per_stake(0.5, 2.20, stake=100) == pytest.approx(10.0)

    def test_unit_stake_matches_percent(self):
        assert expected_value_per_stake(0.55, 1.91) * 100 == pytest.approx(
            expected_value_percent(0.55, 1.91)
        )


class TestMeetsThreshold:
    def test_boundary_is_inclusive(self):
        assert meets_threshold(2.0, 2.0) is True

    def test_below(self):
        assert meets_threshold(1.99, 2.0) is False


# ---------------------------------------------------------------------------
# Kelly
# ---------------------------------------------------------------------------

class TestKellyFraction:
    def test_positive_edge(self):
        # b = 1.2, f = (1.2 * 0.5 - 0.5) / 1.2
        assert kelly_fraction(0.5, 2.20) == pytest.approx(0.1 / 1.2)

    def test_no_edge_is_zero(self):
        assert kelly_fraction(0.5, 2.0) == 0.0

    @pytest.mark.parametrize("p,price", [(0.3, 1.5), (0.1, 2.0), (0.45, 1.91), (0.0, 3.0)])
    def test_never_negative(self, p, price):
        assert kelly_fraction(p, price) >= 0.0


class TestKellyCalculator:
    def test_quarter_kelly_stake(self):
        kelly = KellyCalculator(fraction=0.25, max_stake_pct=0.05)
        stake = kelly.calculate_stake(bankroll=1000.0, win_probability=0.5, decimal_odds=2.2)
        assert stake.recommended_stake == pytest.approx(20.83)
        assert stake.capped_by_max is False

    def test_capped_at_max_stake(self):
        kelly = KellyCalculator(fraction=1.0, max_stake_pct=0.02)
        stake = kelly.calculate_stake(bankroll=1000.0, win_probability=0.6, decimal_odds=2.5)
        assert stake.recommended_stake == pytest.approx(20.0)
        assert stake.capped_by_max is True

    def test_no_edge_no_stake(self):
        kelly = KellyCalculator()
        stake = kelly.calculate_stake(bankroll=1000.0, win_probability=0.4, decimal_odds=2.0)
        assert stake.recommended_stake == 0.0
        assert stake.below_minimum is True

    def test_full_kelly_capped_at_one(self):
        kelly = KellyCalculator()
        assert kelly.full_kelly(0.999, 1000.0) <= 1.0

    def test_invalid_fraction(self):
        with pytest.raises(ValueError):
            KellyCalculator(fraction=0)

    def test_negative_bankroll(self):
        with pytest.raises(ValueError):
            KellyCalculator().calculate_stake(-1.0, 0.5, 2.2)

    def test_to_dict(self):
        stake = KellyCalculator().calculate_stake(1000.0, 0.5, 2.2, bet_id="b1")
        payload = stake.to_dict()
        assert payload["bet_id"] == "b1"
        assert payload["recommended_stake"] == pytest.approx(20.83)
