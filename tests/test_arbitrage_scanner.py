"""Unit tests for edgefinder/betting/arbitrage_scanner.py."""

import pytest

from edgefinder.betting.arbitrage_scanner import ArbitrageScanner, check_arbitrage
from edgefinder.betting.errors import InsufficientData
from edgefinder.betting.quotes import MarketType

from conftest import make_snapshot


# ---------------------------------------------------------------------------
# check_arbitrage
# ---------------------------------------------------------------------------

class TestCheckArbitrage:
    def test_two_way_arb(self):
        check = check_arbitrage([2.20, 2.40])
        assert check.is_arb is True
        assert check.total_implied == pytest.approx(0.8712, abs=1e-4)
        assert check.profit_percent == pytest.approx(14.78, abs=0.01)
        assert check.stake_ratios == pytest.approx((0.5217, 0.4783), abs=1e-4)

    def test_even_prices_are_not_arb(self):
        check = check_arbitrage([1.95, 1.95])
        assert check.is_arb is False
        assert check.profit_percent < 0

    def test_below_minimum_profit(self):
        # 1.11% profit
        check = check_arbitrage([1.95, 2.10], min_profit_percent=1.5)
        assert check.is_arb is False
        assert check.profit_percent == pytest.approx(1.11, abs=0.01)

    def test_zero_minimum_accepts_thin_arb(self):
        assert check_arbitrage([1.95, 2.10], min_profit_percent=0).is_arb is True

    def test_stake_ratios_sum_to_one(self):
        check = check_arbitrage([3.10, 3.60, 3.90])
        assert sum(check.stake_ratios) == pytest.approx(1.0)

    def test_equal_payout_on_every_leg(self):
        prices = [3.10, 3.60, 3.90]
        check = check_arbitrage(prices)
        payouts = [ratio * price for ratio, price in zip(check.stake_ratios, prices)]
        assert max(payouts) == pytest.approx(min(payouts))

    def test_single_leg_rejected(self):
        with pytest.raises(InsufficientData):
            check_arbitrage([2.0])


# ---------------------------------------------------------------------------
# Two-way scanning
# ---------------------------------------------------------------------------

class TestTwoWayScan:
    def test_cross_book_arb(self, arb_snapshot):
        arbs = ArbitrageScanner().scan(arb_snapshot)

        assert len(arbs) == 1
        arb = arbs[0]
        assert arb.profit_percent == pytest.approx(14.78, abs=0.01)
        assert [(leg.side, leg.bookmaker) for leg in arb.legs] == [
            ("Home", "bookA"),
            ("Away", "bookB"),
        ]
        assert arb.stake_ratios == pytest.approx((0.5217, 0.4783), abs=1e-4)
        assert arb.is_executable is True

    def test_reverse_assignment_found(self):
        snapshot = make_snapshot(
            {
                "bookA": {"Home": 1.70, "Away": 2.40},
                "bookB": {"Home": 2.20, "Away": 1.60},
            }
        )
        arbs = ArbitrageScanner().scan(snapshot)
        assert len(arbs) == 1
        assert [leg.bookmaker for leg in arbs[0].legs] == ["bookB", "bookA"]

    def test_fair_market_has_no_arb(self):
        snapshot = make_snapshot(
            {
                "pinnacle": {"Home": 1.95, "Away": 1.95},
                "draftkings": {"Home": 1.95, "Away": 1.95},
            }
        )
        assert ArbitrageScanner().scan(snapshot) == []

    def test_sorted_by_profit(self, mlb_snapshot):
        arbs = ArbitrageScanner().scan(mlb_snapshot)
        assert [round(a.profit_percent, 2) for a in arbs] == [7.44, 3.37]
        assert [leg.bookmaker for leg in arbs[0].legs] == ["fanduel", "draftkings"]

    def test_single_bookmaker_skipped(self):
        snapshot = make_snapshot({"bookA": {"Home": 2.20, "Away": 2.40}})
        assert ArbitrageScanner().scan(snapshot) == []

    def test_negative_minimum_rejected(self):
        with pytest.raises(ValueError):
            ArbitrageScanner(min_profit_percent=-1)


# ---------------------------------------------------------------------------
# N-way scanning
# ---------------------------------------------------------------------------

class TestNWayScan:
    def test_best_of_each_leg(self, three_way_snapshot):
        arbs = ArbitrageScanner().scan(three_way_snapshot)

        assert len(arbs) == 1
        arb = arbs[0]
        assert arb.market == MarketType.THREE_WAY
        assert [(leg.side, leg.bookmaker, leg.price) for leg in arb.legs] == [
            ("Home", "bookA", 3.10),
            ("Draw", "bookA", 3.60),
            ("Away", "bookB", 3.90),
        ]
        assert sum(arb.stake_ratios) == pytest.approx(1.0)
        assert arb.profit_percent == pytest.approx(16.72, abs=0.01)

    def test_shared_bookmaker_flagged(self, three_way_snapshot):
        arb = ArbitrageScanner().scan(three_way_snapshot)[0]
        assert arb.shared_bookmakers == ["bookA"]
        assert arb.is_executable is False

    def test_distinct_books_needs_enough_bookmakers(self, three_way_snapshot):
        scanner = ArbitrageScanner(require_distinct_books=True)
        assert scanner.scan(three_way_snapshot) == []

    def test_distinct_books_assignment(self):
        snapshot = make_snapshot(
            {
                "pinnacle": {"Home": 2.50, "Draw": 3.40, "Away": 2.90},
                "draftkings": {"Home": 2.70, "Draw": 3.30, "Away": 2.80},
                "betmgm": {"Home": 2.45, "Draw": 3.75, "Away": 3.10},
            },
            market=MarketType.THREE_WAY,
        )

        best_of_leg = ArbitrageScanner().scan(snapshot)[0]
        assert best_of_leg.profit_percent == pytest.approx(4.21, abs=0.01)
        assert best_of_leg.is_executable is False

        distinct = ArbitrageScanner(require_distinct_books=True).scan(snapshot)[0]
        assert distinct.is_executable is True
        assert [leg.bookmaker for leg in distinct.legs] == ["draftkings", "betmgm", "pinnacle"]
        assert distinct.profit_percent == pytest.approx(1.85, abs=0.01)

    def test_no_arb_when_best_prices_overround(self):
        snapshot = make_snapshot(
            {
                "bookA": {"Home": 2.50, "Draw": 3.40, "Away": 2.90},
                "bookB": {"Home": 2.45, "Draw": 3.30, "Away": 2.95},
            },
            market=MarketType.THREE_WAY,
        )
        assert ArbitrageScanner().scan(snapshot) == []


# ---------------------------------------------------------------------------
# Opportunity helpers
# ---------------------------------------------------------------------------

class TestArbitrageOpportunity:
    def test_scale_stakes(self, arb_snapshot):
        arb = ArbitrageScanner().scan(arb_snapshot)[0]
        stakes, profit = arb.scale_stakes(100.0)

        assert stakes == [52.17, 47.83]
        assert profit == pytest.approx(14.77, abs=0.02)

    def test_to_dict(self, arb_snapshot):
        payload = ArbitrageScanner().scan(arb_snapshot)[0].to_dict()

        assert payload["market"] == "moneyline"
        assert payload["is_executable"] is True
        assert payload["legs"][0]["american"] == 120
        assert payload["legs"][1]["american"] == 140

    def test_scan_many(self, arb_snapshot, mlb_snapshot):
        result = ArbitrageScanner().scan_many([arb_snapshot, mlb_snapshot])

        assert result.scanned_markets == 2
        assert result.has_opportunities
        assert result.get_top_opportunities(1)[0].event_id == "arb_1"
