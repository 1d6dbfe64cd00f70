"""Tests for the REST API (api/)."""

import pytest


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["components"]["events_in_feed"] == 3
        assert body["components"]["baseline_book"] == "pinnacle"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/api/docs"


class TestOdds:
    def test_get_odds(self, client):
        response = client.get("/api/odds/test_mlb_1")

        assert response.status_code == 200
        body = response.json()
        assert body["error"] is None
        assert body["event"]["home_team"] == "New York Yankees"
        assert len(body["data"]) == 6

    def test_market_filter(self, client):
        body = client.get("/api/odds/test_nba_1", params={"market": "totals"}).json()
        assert {q["outcome"] for q in body["data"]} == {"Over 220.5", "Under 220.5"}

    def test_unknown_event(self, client):
        response = client.get("/api/odds/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Event not found: nope"}

    def test_unknown_market(self, client):
        response = client.get("/api/odds/test_mlb_1", params={"market": "corners"})
        assert response.status_code == 400
        assert "Unknown market" in response.json()["error"]

    def test_put_odds_replaces_event(self, client):
        payload = {
            "home_team": "Home",
            "away_team": "Away",
            "quotes": [
                {"bookmaker": "Pinnacle", "market": "h2h", "outcome": "Home", "price": 1.95},
                {"bookmaker": "Pinnacle", "market": "h2h", "outcome": "Away", "price": 1.95},
                {"bookmaker": "bookA", "market": "h2h", "outcome": "Home", "price": 2.20},
                {"bookmaker": "bookA", "market": "h2h", "outcome": "Away", "price": 1.60},
                {"bookmaker": "bookB", "market": "h2h", "outcome": "Home", "price": 1.70},
                {"bookmaker": "bookB", "market": "h2h", "outcome": "Away", "price": 2.40},
            ],
        }
        response = client.put("/api/odds/custom_1", json=payload)

        assert response.status_code == 200
        assert response.json()["event"]["bookmakers"] == ["pinnacle", "booka", "bookb"]

        arbs = client.get("/api/arbitrage/custom_1").json()["data"]
        assert arbs[0]["profit_percent"] == pytest.approx(14.78, abs=0.01)

    def test_put_american_odds(self, client):
        payload = {
            "odds_format": "american",
            "quotes": [
                {"bookmaker": "pinnacle", "market": "h2h", "outcome": "Home", "price": -110},
                {"bookmaker": "pinnacle", "market": "h2h", "outcome": "Away", "price": -110},
            ],
        }
        body = client.put("/api/odds/custom_2", json=payload).json()
        assert body["data"][0]["american"] == -110

    def test_put_bad_american_price_drops_only_that_quote(self, client):
        payload = {
            "odds_format": "american",
            "quotes": [
                {"bookmaker": "pinnacle", "market": "h2h", "outcome": "Home", "price": -110},
                {"bookmaker": "pinnacle", "market": "h2h", "outcome": "Away", "price": -110},
                {"bookmaker": "draftkings", "market": "h2h", "outcome": "Home", "price": 120},
                {"bookmaker": "draftkings", "market": "h2h", "outcome": "Away", "price": -140},
                {"bookmaker": "fanduel", "market": "h2h", "outcome": "Home", "price": 50},
                {"bookmaker": "fanduel", "market": "h2h", "outcome": "Away", "price": -110},
            ],
        }
        response = client.put("/api/odds/custom_3", json=payload)

        assert response.status_code == 200
        stored = [(q["bookmaker"], q["outcome"]) for q in response.json()["data"]]
        assert len(stored) == 5
        assert ("fanduel", "Home") not in stored

        body = client.get("/api/ev/custom_3").json()
        assert body["error"] is None
        assert [(o["side"], o["bookmaker"]) for o in body["data"]] == [("Home", "draftkings")]

    def test_naive_and_missing_timestamps_mix(self, client):
        payload = {
            "quotes": [
                {
                    "bookmaker": "pinnacle",
                    "market": "h2h",
                    "outcome": "Home",
                    "price": 1.95,
                    "observed_at": "2024-01-01T00:00:00",
                },
                {"bookmaker": "pinnacle", "market": "h2h", "outcome": "Home", "price": 1.95},
                {"bookmaker": "pinnacle", "market": "h2h", "outcome": "Away", "price": 1.95},
                {"bookmaker": "bookA", "market": "h2h", "outcome": "Home", "price": 2.10},
                {"bookmaker": "bookA", "market": "h2h", "outcome": "Away", "price": 1.80},
            ],
        }
        assert client.put("/api/odds/custom_4", json=payload).status_code == 200

        response = client.get("/api/ev/custom_4")
        assert response.status_code == 200
        assert [(o["side"], o["bookmaker"]) for o in response.json()["data"]] == [("Home", "booka")]
        assert client.get("/api/arbitrage/custom_4").status_code == 200
        assert client.get("/api/opportunities").status_code == 200


class TestExpectedValue:
    def test_ev_list(self, client):
        response = client.get("/api/ev/test_mlb_1")

        assert response.status_code == 200
        body = response.json()
        assert body["error"] is None
        assert [(o["side"], o["bookmaker"]) for o in body["data"]] == [
            ("New York Yankees", "fanduel"),
            ("Boston Red Sox", "draftkings"),
        ]
        assert body["data"][0]["ev_percent"] == pytest.approx(10.0)
        assert body["data"][0]["american_odds"] == 120

    def test_threshold(self, client):
        body = client.get("/api/ev/test_mlb_1", params={"threshold": 6}).json()
        assert len(body["data"]) == 1

    def test_bankroll_stake(self, client):
        body = client.get("/api/ev/test_mlb_1", params={"bankroll": 1000}).json()
        assert body["data"][0]["recommended_stake"] == pytest.approx(20.83)

    def test_missing_baseline_is_not_an_error(self, client):
        body = client.get("/api/ev/test_mlb_1", params={"baseline": "circa"}).json()

        assert body["error"] is None
        assert body["data"] == []
        assert "No baseline available" in body["skipped"][0]["reason"]

    def test_shin_devig(self, client):
        body = client.get("/api/ev/test_nba_1", params={"market": "h2h", "devig": "shin"}).json()
        assert body["error"] is None
        assert body["data"]

    def test_unknown_devig(self, client):
        response = client.get("/api/ev/test_mlb_1", params={"devig": "magic"})
        assert response.status_code == 400

    def test_negative_threshold_rejected(self, client):
        response = client.get("/api/ev/test_mlb_1", params={"threshold": -1})
        assert response.status_code == 400
        assert "error" in response.json()


class TestArbitrage:
    def test_two_way(self, client):
        body = client.get("/api/arbitrage/test_mlb_1").json()

        assert body["error"] is None
        assert [round(a["profit_percent"], 2) for a in body["data"]] == [7.44, 3.37]

    def test_min_profit_alias(self, client):
        body = client.get("/api/arbitrage/test_mlb_1", params={"minProfit": 5}).json()
        assert len(body["data"]) == 1

    def test_stake_split(self, client):
        body = client.get("/api/arbitrage/test_mlb_1", params={"stake": 100}).json()

        arb = body["data"][0]
        assert sum(leg["stake"] for leg in arb["legs"]) == pytest.approx(100.0, abs=0.02)
        assert arb["guaranteed_profit"] > 0

    def test_three_way_distinct_books(self, client):
        shared = client.get("/api/arbitrage/test_epl_1").json()["data"]
        assert shared[0]["is_executable"] is False
        assert len(shared[0]["legs"]) == 3

        distinct = client.get("/api/arbitrage/test_epl_1", params={"distinctBooks": "true"}).json()["data"]
        assert distinct[0]["is_executable"] is True


class TestOpportunities:
    def test_batch(self, client):
        body = client.get("/api/opportunities").json()

        assert body["error"] is None
        assert body["data"]["events_evaluated"] == 3
        assert len(body["data"]["ev_opportunities"]) == 7
        assert len(body["data"]["arbitrage_opportunities"]) == 4

    def test_hidden_books(self, client):
        body = client.get("/api/opportunities", params={"hidden": "FanDuel, betmgm"}).json()

        books = {o["bookmaker"] for o in body["data"]["ev_opportunities"]}
        assert books == {"draftkings"}
        assert body["data"]["arbitrage_opportunities"] == []


class TestFixtures:
    def test_list(self, client):
        body = client.get("/api/fixtures").json()
        assert [e["event_id"] for e in body["data"]] == ["test_mlb_1", "test_nba_1", "test_epl_1"]
        assert body["data"][1]["markets"] == ["moneyline", "total"]


class TestUpstreamFailure:
    def test_flagged_feed_returns_502(self, client):
        client.put("/api/feed/status", json={"error": "provider timeout"})

        response = client.get("/api/ev/test_mlb_1")
        assert response.status_code == 502
        assert response.json() == {"error": "provider timeout"}
        assert client.get("/api/health").json()["status"] == "degraded"

        client.put("/api/feed/status", json={"error": None})
        assert client.get("/api/ev/test_mlb_1").status_code == 200
