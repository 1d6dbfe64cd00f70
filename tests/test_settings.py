"""Tests for edgefinder/config/settings.py."""

import pytest
from pydantic import ValidationError

from edgefinder.config.settings import EngineSettings, FeedSettings, Settings


class TestEngineSettings:
    def test_defaults(self):
        engine = EngineSettings()
        assert engine.baseline_book == "pinnacle"
        assert engine.devig_method == "proportional"
        assert engine.ev_threshold_percent == 2.0
        assert engine.min_arb_profit_percent == 1.5
        assert engine.kelly_multiplier == 0.25

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("EDGE_BASELINE_BOOK", "circa")
        monkeypatch.setenv("EDGE_DEVIG_METHOD", "SHIN")
        engine = EngineSettings()
        assert engine.baseline_book == "circa"
        assert engine.devig_method == "shin"

    def test_unknown_devig_rejected(self):
        with pytest.raises(ValidationError):
            EngineSettings(devig_method="magic")

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            EngineSettings(ev_threshold_percent=-1.0)

    def test_kelly_multiplier_range(self):
        with pytest.raises(ValidationError):
            EngineSettings(kelly_multiplier=1.5)


class TestSettings:
    def test_log_level_upper(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_feed_defaults_point_at_fixtures(self):
        feed = FeedSettings()
        assert feed.fixtures_path.name == "sample_odds.json"
        assert feed.fixtures_path.exists()
        assert "pinnacle" in feed.supported_bookmakers
