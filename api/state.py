"""
Application state management for FastAPI.

Holds shared state across the application:
- Settings
- The in-memory odds feed

Writes to the feed go through an asyncio lock; readers take a snapshot of
the event list and evaluate it without holding the lock.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from edgefinder.betting.aggregator import EvaluationConfig, OpportunityAggregator
from edgefinder.betting.errors import UpstreamFailure
from edgefinder.betting.quotes import Event
from edgefinder.config.settings import Settings, get_settings
from edgefinder.data.odds_feed import OddsFeed

logger = logging.getLogger(__name__)


class AppState:
    """
    Centralized application state.

    Initializes and manages the lifecycle of the odds feed.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings
        self.feed: Optional[OddsFeed] = None
        self._lock = asyncio.Lock()
        self._initialized = False
        self._init_error: Optional[str] = None
        self._started_at: Optional[datetime] = None

    async def initialize(self) -> None:
        """Create the feed and seed it with the bundled fixtures if enabled."""
        if self._initialized:
            return

        if self.settings is None:
            self.settings = get_settings()

        self.feed = OddsFeed(self.settings.feed.supported_bookmakers)

        if self.settings.feed.load_fixtures:
            try:
                count = self.feed.load_file(self.settings.feed.fixtures_path)
                logger.info(f"Seeded feed with {count} fixture events")
            except UpstreamFailure as e:
                # Serve an empty feed rather than refusing to start
                self._init_error = e.message
                logger.error(f"Failed to load fixtures: {e}")

        self._initialized = True
        self._started_at = datetime.now()

    async def shutdown(self) -> None:
        """Drop all feed state."""
        if self.feed is not None:
            async with self._lock:
                self.feed.clear()
        logger.info("Feed cleared")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _require_feed(self) -> OddsFeed:
        if self.feed is None:
            raise UpstreamFailure("Odds feed not initialized")
        return self.feed

    def get_event(self, event_id: str) -> Event:
        """
        Current version of one event.

        Raises:
            UpstreamFailure: the collaborator marked the feed failed
            EventNotFound: unknown event id
        """
        feed = self._require_feed()
        if feed.upstream_error:
            raise UpstreamFailure(feed.upstream_error)
        return feed.get(event_id)

    def list_events(self) -> list[Event]:
        feed = self._require_feed()
        if feed.upstream_error:
            raise UpstreamFailure(feed.upstream_error)
        return feed.events

    async def replace_event(self, event: Event) -> None:
        feed = self._require_feed()
        async with self._lock:
            feed.replace(event)
            feed.mark_healthy()

    async def mark_upstream_failed(self, message: str) -> None:
        feed = self._require_feed()
        async with self._lock:
            feed.mark_failed(message)

    async def mark_upstream_healthy(self) -> None:
        feed = self._require_feed()
        async with self._lock:
            feed.mark_healthy()

    def evaluation_config(self, **overrides: Any) -> EvaluationConfig:
        """Settings-based evaluation config with per-request overrides."""
        return EvaluationConfig.from_settings(self.settings, **overrides)

    def aggregator(self, **overrides: Any) -> OpportunityAggregator:
        return OpportunityAggregator(self.evaluation_config(**overrides))

    def get_health_status(self) -> dict:
        """Get health status of all components."""
        feed = self.feed
        status = {
            "initialized": self._initialized,
            "settings": self.settings is not None,
            "feed": feed is not None,
            "events_in_feed": len(feed) if feed else 0,
            "last_feed_update": (
                feed.last_update.isoformat() if feed and feed.last_update else None
            ),
            "upstream_error": feed.upstream_error if feed else None,
            "baseline_book": self.settings.engine.baseline_book if self.settings else None,
            "started_at": self._started_at.isoformat() if self._started_at else None,
        }
        if self._init_error:
            status["init_error"] = self._init_error
        return status
