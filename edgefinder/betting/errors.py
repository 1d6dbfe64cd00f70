"""
Exception hierarchy for the odds-math engine.

The engine recovers from most of these locally: a bookmaker with bad prices
is dropped from one market, a market without a baseline only loses its EV
pass. Only the API and CLI layers turn them into user-visible errors.
"""
from typing import Optional


class EdgeFinderError(Exception):
    """Base exception for engine errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidOdds(EdgeFinderError, ValueError):
    """A price is non-positive, infinite, or not above 1.0 in decimal form."""

    def __init__(self, value: object, reason: str = "outside the valid range"):
        super().__init__(f"Invalid odds {value!r}: {reason}")
        self.value = value
        self.reason = reason


class InsufficientData(EdgeFinderError):
    """Too few outcomes or bookmakers for the requested computation."""

    def __init__(
        self,
        message: str,
        outcomes: Optional[int] = None,
        bookmakers: Optional[int] = None,
    ):
        super().__init__(message)
        self.outcomes = outcomes
        self.bookmakers = bookmakers


class MissingBaseline(EdgeFinderError):
    """The baseline bookmaker has no quotes for the market."""

    def __init__(self, baseline_book: str, event_id: str = "", market: str = ""):
        super().__init__(
            f"No baseline available: '{baseline_book}' has no quotes"
            + (f" for {event_id}/{market}" if event_id else "")
        )
        self.baseline_book = baseline_book
        self.event_id = event_id
        self.market = market


class UnsupportedDevigMethod(EdgeFinderError, ValueError):
    """The de-vig method cannot be applied to this market shape."""

    def __init__(self, method: str, outcomes: int):
        super().__init__(
            f"De-vig method '{method}' does not support {outcomes}-way markets"
        )
        self.method = method
        self.outcomes = outcomes


class UpstreamFailure(EdgeFinderError):
    """The odds feed could not be refreshed by its collaborator."""

    status_code = 502

    def __init__(self, message: str, source_name: str = "feed"):
        super().__init__(message)
        self.source_name = source_name


class EventNotFound(EdgeFinderError):
    """No event with this id is present in the feed."""

    status_code = 404

    def __init__(self, event_id: str):
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id
