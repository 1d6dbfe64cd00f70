"""EdgeFinder: +EV and arbitrage detection across sportsbooks."""

__version__ = "0.1.0"
