"""
FastAPI backend for EdgeFinder.

Provides REST API endpoints for:
- Normalised odds per event
- +EV prices against a baseline bookmaker
- Cross-book arbitrage
- Batch evaluation of the whole feed
"""
