"""
HTTP surface of the trade-offer exchange.

This package provides a single FastAPI application that exposes:
- Offer creation, lookup and listing
- Accept/reject of pending offers by their recipient
- A health check for the notification pipeline
"""

from api.main import app

__all__ = ["app"]
