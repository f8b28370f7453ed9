"""
Trade-offer domain service and application wiring.

- TradeOfferService: creates offers and moves them from pending to
  accepted or rejected, emitting two notification events per change
- build_exchange: assembles the service with its store, broker,
  publisher and consumer

The service does NOT send emails. It publishes events and the
notification pipeline takes it from there.
"""

from trading.offer_service import TradeOfferService
from trading.wiring import ExchangeContainer, build_exchange

__all__ = [
    "TradeOfferService",
    "ExchangeContainer",
    "build_exchange",
]
