"""
Shared infrastructure for the VidEX trade-offer exchange.

This package contains code used by the offer service, the notification
pipeline and the HTTP layer:
- Domain models (User, Item, TradeOffer)
- Error taxonomy
- Directory of users and items (JSON-backed)
- Offer store with atomic create and conditional status update
- Email delivery channel
- Notification templates
"""

from exchange.models import (
    User,
    Item,
    ItemCondition,
    TradeOffer,
    OfferStatus,
    OfferFilter,
)
from exchange.errors import (
    TradeError,
    NotFoundError,
    ForbiddenError,
    InvalidStateError,
    InvalidRequestError,
)
from exchange.directory import Directory
from exchange.offer_store import OfferStore
from exchange.channels import EmailChannel, DeliveryResult

__all__ = [
    "User",
    "Item",
    "ItemCondition",
    "TradeOffer",
    "OfferStatus",
    "OfferFilter",
    "TradeError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidStateError",
    "InvalidRequestError",
    "Directory",
    "OfferStore",
    "EmailChannel",
    "DeliveryResult",
]
