"""
Domain models for the VidEX trade-offer exchange.

Users own items (video games); a trade offer proposes swapping one of the
offerer's items for one of the recipient's items.

Design decisions:
- Using Pydantic for validation and serialization
- Field names are snake_case; the HTTP surface speaks camelCase through aliases
- Enum values are stored as plain strings so records serialize cleanly
- Participants of an offer are derived from item ownership, never supplied
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Timezone-aware current time, used for every timestamp we store."""
    return datetime.now(timezone.utc)


# =============================================================================
# Enums
# =============================================================================

class OfferStatus(str, Enum):
    """
    Trade offer lifecycle states.

    PENDING is the only non-terminal state. The only legal edges are
    PENDING -> ACCEPTED and PENDING -> REJECTED.
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @classmethod
    def terminal(cls) -> frozenset["OfferStatus"]:
        return frozenset({cls.ACCEPTED, cls.REJECTED})


class ItemCondition(str, Enum):
    """Physical condition of a catalogued item."""
    MINT = "mint"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


# =============================================================================
# Directory records
# =============================================================================

class User(BaseModel):
    """
    A registered owner.

    The authoritative user store is external; we only need the display
    name and the address notifications are delivered to.
    """
    id: str = Field(..., description="Unique user identifier")
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=3, description="Notification address")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Item(BaseModel):
    """A catalogued video game and its current owner."""
    id: str = Field(..., description="Unique item identifier")
    name: str = Field(..., min_length=1)
    publisher: str = Field(..., min_length=1)
    year: int = Field(..., ge=1970, description="Release year")
    gaming_system: str = Field(..., min_length=1)
    condition: ItemCondition = Field(default=ItemCondition.GOOD)
    previous_owners: Optional[int] = Field(default=None, ge=0)
    owner_id: str = Field(..., description="Current owner")

    model_config = ConfigDict(
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Trade offers
# =============================================================================

class TradeOffer(BaseModel):
    """
    A proposed trade of one item for another between two distinct owners.

    Created pending by the offer service; mutated only by the
    accept/reject transition; never deleted here.
    """
    id: str = Field(..., description="Unique offer identifier")
    requested_item_id: str = Field(..., description="Item the offerer wants")
    offered_item_id: str = Field(..., description="Item the offerer gives up")
    offerer_id: str = Field(..., description="Owner of the offered item")
    recipient_id: str = Field(..., description="Owner of the requested item")
    status: OfferStatus = Field(default=OfferStatus.PENDING)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def is_pending(self) -> bool:
        return self.status == OfferStatus.PENDING


class OfferFilter(BaseModel):
    """
    Criteria for listing offers.

    Every field is optional; an absent field matches everything.
    """
    status: Optional[OfferStatus] = None
    offerer_id: Optional[str] = None
    recipient_id: Optional[str] = None

    model_config = ConfigDict(
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def matches(self, offer: TradeOffer) -> bool:
        if self.status is not None and offer.status != self.status:
            return False
        if self.offerer_id is not None and offer.offerer_id != self.offerer_id:
            return False
        if self.recipient_id is not None and offer.recipient_id != self.recipient_id:
            return False
        return True
