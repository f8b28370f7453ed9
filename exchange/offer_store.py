"""
In-memory offer store for the trade-offer exchange.

Design decisions:
- Two write primitives only: insert (atomic create) and
  update_status_if (atomic compare-and-set on status)
- update_status_if is the in-process equivalent of
  UPDATE offers SET status=?, updated_at=? WHERE id=? AND status='pending'
  followed by an affected-row check; None means zero rows matched
- Records are immutable Pydantic models; an update swaps in a new copy, so
  readers never observe a half-written offer
- The store's own lock only makes each primitive atomic, the way a row lock
  would in a database. Callers never hold it across operations.
"""

import logging
import threading
from typing import Optional

from exchange.models import OfferFilter, OfferStatus, TradeOffer, utcnow

logger = logging.getLogger("offer_store")


class DuplicateOfferError(Exception):
    """Raised when inserting an offer whose id is already stored."""


class OfferStore:
    """
    Persistence for trade offers.

    Example:
        store = OfferStore()
        store.insert(offer)

        # Exactly one of two racing callers gets the updated offer back
        updated = store.update_status_if(offer.id, OfferStatus.PENDING, OfferStatus.ACCEPTED)
        if updated is None:
            ...  # someone else already moved it out of PENDING
    """

    def __init__(self):
        self._offers: dict[str, TradeOffer] = {}
        # Insertion order breaks created_at ties
        self._sequence: dict[str, int] = {}
        self._lock = threading.Lock()

    def insert(self, offer: TradeOffer) -> TradeOffer:
        """
        Persist a new offer.

        Raises:
            DuplicateOfferError: If an offer with the same id exists.
        """
        with self._lock:
            if offer.id in self._offers:
                raise DuplicateOfferError(f"Offer already exists: {offer.id}")
            self._offers[offer.id] = offer
            self._sequence[offer.id] = len(self._sequence)
        logger.debug(f"Inserted offer {offer.id}")
        return offer

    def get(self, offer_id: str) -> Optional[TradeOffer]:
        """Get an offer by ID, or None."""
        return self._offers.get(offer_id)

    def list_offers(self, criteria: Optional[OfferFilter] = None) -> list[TradeOffer]:
        """
        Offers matching the criteria, newest first.

        Args:
            criteria: Optional filter; absent fields match everything.
        """
        criteria = criteria or OfferFilter()
        with self._lock:
            snapshot = list(self._offers.values())
            sequence = dict(self._sequence)
        matching = [o for o in snapshot if criteria.matches(o)]
        return sorted(
            matching,
            key=lambda o: (o.created_at, sequence[o.id]),
            reverse=True,
        )

    def update_status_if(
        self,
        offer_id: str,
        expected: OfferStatus,
        new_status: OfferStatus,
    ) -> Optional[TradeOffer]:
        """
        Conditionally move an offer from `expected` to `new_status`.

        Returns:
            The updated offer, or None if the offer is missing or its
            status is no longer `expected`.
        """
        with self._lock:
            current = self._offers.get(offer_id)
            if current is None or current.status != expected:
                return None
            updated = current.model_copy(
                update={"status": OfferStatus(new_status).value, "updated_at": utcnow()}
            )
            self._offers[offer_id] = updated
        logger.debug(f"Offer {offer_id}: {expected} -> {new_status}")
        return updated

    def count(self) -> int:
        return len(self._offers)

    def clear(self) -> None:
        """Remove all offers (tests only)."""
        with self._lock:
            self._offers.clear()
            self._sequence.clear()
