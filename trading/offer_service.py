"""
Trade-offer service: the offer lifecycle state machine.

States: pending (initial), accepted, rejected (both terminal).
Edges: pending -> accepted, pending -> rejected, taken only by the offer's
recipient.

Every successful state change emits exactly two notification events, one
per participant. Emission happens after the store write and is
fire-and-forget: a publishing failure is logged and the operation still
succeeds. A failed operation emits nothing.

This service does NOT deliver emails. It publishes events and does not
know who consumes them.
"""

import logging
from typing import Optional, Union
from uuid import uuid4

from exchange.directory import Directory
from exchange.errors import (
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from exchange.models import Item, OfferFilter, OfferStatus, TradeOffer, User
from exchange.offer_store import OfferStore
from exchange.templates import TemplateId, render_notification
from notifications.events import DomainEvent, email_send
from notifications.publisher import EventPublisher

logger = logging.getLogger("offer_service")

# (template for the offerer, template for the recipient) per terminal status
STATUS_TEMPLATES: dict[OfferStatus, tuple[TemplateId, TemplateId]] = {
    OfferStatus.ACCEPTED: (
        TemplateId.OFFER_ACCEPTED_OFFERER,
        TemplateId.OFFER_ACCEPTED_RECIPIENT,
    ),
    OfferStatus.REJECTED: (
        TemplateId.OFFER_REJECTED_OFFERER,
        TemplateId.OFFER_REJECTED_RECIPIENT,
    ),
}


class TradeOfferService:
    """
    Creates offers and moves them through their lifecycle.

    Example:
        service = TradeOfferService(directory, offer_store, publisher)

        offer = service.create_offer("user-001", requested_item_id="item-002",
                                     offered_item_id="item-001")
        service.update_status("user-002", offer.id, "accepted")
    """

    def __init__(
        self,
        directory: Directory,
        offer_store: OfferStore,
        publisher: EventPublisher,
    ):
        self.directory = directory
        self.offer_store = offer_store
        self.publisher = publisher

    # =========================================================================
    # Commands
    # =========================================================================

    def create_offer(
        self,
        actor_id: str,
        requested_item_id: str,
        offered_item_id: str,
    ) -> TradeOffer:
        """
        Offer one of the actor's items in exchange for someone else's.

        The offerer is the actor; the recipient is whoever currently owns
        the requested item.

        Raises:
            NotFoundError: Either item, or either participant, does not exist
            ForbiddenError: The actor does not own the offered item
            InvalidRequestError: The actor owns the requested item (self-trade)
        """
        requested_item = self.directory.get_item(requested_item_id)
        offered_item = self.directory.get_item(offered_item_id)

        if offered_item.owner_id != actor_id:
            raise ForbiddenError("Forbidden: You can only offer items you own")

        if requested_item.owner_id == actor_id:
            raise InvalidRequestError("Cannot create a trade offer with yourself")

        offerer = self.directory.get_user(actor_id)
        recipient = self.directory.get_user(requested_item.owner_id)

        offer = TradeOffer(
            id=str(uuid4()),
            requested_item_id=requested_item.id,
            offered_item_id=offered_item.id,
            offerer_id=offerer.id,
            recipient_id=recipient.id,
            status=OfferStatus.PENDING,
        )
        self.offer_store.insert(offer)

        logger.info(
            f"Offer {offer.id} created: {offerer.id} offers {offered_item.id} "
            f"for {requested_item.id} owned by {recipient.id}"
        )

        variables = self._template_variables(offerer, recipient, offered_item, requested_item)
        self._emit(recipient, TemplateId.OFFER_RECEIVED, variables)
        self._emit(offerer, TemplateId.OFFER_CREATED_CONFIRMATION, variables)

        return offer

    def update_status(
        self,
        actor_id: str,
        offer_id: str,
        new_status: Union[OfferStatus, str],
    ) -> TradeOffer:
        """
        Accept or reject a pending offer.

        The status change is a single conditional update in the store, so of
        two racing calls exactly one wins and the other gets InvalidStateError.

        Raises:
            NotFoundError: The offer does not exist
            ForbiddenError: The actor is not the offer's recipient
            InvalidStateError: The offer is no longer pending
            InvalidRequestError: new_status is not accepted/rejected
        """
        offer = self.offer_store.get(offer_id)
        if offer is None:
            raise NotFoundError(f"Offer not found: {offer_id}")

        if offer.recipient_id != actor_id:
            raise ForbiddenError("Forbidden: Only the offer recipient can accept or reject it")

        if not offer.is_pending():
            raise InvalidStateError(f"Offer {offer_id} is already {offer.status}")

        target = self._parse_terminal_status(new_status)

        updated = self.offer_store.update_status_if(offer_id, OfferStatus.PENDING, target)
        if updated is None:
            raise InvalidStateError(f"Offer {offer_id} is no longer pending")

        logger.info(f"Offer {offer_id}: pending -> {updated.status} by {actor_id}")

        self._notify_status_change(updated)
        return updated

    # =========================================================================
    # Queries
    # =========================================================================

    def get_offer(self, offer_id: str) -> TradeOffer:
        """Get an offer by ID, raising NotFoundError if absent."""
        offer = self.offer_store.get(offer_id)
        if offer is None:
            raise NotFoundError(f"Offer not found: {offer_id}")
        return offer

    def list_offers(self, criteria: Optional[OfferFilter] = None) -> list[TradeOffer]:
        """Offers matching the criteria, newest first."""
        return self.offer_store.list_offers(criteria)

    # =========================================================================
    # Notifications
    # =========================================================================

    def _notify_status_change(self, offer: TradeOffer) -> None:
        """
        Emit the accepted/rejected pair for an offer that just changed.

        Runs after the store write; any failure here (including a directory
        lookup for an item that has since been deleted) is logged only.
        """
        try:
            offerer = self.directory.get_user(offer.offerer_id)
            recipient = self.directory.get_user(offer.recipient_id)
            offered_item = self.directory.get_item(offer.offered_item_id)
            requested_item = self.directory.get_item(offer.requested_item_id)
        except NotFoundError as e:
            logger.error(f"Cannot notify participants of offer {offer.id}: {e}")
            return

        offerer_template, recipient_template = STATUS_TEMPLATES[OfferStatus(offer.status)]
        variables = self._template_variables(offerer, recipient, offered_item, requested_item)
        self._emit(offerer, offerer_template, variables)
        self._emit(recipient, recipient_template, variables)

    def _emit(self, to: User, template_id: TemplateId, variables: dict) -> Optional[DomainEvent]:
        """Render a template for one user and hand it to the publisher."""
        try:
            subject, body = render_notification(template_id, **variables)
            event = email_send(to=to.email, subject=subject, body=body)
            self.publisher.publish(event)
        except Exception as e:
            logger.error(f"Failed to publish {template_id.value} notification to {to.id}: {e}")
            return None

        logger.debug(f"Emitted {template_id.value} to {to.id} as {event}")
        return event

    @staticmethod
    def _template_variables(
        offerer: User,
        recipient: User,
        offered_item: Item,
        requested_item: Item,
    ) -> dict:
        return {
            "offerer_name": offerer.name,
            "recipient_name": recipient.name,
            "offered_item_name": offered_item.name,
            "offered_item_year": offered_item.year,
            "requested_item_name": requested_item.name,
            "requested_item_year": requested_item.year,
        }

    @staticmethod
    def _parse_terminal_status(value: Union[OfferStatus, str]) -> OfferStatus:
        try:
            status = OfferStatus(value)
        except ValueError:
            raise InvalidRequestError(f"Invalid status: {value!r}") from None
        if status not in OfferStatus.terminal():
            raise InvalidRequestError("Status must be 'accepted' or 'rejected'")
        return status
