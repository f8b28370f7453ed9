"""
Tests for domain models and the error taxonomy.
"""

import pytest
from pydantic import ValidationError

from exchange.errors import (
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
    TradeError,
)
from exchange.models import Item, OfferFilter, OfferStatus, TradeOffer


class TestOfferStatus:
    """Tests for the OfferStatus enum."""

    def test_terminal_states(self):
        assert OfferStatus.terminal() == {OfferStatus.ACCEPTED, OfferStatus.REJECTED}
        assert OfferStatus.PENDING not in OfferStatus.terminal()

    def test_string_values(self):
        assert OfferStatus("accepted") is OfferStatus.ACCEPTED
        with pytest.raises(ValueError):
            OfferStatus("cancelled")


class TestTradeOffer:
    """Tests for the TradeOffer model."""

    def test_defaults_to_pending(self):
        offer = TradeOffer(
            id="o1",
            requested_item_id="item-002",
            offered_item_id="item-001",
            offerer_id="user-001",
            recipient_id="user-002",
        )
        assert offer.status == "pending"
        assert offer.is_pending()
        assert offer.created_at.tzinfo is not None

    def test_serializes_camel_case(self):
        offer = TradeOffer(
            id="o1",
            requested_item_id="item-002",
            offered_item_id="item-001",
            offerer_id="user-001",
            recipient_id="user-002",
        )
        data = offer.model_dump(by_alias=True)

        assert data["requestedItemId"] == "item-002"
        assert data["offererId"] == "user-001"
        assert data["status"] == "pending"
        assert "createdAt" in data

    def test_accepts_camel_case_input(self):
        offer = TradeOffer.model_validate({
            "id": "o1",
            "requestedItemId": "item-002",
            "offeredItemId": "item-001",
            "offererId": "user-001",
            "recipientId": "user-002",
            "status": "accepted",
        })
        assert offer.status == OfferStatus.ACCEPTED
        assert not offer.is_pending()

    def test_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            TradeOffer(
                id="o1",
                requested_item_id="item-002",
                offered_item_id="item-001",
                offerer_id="user-001",
                recipient_id="user-002",
                status="cancelled",
            )


class TestItem:
    """Tests for the Item model."""

    def test_year_lower_bound(self):
        with pytest.raises(ValidationError):
            Item(
                id="i1",
                name="Pong",
                publisher="Atari",
                year=1969,
                gaming_system="Arcade",
                owner_id="user-001",
            )

    def test_previous_owners_non_negative(self):
        with pytest.raises(ValidationError):
            Item(
                id="i1",
                name="Pong",
                publisher="Atari",
                year=1972,
                gaming_system="Arcade",
                previous_owners=-1,
                owner_id="user-001",
            )


class TestOfferFilter:
    """Tests for OfferFilter.matches."""

    @pytest.fixture
    def offer(self) -> TradeOffer:
        return TradeOffer(
            id="o1",
            requested_item_id="item-002",
            offered_item_id="item-001",
            offerer_id="user-001",
            recipient_id="user-002",
        )

    def test_empty_filter_matches(self, offer):
        assert OfferFilter().matches(offer)

    def test_status_filter(self, offer):
        assert OfferFilter(status="pending").matches(offer)
        assert not OfferFilter(status=OfferStatus.ACCEPTED).matches(offer)

    def test_participant_filters(self, offer):
        assert OfferFilter(offerer_id="user-001", recipient_id="user-002").matches(offer)
        assert not OfferFilter(recipient_id="user-001").matches(offer)


class TestTradeErrors:
    """Tests for the error taxonomy."""

    @pytest.mark.parametrize("error_class, status, code", [
        (NotFoundError, 404, "NOT_FOUND"),
        (ForbiddenError, 403, "FORBIDDEN"),
        (InvalidStateError, 400, "INVALID_STATE"),
        (InvalidRequestError, 400, "INVALID_REQUEST"),
    ])
    def test_http_mapping(self, error_class, status, code):
        error = error_class("boom")

        assert isinstance(error, TradeError)
        assert error.http_status == status
        assert error.to_response() == {"code": status, "error": code, "message": "boom"}
        assert str(error) == "boom"
