"""
Tests for the offer store.

These tests verify atomic insert, filtering/ordering, and the conditional
status update that serializes competing accept/reject calls.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from exchange.models import OfferFilter, OfferStatus, TradeOffer
from exchange.offer_store import DuplicateOfferError, OfferStore


def make_offer(offer_id: str, offerer="user-001", recipient="user-002", **kwargs) -> TradeOffer:
    return TradeOffer(
        id=offer_id,
        requested_item_id="item-002",
        offered_item_id="item-001",
        offerer_id=offerer,
        recipient_id=recipient,
        **kwargs,
    )


class TestInsertAndGet:
    """Tests for insert/get."""

    def test_insert_then_get(self, offer_store: OfferStore):
        offer_store.insert(make_offer("o1"))

        stored = offer_store.get("o1")
        assert stored is not None
        assert stored.status == OfferStatus.PENDING
        assert offer_store.count() == 1

    def test_get_missing_returns_none(self, offer_store: OfferStore):
        assert offer_store.get("nope") is None

    def test_duplicate_id_rejected(self, offer_store: OfferStore):
        offer_store.insert(make_offer("o1"))
        with pytest.raises(DuplicateOfferError):
            offer_store.insert(make_offer("o1"))
        assert offer_store.count() == 1

    def test_clear(self, offer_store: OfferStore):
        offer_store.insert(make_offer("o1"))
        offer_store.clear()
        assert offer_store.count() == 0
        assert offer_store.list_offers() == []


class TestListOffers:
    """Tests for filtering and ordering."""

    def test_newest_first(self, offer_store: OfferStore):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        offer_store.insert(make_offer("old", created_at=base))
        offer_store.insert(make_offer("new", created_at=base + timedelta(minutes=5)))
        offer_store.insert(make_offer("mid", created_at=base + timedelta(minutes=1)))

        assert [o.id for o in offer_store.list_offers()] == ["new", "mid", "old"]

    def test_same_timestamp_orders_by_insertion(self, offer_store: OfferStore):
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for offer_id in ("a", "b", "c"):
            offer_store.insert(make_offer(offer_id, created_at=stamp))

        assert [o.id for o in offer_store.list_offers()] == ["c", "b", "a"]

    def test_filter_by_status(self, offer_store: OfferStore):
        offer_store.insert(make_offer("o1"))
        offer_store.insert(make_offer("o2"))
        offer_store.update_status_if("o2", OfferStatus.PENDING, OfferStatus.REJECTED)

        rejected = offer_store.list_offers(OfferFilter(status=OfferStatus.REJECTED))
        assert [o.id for o in rejected] == ["o2"]

    def test_filter_by_participants(self, offer_store: OfferStore):
        offer_store.insert(make_offer("o1", offerer="user-001", recipient="user-002"))
        offer_store.insert(make_offer("o2", offerer="user-003", recipient="user-002"))
        offer_store.insert(make_offer("o3", offerer="user-001", recipient="user-003"))

        by_alice = offer_store.list_offers(OfferFilter(offerer_id="user-001"))
        to_bob = offer_store.list_offers(OfferFilter(recipient_id="user-002"))
        both = offer_store.list_offers(OfferFilter(offerer_id="user-001", recipient_id="user-003"))

        assert {o.id for o in by_alice} == {"o1", "o3"}
        assert {o.id for o in to_bob} == {"o1", "o2"}
        assert [o.id for o in both] == ["o3"]

    def test_empty_filter_matches_all(self, offer_store: OfferStore):
        offer_store.insert(make_offer("o1"))
        offer_store.insert(make_offer("o2"))
        assert len(offer_store.list_offers(OfferFilter())) == 2


class TestUpdateStatusIf:
    """Tests for the conditional status update."""

    def test_pending_to_accepted(self, offer_store: OfferStore):
        original = offer_store.insert(make_offer("o1"))

        updated = offer_store.update_status_if("o1", OfferStatus.PENDING, OfferStatus.ACCEPTED)

        assert updated is not None
        assert updated.status == OfferStatus.ACCEPTED
        assert updated.updated_at >= original.updated_at
        assert updated.created_at == original.created_at
        assert offer_store.get("o1").status == OfferStatus.ACCEPTED

    def test_status_mismatch_returns_none(self, offer_store: OfferStore):
        offer_store.insert(make_offer("o1"))
        offer_store.update_status_if("o1", OfferStatus.PENDING, OfferStatus.ACCEPTED)

        assert offer_store.update_status_if("o1", OfferStatus.PENDING, OfferStatus.REJECTED) is None
        assert offer_store.get("o1").status == OfferStatus.ACCEPTED

    def test_missing_offer_returns_none(self, offer_store: OfferStore):
        assert offer_store.update_status_if("nope", OfferStatus.PENDING, OfferStatus.ACCEPTED) is None

    def test_returned_offer_is_a_new_copy(self, offer_store: OfferStore):
        original = offer_store.insert(make_offer("o1"))
        offer_store.update_status_if("o1", OfferStatus.PENDING, OfferStatus.ACCEPTED)
        assert original.status == OfferStatus.PENDING

    def test_racing_updates_have_one_winner(self, offer_store: OfferStore):
        """Of many threads racing on one pending offer, exactly one succeeds."""
        offer_store.insert(make_offer("o1"))
        threads_count = 16
        barrier = threading.Barrier(threads_count)
        results = []
        results_lock = threading.Lock()

        def race(target: OfferStatus):
            barrier.wait()
            outcome = offer_store.update_status_if("o1", OfferStatus.PENDING, target)
            with results_lock:
                results.append(outcome)

        threads = [
            threading.Thread(
                target=race,
                args=(OfferStatus.ACCEPTED if i % 2 else OfferStatus.REJECTED,),
            )
            for i in range(threads_count)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [r for r in results if r is not None]
        assert len(winners) == 1
        assert offer_store.get("o1").status == winners[0].status
