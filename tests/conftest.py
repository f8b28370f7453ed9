"""
Shared pytest fixtures for the trade-offer exchange tests.

These fixtures provide consistent test data and fresh components per test.
"""

import pytest
from pathlib import Path

from exchange.channels import EmailChannel
from exchange.directory import Directory
from exchange.offer_store import OfferStore
from notifications.broker import InMemoryBroker
from notifications.consumer import NotificationConsumer
from notifications.events import DomainEvent, decode_event
from notifications.publisher import EventPublisher
from trading.offer_service import TradeOfferService

TOPIC = "notifications.email"
GROUP = "test-email-consumer-group"


@pytest.fixture
def data_dir() -> Path:
    """Path to the test data directory."""
    return Path(__file__).parent.parent / "exchange" / "data"


@pytest.fixture
def directory(data_dir: Path) -> Directory:
    """
    Fresh Directory instance for each test.

    Uses the real JSON fixtures but creates a new instance
    so tests don't interfere with each other.
    """
    return Directory(data_dir=data_dir)


@pytest.fixture
def offer_store() -> OfferStore:
    """Empty OfferStore for each test."""
    return OfferStore()


@pytest.fixture
def broker() -> InMemoryBroker:
    """Connected broker, closed after the test."""
    broker = InMemoryBroker()
    broker.connect()
    yield broker
    broker.close()


@pytest.fixture
def publisher(broker: InMemoryBroker) -> EventPublisher:
    """Started publisher with a tiny backoff so retry tests stay fast."""
    publisher = EventPublisher(broker, topic=TOPIC, max_retries=5, initial_backoff=0.001)
    publisher.start()
    yield publisher
    publisher.close()


@pytest.fixture
def email_channel() -> EmailChannel:
    """Fresh EmailChannel for each test."""
    return EmailChannel(fail_rate=0.0)


@pytest.fixture
def consumer(broker: InMemoryBroker, email_channel: EmailChannel) -> NotificationConsumer:
    """Consumer driven by hand with consume_available()."""
    return NotificationConsumer(broker, email_channel, topic=TOPIC, group=GROUP)


@pytest.fixture
def service(
    directory: Directory,
    offer_store: OfferStore,
    publisher: EventPublisher,
) -> TradeOfferService:
    """TradeOfferService wired to the test broker."""
    return TradeOfferService(directory, offer_store, publisher)


@pytest.fixture
def published_events(broker: InMemoryBroker, publisher: EventPublisher):
    """
    Callable returning every event on the topic so far, in publish order.

    Flushes the publisher first, so events queued by the code under test
    are visible.
    """
    def collect() -> list[DomainEvent]:
        assert publisher.flush(timeout=5.0)
        return [decode_event(m.value) for m in broker.get_messages(TOPIC)]
    return collect


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def alice_id() -> str:
    """User ID for Alice (owns Zelda and Super Mario Bros. 3)."""
    return "user-001"


@pytest.fixture
def bob_id() -> str:
    """User ID for Bob (owns Metroid and Chrono Trigger)."""
    return "user-002"


@pytest.fixture
def carol_id() -> str:
    """User ID for Carol (owns Sonic the Hedgehog)."""
    return "user-003"


# =============================================================================
# Item Fixtures
# =============================================================================

@pytest.fixture
def zelda_id() -> str:
    """The Legend of Zelda (NES, 1986), owned by Alice."""
    return "item-001"


@pytest.fixture
def metroid_id() -> str:
    """Metroid (NES, 1986), owned by Bob."""
    return "item-002"


@pytest.fixture
def mario_id() -> str:
    """Super Mario Bros. 3 (NES, 1988), owned by Alice."""
    return "item-003"


@pytest.fixture
def sonic_id() -> str:
    """Sonic the Hedgehog (Genesis, 1991), owned by Carol."""
    return "item-004"
