"""
Assemble the exchange: directory, offer store, broker, publisher, consumer
and the offer service, wired from Settings.

Both the HTTP app and the demos build their object graph here, so the two
run exactly the same pipeline.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from exchange.channels import EmailChannel
from exchange.config import Settings, get_settings
from exchange.directory import Directory
from exchange.offer_store import OfferStore
from notifications.broker import InMemoryBroker
from notifications.consumer import NotificationConsumer
from notifications.publisher import EventPublisher
from trading.offer_service import TradeOfferService

logger = logging.getLogger("wiring")


@dataclass
class ExchangeContainer:
    """Every long-lived component of a running exchange."""
    settings: Settings
    directory: Directory
    offer_store: OfferStore
    broker: InMemoryBroker
    publisher: EventPublisher
    channel: EmailChannel
    consumer: NotificationConsumer
    service: TradeOfferService

    def start(self, run_consumer: bool = True) -> None:
        """
        Connect the broker and start the background workers.

        With run_consumer=False the consumer is left for the caller to
        drive with consume_available().
        """
        self.broker.connect()
        self.publisher.start()
        if run_consumer:
            self.consumer.start()
        logger.info("Exchange started")

    def shutdown(self) -> None:
        """Drain the publisher, then stop the consumer and the broker."""
        self.publisher.close(timeout=self.settings.publisher_close_timeout)
        self.consumer.stop()
        self.broker.close()
        logger.info("Exchange stopped")


def build_exchange(
    settings: Optional[Settings] = None,
    directory: Optional[Directory] = None,
    channel: Optional[EmailChannel] = None,
) -> ExchangeContainer:
    """Build an unstarted exchange; call start() on the result."""
    settings = settings or get_settings()
    directory = directory or Directory(settings.data_dir)
    channel = channel or EmailChannel(
        fail_rate=settings.email_fail_rate,
        from_addr=settings.email_from_address,
    )

    offer_store = OfferStore()
    broker = InMemoryBroker()
    publisher = EventPublisher(
        broker,
        topic=settings.notification_topic,
        max_retries=settings.publisher_max_retries,
        initial_backoff=settings.publisher_initial_backoff,
    )
    consumer = NotificationConsumer(
        broker,
        channel,
        topic=settings.notification_topic,
        group=settings.consumer_group,
        batch_size=settings.consumer_batch_size,
        poll_timeout=settings.consumer_poll_timeout,
    )
    service = TradeOfferService(directory, offer_store, publisher)

    return ExchangeContainer(
        settings=settings,
        directory=directory,
        offer_store=offer_store,
        broker=broker,
        publisher=publisher,
        channel=channel,
        consumer=consumer,
        service=service,
    )
