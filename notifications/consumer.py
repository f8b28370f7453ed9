"""
Notification consumer: turns broker messages into delivered emails.

The consumer subscribes to the notification topic with a consumer group,
decodes each message as a DomainEvent, and hands `email.send` events to the
email channel. It runs on its own thread and shares nothing with the offer
service except the wire format.

Delivery semantics:
- Every message is committed after ONE processing attempt, whether the
  email went out or not. There is no retry and no dead-letter topic here
- Malformed messages and unknown event types are logged and discarded
- There is no duplicate suppression. If the broker redelivers a message
  (e.g. the consumer died between send and commit), the email is sent
  again. The event id would be the idempotency key for a dedup window;
  that is a known gap, not implemented
"""

import logging
import threading
import time
from typing import Callable, Optional

from exchange.channels import EmailChannel
from notifications.broker import BrokerError, BrokerMessage, InMemoryBroker
from notifications.events import DomainEvent, EventDecodeError, EventTypes, decode_event

logger = logging.getLogger("notification_consumer")

# Returns True when the notification was delivered
EventHandler = Callable[[DomainEvent], bool]


class NotificationConsumer:
    """
    Consumer-group reader for the notification topic.

    Example:
        consumer = NotificationConsumer(broker, EmailChannel())
        consumer.start()   # background thread
        ...
        consumer.stop()

    Or, synchronously (tests, demos):
        consumer.consume_available()
    """

    def __init__(
        self,
        broker: InMemoryBroker,
        channel: EmailChannel,
        topic: str = "notifications.email",
        group: str = "videx-email-consumer-group",
        batch_size: int = 10,
        poll_timeout: float = 0.5,
    ):
        self.broker = broker
        self.channel = channel
        self.topic = topic
        self.group = group
        self.batch_size = batch_size
        self.poll_timeout = poll_timeout

        self._handlers: dict[str, EventHandler] = {
            EventTypes.EMAIL_SEND: self._handle_email_send,
        }
        self._thread: Optional[threading.Thread] = None
        self._running = False

        # Observability
        self.processed_count = 0
        self.delivered_count = 0
        self.failed_count = 0
        self.discarded_count = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start polling on a background thread."""
        if self._running:
            logger.warning("NotificationConsumer already started")
            return

        self._running = True
        self._thread = threading.Thread(
            target=self._run,
            name=f"notification-consumer-{self.group}",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"NotificationConsumer started - group '{self.group}' on '{self.topic}'")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the polling thread after its current batch."""
        if not self._running:
            return

        self._running = False
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        logger.info(
            f"NotificationConsumer stopped - {self.delivered_count} delivered, "
            f"{self.failed_count} failed, {self.discarded_count} discarded"
        )

    @property
    def is_running(self) -> bool:
        return self._running

    def _run(self) -> None:
        while self._running:
            try:
                self.poll_once(timeout=self.poll_timeout)
            except BrokerError as e:
                if not self._running:
                    break
                logger.error(f"Polling '{self.topic}' failed: {e}")
                # Back off while the broker is unavailable
                time.sleep(self.poll_timeout)

    # =========================================================================
    # Polling
    # =========================================================================

    def poll_once(self, timeout: float = 0.0) -> int:
        """
        Fetch one batch, process every message, and commit it.

        Returns:
            Number of messages fetched
        """
        messages = self.broker.poll(
            self.topic,
            self.group,
            max_messages=self.batch_size,
            timeout=timeout,
        )
        for message in messages:
            self.process_message(message)
            self.broker.commit(self.topic, self.group, message.offset)
        return len(messages)

    def consume_available(self) -> int:
        """Process everything currently on the topic; returns the count."""
        total = 0
        while True:
            fetched = self.poll_once(timeout=0.0)
            if fetched == 0:
                return total
            total += fetched

    # =========================================================================
    # Processing
    # =========================================================================

    def process_message(self, message: BrokerMessage) -> bool:
        """
        Decode and handle a single message.

        Never raises; every outcome is logged and counted.

        Returns:
            True if the notification was delivered
        """
        self.processed_count += 1

        try:
            event = decode_event(message.value)
        except EventDecodeError as e:
            self.discarded_count += 1
            logger.warning(f"Discarding malformed message {message}: {e}")
            return False

        logger.info(f"Processing event: {event.type} ({event.id})")

        handler = self._handlers.get(event.type)
        if handler is None:
            self.discarded_count += 1
            logger.warning(f"No handler for event type '{event.type}', discarding {event}")
            return False

        try:
            delivered = handler(event)
        except Exception as e:
            delivered = False
            logger.error(f"Error processing {event}: {e}")

        if delivered:
            self.delivered_count += 1
        else:
            self.failed_count += 1
        return delivered

    def _handle_email_send(self, event: DomainEvent) -> bool:
        """Deliver an `email.send` event through the email channel."""
        to = event.payload["to"]
        subject = event.payload["subject"]

        result = self.channel.send(to, subject, event.payload["body"])
        if not result.success:
            logger.error(f"Failed to send email to {to}: {result.error}")
            return False

        logger.info(f"Email sent to {to}: {subject}")
        return True
