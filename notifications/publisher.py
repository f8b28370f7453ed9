"""
Event publisher: fire-and-forget hand-off of domain events to the broker.

publish() only enqueues. A single background worker thread drains the
queue and produces each event to the broker, retrying transient failures
with exponential backoff. When the retry budget is spent the event is
logged and dropped; the business operation that emitted it has already
committed and never hears about it.

Design decisions:
- One worker, one FIFO queue: events leave in the order they were
  published, so per-recipient order is preserved on a best-effort basis
- Delivery into the broker is at-least-once at best; a produce that
  times out after the broker stored the message will be retried and
  duplicated. Consumers must tolerate duplicates
- The broker connection is injected, and the publisher has an explicit
  start()/close() lifecycle; close() drains what is already queued
"""

import logging
import queue
import threading
from typing import Optional
from uuid import uuid4

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from notifications.broker import BrokerError, InMemoryBroker
from notifications.events import DomainEvent, email_send, encode_event

logger = logging.getLogger("event_publisher")

# Queue sentinel that tells the worker to exit
_STOP = object()


class EventPublisher:
    """
    Non-blocking publisher backed by a worker thread.

    Example:
        publisher = EventPublisher(broker, topic="notifications.email")
        publisher.start()

        publisher.publish_email("bob@example.com", "Hello", "...")  # returns immediately

        publisher.close()  # waits for queued events to be sent
    """

    def __init__(
        self,
        broker: InMemoryBroker,
        topic: str = "notifications.email",
        max_retries: int = 5,
        initial_backoff: float = 0.1,
    ):
        """
        Initialize the publisher.

        Args:
            broker: Connected broker to produce to
            topic: Topic every event is published on
            max_retries: Retries after the first failed attempt
            initial_backoff: Seconds before the first retry; doubles each retry
        """
        self.broker = broker
        self.topic = topic
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff

        self._queue: queue.Queue = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._running = False

        # Events accepted by publish() but not yet sent or dropped
        self._pending = 0
        self._idle = threading.Condition()

        # Observability
        self.sent_count = 0
        self.dropped_count = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start the background worker."""
        if self._running:
            logger.warning("EventPublisher already started")
            return

        self._running = True
        self._worker = threading.Thread(
            target=self._run,
            name=f"event-publisher-{self.topic}",
            daemon=True,
        )
        self._worker.start()
        logger.info(f"EventPublisher started - publishing to '{self.topic}'")

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """
        Stop accepting events, drain the queue, and stop the worker.

        Events still queued when `timeout` runs out are abandoned.
        """
        if not self._running:
            return

        # Under the same lock as publish(), so every accepted event is queued
        # ahead of the sentinel
        with self._idle:
            self._running = False
            self._queue.put(_STOP)
        if self._worker is not None:
            self._worker.join(timeout)
            if self._worker.is_alive():
                logger.warning(
                    f"EventPublisher closed with {self._pending} event(s) still in flight"
                )
        self._worker = None
        logger.info(
            f"EventPublisher stopped - {self.sent_count} sent, {self.dropped_count} dropped"
        )

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # Publishing
    # =========================================================================

    def publish(self, event: DomainEvent) -> None:
        """
        Queue an event for delivery to the broker.

        Returns without waiting for the broker.

        Raises:
            RuntimeError: If the publisher has not been started or is closed
        """
        with self._idle:
            if not self._running:
                raise RuntimeError("EventPublisher not started")
            self._pending += 1
            self._queue.put(event)
        logger.debug(f"Queued {event} for {event.key}")

    def publish_email(self, to: str, subject: str, body: str) -> DomainEvent:
        """Build an `email.send` event and queue it."""
        event = email_send(to=to, subject=subject, body=body)
        self.publish(event)
        return event

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued event has been sent or dropped.

        Returns:
            True if the queue drained, False on timeout
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    # =========================================================================
    # Worker
    # =========================================================================

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            try:
                self._send_with_retry(item)
            except Exception as e:
                self.dropped_count += 1
                logger.error(f"Unexpected error publishing {item}, dropping it: {e}")
            finally:
                with self._idle:
                    self._pending -= 1
                    self._idle.notify_all()

    def _send_with_retry(self, event: DomainEvent) -> bool:
        """Produce one event, retrying BrokerError with exponential backoff."""
        value = encode_event(event)
        headers = {"correlation-id": str(uuid4())}
        attempts = self.max_retries + 1

        def log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                f"Publish attempt {retry_state.attempt_number}/{attempts} failed for {event}: "
                f"{retry_state.outcome.exception()}; "
                f"retrying in {retry_state.next_action.sleep:.3f}s"
            )

        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.initial_backoff),
            retry=retry_if_exception_type(BrokerError),
            before_sleep=log_retry,
            reraise=True,
        )
        try:
            message = retrying(
                self.broker.produce,
                self.topic,
                value,
                key=event.key,
                headers=headers,
            )
        except BrokerError as e:
            self.dropped_count += 1
            logger.error(
                f"Failed to publish {event} to {event.key} after {attempts} attempts, "
                f"dropping it: {e}"
            )
            return False

        self.sent_count += 1
        logger.info(f"Published {event} to {self.topic}@{message.offset}")
        return True
