"""
In-memory message broker for the notification pipeline.

This module provides a small Kafka-shaped broker: named topics hold an
append-only log of keyed messages, and consumer groups read that log and
commit their progress. In a real deployment this is replaced by Kafka,
Redpanda or any broker with the same produce/poll/commit contract.

Design decisions:
- Messages are bytes; encoding events is the publisher's job
- Offsets are per topic; each consumer group tracks a fetch position and a
  committed offset independently
- A fetch position that was never committed can be rewound to the last
  commit, which is how a consumer crash causes redelivery
- The connection is explicit: produce/poll fail until connect() is called
  and again after close()
- Transient produce failures can be injected with fail_next() for testing
  the publisher's retry path

Key property for the notification pipeline:
- Producers don't know who is consuming
- Consumers don't know who is producing
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from exchange.models import utcnow

logger = logging.getLogger("broker")


class BrokerError(Exception):
    """The broker rejected or could not complete an operation."""


@dataclass
class BrokerMessage:
    """
    A record stored on a topic.

    Attributes:
        topic: Topic the message was produced to
        offset: Position in the topic log, starting at 0
        value: Raw message bytes
        key: Partitioning key (the recipient address for notifications)
        headers: Free-form string headers
        timestamp: When the broker accepted the message
    """
    topic: str
    offset: int
    value: bytes
    key: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    def __str__(self) -> str:
        return f"BrokerMessage({self.topic}@{self.offset}, key={self.key})"


class InMemoryBroker:
    """
    Thread-safe in-memory broker.

    Example usage:
        broker = InMemoryBroker()
        broker.connect()

        broker.produce("notifications.email", b'{"type": "email.send"}', key="a@b.c")

        for message in broker.poll("notifications.email", group="email-consumer"):
            handle(message)
            broker.commit("notifications.email", "email-consumer", message.offset)
    """

    def __init__(self):
        self._topics: dict[str, list[BrokerMessage]] = defaultdict(list)
        # (topic, group) -> next offset to fetch / next offset after last commit
        self._positions: dict[tuple[str, str], int] = {}
        self._committed: dict[tuple[str, str], int] = {}
        self._condition = threading.Condition()
        self._connected = False
        self._failures_remaining = 0

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    def connect(self) -> None:
        with self._condition:
            self._connected = True
        logger.info("Broker connected")

    def close(self) -> None:
        """Close the connection and wake any blocked pollers."""
        with self._condition:
            self._connected = False
            self._condition.notify_all()
        logger.info("Broker closed")

    @property
    def is_connected(self) -> bool:
        return self._connected

    def fail_next(self, count: int = 1) -> None:
        """Make the next `count` produce calls fail (for testing)."""
        with self._condition:
            self._failures_remaining = count

    # =========================================================================
    # Produce / Poll / Commit
    # =========================================================================

    def produce(
        self,
        topic: str,
        value: bytes,
        key: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> BrokerMessage:
        """
        Append a message to a topic.

        Returns:
            The stored message, with its offset assigned

        Raises:
            BrokerError: If not connected, or a failure was injected
        """
        with self._condition:
            if not self._connected:
                raise BrokerError("Broker not connected")
            if self._failures_remaining > 0:
                self._failures_remaining -= 1
                raise BrokerError("Simulated broker failure")

            log = self._topics[topic]
            message = BrokerMessage(
                topic=topic,
                offset=len(log),
                value=value,
                key=key,
                headers=dict(headers or {}),
            )
            log.append(message)
            self._condition.notify_all()

        logger.debug(f"Produced {message}")
        return message

    def poll(
        self,
        topic: str,
        group: str,
        max_messages: int = 10,
        timeout: float = 0.0,
    ) -> list[BrokerMessage]:
        """
        Fetch the next batch of messages for a consumer group.

        Blocks up to `timeout` seconds when nothing is available. The group's
        fetch position advances past the returned messages; commit()
        records that they were processed.

        Raises:
            BrokerError: If not connected
        """
        slot = (topic, group)
        with self._condition:
            if not self._connected:
                raise BrokerError("Broker not connected")

            position = self._positions.setdefault(slot, self._committed.get(slot, 0))
            log = self._topics[topic]
            if position >= len(log) and timeout > 0:
                self._condition.wait_for(
                    lambda: not self._connected or len(self._topics[topic]) > position,
                    timeout=timeout,
                )
                if not self._connected:
                    raise BrokerError("Broker closed while polling")

            batch = log[position:position + max_messages]
            self._positions[slot] = position + len(batch)
            return list(batch)

    def commit(self, topic: str, group: str, offset: int) -> None:
        """Mark every message up to and including `offset` as processed."""
        slot = (topic, group)
        with self._condition:
            self._committed[slot] = max(self._committed.get(slot, 0), offset + 1)

    def rewind_to_committed(self, topic: str, group: str) -> int:
        """
        Reset a group's fetch position to its last commit.

        Simulates a consumer restart: everything fetched but not committed
        is delivered again. Returns the new position.
        """
        slot = (topic, group)
        with self._condition:
            position = self._committed.get(slot, 0)
            self._positions[slot] = position
            return position

    # =========================================================================
    # Inspection (debugging and tests)
    # =========================================================================

    def get_messages(self, topic: str) -> list[BrokerMessage]:
        """All messages ever produced to a topic."""
        with self._condition:
            return list(self._topics.get(topic, []))

    def committed_offset(self, topic: str, group: str) -> int:
        """Next offset the group will read after a restart."""
        return self._committed.get((topic, group), 0)

    def lag(self, topic: str, group: str) -> int:
        """Messages produced but not yet committed by the group."""
        with self._condition:
            return len(self._topics.get(topic, [])) - self._committed.get((topic, group), 0)
