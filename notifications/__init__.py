"""
Asynchronous notification pipeline.

This package carries notifications from the offer service to the inbox:
- DomainEvent and its JSON wire format (events)
- In-memory, Kafka-shaped broker (broker)
- Non-blocking publisher with bounded retry (publisher)
- Consumer that decodes events and delivers emails (consumer)
"""

from notifications.broker import BrokerError, BrokerMessage, InMemoryBroker
from notifications.consumer import NotificationConsumer
from notifications.events import (
    DomainEvent,
    EventDecodeError,
    EventTypes,
    decode_event,
    email_send,
    encode_event,
)
from notifications.publisher import EventPublisher

__all__ = [
    "BrokerError",
    "BrokerMessage",
    "InMemoryBroker",
    "NotificationConsumer",
    "DomainEvent",
    "EventDecodeError",
    "EventTypes",
    "decode_event",
    "email_send",
    "encode_event",
    "EventPublisher",
]
