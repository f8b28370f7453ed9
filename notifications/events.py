"""
Domain events for the notification pipeline.

Events are facts emitted by the offer service on every state-changing
operation. The only payload type in use is a notification request
(`email.send`): one rendered email, addressed to one recipient.

Wire format (UTF-8 JSON, one object per broker message):

    {"type": "email.send", "id": "...", "timestamp": "2024-05-01T12:00:00+00:00",
     "to": "bob@example.com", "subject": "...", "body": "..."}

Design decisions:
- DomainEvent is a plain dataclass; payload validation happens at the wire
  boundary with Pydantic models, one per event type
- Envelope fields (type, id, timestamp) sit beside payload fields on the
  wire, not nested
- Unknown types and missing/empty payload fields are decode errors. The
  consumer treats those as "log and discard"
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError, field_validator

from exchange.models import utcnow


class EventTypes:
    """Constants for event type names."""
    EMAIL_SEND = "email.send"


@dataclass
class DomainEvent:
    """
    Base record for all events in the system.

    Attributes:
        type: Event type name (used for routing and payload validation)
        payload: Type-specific data
        id: Unique identifier for this event instance
        timestamp: When the event was created
    """
    type: str
    payload: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> Optional[str]:
        """Broker partitioning key: the recipient, when the payload has one."""
        return self.payload.get("to")

    def __str__(self) -> str:
        return f"DomainEvent({self.type}, id={self.id[:8]})"


# =============================================================================
# Wire schemas
# =============================================================================

class EventEnvelope(BaseModel):
    """Fields every event carries on the wire."""
    type: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_iso_timestamp(cls, value: Any) -> datetime:
        # Only ISO-8601 text; epoch numbers and numeric strings are malformed
        if not isinstance(value, str):
            raise ValueError("timestamp must be an ISO-8601 string")
        return datetime.fromisoformat(value.replace("Z", "+00:00"))


class EmailSendPayload(BaseModel):
    """Payload of an `email.send` event."""
    to: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)


PAYLOAD_SCHEMAS: dict[str, type[BaseModel]] = {
    EventTypes.EMAIL_SEND: EmailSendPayload,
}


class EventDecodeError(ValueError):
    """A broker message could not be turned into a DomainEvent."""


# =============================================================================
# Factories
# =============================================================================

def email_send(to: str, subject: str, body: str) -> DomainEvent:
    """Create an `email.send` event."""
    payload = EmailSendPayload(to=to, subject=subject, body=body)
    return DomainEvent(type=EventTypes.EMAIL_SEND, payload=payload.model_dump())


# =============================================================================
# Encoding
# =============================================================================

def encode_event(event: DomainEvent) -> bytes:
    """Serialize an event to its UTF-8 JSON wire form."""
    wire = {
        "type": event.type,
        "id": event.id,
        "timestamp": event.timestamp.isoformat(),
        **event.payload,
    }
    return json.dumps(wire, ensure_ascii=False).encode("utf-8")


def decode_event(raw: bytes) -> DomainEvent:
    """
    Parse and validate a wire message.

    Raises:
        EventDecodeError: If the bytes are not a JSON object, the envelope is
            incomplete, the type is unknown, or the payload is invalid
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EventDecodeError(f"Message is not valid UTF-8 JSON: {e}") from e

    if not isinstance(data, dict):
        raise EventDecodeError(f"Message is not a JSON object: {type(data).__name__}")

    try:
        envelope = EventEnvelope.model_validate(data)
    except ValidationError as e:
        raise EventDecodeError(f"Invalid event envelope: {e.error_count()} error(s)") from e

    schema = PAYLOAD_SCHEMAS.get(envelope.type)
    if schema is None:
        raise EventDecodeError(f"Unknown event type: {envelope.type}")

    payload_fields = {name: data.get(name) for name in schema.model_fields}
    try:
        payload = schema.model_validate(payload_fields)
    except ValidationError as e:
        raise EventDecodeError(f"Invalid {envelope.type} payload: {e.error_count()} error(s)") from e

    return DomainEvent(
        type=envelope.type,
        payload=payload.model_dump(),
        id=envelope.id,
        timestamp=envelope.timestamp,
    )
