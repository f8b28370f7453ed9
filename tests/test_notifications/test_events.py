"""
Tests for domain events and their wire format.
"""

import json

import pytest
from notifications.events import (
    DomainEvent,
    EventDecodeError,
    EventTypes,
    decode_event,
    email_send,
    encode_event,
)


def wire(**overrides) -> bytes:
    message = {
        "type": "email.send",
        "id": "evt-1",
        "timestamp": "2024-05-01T12:00:00+00:00",
        "to": "bob@example.com",
        "subject": "Hello",
        "body": "Body",
    }
    message.update(overrides)
    return json.dumps(message).encode("utf-8")


class TestDomainEvent:
    """Tests for DomainEvent and the email_send factory."""

    def test_email_send_factory(self):
        event = email_send("bob@example.com", "Hello", "Body")

        assert event.type == EventTypes.EMAIL_SEND
        assert event.payload == {"to": "bob@example.com", "subject": "Hello", "body": "Body"}
        assert event.key == "bob@example.com"
        assert event.timestamp.tzinfo is not None

    def test_event_ids_are_unique(self):
        first = email_send("a@example.com", "s", "b")
        second = email_send("a@example.com", "s", "b")
        assert first.id != second.id

    def test_email_send_rejects_empty_fields(self):
        with pytest.raises(ValueError):
            email_send("", "Hello", "Body")

    def test_key_absent_without_recipient(self):
        assert DomainEvent(type="other", payload={}).key is None

    def test_str(self):
        event = email_send("a@example.com", "s", "b")
        assert "email.send" in str(event)


class TestEncodeEvent:
    """Tests for the JSON wire encoding."""

    def test_flat_object(self):
        event = email_send("bob@example.com", "Hello", "Body")

        data = json.loads(encode_event(event))

        assert data == {
            "type": "email.send",
            "id": event.id,
            "timestamp": event.timestamp.isoformat(),
            "to": "bob@example.com",
            "subject": "Hello",
            "body": "Body",
        }

    def test_utf8(self):
        event = email_send("bob@example.com", "Pokémon", "Body")
        assert "Pokémon".encode("utf-8") in encode_event(event)


class TestDecodeEvent:
    """Tests for validation at the wire boundary."""

    def test_decodes_valid_message(self):
        event = decode_event(wire())

        assert event.type == "email.send"
        assert event.id == "evt-1"
        assert event.timestamp.year == 2024
        assert event.payload["to"] == "bob@example.com"

    def test_ignores_extra_fields(self):
        event = decode_event(wire(priority="high"))
        assert "priority" not in event.payload

    @pytest.mark.parametrize("raw", [
        b"not json",
        b"\xff\xfe",
        b"[1, 2, 3]",
        b'"just a string"',
    ])
    def test_rejects_non_objects(self, raw):
        with pytest.raises(EventDecodeError):
            decode_event(raw)

    def test_rejects_unknown_type(self):
        with pytest.raises(EventDecodeError, match="Unknown event type"):
            decode_event(wire(type="sms.send"))

    @pytest.mark.parametrize("field", ["to", "subject", "body"])
    def test_rejects_empty_payload_field(self, field):
        with pytest.raises(EventDecodeError):
            decode_event(wire(**{field: ""}))

    @pytest.mark.parametrize("field", ["type", "id", "timestamp", "to"])
    def test_rejects_missing_field(self, field):
        message = json.loads(wire())
        del message[field]
        with pytest.raises(EventDecodeError):
            decode_event(json.dumps(message).encode("utf-8"))

    @pytest.mark.parametrize("timestamp", [0, 1714564800, 1714564800.5, "yesterday", None])
    def test_rejects_non_iso_timestamp(self, timestamp):
        """Epoch numbers are not accepted in place of ISO-8601 text."""
        with pytest.raises(EventDecodeError):
            decode_event(wire(timestamp=timestamp))

    def test_accepts_zulu_timestamp(self):
        event = decode_event(wire(timestamp="2024-05-01T12:00:00Z"))
        assert event.timestamp.utcoffset().total_seconds() == 0
