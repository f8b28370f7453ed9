"""
Tests for the email channel.

These tests verify that the mock email channel logs sends, tracks
history, and reports simulated failures without raising.
"""

from exchange.channels import EmailChannel


class TestEmailChannel:
    """Tests for the mock email channel."""

    def test_send_email_success(self, email_channel: EmailChannel):
        """Test successful email send."""
        result = email_channel.send(
            to="test@example.com",
            subject="Test Subject",
            body="Test body content",
        )

        assert result.success is True
        assert result.recipient == "test@example.com"
        assert result.subject == "Test Subject"
        assert result.body == "Test body content"
        assert result.error is None

    def test_tracks_sent_messages(self, email_channel: EmailChannel):
        """Test that channel tracks sent messages."""
        email_channel.send("a@example.com", "Subject A", "Body A")
        email_channel.send("b@example.com", "Subject B", "Body B")

        assert email_channel.get_sent_count() == 2

        messages = email_channel.sent_messages
        assert messages[0].recipient == "a@example.com"
        assert messages[1].recipient == "b@example.com"

    def test_find_messages_to(self, email_channel: EmailChannel):
        email_channel.send("target@example.com", "First", "1")
        email_channel.send("other@example.com", "Hi", "There")
        email_channel.send("target@example.com", "Second", "2")

        assert email_channel.find_message_to("target@example.com").subject == "First"
        assert [m.subject for m in email_channel.find_messages_to("target@example.com")] == [
            "First",
            "Second",
        ]
        assert email_channel.find_message_to("nobody@example.com") is None

    def test_clear_history(self, email_channel: EmailChannel):
        email_channel.send("a@example.com", "Subject", "Body")
        email_channel.clear_history()
        assert email_channel.get_sent_count() == 0

    def test_simulated_failure(self):
        """A fail rate of 1.0 always fails, without raising."""
        channel = EmailChannel(fail_rate=1.0)

        result = channel.send("a@example.com", "Subject", "Body")

        assert result.success is False
        assert result.error is not None
        assert channel.get_sent_count() == 1
        assert channel.sent_messages[0].success is False

    def test_str_shows_outcome(self, email_channel: EmailChannel):
        result = email_channel.send("a@example.com", "Hello", "Body")
        assert "a@example.com" in str(result)
        assert "Hello" in str(result)
