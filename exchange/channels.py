"""
Mock email delivery channel.

The channel simulates sending emails by logging them. In production this
would wrap an SMTP relay or a provider like SendGrid or AWS SES; those
details sit behind the same send(to, subject, body) contract.

Design decisions:
- All sends are logged for visibility
- The channel keeps a history of results for test assertions
- Failures can be simulated with a fail rate (1.0 always fails)
- A failed send returns a DeliveryResult with success=False; it does not
  raise. Callers decide whether to log, retry or drop.
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from exchange.models import utcnow

logger = logging.getLogger("notifications")


@dataclass
class DeliveryResult:
    """
    Result of an email send attempt.

    Captures success/failure and metadata for debugging and testing.
    """
    success: bool
    recipient: str
    subject: str
    body: str
    timestamp: datetime = field(default_factory=utcnow)
    error: Optional[str] = None

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        return f"{status} EMAIL to {self.recipient}: {self.subject}"


class EmailChannel:
    """
    Mock email channel.

    Logs email sends and tracks them for test assertions.
    Safe to call from several consumer threads.
    """

    def __init__(
        self,
        fail_rate: float = 0.0,
        from_addr: str = "noreply@videx.local",
    ):
        """
        Initialize the email channel.

        Args:
            fail_rate: Probability of send failure (0.0 to 1.0), for testing.
            from_addr: Sender address used in logs.
        """
        self.fail_rate = fail_rate
        self.from_addr = from_addr
        self.sent_messages: list[DeliveryResult] = []
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, body: str) -> DeliveryResult:
        """
        Send an email (mock implementation).

        Args:
            to: Recipient email address
            subject: Email subject line
            body: Email body content

        Returns:
            DeliveryResult indicating success/failure
        """
        if random.random() < self.fail_rate:
            result = DeliveryResult(
                success=False,
                recipient=to,
                subject=subject,
                body=body,
                error="Simulated email delivery failure",
            )
            logger.error(f"[EMAIL FAILED] To: {to} | Subject: {subject} | Error: {result.error}")
        else:
            result = DeliveryResult(
                success=True,
                recipient=to,
                subject=subject,
                body=body,
            )
            logger.info(f"[EMAIL] From: {self.from_addr} | To: {to} | Subject: {subject}")
            logger.debug(f"[EMAIL BODY] {body}")

        with self._lock:
            self.sent_messages.append(result)
        return result

    def get_sent_count(self) -> int:
        """Get the number of send attempts (for testing)."""
        return len(self.sent_messages)

    def clear_history(self):
        """Clear sent message history (useful between tests)."""
        with self._lock:
            self.sent_messages.clear()

    def find_message_to(self, recipient: str) -> Optional[DeliveryResult]:
        """Find the first message sent to a specific recipient."""
        for msg in self.sent_messages:
            if msg.recipient == recipient:
                return msg
        return None

    def find_messages_to(self, recipient: str) -> list[DeliveryResult]:
        """All messages sent to a specific recipient, oldest first."""
        return [m for m in self.sent_messages if m.recipient == recipient]
