"""
Notification message templates.

This module provides the email templates for every trade-offer lifecycle
transition, and the renderer that fills them in.

Design decisions:
- Templates are plain strings with {{variable}} placeholders
- Rendering is a pure function: same template and bindings, same text
- A placeholder with no binding is left in the output verbatim and no
  error is raised. This is the intended policy
- Each template carries a version; changing wording means bumping it
- Templates are keyed by the transition they are bound to, not by recipient

Variables used across the offer templates:
    recipient_name, offerer_name,
    offered_item_name, offered_item_year,
    requested_item_name, requested_item_year
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

TemplateValue = Union[str, int, float]

# {{name}} with optional whitespace inside the braces
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")

FOOTER = """
---
This is an automated message from VidEX. Please do not reply to this email."""


class TemplateId(str, Enum):
    """
    Supported templates.

    Each one is bound to a single lifecycle transition and audience.
    """
    # Offer created
    OFFER_RECEIVED = "offer_received"
    OFFER_CREATED_CONFIRMATION = "offer_created_confirmation"

    # Offer accepted
    OFFER_ACCEPTED_OFFERER = "offer_accepted_offerer"
    OFFER_ACCEPTED_RECIPIENT = "offer_accepted_recipient"

    # Offer rejected
    OFFER_REJECTED_OFFERER = "offer_rejected_offerer"
    OFFER_REJECTED_RECIPIENT = "offer_rejected_recipient"


def render_template(text: str, variables: dict[str, TemplateValue]) -> str:
    """
    Substitute every {{name}} placeholder in text.

    Args:
        text: Template text
        variables: Bindings; values are converted with str()

    Returns:
        The rendered text. Unbound placeholders are kept as written.
    """
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return str(variables[name])

    return PLACEHOLDER_PATTERN.sub(substitute, text)


@dataclass(frozen=True)
class NotificationTemplate:
    """An email template: subject line plus body."""
    template_id: TemplateId
    subject: str
    body: str
    version: int = 1

    def render(self, **variables: TemplateValue) -> tuple[str, str]:
        """
        Render the template with provided variables.

        Returns:
            Tuple of (subject, body)
        """
        return (
            render_template(self.subject, variables),
            render_template(self.body, variables),
        )

    def placeholders(self) -> set[str]:
        """Names of every variable this template refers to."""
        return set(PLACEHOLDER_PATTERN.findall(self.subject + self.body))


# =============================================================================
# Template Definitions
# =============================================================================

TEMPLATES: dict[TemplateId, NotificationTemplate] = {

    # -------------------------------------------------------------------------
    # Offer created
    # -------------------------------------------------------------------------

    TemplateId.OFFER_RECEIVED: NotificationTemplate(
        template_id=TemplateId.OFFER_RECEIVED,
        subject="You've received a trade offer!",
        body="""New Trade Offer!

Hi {{recipient_name}},

You've received a new trade offer from {{offerer_name}}!

They're offering: {{offered_item_name}} ({{offered_item_year}})
They're requesting: {{requested_item_name}} ({{requested_item_year}})

Log in to your VidEX account to view and respond to this offer.
""" + FOOTER,
    ),

    TemplateId.OFFER_CREATED_CONFIRMATION: NotificationTemplate(
        template_id=TemplateId.OFFER_CREATED_CONFIRMATION,
        subject="Your trade offer was sent!",
        body="""Trade Offer Sent!

Hi {{offerer_name}},

Your trade offer has been sent to {{recipient_name}}!

You're offering: {{offered_item_name}} ({{offered_item_year}})
You're requesting: {{requested_item_name}} ({{requested_item_year}})

We'll notify you when {{recipient_name}} responds to your offer.
""" + FOOTER,
    ),

    # -------------------------------------------------------------------------
    # Offer accepted
    # -------------------------------------------------------------------------

    TemplateId.OFFER_ACCEPTED_OFFERER: NotificationTemplate(
        template_id=TemplateId.OFFER_ACCEPTED_OFFERER,
        subject="Your trade offer was accepted!",
        body="""Trade Offer Accepted!

Great news, {{offerer_name}}! {{recipient_name}} has accepted your trade offer!

You're sending: {{offered_item_name}} ({{offered_item_year}})
You're receiving: {{requested_item_name}} ({{requested_item_year}})

Please arrange the exchange with {{recipient_name}} through VidEX messaging or your preferred contact method.
""" + FOOTER,
    ),

    TemplateId.OFFER_ACCEPTED_RECIPIENT: NotificationTemplate(
        template_id=TemplateId.OFFER_ACCEPTED_RECIPIENT,
        subject="You accepted a trade offer",
        body="""You Accepted a Trade!

Hi {{recipient_name}},

You've accepted a trade offer from {{offerer_name}}!

You're sending: {{requested_item_name}} ({{requested_item_year}})
You're receiving: {{offered_item_name}} ({{offered_item_year}})

Please arrange the exchange with {{offerer_name}} through VidEX messaging or your preferred contact method.
""" + FOOTER,
    ),

    # -------------------------------------------------------------------------
    # Offer rejected
    # -------------------------------------------------------------------------

    TemplateId.OFFER_REJECTED_OFFERER: NotificationTemplate(
        template_id=TemplateId.OFFER_REJECTED_OFFERER,
        subject="Your trade offer was declined",
        body="""Trade Offer Rejected

Hi {{offerer_name}},

Unfortunately, {{recipient_name}} has declined your trade offer.

You were offering: {{offered_item_name}} ({{offered_item_year}})
For their: {{requested_item_name}} ({{requested_item_year}})

Don't worry, there are other collectors on VidEX! Feel free to make offers to other users.
""" + FOOTER,
    ),

    TemplateId.OFFER_REJECTED_RECIPIENT: NotificationTemplate(
        template_id=TemplateId.OFFER_REJECTED_RECIPIENT,
        subject="You declined a trade offer",
        body="""You Declined a Trade Offer

Hi {{recipient_name}},

You've declined the trade offer from {{offerer_name}}.

They were offering: {{offered_item_name}} ({{offered_item_year}})
For your: {{requested_item_name}} ({{requested_item_year}})

You can continue browsing other trade offers on VidEX.
""" + FOOTER,
    ),
}


# =============================================================================
# Template Access Functions
# =============================================================================

def get_template(template_id: TemplateId) -> Optional[NotificationTemplate]:
    """Get a template by id."""
    return TEMPLATES.get(template_id)


def render_notification(template_id: TemplateId, **variables: TemplateValue) -> tuple[str, str]:
    """
    Render a notification email.

    Args:
        template_id: Which template to use
        **variables: Values to substitute in the template

    Returns:
        (subject, body)

    Raises:
        ValueError: If no template exists for the id
    """
    template = get_template(template_id)
    if not template:
        raise ValueError(f"No template found for id: {template_id}")
    return template.render(**variables)
