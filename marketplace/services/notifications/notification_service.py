"""
Notification Service for the AgTeach Marketplace

Sends templated transactional emails through Django's mail framework.

Templates live in ``marketplace/templates/marketplace/emails/<template_id>.html``;
a plain text alternative is derived from the rendered HTML.

Sending is fire-and-forget: failures are logged and reported as ``False``
but never raised, so a broken mail server cannot abort a fulfillment.

Author: AgTeach Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)

ENROLLMENT_CONFIRMATION = "enrollment_confirmation"
PURCHASE_CONFIRMATION = "purchase_confirmation"
ORDER_DELIVERED = "order_delivered"


class NotificationService:
    """Service for sending transactional emails."""

    def __init__(self, from_email: Optional[str] = None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def send(
        self,
        recipient: Optional[str],
        template_id: str,
        template_data: Dict[str, Any],
        subject: str,
    ) -> bool:
        """
        Render and send one email.

        Args:
            recipient: Email address of the receiver
            template_id: Name of the template below ``marketplace/emails/``
            template_data: Template context
            subject: Email subject line

        Returns:
            True when the email was handed to the mail backend, False otherwise
        """
        if not recipient:
            logger.warning("No recipient for %s email, skipping", template_id)
            return False

        try:
            html_body = render_to_string(
                f"marketplace/emails/{template_id}.html", template_data
            )
            message = EmailMultiAlternatives(
                subject=subject,
                body=strip_tags(html_body),
                from_email=self.from_email,
                to=[recipient],
            )
            message.attach_alternative(html_body, "text/html")
            message.send(fail_silently=False)
        except Exception:
            logger.exception("Sending %s email to %s failed", template_id, recipient)
            return False

        logger.info("Sent %s email to %s", template_id, recipient)
        return True
