from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings

from marketplace.services.notifications import (
    ORDER_DELIVERED,
    PURCHASE_CONFIRMATION,
    NotificationService,
)


@override_settings(DEFAULT_FROM_EMAIL="shop@agteach.test")
class NotificationServiceTests(TestCase):
    def test_send_renders_html_and_text(self):
        sent = NotificationService().send(
            "student@test.com",
            PURCHASE_CONFIRMATION,
            {
                "purchased_id": 12,
                "items": [{"name": "Seeds", "quantity": 2, "price": "10.00", "total": "20.00"}],
                "total": "20.00",
                "currency": "usd",
            },
            "Payment Successfully - AgTeach",
        )

        self.assertTrue(sent)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.from_email, "shop@agteach.test")
        self.assertIn("Seeds", message.body)
        self.assertNotIn("<table", message.body)
        self.assertEqual(message.alternatives[0][1], "text/html")

    def test_missing_recipient(self):
        self.assertFalse(NotificationService().send("", ORDER_DELIVERED, {}, "Delivered"))
        self.assertEqual(len(mail.outbox), 0)

    def test_backend_failure_is_reported_not_raised(self):
        with patch(
            "marketplace.services.notifications.notification_service.EmailMultiAlternatives.send",
            side_effect=SMTPException("down"),
        ):
            sent = NotificationService().send("student@test.com", ORDER_DELIVERED, {}, "Delivered")
        self.assertFalse(sent)
