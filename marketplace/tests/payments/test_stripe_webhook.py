"""
Stripe webhook tests.

Events are signed with a test secret the same way Stripe signs them, so
the real `stripe.Webhook.construct_event` verification runs. Line items of
product sessions are served by a patched `PaymentGateway.list_line_items`.
"""

import hashlib
import hmac
import json
import time
from decimal import Decimal
from smtplib import SMTPException
from unittest.mock import MagicMock, patch

from django.core import mail
from django.test import TestCase, override_settings
from rest_framework import status

from core.stripe_integration.gateway import PaymentGateway
from core.stripe_integration.webhooks import WebhookEventProcessor
from marketplace.models import (
    CourseSaleHistory,
    Enroll,
    ProcessedWebhookEvent,
    Product,
    ProductSaleHistory,
    Purchased,
    PurchasedDetail,
)
from marketplace.services.fulfillment import FulfillmentService, FulfillmentStatus
from marketplace.tests.utils import (
    create_course,
    create_customer,
    create_instructor,
    create_product,
)

WEBHOOK_URL = "/webhook/stripeWebhook"
WEBHOOK_SECRET = "whsec_test_secret"


def sign(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(event_id, session, event_type="checkout.session.completed"):
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": session},
    }


def line_item(product, quantity, unit_amount):
    return {
        "object": "item",
        "quantity": quantity,
        "amount_total": unit_amount * quantity,
        "description": product.name,
        "price": {
            "unit_amount": unit_amount,
            "product": {
                "name": product.name,
                "images": [],
                "metadata": {"product_id": str(product.pk)},
            },
        },
    }


@override_settings(STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET)
class WebhookTestCase(TestCase):
    def post_event(self, event, secret=WEBHOOK_SECRET):
        payload = json.dumps(event)
        return self.client.post(
            WEBHOOK_URL,
            data=payload,
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=sign(payload, secret),
        )


class WebhookSignatureTests(WebhookTestCase):
    def test_invalid_signature(self):
        response = self.post_event(checkout_event("evt_bad", {}), secret="whsec_wrong")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.content.decode().startswith("Webhook Error:"))
        self.assertFalse(ProcessedWebhookEvent.objects.exists())

    def test_missing_signature(self):
        response = self.client.post(WEBHOOK_URL, data="{}", content_type="application/json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_event_types_are_acknowledged(self):
        response = self.post_event(
            checkout_event("evt_other", {"id": "pi_1"}, event_type="payment_intent.succeeded")
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"received": True})
        self.assertFalse(ProcessedWebhookEvent.objects.exists())


class CourseWebhookTests(WebhookTestCase):
    @classmethod
    def setUpTestData(cls):
        cls.instructor = create_instructor()
        cls.customer = create_customer()
        cls.course = create_course(cls.instructor, price="50.00")

    def course_session(self, **overrides):
        session = {
            "id": "cs_test_course",
            "object": "checkout.session",
            "amount_total": 5000,
            "metadata": {
                "type": "course",
                "courseId": str(self.course.pk),
                "instructorId": str(self.instructor.pk),
                "customerId": str(self.customer.pk),
            },
        }
        session.update(overrides)
        return session

    def test_course_purchase_enrolls_customer(self):
        response = self.post_event(checkout_event("evt_course_1", self.course_session()))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        history = CourseSaleHistory.objects.get()
        self.assertEqual(history.price, Decimal("50.00"))
        self.assertEqual(history.customer, self.customer)
        self.assertEqual(history.instructor, self.instructor)
        self.assertTrue(Enroll.objects.filter(course=self.course, customer=self.customer).exists())

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Course Enrolled Successfully - AgTeach")
        self.assertEqual(mail.outbox[0].to, ["student@test.com"])

    def test_redelivered_event_is_processed_once(self):
        event = checkout_event("evt_course_2", self.course_session())

        first = self.post_event(event)
        second = self.post_event(event)

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(CourseSaleHistory.objects.count(), 1)
        self.assertEqual(Enroll.objects.count(), 1)
        self.assertEqual(ProcessedWebhookEvent.objects.filter(event_id="evt_course_2").count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_unknown_instructor_falls_back_to_course_owner(self):
        session = self.course_session()
        session["metadata"]["instructorId"] = "999999"

        response = self.post_event(checkout_event("evt_course_3", session))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(CourseSaleHistory.objects.get().instructor, self.instructor)

    def test_unknown_course_is_rejected(self):
        session = self.course_session()
        session["metadata"]["courseId"] = "999999"

        response = self.post_event(checkout_event("evt_course_4", session))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["status"], "fail")
        self.assertFalse(CourseSaleHistory.objects.exists())
        self.assertFalse(ProcessedWebhookEvent.objects.exists())

    def test_email_failure_keeps_enrollment(self):
        with patch(
            "marketplace.services.notifications.notification_service.EmailMultiAlternatives.send",
            side_effect=SMTPException("mail server down"),
        ):
            response = self.post_event(checkout_event("evt_course_5", self.course_session()))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(Enroll.objects.filter(course=self.course, customer=self.customer).exists())
        self.assertEqual(CourseSaleHistory.objects.count(), 1)


class ProductWebhookTests(WebhookTestCase):
    @classmethod
    def setUpTestData(cls):
        cls.instructor = create_instructor()
        cls.customer = create_customer()
        cls.seeds = create_product(cls.instructor, name="Seeds", price="10.00", quantity=10)
        cls.tools = create_product(cls.instructor, name="Hoe", price="25.00", quantity=5)

    def product_event(self, event_id, amount_total):
        return checkout_event(event_id, {
            "id": "cs_test_product",
            "object": "checkout.session",
            "amount_total": amount_total,
            "customer_details": {"email": "billing@test.com"},
            "metadata": {"type": "product", "customerId": str(self.customer.pk)},
        })

    def patch_line_items(self, items):
        patcher = patch.object(PaymentGateway, "list_line_items", return_value={"data": items})
        mocked = patcher.start()
        self.addCleanup(patcher.stop)
        return mocked

    def test_purchase_decrements_stock_and_records_sale(self):
        self.patch_line_items([line_item(self.seeds, 3, 1000), line_item(self.tools, 2, 2500)])

        response = self.post_event(self.product_event("evt_product_1", 8000))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.seeds.refresh_from_db()
        self.tools.refresh_from_db()
        self.assertEqual(self.seeds.quantity, 7)
        self.assertEqual(self.tools.quantity, 3)

        purchased = Purchased.objects.get()
        details = PurchasedDetail.objects.filter(purchased=purchased)
        self.assertEqual(details.count(), 2)
        self.assertEqual(purchased.total, sum(detail.total for detail in details))
        self.assertEqual(purchased.total, Decimal("80.00"))

        histories = ProductSaleHistory.objects.filter(purchased=purchased)
        self.assertEqual(histories.count(), 2)
        self.assertFalse(histories.filter(is_delivered=True).exists())
        self.assertEqual(set(histories.values_list("instructor_id", flat=True)), {self.instructor.pk})

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Payment Successfully - AgTeach")
        self.assertEqual(mail.outbox[0].to, ["billing@test.com"])

    def test_insufficient_stock_rejects_whole_purchase(self):
        self.patch_line_items([line_item(self.seeds, 3, 1000), line_item(self.tools, 100, 2500)])

        response = self.post_event(self.product_event("evt_product_2", 253000))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["status"], "fail")
        self.seeds.refresh_from_db()
        self.tools.refresh_from_db()
        self.assertEqual(self.seeds.quantity, 10)
        self.assertEqual(self.tools.quantity, 5)
        self.assertFalse(Purchased.objects.exists())
        self.assertFalse(ProcessedWebhookEvent.objects.exists())
        self.assertEqual(len(mail.outbox), 0)

    def test_repeated_product_lines_cannot_oversell(self):
        self.patch_line_items([line_item(self.tools, 3, 2500), line_item(self.tools, 3, 2500)])

        response = self.post_event(self.product_event("evt_product_3", 15000))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.tools.refresh_from_db()
        self.assertEqual(self.tools.quantity, 5)

    def test_redelivered_purchase_decrements_once(self):
        mocked = self.patch_line_items([line_item(self.seeds, 2, 1000)])
        event = self.product_event("evt_product_4", 2000)

        self.post_event(event)
        response = self.post_event(event)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.seeds.refresh_from_db()
        self.assertEqual(self.seeds.quantity, 8)
        self.assertEqual(Purchased.objects.count(), 1)
        mocked.assert_called_once_with("cs_test_product")

    def test_unknown_product_is_rejected(self):
        self.patch_line_items([line_item(self.seeds, 1, 1000)])
        Product.objects.filter(pk=self.seeds.pk).delete()

        response = self.post_event(self.product_event("evt_product_5", 1000))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Purchased.objects.exists())

    def test_email_failure_keeps_purchase(self):
        self.patch_line_items([line_item(self.seeds, 1, 1000)])

        with patch(
            "marketplace.services.notifications.notification_service.EmailMultiAlternatives.send",
            side_effect=SMTPException("mail server down"),
        ):
            response = self.post_event(self.product_event("evt_product_6", 1000))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Purchased.objects.count(), 1)
        self.seeds.refresh_from_db()
        self.assertEqual(self.seeds.quantity, 9)

    def test_account_email_when_checkout_has_none(self):
        self.patch_line_items([line_item(self.seeds, 1, 1000)])
        event = self.product_event("evt_product_7", 1000)
        del event["data"]["object"]["customer_details"]

        response = self.post_event(event)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(mail.outbox[0].to, ["student@test.com"])


class WebhookProcessorResultTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.instructor = create_instructor()
        cls.customer = create_customer()
        cls.course = create_course(cls.instructor, price="50.00")
        cls.seeds = create_product(cls.instructor, name="Seeds", price="10.00", quantity=10)

    def processor(self, notified=True, line_items=()):
        notifier = MagicMock()
        notifier.send.return_value = notified
        gateway = MagicMock()
        gateway.list_line_items.return_value = {"data": list(line_items)}
        return WebhookEventProcessor(
            gateway=gateway, fulfillment=FulfillmentService(notifier=notifier)
        )

    def course_event(self, event_id):
        return checkout_event(event_id, {
            "id": "cs_test_course",
            "amount_total": 5000,
            "metadata": {
                "type": "course",
                "courseId": str(self.course.pk),
                "instructorId": str(self.instructor.pk),
                "customerId": str(self.customer.pk),
            },
        })

    def product_event(self, event_id):
        return checkout_event(event_id, {
            "id": "cs_test_product",
            "amount_total": 1000,
            "metadata": {"type": "product", "customerId": str(self.customer.pk)},
        })

    def test_course_fulfilled(self):
        result = self.processor().process(self.course_event("evt_result_1"))

        self.assertEqual(result.status, FulfillmentStatus.FULFILLED)
        self.assertEqual(result.branch, "course")
        self.assertTrue(Enroll.objects.filter(pk=result.enrollment_id).exists())

    def test_course_notification_failure_is_degraded_success(self):
        result = self.processor(notified=False).process(self.course_event("evt_result_2"))

        self.assertEqual(result.status, FulfillmentStatus.FULFILLED_WITH_NOTIFICATION_FAILURE)
        self.assertTrue(result.is_fulfilled)
        self.assertTrue(CourseSaleHistory.objects.filter(pk=result.course_sale_history_id).exists())

    def test_product_notification_failure_is_degraded_success(self):
        processor = self.processor(notified=False, line_items=[line_item(self.seeds, 1, 1000)])

        result = processor.process(self.product_event("evt_result_3"))

        self.assertEqual(result.status, FulfillmentStatus.FULFILLED_WITH_NOTIFICATION_FAILURE)
        self.assertTrue(Purchased.objects.filter(pk=result.purchased_id).exists())

    def test_duplicate_and_ignored_results(self):
        processor = self.processor()
        event = self.course_event("evt_result_4")
        processor.process(event)

        self.assertEqual(processor.process(event).status, FulfillmentStatus.DUPLICATE)
        self.assertEqual(
            processor.process(checkout_event("evt_result_5", {}, event_type="charge.refunded")).status,
            FulfillmentStatus.IGNORED,
        )
