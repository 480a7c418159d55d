from decimal import Decimal
from types import SimpleNamespace

from django.test import TestCase

from academy.enrollments.models import Enrollment
from academy.orders.models import Order
from academy.payments.models import Payment
from academy.payments.signals import _extract_data_object, handle_charge_event
from academy.tests.helpers import create_course, create_order, create_user


class ChargeEventTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user("u1")
        cls.course = create_course("c1", price="1000.00")

    def setUp(self):
        self.order = create_order(self.user, [self.course], status=Order.PROCESSING)
        self.payment = Payment.objects.create(
            order=self.order,
            payment_type=Payment.CARD_CHARGE,
            status=Payment.PENDING,
            amount=Decimal("1000.00"),
            gateway_charge_id="ch_pending",
        )

    def charge(self, **fields):
        return {"id": "ch_pending", "amount": 100000, "currency": "thb", **fields}

    def testSucceededChargeEnrolls(self):
        payment = handle_charge_event("charge.succeeded", self.charge(paid=True))

        self.assertEqual(payment.status, Payment.SUCCESSFUL)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.SUCCESSFUL)
        self.assertTrue(Enrollment.objects.filter(user=self.user, course=self.course).exists())

    def testRedeliveryIsHarmless(self):
        handle_charge_event("charge.succeeded", self.charge(paid=True))
        handle_charge_event("charge.succeeded", self.charge(paid=True))

        self.assertEqual(Enrollment.objects.filter(user=self.user).count(), 1)

    def testFailedCharge(self):
        payment = handle_charge_event(
            "charge.failed", self.charge(paid=False, failure_code="card_declined")
        )

        self.assertEqual(payment.status, Payment.FAILED)
        self.assertEqual(payment.failure_code, "card_declined")
        self.assertFalse(Enrollment.objects.exists())

    def testIgnoredEvents(self):
        self.assertIsNone(handle_charge_event("charge.refunded", self.charge(paid=True)))
        self.assertIsNone(handle_charge_event("charge.succeeded", {"paid": True}))

    def testUnknownCharge(self):
        with self.assertLogs("academy.payments.services", "WARNING"):
            result = handle_charge_event("charge.succeeded", {"id": "ch_other", "paid": True})
        self.assertIsNone(result)

    def testExtractDataObject(self):
        nested = SimpleNamespace(data={"data": {"object": {"id": "ch_1"}}})
        flat = SimpleNamespace(data={"object": {"id": "ch_2"}})

        self.assertEqual(_extract_data_object(nested), {"id": "ch_1"})
        self.assertEqual(_extract_data_object(flat), {"id": "ch_2"})
        self.assertEqual(_extract_data_object(SimpleNamespace(data=None)), {})
