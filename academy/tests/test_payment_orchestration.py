from decimal import Decimal
from unittest import mock

from django.test import TestCase

from academy.enrollments.models import Enrollment
from academy.exceptions import (
    CardPaymentError,
    EnrollmentError,
    EnrollmentErrorCode,
    OrderErrorCode,
    OrderValidationError,
)
from academy.orders.models import Order
from academy.payments.gateway import CardDetails, GatewayCharge
from academy.payments.models import Payment
from academy.payments.services import (
    BankTransferService,
    CardChargeService,
    PaymentOrchestrationService,
)
from academy.tests.helpers import (
    FailingReconciler,
    FakeGateway,
    FakeNotifier,
    FakeStorage,
    card_declined,
    create_course,
    create_order,
    create_user,
)

CARD = CardDetails(
    number="4242424242424242",
    holder_name="Somchai Jaidee",
    expiration_month=12,
    expiration_year=2030,
    security_code="123",
)


def build_service(gateway=None, reconciler=None):
    return PaymentOrchestrationService(
        card_service=CardChargeService(gateway=gateway or FakeGateway()),
        bank_transfer_service=BankTransferService(storage=FakeStorage(), notifier=FakeNotifier()),
        reconciler=reconciler,
    )


class CardPaymentFlowTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user("u1")
        cls.course = create_course("c1", price="1000.00")
        cls.second_course = create_course("c2", price="500.00")

    def testSuccessfulChargeEnrollsAndCompletesOrder(self):
        order = create_order(self.user, [self.course])

        result = build_service(FakeGateway(paid=True)).create_charge(self.user.pk, order.pk, CARD)

        order.refresh_from_db()
        payment = Payment.objects.get(pk=result.payment_id)
        self.assertEqual(payment.status, Payment.SUCCESSFUL)
        self.assertEqual(order.status, Order.SUCCESSFUL)
        enrollment = Enrollment.objects.get(user=self.user, course=self.course)
        self.assertEqual(enrollment.payment_id, payment.pk)

    def testChargeSendsOrderTotalToGateway(self):
        gateway = FakeGateway(paid=True)
        order = create_order(self.user, [self.course, self.second_course])

        build_service(gateway).create_charge(self.user.pk, order.pk, CARD)

        charge, token_id, metadata = gateway.charges[0]
        self.assertEqual(charge.amount, Decimal("1500.00"))
        self.assertEqual(token_id, "tok_1")
        self.assertEqual(metadata["order_id"], str(order.pk))
        self.assertEqual(Enrollment.objects.filter(user=self.user).count(), 2)

    def testTokenFailureLeavesNoPaymentAndOrderPending(self):
        order = create_order(self.user, [self.course])
        gateway = FakeGateway(token_error=card_declined("insufficient funds", code=None))

        with self.assertRaises(CardPaymentError) as ctx:
            build_service(gateway).create_charge(self.user.pk, order.pk, CARD)

        self.assertEqual(ctx.exception.code, "PAYMENT.INSUFFICIENT_FUND")
        self.assertFalse(Payment.objects.exists())
        order.refresh_from_db()
        self.assertEqual(order.status, Order.PENDING)

    def testPendingChargeReleasesOrderWithoutEnrollment(self):
        order = create_order(self.user, [self.course])

        result = build_service(FakeGateway(paid=False)).create_charge(self.user.pk, order.pk, CARD)

        self.assertEqual(result.status, Payment.PENDING)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.PENDING)
        self.assertFalse(Enrollment.objects.exists())

    def testFailedChargeAllowsRetry(self):
        order = create_order(self.user, [self.course])
        build_service(FakeGateway(paid=False, failure_code="insufficient_fund")).create_charge(
            self.user.pk, order.pk, CARD
        )

        result = build_service(FakeGateway(paid=True)).create_charge(self.user.pk, order.pk, CARD)

        self.assertEqual(result.status, Payment.SUCCESSFUL)
        self.assertEqual(Payment.objects.filter(order=order).count(), 2)

    def testProcessedOrderIsRejectedWithoutSideEffects(self):
        gateway = FakeGateway(paid=True)
        for order_status in (Order.SUCCESSFUL, Order.PROCESSING, Order.CANCELLED):
            order = create_order(self.user, [self.course], status=order_status)

            with self.assertRaises(OrderValidationError) as ctx:
                build_service(gateway).create_charge(self.user.pk, order.pk, CARD)

            self.assertEqual(ctx.exception.error_code, OrderErrorCode.ALREADY_PROCESSED)
            order.refresh_from_db()
            self.assertEqual(order.status, order_status)
        self.assertEqual(gateway.tokens, [])
        self.assertFalse(Payment.objects.exists())

    def testEmptyOrderNeverReachesGateway(self):
        gateway = FakeGateway(paid=True)
        order = create_order(self.user, [], total="1000.00")

        with self.assertRaises(OrderValidationError) as ctx:
            build_service(gateway).create_charge(self.user.pk, order.pk, CARD)

        self.assertEqual(ctx.exception.error_code, OrderErrorCode.EMPTY)
        self.assertEqual(gateway.tokens, [])

    def testLostClaimIsAlreadyProcessed(self):
        order = create_order(self.user, [self.course])
        service = build_service(FakeGateway(paid=True))

        with mock.patch.object(Order.objects, "claim_for_payment", return_value=False):
            with self.assertRaises(OrderValidationError) as ctx:
                service.create_charge(self.user.pk, order.pk, CARD)

        self.assertEqual(ctx.exception.error_code, OrderErrorCode.ALREADY_PROCESSED)
        self.assertFalse(Payment.objects.exists())

    def testClaimIsExclusive(self):
        order = create_order(self.user, [self.course])
        self.assertTrue(Order.objects.claim_for_payment(order.pk))
        self.assertFalse(Order.objects.claim_for_payment(order.pk))
        self.assertTrue(Order.objects.release_claim(order.pk))
        self.assertEqual(Order.objects.get(pk=order.pk).status, Order.PENDING)

    def testGrantFailureIsSurfacedAndOrderKeptFromRetry(self):
        order = create_order(self.user, [self.course, self.second_course])
        service = build_service(
            FakeGateway(paid=True), reconciler=FailingReconciler([self.second_course.pk])
        )

        with self.assertRaises(EnrollmentError) as ctx:
            service.create_charge(self.user.pk, order.pk, CARD)

        self.assertEqual(ctx.exception.error_code, EnrollmentErrorCode.RECONCILIATION_ERROR)
        self.assertEqual(ctx.exception.details["course_ids"], [str(self.second_course.pk)])
        order.refresh_from_db()
        self.assertEqual(order.status, Order.PROCESSING)
        self.assertFalse(Enrollment.objects.exists())
        self.assertEqual(Payment.objects.get().status, Payment.SUCCESSFUL)


class CardSettlementTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user()
        cls.course = create_course()

    def setUp(self):
        self.order = create_order(self.user, [self.course])
        self.service = build_service(FakeGateway(paid=False))
        self.result = self.service.create_charge(self.user.pk, self.order.pk, CARD)

    def charge(self, paid, failure_code=None):
        return GatewayCharge(
            id=self.result.gateway_charge_id,
            amount=Decimal("1000.00"),
            currency="thb",
            paid=paid,
            failure_code=failure_code,
        )

    def testSucceededChargeCompletesPendingPayment(self):
        payment = self.service.settle_card_payment(self.charge(True))

        self.assertEqual(payment.status, Payment.SUCCESSFUL)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.SUCCESSFUL)
        self.assertEqual(Enrollment.objects.get().payment_id, payment.pk)

    def testRedeliveryIsHarmless(self):
        self.service.settle_card_payment(self.charge(True))
        self.service.settle_card_payment(self.charge(True))

        self.assertEqual(Enrollment.objects.count(), 1)

    def testFailedChargeFailsPayment(self):
        payment = self.service.settle_card_payment(self.charge(False, "stolen_card"))

        self.assertEqual(payment.status, Payment.FAILED)
        self.assertEqual(payment.failure_code, "stolen_card")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.PENDING)

    def testUnknownChargeIsIgnored(self):
        charge = GatewayCharge(id="ch_unknown", amount=Decimal("1"), currency="thb", paid=True)
        self.assertIsNone(self.service.settle_card_payment(charge))
