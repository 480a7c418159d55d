from decimal import Decimal

from django.test import TestCase

from academy.exceptions import CardPaymentError, GatewayError, PaymentErrorCode
from academy.payments.gateway import CardDetails, GatewayCharge, GatewayRequestException
from academy.payments.models import Payment
from academy.payments.services import CardChargeService, classify_card_error, derive_status
from academy.tests.helpers import (
    FakeGateway,
    card_declined,
    create_course,
    create_order,
    create_user,
)

class UnreachableGateway(FakeGateway):
    def retrieve_charge(self, charge_id):
        raise GatewayRequestException("gateway unreachable")


CARD = CardDetails(
    number="4242424242424242",
    holder_name="Somchai Jaidee",
    expiration_month=12,
    expiration_year=2030,
    security_code="123",
    city="Bangkok",
    postal_code="10110",
)


class CardErrorClassificationTests(TestCase):
    def testStructuredCodesAreMapped(self):
        cases = {
            "incorrect_number": PaymentErrorCode.INVALID_CARD,
            "expired_card": PaymentErrorCode.EXPIRED_CARD,
            "incorrect_cvc": PaymentErrorCode.INVALID_CVV,
            "insufficient_funds": PaymentErrorCode.INSUFFICIENT_FUND,
            "card_declined": PaymentErrorCode.CARD_DECLINED,
        }
        for code, expected in cases.items():
            self.assertEqual(classify_card_error(code=code), expected)

    def testDeclineCodeWinsOverGenericCode(self):
        self.assertEqual(
            classify_card_error(code="card_declined", decline_code="insufficient_funds"),
            PaymentErrorCode.INSUFFICIENT_FUND,
        )

    def testMessageIsUsedWithoutStructuredCode(self):
        self.assertEqual(classify_card_error(message="insufficient funds"), PaymentErrorCode.INSUFFICIENT_FUND)
        self.assertEqual(classify_card_error(message="Card is EXPIRED"), PaymentErrorCode.EXPIRED_CARD)
        self.assertEqual(classify_card_error(message="invalid CVV"), PaymentErrorCode.INVALID_CVV)
        self.assertEqual(classify_card_error(message="invalid card number"), PaymentErrorCode.INVALID_CARD)

    def testUnrecognisedErrorsAreDeclines(self):
        self.assertEqual(classify_card_error(code="something_new", message="?"), PaymentErrorCode.CARD_DECLINED)
        self.assertEqual(classify_card_error(), PaymentErrorCode.CARD_DECLINED)


class DeriveStatusTests(TestCase):
    def charge(self, paid, failure_code=None):
        return GatewayCharge(id="ch_1", amount=Decimal("10"), currency="thb", paid=paid, failure_code=failure_code)

    def testPaidChargeIsSuccessful(self):
        self.assertEqual(derive_status(self.charge(True, "ignored")), Payment.SUCCESSFUL)

    def testFailureCodeMeansFailed(self):
        self.assertEqual(derive_status(self.charge(False, "insufficient_fund")), Payment.FAILED)

    def testOtherwisePending(self):
        self.assertEqual(derive_status(self.charge(False)), Payment.PENDING)


class CardChargeServiceTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user()
        cls.course = create_course()

    def setUp(self):
        self.order = create_order(self.user, [self.course])

    def testTokenRejectionIsClassifiedWithoutPayment(self):
        service = CardChargeService(gateway=FakeGateway(token_error=card_declined("insufficient funds", code=None)))

        with self.assertRaises(CardPaymentError) as ctx:
            service.create_token(CARD)

        self.assertEqual(ctx.exception.code, "PAYMENT.INSUFFICIENT_FUND")
        self.assertFalse(Payment.objects.exists())

    def testTokenInfrastructureFailure(self):
        service = CardChargeService(gateway=FakeGateway(token_error=GatewayRequestException("timeout")))

        with self.assertRaises(GatewayError) as ctx:
            service.create_token(CARD)
        self.assertEqual(ctx.exception.error_code, PaymentErrorCode.CREATE_TOKEN_ERROR)

    def testPaidChargeIsRecorded(self):
        service = CardChargeService(gateway=FakeGateway(paid=True))
        token = service.create_token(CARD)

        result = service.charge(self.order, self.order.total_amount, token)

        payment = Payment.objects.get(pk=result.payment_id)
        self.assertEqual(payment.status, Payment.SUCCESSFUL)
        self.assertEqual(payment.payment_type, Payment.CARD_CHARGE)
        self.assertEqual(payment.gateway_charge_id, result.gateway_charge_id)
        self.assertIsNone(payment.slip_image_url)
        self.assertEqual(result.payment_method, "Credit Card")

    def testUnpaidChargeWithFailureCodeIsRecordedAsFailed(self):
        service = CardChargeService(gateway=FakeGateway(paid=False, failure_code="payment_rejected"))
        result = service.charge(self.order, self.order.total_amount, service.create_token(CARD))

        self.assertEqual(result.status, Payment.FAILED)
        self.assertEqual(Payment.objects.get(pk=result.payment_id).failure_code, "payment_rejected")

    def testUnpaidChargeWithoutFailureIsPending(self):
        service = CardChargeService(gateway=FakeGateway(paid=False))
        result = service.charge(self.order, self.order.total_amount, service.create_token(CARD))
        self.assertEqual(result.status, Payment.PENDING)

    def testDeclinedChargeStillRecordsPayment(self):
        gateway = FakeGateway(
            charge_error=card_declined(code="card_declined", decline_code="expired_card", charge_id="ch_declined")
        )
        service = CardChargeService(gateway=gateway)

        with self.assertRaises(CardPaymentError) as ctx:
            service.charge(self.order, self.order.total_amount, service.create_token(CARD))

        self.assertEqual(ctx.exception.error_code, PaymentErrorCode.EXPIRED_CARD)
        payment = Payment.objects.get(pk=ctx.exception.details["payment_id"])
        self.assertEqual(payment.status, Payment.FAILED)
        self.assertEqual(payment.gateway_charge_id, "ch_declined")

    def testChargeInfrastructureFailureRecordsFailedPayment(self):
        service = CardChargeService(gateway=FakeGateway(charge_error=GatewayRequestException("boom")))

        with self.assertRaises(GatewayError) as ctx:
            service.charge(self.order, self.order.total_amount, service.create_token(CARD))

        self.assertEqual(ctx.exception.error_code, PaymentErrorCode.CREATE_CHARGE_ERROR)
        self.assertEqual(Payment.objects.get().status, Payment.FAILED)

    def testRetrieveChargeRederivesStatus(self):
        service = CardChargeService(gateway=FakeGateway(paid=False, failure_code="expired_card"))
        result = service.retrieve_charge("ch_remote")

        self.assertEqual(result.status, Payment.FAILED)
        self.assertIsNone(result.payment_id)

    def testRetrieveChargeFailure(self):
        service = CardChargeService(gateway=UnreachableGateway())

        with self.assertRaises(GatewayError) as ctx:
            service.retrieve_charge("ch_1")
        self.assertEqual(ctx.exception.error_code, PaymentErrorCode.RETRIEVE_CHARGE_ERROR)
