"""
Payment Orchestration Service

Coordinates every payment flow of the academy:

- Card payments: validate → claim order → tokenize → charge → grant access
- Bank transfers: validate → validate slip → claim order → upload → pending payment
- Bank transfer review: approve (grant access) or reject (order stays payable)
- Gateway webhooks: settle card payments that were pending at charge time

Order claim
-----------
Validation only reads the order. Before talking to the gateway or storage
the order is moved from ``pending`` to ``processing`` with a conditional
UPDATE, so two concurrent attempts cannot both proceed. The claim is
released back to ``pending`` when the attempt does not end in a successful
payment. A successful card charge whose access grant fails keeps the order in
``processing`` so the customer is not charged twice; the next webhook
delivery for the charge retries the grant.

Access grant
------------
Each order item is reconciled into an enrollment tagged with the payment.
All items are attempted; failures are collected and reported together and
the whole grant (enrollments and order status) is rolled back.

Author: Academy Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction

from academy.enrollments.services import EnrollmentReconciler
from academy.exceptions import (
    EnrollmentError,
    EnrollmentErrorCode,
    OrderErrorCode,
    OrderValidationError,
    PaymentErrorCode,
    PaymentStateError,
)
from academy.orders.models import Order, OrderItem
from academy.payments.gateway import CardDetails, GatewayCharge
from academy.payments.models import Payment

from .bank_transfer_service import BankTransferResult, BankTransferService
from .card_charge_service import CardChargeService, ChargeResult, derive_status
from .payment_validation_service import PaymentValidationService, ValidatedOrder

logger = logging.getLogger(__name__)


@dataclass
class ApprovalResult:
    payment_id: str
    order_id: str
    status: str
    approved: bool
    reason: Optional[str]
    updated_at: datetime


class PaymentOrchestrationService:
    """
    Entry point for payment operations used by the API views and the
    gateway webhook handlers.
    """

    def __init__(
        self,
        validation_service=None,
        card_service=None,
        bank_transfer_service=None,
        reconciler=None,
    ):
        self.validation_service = validation_service or PaymentValidationService()
        self.card_service = card_service or CardChargeService()
        self.bank_transfer_service = bank_transfer_service or BankTransferService()
        self.reconciler = reconciler or EnrollmentReconciler()
        self.logger = logger

    # ---------- validation ----------

    def validate_payment(self, user_id, order_id) -> ValidatedOrder:
        return self.validation_service.validate(user_id, order_id)

    # ---------- card payments ----------

    def create_charge(
        self, user_id, order_id, card: CardDetails, description: str = ""
    ) -> ChargeResult:
        """
        Charge a card for an order and grant course access on success.

        Returns:
            ChargeResult of the recorded payment (successful, pending or failed)

        Raises:
            OrderValidationError: Order not payable
            CardPaymentError: Card rejected
            GatewayError: Gateway failure
            EnrollmentError: Charge succeeded but access could not be granted
        """
        validated = self.validation_service.validate(user_id, order_id)
        order = validated.order
        self._claim(order, user_id)

        paid = False
        try:
            token = self.card_service.create_token(card)
            result = self.card_service.charge(
                order, validated.chargeable_amount, token, description
            )
            if result.status == Payment.SUCCESSFUL:
                paid = True
                self._grant_course_access(order, validated.items, result.payment_id)
            else:
                self.logger.info(
                    "Charge for order %s ended as %s, order stays payable",
                    order.pk,
                    result.status,
                )
        finally:
            if not paid:
                Order.objects.release_claim(order.pk)

        return result

    def retrieve_charge(self, charge_id: str) -> ChargeResult:
        return self.card_service.retrieve_charge(charge_id)

    def settle_card_payment(self, charge: GatewayCharge) -> Optional[Payment]:
        """
        Apply the gateway's latest view of a charge to its local payment.

        Pending payments become successful (granting access) or failed. A
        successful payment whose order was never completed gets its access
        grant retried. Everything else is left untouched.
        """
        payment = (
            Payment.objects.select_related("order")
            .filter(gateway_charge_id=charge.id, payment_type=Payment.CARD_CHARGE)
            .first()
        )
        if payment is None:
            self.logger.warning("No payment recorded for charge %s", charge.id)
            return None

        new_status = derive_status(charge)
        if new_status == Payment.FAILED:
            if Payment.objects.transition(
                payment.pk, Payment.FAILED, failure_code=(charge.failure_code or "")[:64]
            ):
                self.logger.info("Payment %s failed at the gateway", payment.pk)
        elif new_status == Payment.SUCCESSFUL:
            self._settle_successful_charge(payment)

        payment.refresh_from_db()
        return payment

    def _settle_successful_charge(self, payment: Payment) -> None:
        if payment.status == Payment.FAILED:
            self.logger.error(
                "Charge %s reported paid but payment %s is failed, manual review needed",
                payment.gateway_charge_id,
                payment.pk,
            )
            return

        order = payment.order
        try:
            with transaction.atomic():
                if payment.is_pending:
                    Payment.objects.transition(payment.pk, Payment.SUCCESSFUL)
                if order.status != Order.SUCCESSFUL:
                    self._grant_course_access(order, list(order.items.all()), payment.pk)
        except IntegrityError:
            self.logger.critical(
                "Order %s already has a successful payment, charge %s needs a refund",
                order.pk,
                payment.gateway_charge_id,
            )

    # ---------- bank transfers ----------

    def submit_bank_transfer(self, user_id, order_id, uploaded_file) -> BankTransferResult:
        """
        Submit a bank transfer slip for an order.

        The order stays pending; access is granted on approval.
        """
        validated = self.validation_service.validate(user_id, order_id)
        content = self.bank_transfer_service.validate_slip(uploaded_file)

        order = validated.order
        self._claim(order, user_id)
        try:
            return self.bank_transfer_service.submit(validated, uploaded_file, content=content)
        finally:
            Order.objects.release_claim(order.pk)

    def approve_bank_transfer(
        self, payment_id, approved: bool, reason: Optional[str] = None
    ) -> ApprovalResult:
        """
        Approve or reject a pending bank transfer.

        Raises:
            PaymentStateError: Payment missing, already processed, not a bank
                transfer, or rejected without a reason
            OrderValidationError: The order was already paid by another payment
            EnrollmentError: Access could not be granted (nothing is changed)
        """
        try:
            payment = Payment.objects.select_related("order").get(pk=payment_id)
        except (Payment.DoesNotExist, ValidationError, ValueError):
            raise PaymentStateError(PaymentErrorCode.PAYMENT_NOT_FOUND)

        if not payment.is_pending:
            raise PaymentStateError(PaymentErrorCode.PAYMENT_ALREADY_PROCESSED)

        if payment.payment_type != Payment.BANK_TRANSFER:
            raise PaymentStateError(PaymentErrorCode.INVALID_PAYMENT_TYPE)

        reason = (reason or "").strip() or None
        if not approved and not reason:
            raise PaymentStateError(PaymentErrorCode.APPROVAL_REASON_REQUIRED)

        if approved:
            self._approve(payment, reason)
        else:
            if not Payment.objects.transition(payment.pk, Payment.FAILED, review_reason=reason):
                raise PaymentStateError(PaymentErrorCode.PAYMENT_ALREADY_PROCESSED)
            self.logger.info("Bank transfer %s rejected: %s", payment.pk, reason)

        payment.refresh_from_db()
        return ApprovalResult(
            payment_id=str(payment.pk),
            order_id=str(payment.order_id),
            status=payment.status,
            approved=approved,
            reason=payment.review_reason,
            updated_at=payment.updated_at,
        )

    def _approve(self, payment: Payment, reason: Optional[str]) -> None:
        order = payment.order
        if not Order.objects.claim_for_payment(order.pk):
            self.logger.warning(
                "Bank transfer %s approved but order %s is no longer pending",
                payment.pk,
                order.pk,
            )
            raise OrderValidationError(OrderErrorCode.ALREADY_PROCESSED)

        try:
            with transaction.atomic():
                if not Payment.objects.transition(
                    payment.pk, Payment.SUCCESSFUL, review_reason=reason
                ):
                    raise PaymentStateError(PaymentErrorCode.PAYMENT_ALREADY_PROCESSED)
                items = list(order.items.all())
                self._grant_course_access(order, items, payment.pk)
        except IntegrityError:
            self.logger.warning(
                "Bank transfer %s approved but order %s is already paid",
                payment.pk,
                order.pk,
            )
            raise OrderValidationError(OrderErrorCode.ALREADY_PROCESSED)
        finally:
            Order.objects.release_claim(order.pk)

        self.logger.info("Bank transfer %s approved", payment.pk)

    # ---------- listings ----------

    def list_payments(self, payment_type: Optional[str] = None, status: Optional[str] = None):
        return Payment.objects.filtered(payment_type=payment_type, status=status)

    def list_my_payments(self, user_id):
        return Payment.objects.filter(order__user_id=user_id).order_by("-created_at")

    # ---------- helpers ----------

    def _claim(self, order: Order, user_id) -> None:
        if not Order.objects.claim_for_payment(order.pk):
            self.logger.warning(
                "Order %s was claimed by another payment attempt (user %s)", order.pk, user_id
            )
            raise OrderValidationError(OrderErrorCode.ALREADY_PROCESSED)

    def _grant_course_access(self, order: Order, items: List[OrderItem], payment_id) -> None:
        """Reconcile one enrollment per order item, then mark the order successful."""
        failed_courses = []
        with transaction.atomic():
            for item in items:
                try:
                    with transaction.atomic():
                        self.reconciler.reconcile(order.user_id, item.course_id, payment_id)
                except DatabaseError as e:
                    self.logger.error(
                        "Enrollment for course %s (order %s, payment %s) failed: %s",
                        item.course_id,
                        order.pk,
                        payment_id,
                        e,
                    )
                    failed_courses.append(str(item.course_id))

            if failed_courses:
                raise EnrollmentError(
                    EnrollmentErrorCode.RECONCILIATION_ERROR,
                    details={"payment_id": str(payment_id), "course_ids": failed_courses},
                )

            Order.objects.mark_successful(order.pk)

        self.logger.info(
            "Order %s completed by payment %s (%s courses)", order.pk, payment_id, len(items)
        )
