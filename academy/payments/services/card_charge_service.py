"""
Card Charge Service

Turns card details into a charge at the payment gateway and records the
outcome as a Payment.

Status derivation (charge creation, retrieval and webhooks alike):
- paid                  → successful
- failure code present  → failed
- otherwise             → pending (settled later by the gateway webhook)

Card rejections are classified into specific error codes using the
gateway's structured error code first and the error message second. Anything
unrecognised is reported as a declined card.

Author: Academy Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.db import DatabaseError

from academy.exceptions import (
    CardPaymentError,
    GatewayError,
    PaymentErrorCode,
)
from academy.orders.models import Order
from academy.payments.gateway import (
    CardDetails,
    GatewayCardException,
    GatewayException,
    GatewayCharge,
    GatewayRequestException,
    GatewayToken,
    StripeGateway,
)
from academy.payments.models import Payment

logger = logging.getLogger(__name__)

# Stripe error codes and decline codes → card error
CARD_ERROR_CODES = {
    "invalid_number": PaymentErrorCode.INVALID_CARD,
    "incorrect_number": PaymentErrorCode.INVALID_CARD,
    "invalid_card": PaymentErrorCode.INVALID_CARD,
    "invalid_card_type": PaymentErrorCode.INVALID_CARD,
    "invalid_expiry_month": PaymentErrorCode.INVALID_CARD,
    "invalid_expiry_year": PaymentErrorCode.INVALID_CARD,
    "invalid_account": PaymentErrorCode.INVALID_CARD,
    "expired_card": PaymentErrorCode.EXPIRED_CARD,
    "invalid_cvc": PaymentErrorCode.INVALID_CVV,
    "incorrect_cvc": PaymentErrorCode.INVALID_CVV,
    "invalid_security_code": PaymentErrorCode.INVALID_CVV,
    "insufficient_funds": PaymentErrorCode.INSUFFICIENT_FUND,
    "insufficient_fund": PaymentErrorCode.INSUFFICIENT_FUND,
    "card_declined": PaymentErrorCode.CARD_DECLINED,
    "generic_decline": PaymentErrorCode.CARD_DECLINED,
    "do_not_honor": PaymentErrorCode.CARD_DECLINED,
    "lost_card": PaymentErrorCode.CARD_DECLINED,
    "stolen_card": PaymentErrorCode.CARD_DECLINED,
    "fraudulent": PaymentErrorCode.CARD_DECLINED,
}

# Message fragments for gateways or errors without a structured code
CARD_ERROR_MESSAGES = (
    (("invalid card", "invalid_number", "invalid number"), PaymentErrorCode.INVALID_CARD),
    (("expired",), PaymentErrorCode.EXPIRED_CARD),
    (("cvv", "cvc", "security_code", "security code"), PaymentErrorCode.INVALID_CVV),
    (("insufficient",), PaymentErrorCode.INSUFFICIENT_FUND),
    (("declined", "rejected"), PaymentErrorCode.CARD_DECLINED),
)


def classify_card_error(
    code: Optional[str] = None,
    decline_code: Optional[str] = None,
    message: Optional[str] = None,
) -> PaymentErrorCode:
    """
    Map a gateway card rejection to a card error code.

    The decline code is the most specific signal and wins over the generic
    error code (Stripe reports most declines as ``card_declined``).
    """
    for candidate in (decline_code, code):
        if candidate and candidate.lower() in CARD_ERROR_CODES:
            return CARD_ERROR_CODES[candidate.lower()]

    text = (message or "").lower()
    for fragments, error_code in CARD_ERROR_MESSAGES:
        if any(fragment in text for fragment in fragments):
            return error_code

    return PaymentErrorCode.CARD_DECLINED


def derive_status(charge: GatewayCharge) -> str:
    if charge.paid:
        return Payment.SUCCESSFUL
    if charge.failure_code:
        return Payment.FAILED
    return Payment.PENDING


@dataclass
class ChargeResult:
    payment_id: Optional[str]
    gateway_charge_id: Optional[str]
    status: str
    amount: Decimal
    currency: str
    payment_method: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "ChargeResult":
        return cls(
            payment_id=str(payment.pk),
            gateway_charge_id=payment.gateway_charge_id,
            status=payment.status,
            amount=payment.amount,
            currency=payment.currency,
            payment_method=payment.get_payment_type_display(),
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )


class CardChargeService:
    """Card tokenization, charge creation and charge status lookups."""

    def __init__(self, gateway=None):
        self.gateway = gateway or StripeGateway()
        self.logger = logger

    def create_token(self, card: CardDetails) -> GatewayToken:
        """
        Tokenize card details. Never writes a Payment.

        Raises:
            CardPaymentError: Card rejected (classified)
            GatewayError: PAYMENT.CREATE_TOKEN_ERROR for any other failure
        """
        try:
            return self.gateway.create_token(card)
        except GatewayCardException as e:
            error_code = classify_card_error(e.code, e.decline_code, e.message)
            self.logger.info(
                "Card tokenization rejected (%s / %s): %s",
                e.code,
                e.decline_code,
                error_code.code,
            )
            raise CardPaymentError(error_code) from e
        except GatewayRequestException as e:
            self.logger.error("Card tokenization failed: %s", e)
            raise GatewayError(PaymentErrorCode.CREATE_TOKEN_ERROR) from e

    def charge(
        self,
        order: Order,
        amount: Decimal,
        token: GatewayToken,
        description: str = "",
    ) -> ChargeResult:
        """
        Charge the token and persist the outcome as a card Payment.

        A Payment row is written whether the gateway accepts, declines or
        fails the charge, so the attempt can always be looked up later.

        Raises:
            CardPaymentError: Charge declined (payment stored as failed)
            GatewayError: PAYMENT.CREATE_CHARGE_ERROR (payment stored as failed)
        """
        description = description or f"Order {order.pk}"
        try:
            charge = self.gateway.create_charge(
                amount,
                token.id,
                description=description,
                metadata={"order_id": str(order.pk), "user_id": str(order.user_id)},
            )
        except GatewayCardException as e:
            error_code = classify_card_error(e.code, e.decline_code, e.message)
            payment = self._record_failed_attempt(
                order, amount, e.charge_id, e.decline_code or e.code or "card_declined"
            )
            self.logger.info(
                "Charge for order %s declined (%s), payment %s",
                order.pk,
                error_code.code,
                payment.pk,
            )
            raise CardPaymentError(error_code, details={"payment_id": str(payment.pk)}) from e
        except GatewayRequestException as e:
            payment = self._record_failed_attempt(order, amount, None, "gateway_error")
            self.logger.error(
                "Charge for order %s failed: %s (payment %s)", order.pk, e, payment.pk
            )
            raise GatewayError(
                PaymentErrorCode.CREATE_CHARGE_ERROR,
                details={"payment_id": str(payment.pk)},
            ) from e

        payment_status = derive_status(charge)
        try:
            payment = Payment.objects.create(
                order=order,
                payment_type=Payment.CARD_CHARGE,
                status=payment_status,
                amount=charge.amount,
                currency=charge.currency,
                gateway_charge_id=charge.id,
                failure_code=charge.failure_code or "",
            )
        except DatabaseError as e:
            self.logger.critical(
                "Charge %s for order %s could not be recorded: %s", charge.id, order.pk, e
            )
            raise GatewayError(
                PaymentErrorCode.CREATE_CHARGE_ERROR,
                details={"charge_id": charge.id},
            ) from e

        self.logger.info(
            "Charge %s for order %s recorded as %s (payment %s)",
            charge.id,
            order.pk,
            payment_status,
            payment.pk,
        )
        return ChargeResult.from_payment(payment)

    def retrieve_charge(self, charge_id: str) -> ChargeResult:
        """
        Re-read a charge from the gateway and derive its current status.

        Raises:
            GatewayError: PAYMENT.RETRIEVE_CHARGE_ERROR
        """
        try:
            charge = self.gateway.retrieve_charge(charge_id)
        except GatewayException as e:
            self.logger.error("Charge %s could not be retrieved: %s", charge_id, e)
            raise GatewayError(PaymentErrorCode.RETRIEVE_CHARGE_ERROR) from e

        payment = Payment.objects.filter(gateway_charge_id=charge.id).first()
        return ChargeResult(
            payment_id=str(payment.pk) if payment else None,
            gateway_charge_id=charge.id,
            status=derive_status(charge),
            amount=charge.amount,
            currency=charge.currency,
            payment_method=str(dict(Payment.TYPE_CHOICES)[Payment.CARD_CHARGE]),
            created_at=payment.created_at if payment else None,
            updated_at=payment.updated_at if payment else None,
        )

    def _record_failed_attempt(self, order, amount, charge_id, failure_code) -> Payment:
        return Payment.objects.create(
            order=order,
            payment_type=Payment.CARD_CHARGE,
            status=Payment.FAILED,
            amount=amount,
            currency=self.gateway.currency,
            gateway_charge_id=charge_id,
            failure_code=failure_code[:64],
        )
