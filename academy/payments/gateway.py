"""
Stripe Gateway Client
=====================

Thin wrapper around the official ``stripe`` SDK used by the card payment
flow. It tokenizes card details, creates and retrieves charges, and
translates SDK objects and errors into small local types so the rest of the
payment code never imports ``stripe`` directly.

Amounts
-------
Course prices are stored in major currency units (e.g. 1000.00 THB). Stripe
expects the smallest unit (satang), so amounts are multiplied by 100 on the
way out and divided on the way back.

Errors
------
- ``GatewayCardException``: the card was rejected. Carries Stripe's structured
  ``code`` / ``decline_code`` and, for charge declines, the charge id.
- ``GatewayRequestException``: anything else (network, auth, invalid request).

Author: Academy Development Team
Date: 2025-10-02
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)

MINOR_UNIT_FACTOR = 100


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * MINOR_UNIT_FACTOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: Optional[int]) -> Decimal:
    return (Decimal(amount or 0) / MINOR_UNIT_FACTOR).quantize(Decimal("0.01"))


@dataclass
class CardDetails:
    """Card data as entered by the customer. Never persisted."""

    number: str
    holder_name: str
    expiration_month: int
    expiration_year: int
    security_code: str
    city: str = ""
    postal_code: str = ""


@dataclass
class GatewayToken:
    id: str
    last_digits: str = ""
    brand: str = ""


@dataclass
class GatewayCharge:
    """Gateway-side view of a charge."""

    id: str
    amount: Decimal
    currency: str
    paid: bool
    failure_code: Optional[str] = None
    failure_message: Optional[str] = None


class GatewayException(Exception):
    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code
        super().__init__(message)


class GatewayCardException(GatewayException):
    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        decline_code: Optional[str] = None,
        charge_id: Optional[str] = None,
    ):
        self.decline_code = decline_code
        self.charge_id = charge_id
        super().__init__(message, code)


class GatewayRequestException(GatewayException):
    pass


def _read(obj: Any, key: str, default=None):
    """Read a field from a StripeObject or a plain webhook dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def charge_from_payload(obj: Any) -> GatewayCharge:
    """
    Build a GatewayCharge from a Stripe charge object or its JSON payload.

    Used for SDK responses as well as webhook ``data.object`` dicts.
    """
    return GatewayCharge(
        id=_read(obj, "id"),
        amount=from_minor_units(_read(obj, "amount")),
        currency=(_read(obj, "currency") or settings.PAYMENT_CURRENCY).lower(),
        paid=bool(_read(obj, "paid", False)),
        failure_code=_read(obj, "failure_code") or None,
        failure_message=_read(obj, "failure_message") or None,
    )


def _card_exception(error: "stripe.CardError") -> GatewayCardException:
    body = getattr(error, "json_body", None) or {}
    details = body.get("error", {}) if isinstance(body, dict) else {}
    return GatewayCardException(
        message=getattr(error, "user_message", None) or str(error),
        code=getattr(error, "code", None) or details.get("code"),
        decline_code=details.get("decline_code"),
        charge_id=details.get("charge"),
    )


class StripeGateway:
    """Card tokenization and charges through Stripe."""

    def __init__(self, api_key: Optional[str] = None, currency: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.currency = (currency or settings.PAYMENT_CURRENCY).lower()

    @property
    def publishable_key(self) -> str:
        return settings.STRIPE_PUBLISHABLE_KEY

    def create_token(self, card: CardDetails) -> GatewayToken:
        """
        Tokenize card details.

        Raises:
            GatewayCardException: If Stripe rejects the card
            GatewayRequestException: For any other Stripe failure
        """
        try:
            token = stripe.Token.create(
                api_key=self.api_key,
                card={
                    "number": card.number,
                    "name": card.holder_name,
                    "exp_month": card.expiration_month,
                    "exp_year": card.expiration_year,
                    "cvc": card.security_code,
                    "address_city": card.city or None,
                    "address_zip": card.postal_code or None,
                },
            )
        except stripe.CardError as e:
            raise _card_exception(e) from e
        except stripe.StripeError as e:
            logger.error("Stripe token creation failed: %s", e)
            raise GatewayRequestException(str(e), getattr(e, "code", None)) from e

        token_card = _read(token, "card")
        return GatewayToken(
            id=_read(token, "id"),
            last_digits=_read(token_card, "last4", "") or "",
            brand=_read(token_card, "brand", "") or "",
        )

    def create_charge(
        self,
        amount: Decimal,
        token_id: str,
        description: str = "",
        metadata: Optional[Dict[str, str]] = None,
    ) -> GatewayCharge:
        """
        Charge a tokenized card.

        Raises:
            GatewayCardException: If the charge is declined
            GatewayRequestException: For any other Stripe failure
        """
        try:
            charge = stripe.Charge.create(
                api_key=self.api_key,
                amount=to_minor_units(amount),
                currency=self.currency,
                source=token_id,
                description=description,
                metadata=metadata or {},
            )
        except stripe.CardError as e:
            raise _card_exception(e) from e
        except stripe.StripeError as e:
            logger.error("Stripe charge creation failed: %s", e)
            raise GatewayRequestException(str(e), getattr(e, "code", None)) from e

        return charge_from_payload(charge)

    def retrieve_charge(self, charge_id: str) -> GatewayCharge:
        try:
            charge = stripe.Charge.retrieve(charge_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe charge %s could not be retrieved: %s", charge_id, e)
            raise GatewayRequestException(str(e), getattr(e, "code", None)) from e

        return charge_from_payload(charge)
