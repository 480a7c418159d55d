"""
Stripe Webhook Signal Handlers for Card Payments
================================================

dj-stripe verifies, de-duplicates and stores every incoming Stripe webhook
as a ``djstripe.models.Event``. We hook into Django's ``post_save`` signal on
that model and settle card payments whose charge was still pending when the
customer paid.

Handled event types (idempotent):
- ``charge.succeeded`` → payment successful, enroll into every course of the order
- ``charge.failed``    → payment failed, order stays payable

Safety:
- Never re-raise from the signal handler (prevents webhook retry storms).
- Settlement only moves payments out of ``pending`` and re-grants access
  for paid orders that were never completed, so redeliveries are harmless.

Author: Academy Development Team
Date: 2025-10-02
"""

import logging
from typing import Any, Dict

from django.db.models.signals import post_save
from django.dispatch import receiver
from djstripe.models import Event

from academy.exceptions import AcademyError
from academy.payments.gateway import charge_from_payload
from academy.payments.services import PaymentOrchestrationService

logger = logging.getLogger(__name__)

CHARGE_EVENTS = ("charge.succeeded", "charge.failed")


def _extract_data_object(event: Event) -> Dict[str, Any]:
    """
    Extract the Stripe event's ``data.object`` payload from a dj-stripe Event.

    Returns:
        A dict representing the ``data.object`` (or ``{}`` if not found).
    """
    data = event.data or {}
    if isinstance(data.get("data"), dict) and isinstance(data["data"].get("object"), dict):
        return data["data"]["object"]
    if isinstance(data.get("object"), dict):
        return data["object"]
    return {}


def handle_charge_event(event_type: str, charge_object: Dict[str, Any]):
    """
    Settle the local payment of a charge event.

    Returns:
        The settled Payment, or None if the event was skipped
    """
    if event_type not in CHARGE_EVENTS:
        return None

    if not charge_object.get("id"):
        logger.warning("Stripe %s without charge id, skipping", event_type)
        return None

    charge = charge_from_payload(charge_object)
    try:
        return PaymentOrchestrationService().settle_card_payment(charge)
    except AcademyError as e:
        logger.error("Settling charge %s failed with %s", charge.id, e.code)
    except Exception:
        logger.exception("Unexpected error while settling charge %s", charge.id)
    return None


@receiver(post_save, sender=Event, dispatch_uid="academy_settle_card_payments")
def settle_card_payments(sender, instance: Event, created: bool, **kwargs):
    if not created:
        return

    event_type = instance.type
    if event_type not in CHARGE_EVENTS:
        return

    logger.info("Processing Stripe event %s (%s)", instance.id, event_type)
    handle_charge_event(event_type, _extract_data_object(instance))
