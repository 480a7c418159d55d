"""
Bank Transfer Notification Service

Tells the external approval workflow (e.g. an n8n flow) that a new bank
transfer is waiting for review. Delivery is fire-and-forget: the request runs
on a background thread once the surrounding transaction has committed, and
delivery failures are logged instead of raised.

Payload:
    {
        "event": "payment.bank_transfer.created",
        "timestamp": "<ISO 8601>",
        "data": {
            "payment_id", "order_id", "user_id", "amount", "slip_url",
            "courses": [{"course_id", "title"}]
        }
    }

Author: Academy Development Team
Version: 1.0.0
"""

import logging
import threading
from typing import Any, Dict, Iterable

import requests
from django.conf import settings
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

BANK_TRANSFER_CREATED = "payment.bank_transfer.created"


class BankTransferNotificationService:
    def __init__(self, webhook_url=None, timeout=None):
        self.webhook_url = (
            webhook_url if webhook_url is not None else settings.BANK_TRANSFER_WEBHOOK_URL
        )
        self.timeout = timeout or settings.BANK_TRANSFER_WEBHOOK_TIMEOUT

    def build_payload(self, payment, courses: Iterable) -> Dict[str, Any]:
        return {
            "event": BANK_TRANSFER_CREATED,
            "timestamp": timezone.now().isoformat(),
            "data": {
                "payment_id": str(payment.pk),
                "order_id": str(payment.order_id),
                "user_id": str(payment.order.user_id),
                "amount": str(payment.amount),
                "slip_url": payment.slip_image_url,
                "courses": [
                    {"course_id": str(course.pk), "title": course.title} for course in courses
                ],
            },
        }

    def notify_bank_transfer_created(self, payment, courses: Iterable) -> None:
        """Queue the notification to be sent after the current transaction commits."""
        if not self.webhook_url:
            logger.debug("BANK_TRANSFER_WEBHOOK_URL not configured, skipping notification")
            return

        payload = self.build_payload(payment, list(courses))
        transaction.on_commit(lambda: self.dispatch(payload))

    def dispatch(self, payload: Dict[str, Any]) -> None:
        thread = threading.Thread(target=self.send, args=(payload,), daemon=True)
        thread.start()

    def send(self, payload: Dict[str, Any]) -> bool:
        """
        POST the payload to the workflow webhook.

        Returns:
            True on a 2xx response, False otherwise
        """
        payment_id = payload.get("data", {}).get("payment_id")
        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(
                "Bank transfer notification for payment %s failed: %s", payment_id, e
            )
            return False

        logger.info(
            "Bank transfer notification for payment %s delivered (%s)",
            payment_id,
            response.status_code,
        )
        return True
