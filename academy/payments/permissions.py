from django.conf import settings
from django.utils.crypto import constant_time_compare
from rest_framework.permissions import BasePermission

from academy.exceptions import WebhookAuthenticationError

WEBHOOK_SECRET_HEADER = "X-Webhook-Secret"


class HasBankTransferWebhookSecret(BasePermission):
    """
    Allows the approval workflow in when it sends the shared secret.

    The comparison runs in constant time. An unset secret rejects every call.
    """

    def has_permission(self, request, view):
        expected = settings.BANK_TRANSFER_WEBHOOK_SECRET
        provided = request.headers.get(WEBHOOK_SECRET_HEADER, "")
        if not expected or not constant_time_compare(provided, expected):
            raise WebhookAuthenticationError()
        return True
