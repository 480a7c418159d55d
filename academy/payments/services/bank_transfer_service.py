"""
Bank Transfer Service

Accepts a transfer slip for an order that already passed payment validation:

1. Validate the slip image (type, signature, dimensions)
2. Upload it to slip storage
3. Create a pending bank-transfer Payment
4. Notify the approval workflow

No enrollment is created here; access is granted when the transfer is
approved.

Author: Academy Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError

from academy.exceptions import AcademyError, PaymentErrorCode, StorageError
from academy.payments.models import Payment
from academy.services.cloud_storage import SlipStorageService
from academy.services.image_validation import SlipImageValidator

from .notification_service import BankTransferNotificationService

logger = logging.getLogger(__name__)


@dataclass
class BankTransferResult:
    payment_id: str
    order_id: str
    slip_url: str
    amount: Decimal
    currency: str
    status: str
    payment_method: str
    created_at: datetime


class BankTransferService:
    def __init__(self, image_validator=None, storage=None, notifier=None):
        self.image_validator = image_validator or SlipImageValidator()
        self._storage = storage
        self.notifier = notifier or BankTransferNotificationService()
        self.logger = logger

    @property
    def storage(self):
        # The S3 client is only created when a slip is actually uploaded
        if self._storage is None:
            self._storage = SlipStorageService()
        return self._storage

    def validate_slip(self, uploaded_file) -> bytes:
        return self.image_validator.validate(uploaded_file)

    def submit(self, validated_order, uploaded_file, content: bytes = None) -> BankTransferResult:
        """
        Store the slip and create the pending payment.

        Args:
            validated_order: ValidatedOrder from PaymentValidationService
            uploaded_file: The slip upload
            content: Slip bytes if the slip was already validated

        Raises:
            ImageValidationError: If the slip is not an acceptable image
            StorageError: If the upload fails
            AcademyError: PAYMENT.BANK_TRANSFER_CREATE_ERROR if the payment
                cannot be stored
        """
        order = validated_order.order
        if content is None:
            content = self.validate_slip(uploaded_file)

        slip = self.storage.upload_payment_slip(uploaded_file, order.pk, content=content)

        try:
            payment = Payment.objects.create(
                order=order,
                payment_type=Payment.BANK_TRANSFER,
                status=Payment.PENDING,
                amount=validated_order.chargeable_amount,
                currency=settings.PAYMENT_CURRENCY,
                slip_image_url=slip.url,
                slip_image_path=slip.path,
            )
        except DatabaseError as e:
            self.logger.error(
                "Bank transfer payment for order %s could not be stored: %s", order.pk, e
            )
            self._discard_slip(slip.path)
            raise AcademyError(PaymentErrorCode.BANK_TRANSFER_CREATE_ERROR) from e

        self.logger.info(
            "Bank transfer %s submitted for order %s (slip %s)", payment.pk, order.pk, slip.path
        )
        self.notifier.notify_bank_transfer_created(
            payment, [item.course for item in validated_order.items]
        )

        return BankTransferResult(
            payment_id=str(payment.pk),
            order_id=str(order.pk),
            slip_url=slip.url,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status,
            payment_method=payment.get_payment_type_display(),
            created_at=payment.created_at,
        )

    def _discard_slip(self, path: str) -> None:
        try:
            self.storage.delete_payment_slip(path)
        except StorageError:
            self.logger.warning("Orphaned slip %s left in storage", path)
