"""
Payment Models

A payment is one attempt to settle an order: a card charge created through
the payment gateway, or a bank transfer proven by an uploaded slip that waits
for manual approval.

Status flow: pending → successful | failed (both terminal).

Author: Academy Development Team
Version: 1.0.0
"""

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from academy.orders.models import Order


class PaymentQuerySet(models.QuerySet):
    def transition(self, payment_id, to_status: str, **fields) -> bool:
        """
        Move a pending payment to ``to_status``.

        Returns:
            True when the payment was still pending and has been updated.
        """
        updated = self.filter(pk=payment_id, status=Payment.PENDING).update(
            status=to_status, updated_at=timezone.now(), **fields
        )
        return updated == 1

    def filtered(self, payment_type=None, status=None):
        """Filter by type and status, ignoring blank values."""
        queryset = self
        if payment_type and payment_type.strip():
            queryset = queryset.filter(payment_type=payment_type.strip())
        if status and status.strip():
            queryset = queryset.filter(status=status.strip())
        return queryset.order_by("-created_at")


class Payment(models.Model):
    """A card charge or bank transfer made against an order."""

    CARD_CHARGE = "card_charge"
    BANK_TRANSFER = "bank_transfer"
    TYPE_CHOICES = [
        (CARD_CHARGE, _("Credit Card")),
        (BANK_TRANSFER, _("Bank Transfer")),
    ]

    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"
    STATUS_CHOICES = [
        (PENDING, _("Pending")),
        (SUCCESSFUL, _("Successful")),
        (FAILED, _("Failed")),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name="payments",
        verbose_name=_("Order"),
    )
    payment_type = models.CharField(
        max_length=16, choices=TYPE_CHOICES, verbose_name=_("Payment type")
    )
    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=PENDING,
        verbose_name=_("Status"),
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        verbose_name=_("Amount"),
    )
    currency = models.CharField(max_length=3, default="thb", verbose_name=_("Currency"))
    gateway_charge_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_("Gateway charge ID"),
        help_text=_("Charge identifier at the payment gateway (card payments only)."),
    )
    failure_code = models.CharField(
        max_length=64, blank=True, default="", verbose_name=_("Failure code")
    )
    slip_image_url = models.URLField(
        max_length=500,
        null=True,
        blank=True,
        verbose_name=_("Slip image URL"),
        help_text=_("Uploaded transfer slip (bank transfers only)."),
    )
    slip_image_path = models.CharField(
        max_length=500, null=True, blank=True, verbose_name=_("Slip storage path")
    )
    review_reason = models.TextField(
        null=True,
        blank=True,
        verbose_name=_("Review reason"),
        help_text=_("Reason given when a bank transfer was approved or rejected."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PaymentQuerySet.as_manager()

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["payment_type", "status"], name="payment_type_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=Q(status="successful"),
                name="unique_successful_payment_per_order",
            ),
        ]

    def __str__(self):
        return f"{self.get_payment_type_display()} {self.id} ({self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == self.PENDING
