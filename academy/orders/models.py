"""
Order Models

An order is a user's checked-out cart. It holds one item per purchased course
with the unit price fixed at checkout, and its status tracks whether it has
been paid.

Status flow:
- pending: waiting for payment, payments may be attempted
- processing: a payment attempt currently holds the order (atomic claim)
- successful: paid, course access granted
- failed / cancelled: closed without payment

Author: Academy Development Team
Version: 1.0.0
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from academy.courses.models import Course


class OrderQuerySet(models.QuerySet):
    """Conditional status transitions executed as single UPDATE statements."""

    def claim_for_payment(self, order_id) -> bool:
        """
        Move a pending order to processing.

        Returns:
            True when this caller won the claim, False when the order was
            no longer pending.
        """
        updated = self.filter(pk=order_id, status=Order.PENDING).update(
            status=Order.PROCESSING, updated_at=timezone.now()
        )
        return updated == 1

    def release_claim(self, order_id) -> bool:
        """Return a processing order to pending so the user can retry."""
        updated = self.filter(pk=order_id, status=Order.PROCESSING).update(
            status=Order.PENDING, updated_at=timezone.now()
        )
        return updated == 1

    def mark_successful(self, order_id) -> bool:
        updated = (
            self.filter(pk=order_id)
            .exclude(status=Order.SUCCESSFUL)
            .update(status=Order.SUCCESSFUL, updated_at=timezone.now())
        )
        return updated == 1


class Order(models.Model):
    """A checked-out cart awaiting or having completed payment."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESSFUL = "successful"
    FAILED = "failed"
    CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (PENDING, _("Pending")),
        (PROCESSING, _("Processing")),
        (SUCCESSFUL, _("Successful")),
        (FAILED, _("Failed")),
        (CANCELLED, _("Cancelled")),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="orders",
        verbose_name=_("User"),
    )
    subtotal_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        verbose_name=_("Subtotal"),
    )
    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        verbose_name=_("Total"),
        help_text=_("Amount to be charged. Equals the sum of the item prices."),
    )
    status = models.CharField(
        max_length=16,
        choices=STATUS_CHOICES,
        default=PENDING,
        verbose_name=_("Status"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OrderQuerySet.as_manager()

    class Meta:
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="order_user_status_idx"),
        ]

    def __str__(self):
        return f"Order {self.id} ({self.status})"

    @property
    def is_payable(self) -> bool:
        return self.status == self.PENDING

    def items_total(self) -> Decimal:
        return sum((item.unit_price for item in self.items.all()), Decimal("0"))


class OrderItem(models.Model):
    """One purchased course inside an order."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("Order"),
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.PROTECT,
        related_name="order_items",
        verbose_name=_("Course"),
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        verbose_name=_("Unit price"),
        help_text=_("Course price at checkout time."),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Order item")
        verbose_name_plural = _("Order items")
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.course} @ {self.unit_price}"
