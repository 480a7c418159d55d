"""
Course Models

Courses are the products sold by the academy. Pricing supports an optional
early-bird price that applies inside a configured date range.

Author: Academy Development Team
Version: 1.0.0
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Course(models.Model):
    """A purchasable course."""

    title = models.CharField(max_length=255, verbose_name=_("Title"))
    description = models.TextField(blank=True, verbose_name=_("Description"))
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name=_("Price"),
    )
    early_bird_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name=_("Early-bird price"),
        help_text=_("Applies between the early-bird start and end dates."),
    )
    early_bird_start_date = models.DateTimeField(
        null=True, blank=True, verbose_name=_("Early-bird start")
    )
    early_bird_end_date = models.DateTimeField(
        null=True, blank=True, verbose_name=_("Early-bird end")
    )
    is_published = models.BooleanField(default=True, verbose_name=_("Published"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")
        ordering = ["title"]

    def __str__(self):
        return self.title

    def has_active_early_bird(self, at=None) -> bool:
        """
        Check whether the early-bird price applies at the given moment.

        The early-bird price only counts when it is set, cheaper than the
        normal price, the date range is complete and ordered, and ``at``
        falls inside the range (inclusive).
        """
        if self.early_bird_price is None:
            return False
        if self.early_bird_price >= self.price:
            return False
        if not self.early_bird_start_date or not self.early_bird_end_date:
            return False
        if self.early_bird_start_date >= self.early_bird_end_date:
            return False

        at = at or timezone.now()
        return self.early_bird_start_date <= at <= self.early_bird_end_date

    def effective_price(self, at=None) -> Decimal:
        if self.has_active_early_bird(at):
            return self.early_bird_price
        return self.price
