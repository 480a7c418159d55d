"""
Enrollment Models

An enrollment grants a user access to a course. It optionally points at the
payment that caused it; free or manually granted access has no payment.

Author: Academy Development Team
Version: 1.0.0
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from academy.courses.models import Course


class Enrollment(models.Model):
    """Access record linking a user to a course."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name=_("User"),
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name=_("Course"),
    )
    payment = models.ForeignKey(
        "academy.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="enrollments",
        verbose_name=_("Payment"),
        help_text=_("Payment that granted this access, empty for free access."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Enrollment")
        verbose_name_plural = _("Enrollments")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "course"], name="unique_enrollment_per_user_course"
            ),
        ]

    def __str__(self):
        return f"{self.user} → {self.course}"
