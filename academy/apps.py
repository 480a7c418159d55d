"""
Academy Application Configuration

The academy application sells courses: orders are paid by credit card through
the payment gateway or by bank transfer with a manually approved slip, and a
successful payment grants course access through enrollments.

Author: Academy Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class AcademyConfig(AppConfig):
    """
    Configuration class for the academy Django application.

    Attributes:
        default_auto_field: Default primary key field type for models
        name: Application name for Django registration
        verbose_name: Human-readable application name for admin interface
    """

    default_auto_field: str = "django.db.models.BigAutoField"
    name: str = "academy"
    verbose_name: str = "Academy"

    def ready(self) -> None:
        """
        Register signal receivers once the app registry is loaded.

        The payments signals module listens for dj-stripe webhook events and
        settles card payments that were still pending at charge time.
        """
        super().ready()
        from academy.payments import signals  # noqa: F401
