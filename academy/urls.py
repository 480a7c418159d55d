"""
Academy URL Configuration

URL Structure:
- /api/orders/: checkout and order lookups
- /api/payments/: card charges, bank transfers, approval webhook, listings
- /api/enrollments/: enrollments of the current user

Author: Academy Development Team
Version: 1.0.0
"""

from django.urls import include, path

urlpatterns = [
    path("orders/", include("academy.orders.urls")),
    path("payments/", include("academy.payments.urls")),
    path("enrollments/", include("academy.enrollments.urls")),
]
