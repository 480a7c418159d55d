"""
Academy Models Registry

Models live in their domain packages and are re-exported here so Django
discovers them under the ``academy`` app label.
"""

from academy.courses.models import Course
from academy.enrollments.models import Enrollment
from academy.orders.models import Order, OrderItem
from academy.payments.models import Payment

__all__ = ["Course", "Order", "OrderItem", "Payment", "Enrollment"]
