"""
Order Service

Checkout of a list of courses into a pending order. Unit prices are frozen
at checkout using each course's effective (early-bird aware) price, and the
order total is the sum of its item prices.

Author: Academy Development Team
Version: 1.0.0
"""

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from academy.courses.models import Course
from academy.exceptions import OrderErrorCode, OrderValidationError
from academy.orders.models import Order, OrderItem

logger = logging.getLogger(__name__)


class OrderService:
    def create_order(self, user, course_ids) -> Order:
        """
        Create a pending order for the given courses.

        Raises:
            OrderValidationError: ORDER.COURSE_NOT_FOUND if any course is missing,
                ORDER.CREATE_ORDER_ERROR if the order cannot be stored
        """
        unique_ids = list(dict.fromkeys(course_ids))
        courses = {course.pk: course for course in Course.objects.filter(pk__in=unique_ids)}
        missing = [course_id for course_id in unique_ids if course_id not in courses]
        if not unique_ids or missing:
            logger.info("Order for user %s references unknown courses %s", user.pk, missing)
            raise OrderValidationError(
                OrderErrorCode.COURSE_NOT_FOUND, details={"course_ids": missing}
            )

        now = timezone.now()
        prices = [(courses[course_id], courses[course_id].effective_price(now)) for course_id in unique_ids]
        total = sum((price for _, price in prices), Decimal("0"))

        try:
            with transaction.atomic():
                order = Order.objects.create(
                    user=user,
                    subtotal_amount=total,
                    total_amount=total,
                    status=Order.PENDING,
                )
                OrderItem.objects.bulk_create(
                    [OrderItem(order=order, course=course, unit_price=price) for course, price in prices]
                )
        except DatabaseError as e:
            logger.error("Order for user %s could not be created: %s", user.pk, e)
            raise OrderValidationError(OrderErrorCode.CREATE_ORDER_ERROR) from e

        logger.info("Created order %s for user %s (total %s)", order.pk, user.pk, total)
        return order

    def get_order(self, user, order_id) -> Order:
        try:
            order = Order.objects.prefetch_related("items__course").get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            raise OrderValidationError(OrderErrorCode.ORDER_NOT_FOUND)

        if order.user_id != user.pk:
            raise OrderValidationError(OrderErrorCode.ACCESS_DENIED)
        return order

    def list_my_orders(self, user):
        return Order.objects.filter(user=user).prefetch_related("items__course")
