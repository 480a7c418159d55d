"""
Payment Validation Service

Single gate that decides whether an order may be paid. It runs before the
card path and the bank-transfer path alike and never writes anything.

Checks, in order (first failure wins):
1. The order exists                      → ORDER.ORDER_NOT_FOUND
2. The order belongs to the user         → ORDER.ACCESS_DENIED
3. The order is still pending            → ORDER.ALREADY_PROCESSED
4. The order has at least one item       → ORDER.EMPTY
5. The total reaches the gateway minimum → PAYMENT.MINIMUM_AMOUNT_ERROR

Author: Academy Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError

from academy.exceptions import OrderErrorCode, OrderValidationError, PaymentErrorCode
from academy.orders.models import Order, OrderItem

logger = logging.getLogger(__name__)


@dataclass
class ValidatedOrder:
    """An order that passed every payment check."""

    order: Order
    items: List[OrderItem]
    chargeable_amount: Decimal


class PaymentValidationService:
    def __init__(self, minimum_amount: Optional[Decimal] = None):
        self.minimum_amount = (
            minimum_amount
            if minimum_amount is not None
            else settings.PAYMENT_MINIMUM_CHARGE_AMOUNT
        )

    def validate(self, user_id, order_id) -> ValidatedOrder:
        """
        Check that ``user_id`` may pay ``order_id`` now.

        Raises:
            OrderValidationError: With the code of the first failing check
        """
        try:
            order = Order.objects.get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            logger.warning("Payment validation: order %s not found (user %s)", order_id, user_id)
            raise OrderValidationError(OrderErrorCode.ORDER_NOT_FOUND)

        if str(order.user_id) != str(user_id):
            logger.warning(
                "Payment validation: user %s tried to pay order %s of user %s",
                user_id,
                order_id,
                order.user_id,
            )
            raise OrderValidationError(OrderErrorCode.ACCESS_DENIED)

        if not order.is_payable:
            logger.info(
                "Payment validation: order %s is %s (user %s)", order_id, order.status, user_id
            )
            raise OrderValidationError(OrderErrorCode.ALREADY_PROCESSED)

        items = list(order.items.select_related("course"))
        if not items:
            logger.info("Payment validation: order %s has no items (user %s)", order_id, user_id)
            raise OrderValidationError(OrderErrorCode.EMPTY)

        if order.total_amount < self.minimum_amount:
            logger.info(
                "Payment validation: order %s total %s below minimum %s (user %s)",
                order_id,
                order.total_amount,
                self.minimum_amount,
                user_id,
            )
            raise OrderValidationError(
                PaymentErrorCode.MINIMUM_AMOUNT_ERROR,
                details={"minimum_amount": str(self.minimum_amount)},
            )

        return ValidatedOrder(order=order, items=items, chargeable_amount=order.total_amount)
