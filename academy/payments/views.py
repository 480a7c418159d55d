"""
Payment API Views
=================

Endpoints
---------

1. ValidatePaymentView
   - URL: /api/payments/validate/
   - Method: POST
   - Body: {"order_id": "..."}
   - Purpose: Checks whether the authenticated user can pay the order now.

2. CreateChargeView
   - URL: /api/payments/charge/
   - Method: POST
   - Body: {"order_id", "card_number", "cardholder_name", "expiration_month",
            "expiration_year", "security_code", "city", "postal_code", "description"}
   - Purpose: Charges a card; a successful charge enrolls the user into every
     course of the order.

3. RetrieveChargeView
   - URL: /api/payments/charge/<charge_id>/
   - Method: GET
   - Purpose: Current gateway status of a charge.

4. GatewayConfigView
   - URL: /api/payments/config/
   - Method: GET
   - Auth: None
   - Purpose: Publishable gateway key for the frontend.

5. BankTransferSubmitView
   - URL: /api/payments/bank-transfer/
   - Method: POST (multipart)
   - Body: order_id, slip (JPEG/PNG image)
   - Purpose: Stores the slip and creates a pending payment for review.

6. BankTransferApprovalWebhookView
   - URL: /api/payments/webhook/bank-transfer/<payment_id>/approve/
   - Method: POST
   - Header: X-Webhook-Secret
   - Body: {"approved": true|false, "reason": "..."}
   - Purpose: Decision of the approval workflow on a pending bank transfer.

7. PaymentListView / MyPaymentListView
   - URL: /api/payments/ (staff, ?type=&status=) and /api/payments/my-payments/

Author: Academy Development Team
Date: 2025-10-02
"""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated

from academy.api import AcademyAPIView, success_response
from academy.payments.permissions import HasBankTransferWebhookSecret
from academy.payments.serializers import (
    ApprovalResultSerializer,
    BankTransferApprovalSerializer,
    BankTransferResultSerializer,
    BankTransferSubmitSerializer,
    ChargeResultSerializer,
    CreateChargeSerializer,
    PaymentListFilterSerializer,
    PaymentSerializer,
    ValidatedOrderSerializer,
    ValidatePaymentSerializer,
)
from academy.payments.services import PaymentOrchestrationService

logger = logging.getLogger(__name__)


class PaymentAPIView(AcademyAPIView):
    """Base view that provides the orchestration service."""

    orchestration_service_class = PaymentOrchestrationService

    def get_orchestration_service(self) -> PaymentOrchestrationService:
        return self.orchestration_service_class()


class ValidatePaymentView(PaymentAPIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ValidatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        validated = self.get_orchestration_service().validate_payment(
            request.user.pk, serializer.validated_data["order_id"]
        )
        return success_response(ValidatedOrderSerializer(validated).data)


class CreateChargeView(PaymentAPIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreateChargeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_orchestration_service().create_charge(
            request.user.pk,
            serializer.validated_data["order_id"],
            serializer.to_card_details(),
            description=serializer.validated_data["description"],
        )
        return success_response(
            ChargeResultSerializer(result).data, status.HTTP_201_CREATED
        )


class RetrieveChargeView(PaymentAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, charge_id):
        result = self.get_orchestration_service().retrieve_charge(charge_id)
        return success_response(ChargeResultSerializer(result).data)


class GatewayConfigView(PaymentAPIView):
    permission_classes = [AllowAny]

    def get(self, request):
        gateway = self.get_orchestration_service().card_service.gateway
        return success_response(
            {"publishable_key": gateway.publishable_key, "currency": gateway.currency}
        )


class BankTransferSubmitView(PaymentAPIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = BankTransferSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_orchestration_service().submit_bank_transfer(
            request.user.pk,
            serializer.validated_data["order_id"],
            serializer.validated_data.get("slip"),
        )
        return success_response(
            BankTransferResultSerializer(result).data, status.HTTP_201_CREATED
        )


class BankTransferApprovalWebhookView(PaymentAPIView):
    authentication_classes = []
    permission_classes = [HasBankTransferWebhookSecret]

    def post(self, request, payment_id):
        serializer = BankTransferApprovalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_orchestration_service().approve_bank_transfer(
            payment_id,
            serializer.validated_data["approved"],
            serializer.validated_data.get("reason"),
        )
        logger.info(
            "Bank transfer %s reviewed by workflow: approved=%s",
            payment_id,
            result.approved,
        )
        return success_response(ApprovalResultSerializer(result).data)


class PaymentListView(PaymentAPIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        filters = PaymentListFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        payments = self.get_orchestration_service().list_payments(
            payment_type=filters.validated_data.get("type"),
            status=filters.validated_data.get("status"),
        )
        return success_response(PaymentSerializer(payments, many=True).data)


class MyPaymentListView(PaymentAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        payments = self.get_orchestration_service().list_my_payments(request.user.pk)
        return success_response(PaymentSerializer(payments, many=True).data)
