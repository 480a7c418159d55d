"""
Payment services.

The orchestration service is the entry point; the other services are its
building blocks and are exported for tests and webhook handlers.
"""

from .bank_transfer_service import BankTransferResult, BankTransferService
from .card_charge_service import CardChargeService, ChargeResult, classify_card_error, derive_status
from .notification_service import BankTransferNotificationService
from .payment_orchestration_service import ApprovalResult, PaymentOrchestrationService
from .payment_validation_service import PaymentValidationService, ValidatedOrder

__all__ = [
    "ApprovalResult",
    "BankTransferNotificationService",
    "BankTransferResult",
    "BankTransferService",
    "CardChargeService",
    "ChargeResult",
    "PaymentOrchestrationService",
    "PaymentValidationService",
    "ValidatedOrder",
    "classify_card_error",
    "derive_status",
]
