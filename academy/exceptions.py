"""
Academy Error Registry and Exceptions

This module defines every business error the academy backend can report.
Errors are grouped into one closed enumeration per domain (system, auth,
order, payment, enrollment). Each member carries its stable dotted code, an
English message marked for translation, the HTTP status it maps to and the
error kind used for logging and handling decisions.

Services raise AcademyError (or one of its subclasses) with a registry member;
the API layer turns it into the standard failure envelope through to_dict().

Author: Academy Development Team
Version: 1.0.0
"""

from enum import Enum
from typing import Any, Dict, Optional

from django.utils.translation import gettext, gettext_noop


class ErrorKind(Enum):
    """Coarse category of an error, independent of the domain it belongs to."""

    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    INVALID_STATE = "invalid_state"
    VALIDATION_FAILED = "validation_failed"
    GATEWAY_ERROR = "gateway_error"
    INFRASTRUCTURE_ERROR = "infrastructure_error"


class ErrorCode(Enum):
    """
    Base class for the per-domain error enumerations.

    Member values are (code, message, status_code, kind) tuples. Messages are
    stored untranslated and resolved in the active language on access.
    """

    def __init__(self, code: str, message: str, status_code: int, kind: ErrorKind):
        self.code = code
        self.default_message = message
        self.status_code = status_code
        self.kind = kind

    @property
    def message(self) -> str:
        return gettext(self.default_message)


class SystemErrorCode(ErrorCode):
    INTERNAL_SERVER_ERROR = (
        "SYSTEM.INTERNAL_SERVER_ERROR",
        gettext_noop("An unexpected error occurred. Please try again later."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )
    INVALID_REQUEST = (
        "SYSTEM.INVALID_REQUEST",
        gettext_noop("The request data is invalid."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )


class AuthErrorCode(ErrorCode):
    INVALID_WEBHOOK_SECRET = (
        "AUTH.INVALID_WEBHOOK_SECRET",
        gettext_noop("Invalid webhook secret."),
        401,
        ErrorKind.ACCESS_DENIED,
    )


class OrderErrorCode(ErrorCode):
    ORDER_NOT_FOUND = (
        "ORDER.ORDER_NOT_FOUND",
        gettext_noop("Order not found."),
        404,
        ErrorKind.NOT_FOUND,
    )
    ACCESS_DENIED = (
        "ORDER.ACCESS_DENIED",
        gettext_noop("You do not have permission to access this order."),
        403,
        ErrorKind.ACCESS_DENIED,
    )
    ALREADY_PROCESSED = (
        "ORDER.ALREADY_PROCESSED",
        gettext_noop("This order has already been processed."),
        400,
        ErrorKind.INVALID_STATE,
    )
    EMPTY = (
        "ORDER.EMPTY",
        gettext_noop("The order does not contain any items."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    COURSE_NOT_FOUND = (
        "ORDER.COURSE_NOT_FOUND",
        gettext_noop("One or more courses could not be found."),
        404,
        ErrorKind.NOT_FOUND,
    )
    CREATE_ORDER_ERROR = (
        "ORDER.CREATE_ORDER_ERROR",
        gettext_noop("The order could not be created."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )


class PaymentErrorCode(ErrorCode):
    MINIMUM_AMOUNT_ERROR = (
        "PAYMENT.MINIMUM_AMOUNT_ERROR",
        gettext_noop("The order total is below the minimum chargeable amount."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    INVALID_CARD = (
        "PAYMENT.INVALID_CARD",
        gettext_noop("The card number is invalid."),
        400,
        ErrorKind.GATEWAY_ERROR,
    )
    EXPIRED_CARD = (
        "PAYMENT.EXPIRED_CARD",
        gettext_noop("The card has expired."),
        400,
        ErrorKind.GATEWAY_ERROR,
    )
    INVALID_CVV = (
        "PAYMENT.INVALID_CVV",
        gettext_noop("The security code (CVV) is invalid."),
        400,
        ErrorKind.GATEWAY_ERROR,
    )
    INSUFFICIENT_FUND = (
        "PAYMENT.INSUFFICIENT_FUND",
        gettext_noop("Insufficient funds. Please check your card balance."),
        400,
        ErrorKind.GATEWAY_ERROR,
    )
    CARD_DECLINED = (
        "PAYMENT.CARD_DECLINED",
        gettext_noop("The card was declined. Please use another card."),
        400,
        ErrorKind.GATEWAY_ERROR,
    )
    CREATE_TOKEN_ERROR = (
        "PAYMENT.CREATE_TOKEN_ERROR",
        gettext_noop("The card could not be tokenized. Please try again."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )
    CREATE_CHARGE_ERROR = (
        "PAYMENT.CREATE_CHARGE_ERROR",
        gettext_noop("The payment could not be charged. Please try again."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )
    RETRIEVE_CHARGE_ERROR = (
        "PAYMENT.RETRIEVE_CHARGE_ERROR",
        gettext_noop("The payment status could not be retrieved."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )
    BANK_TRANSFER_CREATE_ERROR = (
        "PAYMENT.BANK_TRANSFER_CREATE_ERROR",
        gettext_noop("The bank transfer could not be submitted."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )
    PAYMENT_NOT_FOUND = (
        "PAYMENT.PAYMENT_NOT_FOUND",
        gettext_noop("Payment not found."),
        404,
        ErrorKind.NOT_FOUND,
    )
    PAYMENT_ALREADY_PROCESSED = (
        "PAYMENT.PAYMENT_ALREADY_PROCESSED",
        gettext_noop("This payment has already been processed."),
        400,
        ErrorKind.INVALID_STATE,
    )
    INVALID_PAYMENT_TYPE = (
        "PAYMENT.INVALID_PAYMENT_TYPE",
        gettext_noop("This operation is not available for this payment type."),
        400,
        ErrorKind.INVALID_STATE,
    )
    APPROVAL_REASON_REQUIRED = (
        "PAYMENT.APPROVAL_REASON_REQUIRED",
        gettext_noop("A reason is required when rejecting a payment."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    SLIP_FILE_REQUIRED = (
        "PAYMENT.SLIP_FILE_REQUIRED",
        gettext_noop("A payment slip image is required."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    SLIP_FILE_TOO_LARGE = (
        "PAYMENT.SLIP_FILE_TOO_LARGE",
        gettext_noop("The payment slip exceeds the maximum file size."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    SLIP_FILE_TYPE_NOT_ALLOWED = (
        "PAYMENT.SLIP_FILE_TYPE_NOT_ALLOWED",
        gettext_noop("Only JPEG and PNG images are allowed."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    INVALID_IMAGE_FORMAT = (
        "PAYMENT.INVALID_IMAGE_FORMAT",
        gettext_noop("The file content does not match its image type."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    IMAGE_FORMAT_MISMATCH = (
        "PAYMENT.IMAGE_FORMAT_MISMATCH",
        gettext_noop("The decoded image format does not match the file type."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    IMAGE_DIMENSIONS_TOO_SMALL = (
        "PAYMENT.IMAGE_DIMENSIONS_TOO_SMALL",
        gettext_noop("The image is smaller than the minimum allowed dimensions."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    IMAGE_DIMENSIONS_TOO_LARGE = (
        "PAYMENT.IMAGE_DIMENSIONS_TOO_LARGE",
        gettext_noop("The image is larger than the maximum allowed dimensions."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    IMAGE_PROCESSING_ERROR = (
        "PAYMENT.IMAGE_PROCESSING_ERROR",
        gettext_noop("The image could not be processed."),
        400,
        ErrorKind.VALIDATION_FAILED,
    )
    SLIP_UPLOAD_ERROR = (
        "PAYMENT.SLIP_UPLOAD_ERROR",
        gettext_noop("The payment slip could not be uploaded."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )


class EnrollmentErrorCode(ErrorCode):
    COURSE_NOT_FOUND = (
        "ENROLLMENT.COURSE_NOT_FOUND",
        gettext_noop("Course not found."),
        404,
        ErrorKind.NOT_FOUND,
    )
    ALREADY_ENROLLED = (
        "ENROLLMENT.ALREADY_ENROLLED",
        gettext_noop("You are already enrolled in this course."),
        409,
        ErrorKind.INVALID_STATE,
    )
    ENROLLMENT_NOT_FOUND = (
        "ENROLLMENT.ENROLLMENT_NOT_FOUND",
        gettext_noop("Enrollment not found."),
        404,
        ErrorKind.NOT_FOUND,
    )
    RECONCILIATION_ERROR = (
        "ENROLLMENT.RECONCILIATION_ERROR",
        gettext_noop("Course access could not be granted. Our team has been notified."),
        500,
        ErrorKind.INFRASTRUCTURE_ERROR,
    )


class AcademyError(Exception):
    """
    Base exception for all business errors of the academy backend.

    Attributes:
        error_code (ErrorCode): Registry member describing the failure
        details (Dict[str, Any]): Extra context that is safe to show to clients
    """

    def __init__(
        self, error_code: ErrorCode, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.error_code = error_code
        self.details = details or {}
        super().__init__(error_code.code)

    @property
    def code(self) -> str:
        return self.error_code.code

    @property
    def message(self) -> str:
        return self.error_code.message

    @property
    def status_code(self) -> int:
        return self.error_code.status_code

    @property
    def kind(self) -> ErrorKind:
        return self.error_code.kind

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the exception into the API failure envelope.

        Returns:
            Dictionary representation of the error
        """
        payload = {
            "success": False,
            "error_code": self.code,
            "error": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class OrderValidationError(AcademyError):
    """Raised when an order is not payable (missing, foreign, processed, empty, too small)."""


class ImageValidationError(AcademyError):
    """Raised when an uploaded payment slip fails the image checks."""


class CardPaymentError(AcademyError):
    """Raised for card problems reported by the gateway (declined, expired, ...)."""


class GatewayError(AcademyError):
    """Raised when the payment gateway cannot be reached or answers unexpectedly."""


class StorageError(AcademyError):
    """Raised when a payment slip cannot be stored or removed."""


class PaymentStateError(AcademyError):
    """Raised when a payment operation does not fit the payment's current state."""


class EnrollmentError(AcademyError):
    """Raised for enrollment failures, including failed course access grants."""


class WebhookAuthenticationError(AcademyError):
    """Raised when an inbound webhook carries a wrong or missing shared secret."""

    def __init__(self) -> None:
        super().__init__(AuthErrorCode.INVALID_WEBHOOK_SECRET)
