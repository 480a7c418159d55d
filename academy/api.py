"""
Shared API helpers for the academy views.

AcademyAPIView converts business errors into the standard failure envelope
and hides unexpected errors behind SYSTEM.INTERNAL_SERVER_ERROR.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from academy.exceptions import AcademyError, ErrorKind, SystemErrorCode

logger = logging.getLogger(__name__)


def success_response(data, status_code=status.HTTP_200_OK) -> Response:
    return Response({"success": True, "data": data}, status=status_code)


class AcademyAPIView(APIView):
    def handle_exception(self, exc):
        if isinstance(exc, AcademyError):
            log = logger.error if exc.kind is ErrorKind.INFRASTRUCTURE_ERROR else logger.info
            log(
                "%s %s failed with %s (user %s)",
                self.request.method,
                self.request.path,
                exc.code,
                getattr(self.request.user, "pk", None),
            )
            return Response(exc.to_dict(), status=exc.status_code)

        if isinstance(exc, ValidationError):
            error = AcademyError(SystemErrorCode.INVALID_REQUEST, details=exc.detail)
            return Response(error.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        if isinstance(exc, APIException):
            return super().handle_exception(exc)

        logger.exception("Unhandled error in %s %s", self.request.method, self.request.path)
        error = AcademyError(SystemErrorCode.INTERNAL_SERVER_ERROR)
        return Response(error.to_dict(), status=status.HTTP_500_INTERNAL_SERVER_ERROR)
