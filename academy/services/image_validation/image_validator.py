"""
Payment Slip Image Validator

Checks an uploaded bank-transfer slip before it is stored. A slip must be a
real JPEG or PNG image; the declared content type and file extension alone
are not trusted.

Checks (first failure wins):
1. Basic bounds: file present and non-empty, size limit, allowed MIME type
   and extension
2. Magic bytes: the file header must match the declared MIME type and the
   file extension
3. Decoding with Pillow: pixel dimensions within bounds and decoded format
   equal to the declared MIME type

Author: Academy Development Team
Version: 1.0.0
"""

import logging
import os
from io import BytesIO
from typing import Optional

from django.conf import settings
from PIL import Image, UnidentifiedImageError

from academy.exceptions import ImageValidationError, PaymentErrorCode

logger = logging.getLogger(__name__)

JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

SIGNATURES = {
    "image/jpeg": JPEG_SIGNATURE,
    "image/png": PNG_SIGNATURE,
}

EXTENSION_SIGNATURES = {
    ".jpg": JPEG_SIGNATURE,
    ".jpeg": JPEG_SIGNATURE,
    ".png": PNG_SIGNATURE,
}

# Pillow format name per MIME type
PIL_FORMATS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
}


class SlipImageValidator:
    """
    Validator for payment slip uploads.

    Limits default to the SLIP_* settings and can be overridden per instance.
    """

    def __init__(
        self,
        max_file_size: Optional[int] = None,
        min_dimension: Optional[int] = None,
        max_dimension: Optional[int] = None,
    ):
        self.max_file_size = max_file_size or settings.SLIP_MAX_FILE_SIZE
        self.min_dimension = min_dimension or settings.SLIP_MIN_IMAGE_DIMENSION
        self.max_dimension = max_dimension or settings.SLIP_MAX_IMAGE_DIMENSION
        self.allowed_mime_types = tuple(settings.SLIP_ALLOWED_MIME_TYPES)
        self.allowed_extensions = tuple(settings.SLIP_ALLOWED_EXTENSIONS)

    def validate(self, uploaded_file) -> bytes:
        """
        Validate an uploaded slip.

        Args:
            uploaded_file: Django UploadedFile (name, size, content_type, read)

        Returns:
            The file content, so callers do not have to read the upload twice

        Raises:
            ImageValidationError: If any check fails
        """
        if uploaded_file is None:
            raise ImageValidationError(PaymentErrorCode.SLIP_FILE_REQUIRED)

        content_type = (getattr(uploaded_file, "content_type", "") or "").lower()
        self._check_bounds(uploaded_file, content_type)

        uploaded_file.seek(0)
        content = uploaded_file.read()
        uploaded_file.seek(0)

        if not content:
            raise ImageValidationError(PaymentErrorCode.SLIP_FILE_REQUIRED)

        self._check_signature(content, content_type, uploaded_file.name)
        self._check_image(content, content_type, uploaded_file.name)
        return content

    def _check_bounds(self, uploaded_file, content_type: str) -> None:
        size = uploaded_file.size or 0
        if size <= 0:
            raise ImageValidationError(PaymentErrorCode.SLIP_FILE_REQUIRED)

        if size > self.max_file_size:
            logger.info(
                "Slip rejected: %s is %s bytes (limit %s)",
                uploaded_file.name,
                size,
                self.max_file_size,
            )
            raise ImageValidationError(
                PaymentErrorCode.SLIP_FILE_TOO_LARGE,
                details={"max_file_size": self.max_file_size},
            )

        extension = os.path.splitext(uploaded_file.name or "")[1].lower()
        if (
            content_type not in self.allowed_mime_types
            or extension not in self.allowed_extensions
        ):
            logger.info(
                "Slip rejected: type %s / extension %s not allowed",
                content_type,
                extension,
            )
            raise ImageValidationError(PaymentErrorCode.SLIP_FILE_TYPE_NOT_ALLOWED)

    def _check_signature(self, content: bytes, content_type: str, name: str) -> None:
        extension = os.path.splitext(name or "")[1].lower()
        expected = (SIGNATURES[content_type], EXTENSION_SIGNATURES.get(extension))
        if not all(content.startswith(signature) for signature in expected if signature):
            logger.warning(
                "Slip rejected: header of %s does not match %s", name, content_type
            )
            raise ImageValidationError(PaymentErrorCode.INVALID_IMAGE_FORMAT)

    def _check_image(self, content: bytes, content_type: str, name: str) -> None:
        try:
            with Image.open(BytesIO(content)) as image:
                width, height = image.size
                image_format = image.format
                image.verify()
        except Image.DecompressionBombError as e:
            # Pillow refuses to open images far beyond our own maximum
            logger.warning("Slip %s exceeds the pixel limit: %s", name, e)
            raise ImageValidationError(
                PaymentErrorCode.IMAGE_DIMENSIONS_TOO_LARGE,
                details={"max_dimension": self.max_dimension},
            ) from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning("Slip %s could not be decoded: %s", name, e)
            raise ImageValidationError(PaymentErrorCode.IMAGE_PROCESSING_ERROR) from e

        if width < self.min_dimension or height < self.min_dimension:
            raise ImageValidationError(
                PaymentErrorCode.IMAGE_DIMENSIONS_TOO_SMALL,
                details={"width": width, "height": height, "min_dimension": self.min_dimension},
            )

        if width > self.max_dimension or height > self.max_dimension:
            raise ImageValidationError(
                PaymentErrorCode.IMAGE_DIMENSIONS_TOO_LARGE,
                details={"width": width, "height": height, "max_dimension": self.max_dimension},
            )

        if image_format != PIL_FORMATS[content_type]:
            logger.warning(
                "Slip %s decoded as %s but declared %s", name, image_format, content_type
            )
            raise ImageValidationError(PaymentErrorCode.IMAGE_FORMAT_MISMATCH)
