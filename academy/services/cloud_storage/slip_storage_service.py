"""
Slip Storage Service

Stores bank-transfer slips in the Wasabi (S3 compatible) bucket configured by
SLIP_STORAGE_BUCKET. Objects are grouped per order:

    <bucket>/<order_id>/<order_id>_<epoch ms>_<random>.<ext>

Author: Academy Development Team
Version: 1.0.0
"""

import logging
import os
import time
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.utils.crypto import get_random_string

from academy.exceptions import PaymentErrorCode, StorageError

logger = logging.getLogger(__name__)


@dataclass
class StoredSlip:
    """A slip that has been written to object storage."""

    url: str
    path: str
    filename: str


class SlipStorageService:
    """Upload and removal of payment slips."""

    def __init__(self, client=None, bucket_name=None):
        self.bucket_name = bucket_name or settings.SLIP_STORAGE_BUCKET
        self.endpoint_url = settings.WASABI_ENDPOINT_URL.rstrip("/")
        self.client = client or self._create_client()

    def _create_client(self):
        return boto3.client(
            "s3",
            aws_access_key_id=settings.WASABI_ACCESS_KEY,
            aws_secret_access_key=settings.WASABI_SECRET_KEY,
            region_name=settings.WASABI_REGION,
            endpoint_url=self.endpoint_url,
        )

    def upload_payment_slip(self, uploaded_file, order_id, content: bytes = None) -> StoredSlip:
        """
        Upload a validated slip image.

        Args:
            uploaded_file: Django UploadedFile of the slip
            order_id: Order the slip belongs to
            content: File bytes if already read by the validator

        Returns:
            StoredSlip with public URL, object key and filename

        Raises:
            StorageError: If the bucket rejects the upload
        """
        if content is None:
            uploaded_file.seek(0)
            content = uploaded_file.read()

        extension = os.path.splitext(uploaded_file.name)[1].lower()
        timestamp = int(time.time() * 1000)
        filename = f"{order_id}_{timestamp}_{get_random_string(13)}{extension}"
        path = f"{order_id}/{filename}"

        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=content,
                ContentType=uploaded_file.content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Uploading slip for order %s failed: %s", order_id, e)
            raise StorageError(PaymentErrorCode.SLIP_UPLOAD_ERROR) from e

        logger.info("Uploaded slip %s (%s bytes)", path, len(content))
        return StoredSlip(url=self._generate_cloud_url(path), path=path, filename=filename)

    def delete_payment_slip(self, path: str) -> None:
        """
        Remove a stored slip.

        Raises:
            StorageError: If the object cannot be deleted
        """
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=path)
        except (ClientError, BotoCoreError) as e:
            logger.error("Deleting slip %s failed: %s", path, e)
            raise StorageError(PaymentErrorCode.SLIP_UPLOAD_ERROR) from e

        logger.info("Deleted slip %s", path)

    def _generate_cloud_url(self, object_key: str) -> str:
        return f"{self.endpoint_url}/{self.bucket_name}/{object_key}"
