from unittest import mock

from botocore.exceptions import ClientError
from django.test import SimpleTestCase, override_settings

from academy.exceptions import PaymentErrorCode, StorageError
from academy.services.cloud_storage import SlipStorageService
from academy.tests.helpers import slip_upload


@override_settings(WASABI_ENDPOINT_URL="https://s3.ap-southeast-1.wasabisys.com/")
class SlipStorageServiceTests(SimpleTestCase):
    def setUp(self):
        self.client = mock.MagicMock()
        self.storage = SlipStorageService(client=self.client, bucket_name="payment-slips")

    def testUploadUsesOrderFolder(self):
        upload = slip_upload("Slip.PNG")

        stored = self.storage.upload_payment_slip(upload, "order-1", content=b"png-bytes")

        kwargs = self.client.put_object.call_args.kwargs
        self.assertEqual(kwargs["Bucket"], "payment-slips")
        self.assertEqual(kwargs["Body"], b"png-bytes")
        self.assertEqual(kwargs["ContentType"], "image/png")
        self.assertTrue(stored.path.startswith("order-1/order-1_"))
        self.assertTrue(stored.filename.endswith(".png"))
        self.assertEqual(kwargs["Key"], stored.path)
        self.assertEqual(
            stored.url,
            f"https://s3.ap-southeast-1.wasabisys.com/payment-slips/{stored.path}",
        )

    def testUploadReadsFileWhenContentMissing(self):
        upload = slip_upload()
        expected = upload.read()

        self.storage.upload_payment_slip(upload, "order-1")

        self.assertEqual(self.client.put_object.call_args.kwargs["Body"], expected)

    def testFilenamesAreUnique(self):
        first = self.storage.upload_payment_slip(slip_upload(), "order-1", content=b"a")
        second = self.storage.upload_payment_slip(slip_upload(), "order-1", content=b"a")
        self.assertNotEqual(first.filename, second.filename)

    def testUploadFailure(self):
        self.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )

        with self.assertRaises(StorageError) as ctx:
            self.storage.upload_payment_slip(slip_upload(), "order-1", content=b"a")

        self.assertEqual(ctx.exception.error_code, PaymentErrorCode.SLIP_UPLOAD_ERROR)

    def testDelete(self):
        self.storage.delete_payment_slip("order-1/slip.png")
        self.client.delete_object.assert_called_once_with(
            Bucket="payment-slips", Key="order-1/slip.png"
        )
