"""
Shared fixtures for the academy tests: model factories, slip images and
in-memory stand-ins for the payment gateway, slip storage and notifier.
"""

from decimal import Decimal
from io import BytesIO

from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from PIL import Image

from academy.courses.models import Course
from academy.enrollments.services import EnrollmentReconciler
from academy.orders.models import Order, OrderItem
from academy.payments.gateway import GatewayCardException, GatewayCharge, GatewayToken
from academy.services.cloud_storage import StoredSlip


def create_user(username="student", **kwargs):
    return User.objects.create_user(
        username=username, password="Testpassword123", email=f"{username}@test.com", **kwargs
    )


def create_course(title="Python Basics", price="1000.00", **kwargs):
    return Course.objects.create(title=title, price=Decimal(price), **kwargs)


def create_order(user, courses, status=Order.PENDING, total=None):
    prices = [course.price for course in courses]
    amount = Decimal(total) if total is not None else sum(prices, Decimal("0"))
    order = Order.objects.create(
        user=user, subtotal_amount=amount, total_amount=amount, status=status
    )
    for course in courses:
        OrderItem.objects.create(order=order, course=course, unit_price=course.price)
    return order


def image_bytes(image_format="PNG", size=(300, 300)):
    buffer = BytesIO()
    Image.new("RGB", size, color=(40, 160, 80)).save(buffer, format=image_format)
    return buffer.getvalue()


def slip_upload(name="slip.png", content=None, content_type="image/png"):
    if content is None:
        content = image_bytes()
    return SimpleUploadedFile(name, content, content_type=content_type)


class FakeGateway:
    """Records calls and answers with preconfigured charges or errors."""

    currency = "thb"
    publishable_key = "pk_test_academy"

    def __init__(self, paid=True, failure_code=None, token_error=None, charge_error=None):
        self.paid = paid
        self.failure_code = failure_code
        self.token_error = token_error
        self.charge_error = charge_error
        self.tokens = []
        self.charges = []

    def create_token(self, card):
        if self.token_error:
            raise self.token_error
        token = GatewayToken(id=f"tok_{len(self.tokens) + 1}", last_digits=card.number[-4:])
        self.tokens.append(token)
        return token

    def create_charge(self, amount, token_id, description="", metadata=None):
        if self.charge_error:
            raise self.charge_error
        charge = GatewayCharge(
            id=f"ch_{len(self.charges) + 1}",
            amount=Decimal(amount),
            currency=self.currency,
            paid=self.paid,
            failure_code=self.failure_code,
        )
        self.charges.append((charge, token_id, metadata))
        return charge

    def retrieve_charge(self, charge_id):
        return GatewayCharge(
            id=charge_id,
            amount=Decimal("1000.00"),
            currency=self.currency,
            paid=self.paid,
            failure_code=self.failure_code,
        )


def card_declined(message="Your card was declined.", code="card_declined", decline_code=None, charge_id=None):
    return GatewayCardException(message, code=code, decline_code=decline_code, charge_id=charge_id)


class FakeStorage:
    def __init__(self):
        self.uploads = []
        self.deleted = []

    def upload_payment_slip(self, uploaded_file, order_id, content=None):
        filename = f"{order_id}_1700000000000_abcdefghijklm.png"
        path = f"{order_id}/{filename}"
        self.uploads.append(path)
        return StoredSlip(
            url=f"https://s3.ap-southeast-1.wasabisys.com/payment-slips/{path}",
            path=path,
            filename=filename,
        )

    def delete_payment_slip(self, path):
        self.deleted.append(path)


class FakeNotifier:
    def __init__(self):
        self.notifications = []

    def notify_bank_transfer_created(self, payment, courses):
        self.notifications.append((payment, list(courses)))


class FailingReconciler(EnrollmentReconciler):
    """Fails with a database error for the given course ids."""

    def __init__(self, failing_course_ids):
        self.failing_course_ids = set(failing_course_ids)

    def reconcile(self, user_id, course_id, payment_id):
        if course_id in self.failing_course_ids:
            raise DatabaseError("enrollment table unavailable")
        return super().reconcile(user_id, course_id, payment_id)
