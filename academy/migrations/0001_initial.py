import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("price", models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0"))], verbose_name="Price")),
                ("early_bird_price", models.DecimalField(blank=True, decimal_places=2, help_text="Applies between the early-bird start and end dates.", max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal("0"))], verbose_name="Early-bird price")),
                ("early_bird_start_date", models.DateTimeField(blank=True, null=True, verbose_name="Early-bird start")),
                ("early_bird_end_date", models.DateTimeField(blank=True, null=True, verbose_name="Early-bird end")),
                ("is_published", models.BooleanField(default=True, verbose_name="Published")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Course",
                "verbose_name_plural": "Courses",
                "ordering": ["title"],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("subtotal_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10, verbose_name="Subtotal")),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), help_text="Amount to be charged. Equals the sum of the item prices.", max_digits=10, verbose_name="Total")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("processing", "Processing"), ("successful", "Successful"), ("failed", "Failed"), ("cancelled", "Cancelled")], default="pending", max_length=16, verbose_name="Status")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="orders", to=settings.AUTH_USER_MODEL, verbose_name="User")),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["user", "status"], name="order_user_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("unit_price", models.DecimalField(decimal_places=2, help_text="Course price at checkout time.", max_digits=10, verbose_name="Unit price")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="order_items", to="academy.course", verbose_name="Course")),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="academy.order", verbose_name="Order")),
            ],
            options={
                "verbose_name": "Order item",
                "verbose_name_plural": "Order items",
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("payment_type", models.CharField(choices=[("card_charge", "Credit Card"), ("bank_transfer", "Bank Transfer")], max_length=16, verbose_name="Payment type")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("successful", "Successful"), ("failed", "Failed")], default="pending", max_length=16, verbose_name="Status")),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10, verbose_name="Amount")),
                ("currency", models.CharField(default="thb", max_length=3, verbose_name="Currency")),
                ("gateway_charge_id", models.CharField(blank=True, db_index=True, help_text="Charge identifier at the payment gateway (card payments only).", max_length=255, null=True, verbose_name="Gateway charge ID")),
                ("failure_code", models.CharField(blank=True, default="", max_length=64, verbose_name="Failure code")),
                ("slip_image_url", models.URLField(blank=True, help_text="Uploaded transfer slip (bank transfers only).", max_length=500, null=True, verbose_name="Slip image URL")),
                ("slip_image_path", models.CharField(blank=True, max_length=500, null=True, verbose_name="Slip storage path")),
                ("review_reason", models.TextField(blank=True, help_text="Reason given when a bank transfer was approved or rejected.", null=True, verbose_name="Review reason")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="academy.order", verbose_name="Order")),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["payment_type", "status"], name="payment_type_status_idx")],
                "constraints": [models.UniqueConstraint(condition=models.Q(("status", "successful")), fields=("order",), name="unique_successful_payment_per_order")],
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="enrollments", to="academy.course", verbose_name="Course")),
                ("payment", models.ForeignKey(blank=True, help_text="Payment that granted this access, empty for free access.", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="enrollments", to="academy.payment", verbose_name="Payment")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="enrollments", to=settings.AUTH_USER_MODEL, verbose_name="User")),
            ],
            options={
                "verbose_name": "Enrollment",
                "verbose_name_plural": "Enrollments",
                "ordering": ["-created_at"],
                "constraints": [models.UniqueConstraint(fields=("user", "course"), name="unique_enrollment_per_user_course")],
            },
        ),
    ]
