"""
Academy Django Admin Configuration

- Courses: pricing including early-bird window
- Orders: items inline, payments inline (read only)
- Payments: filter by type and status, slip link for bank transfers
- Enrollments: search by user and course

Payment and order statuses are read only here; they change through the
payment flows so that enrollments stay consistent.

Author: Academy Development Team
Version: 1.0.0
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import Course, Enrollment, Order, OrderItem, Payment


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("title", "price", "early_bird_price", "is_published", "created_at")
    list_filter = ("is_published",)
    search_fields = ("title",)
    fieldsets = (
        (None, {"fields": ("title", "description", "is_published")}),
        (
            _("Pricing"),
            {
                "fields": (
                    "price",
                    "early_bird_price",
                    "early_bird_start_date",
                    "early_bird_end_date",
                )
            },
        ),
    )


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("course", "unit_price", "created_at")
    can_delete = False


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ("payment_type", "status", "amount", "gateway_charge_id", "created_at")
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "status", "total_amount", "created_at")
    list_filter = ("status",)
    search_fields = ("id", "user__username", "user__email")
    readonly_fields = ("status", "subtotal_amount", "total_amount", "created_at", "updated_at")
    inlines = [OrderItemInline, PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "payment_type", "status", "amount", "created_at")
    list_filter = ("payment_type", "status")
    search_fields = ("id", "order__id", "gateway_charge_id")
    readonly_fields = (
        "order",
        "payment_type",
        "status",
        "amount",
        "currency",
        "gateway_charge_id",
        "failure_code",
        "slip_preview",
        "slip_image_path",
        "review_reason",
        "created_at",
        "updated_at",
    )
    exclude = ("slip_image_url",)

    @admin.display(description=_("Slip"))
    def slip_preview(self, obj):
        if not obj.slip_image_url:
            return "-"
        return format_html('<a href="{}" target="_blank">{}</a>', obj.slip_image_url, _("Open slip"))


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("user", "course", "payment", "created_at")
    search_fields = ("user__username", "user__email", "course__title")
    list_select_related = ("user", "course", "payment")
    raw_id_fields = ("payment",)
