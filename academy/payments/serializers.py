from rest_framework import serializers

from academy.payments.gateway import CardDetails
from academy.payments.models import Payment


class ValidatePaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()


class CreateChargeSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    card_number = serializers.RegexField(r"^\d{12,19}$")
    cardholder_name = serializers.CharField(max_length=255)
    expiration_month = serializers.IntegerField(min_value=1, max_value=12)
    expiration_year = serializers.IntegerField(min_value=2000, max_value=2100)
    security_code = serializers.RegexField(r"^\d{3,4}$")
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    postal_code = serializers.CharField(
        max_length=20, required=False, allow_blank=True, default=""
    )
    description = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )

    def to_card_details(self) -> CardDetails:
        data = self.validated_data
        return CardDetails(
            number=data["card_number"],
            holder_name=data["cardholder_name"],
            expiration_month=data["expiration_month"],
            expiration_year=data["expiration_year"],
            security_code=data["security_code"],
            city=data["city"],
            postal_code=data["postal_code"],
        )


class BankTransferSubmitSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    slip = serializers.FileField(required=False, allow_empty_file=True)


class BankTransferApprovalSerializer(serializers.Serializer):
    approved = serializers.BooleanField()
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PaymentListFilterSerializer(serializers.Serializer):
    type = serializers.ChoiceField(
        choices=[choice for choice, _ in Payment.TYPE_CHOICES], required=False, allow_blank=True
    )
    status = serializers.ChoiceField(
        choices=[choice for choice, _ in Payment.STATUS_CHOICES], required=False, allow_blank=True
    )


class PaymentSerializer(serializers.ModelSerializer):
    payment_method = serializers.CharField(source="get_payment_type_display", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "order",
            "payment_type",
            "payment_method",
            "status",
            "amount",
            "currency",
            "gateway_charge_id",
            "slip_image_url",
            "review_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ValidatedOrderSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(source="order.pk")
    status = serializers.CharField(source="order.status")
    item_count = serializers.SerializerMethodField()
    chargeable_amount = serializers.DecimalField(max_digits=10, decimal_places=2)

    def get_item_count(self, obj):
        return len(obj.items)


class ChargeResultSerializer(serializers.Serializer):
    payment_id = serializers.CharField(allow_null=True)
    gateway_charge_id = serializers.CharField(allow_null=True)
    status = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    payment_method = serializers.CharField()
    created_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)


class BankTransferResultSerializer(serializers.Serializer):
    payment_id = serializers.CharField()
    order_id = serializers.CharField()
    slip_url = serializers.URLField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    status = serializers.CharField()
    payment_method = serializers.CharField()
    created_at = serializers.DateTimeField()


class ApprovalResultSerializer(serializers.Serializer):
    payment_id = serializers.CharField()
    order_id = serializers.CharField()
    status = serializers.CharField()
    approved = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    updated_at = serializers.DateTimeField()
