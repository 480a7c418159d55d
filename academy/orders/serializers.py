from rest_framework import serializers

from academy.orders.models import Order, OrderItem


class CreateOrderSerializer(serializers.Serializer):
    course_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1), allow_empty=False
    )


class OrderItemSerializer(serializers.ModelSerializer):
    course_title = serializers.CharField(source="course.title", read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "course", "course_title", "unit_price"]


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "status",
            "subtotal_amount",
            "total_amount",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
