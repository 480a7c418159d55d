from rest_framework import status
from rest_framework.permissions import IsAuthenticated

from academy.api import AcademyAPIView, success_response
from academy.orders.serializers import CreateOrderSerializer, OrderSerializer
from academy.orders.services import OrderService


class OrderListCreateView(AcademyAPIView):
    """GET: orders of the current user. POST: check out a list of courses."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        orders = OrderService().list_my_orders(request.user)
        return success_response(OrderSerializer(orders, many=True).data)

    def post(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService().create_order(
            request.user, serializer.validated_data["course_ids"]
        )
        return success_response(OrderSerializer(order).data, status.HTTP_201_CREATED)


class OrderDetailView(AcademyAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, order_id):
        order = OrderService().get_order(request.user, order_id)
        return success_response(OrderSerializer(order).data)
