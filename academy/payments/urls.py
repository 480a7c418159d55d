from django.urls import path

from . import views

urlpatterns = [
    path("", views.PaymentListView.as_view(), name="payment-list"),
    path("my-payments/", views.MyPaymentListView.as_view(), name="payment-my-list"),
    path("validate/", views.ValidatePaymentView.as_view(), name="payment-validate"),
    path("config/", views.GatewayConfigView.as_view(), name="payment-config"),
    path("charge/", views.CreateChargeView.as_view(), name="payment-charge"),
    path(
        "charge/<str:charge_id>/",
        views.RetrieveChargeView.as_view(),
        name="payment-charge-detail",
    ),
    path(
        "bank-transfer/",
        views.BankTransferSubmitView.as_view(),
        name="payment-bank-transfer",
    ),
    path(
        "webhook/bank-transfer/<uuid:payment_id>/approve/",
        views.BankTransferApprovalWebhookView.as_view(),
        name="payment-bank-transfer-approve",
    ),
]
