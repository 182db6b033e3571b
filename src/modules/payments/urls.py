"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import InitiatePaymentView, PaymentWebhookView

urlpatterns = [
    path(
        "payments/initialize/",
        InitiatePaymentView.as_view(),
        name="payment-initialize",
    ),
    path("payments/webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
]
