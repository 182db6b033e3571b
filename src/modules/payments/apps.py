from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.payments"
    label = "payments"

    def ready(self) -> None:
        from modules.orders.events import OrderPaid, OrderPaymentFailed
        from modules.payments.handlers import (
            order_paid_handler,
            order_payment_failed_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderPaid, order_paid_handler)
        event_bus.subscribe(OrderPaymentFailed, order_payment_failed_handler)
