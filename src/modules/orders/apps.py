from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            OrderCancelled,
            OrderConfirmed,
            OrderDraftCreated,
            OrderSubmitted,
        )
        from modules.orders.handlers import (
            order_cancelled_handler,
            order_confirmed_handler,
            order_draft_created_handler,
            order_submitted_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderDraftCreated, order_draft_created_handler)
        event_bus.subscribe(OrderSubmitted, order_submitted_handler)
        event_bus.subscribe(OrderConfirmed, order_confirmed_handler)
        event_bus.subscribe(OrderCancelled, order_cancelled_handler)
