"""Event handlers for Orders domain events.

Invoked by the outbox publisher once the producing transaction has
committed.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDraftCreated,
    OrderSubmitted,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderDraftCreatedHandler(IEventHandler[OrderDraftCreated]):
    def handle(self, event: OrderDraftCreated) -> None:
        logger.info(
            "order.event.draft_created",
            order_id=str(event.aggregate_id),
            client_id=str(event.client_id),
        )


class OrderSubmittedHandler(IEventHandler[OrderSubmitted]):
    def handle(self, event: OrderSubmitted) -> None:
        logger.info(
            "order.event.submitted",
            order_id=str(event.aggregate_id),
            client_id=str(event.client_id),
            total_price=str(event.total_price),
        )


class OrderConfirmedHandler(IEventHandler[OrderConfirmed]):
    def handle(self, event: OrderConfirmed) -> None:
        logger.info("order.event.confirmed", order_id=str(event.aggregate_id))


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            previous_status=event.previous_status,
            total_price=str(event.total_price),
        )


order_draft_created_handler = OrderDraftCreatedHandler()
order_submitted_handler = OrderSubmittedHandler()
order_confirmed_handler = OrderConfirmedHandler()
order_cancelled_handler = OrderCancelledHandler()
