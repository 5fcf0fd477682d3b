"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API. Domain events
collected on the aggregate are written to the outbox by ``save`` in the
same transaction as the order row.

Locking reads never join other tables: ``SELECT ... FOR UPDATE`` locks the
order row alone.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError, models, transaction

from modules.accounts.models import Account
from modules.core.models import OutboxEvent
from modules.orders.constants import ORDER_EVENTS_TOPIC, OrderStatus
from modules.orders.models import LineItem, Order, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    @staticmethod
    def _with_relations(queryset: models.QuerySet[Order]) -> models.QuerySet[Order]:
        """Eager-load client, items -> book and history to prevent N+1."""
        return queryset.select_related("client").prefetch_related(
            models.Prefetch(
                "items", queryset=LineItem.objects.select_related("book")
            ),
            "status_history",
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return self._with_relations(Order.objects.filter(id=id)).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet[Order]:
        queryset = self._with_relations(Order.objects.all())
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-created_at", "-id")

    def get_draft_for_client(
        self, client_id: UUID, for_update: bool = False
    ) -> Optional[Order]:
        queryset = Order.objects.filter(client_id=client_id, status=OrderStatus.DRAFT)
        if for_update:
            return queryset.select_for_update().first()
        return self._with_relations(queryset).first()

    def list_history_for_client(self, client_id: UUID) -> models.QuerySet[Order]:
        return self.list({"client_id": client_id}).exclude(status=OrderStatus.DRAFT)

    def search_by_client_email(self, keyword: str) -> models.QuerySet[Order]:
        return self.list({"client__email__icontains": keyword})

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and move its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=_serialize_event_payload(event),
                topic=ORDER_EVENTS_TOPIC,
            )
        entity.clear_domain_events()

        logger.debug("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    def create_draft(self, client: Account) -> Tuple[Order, bool]:
        """Insert a DRAFT inside a savepoint.

        A unique violation on ``orders_single_draft_per_client`` means another
        transaction won the race; only the savepoint is rolled back and the
        winner's draft is returned.
        """
        try:
            with transaction.atomic():
                order = Order.objects.create(client=client, status=OrderStatus.DRAFT)
        except IntegrityError:
            existing = self.get_draft_for_client(client.id, for_update=True)
            if existing is None:
                raise
            logger.info(
                "order.draft_race_lost",
                client_id=str(client.id),
                order_id=str(existing.id),
            )
            return existing, False
        return order, True

    def get_line_item(self, order_id: UUID, book_id: Any) -> Optional[LineItem]:
        try:
            return (
                LineItem.objects.select_related("book")
                .filter(order_id=order_id, book_id=book_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def save_line_item(self, item: LineItem) -> LineItem:
        item.save()
        return item

    def delete_line_item(self, item: LineItem) -> None:
        item.delete()

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        old_status: Optional[str] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history


def _serialize_event_payload(event: Any) -> Dict[str, Any]:
    """JSON form of an event; UUID, Decimal and datetime values become strings."""
    return json.loads(json.dumps(asdict(event), cls=DjangoJSONEncoder))
