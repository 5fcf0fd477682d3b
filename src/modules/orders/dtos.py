"""Order DTOs for the Service Layer.

Framework-agnostic, immutable (``frozen=True``) Pydantic v2 models the
order lifecycle returns to its callers.

- ``LineItemOutputDTO``: one line with live price and subtotal.
- ``StatusHistoryDTO``: one status history record.
- ``OrderOutputDTO``: the order view, with its client balance.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.orders.models import LineItem, Order, OrderStatusHistory


class LineItemOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    book_id: UUID
    book_name: str
    author: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal

    @classmethod
    def from_entity(cls, item: LineItem) -> LineItemOutputDTO:
        return cls(
            id=item.id,
            book_id=item.book_id,
            book_name=item.book.name,
            author=item.book.author,
            unit_price=item.unit_price,
            quantity=item.quantity,
            subtotal=item.subtotal,
        )


class StatusHistoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_status: Optional[str]
    new_status: str
    notes: str
    created_at: datetime

    @classmethod
    def from_entity(cls, history: OrderStatusHistory) -> StatusHistoryDTO:
        return cls(
            old_status=history.old_status,
            new_status=history.new_status,
            notes=history.notes,
            created_at=history.created_at,
        )


class OrderOutputDTO(BaseModel):
    """Immutable view of an order for API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    client_id: UUID
    client_email: str
    client_balance: Decimal
    status: str
    total_price: Decimal
    created_at: datetime
    updated_at: datetime
    items: List[LineItemOutputDTO]
    history: List[StatusHistoryDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build the view from an Order instance.

        Assumes ``client``, ``items__book`` and ``status_history`` are
        loaded (see ``OrderDjangoRepository.get_by_id``).
        """
        return cls(
            id=order.id,
            client_id=order.client_id,
            client_email=order.client.email,
            client_balance=order.client.balance,
            status=order.status,
            total_price=order.total_price,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[LineItemOutputDTO.from_entity(item) for item in order.items.all()],
            history=[
                StatusHistoryDTO.from_entity(h) for h in order.status_history.all()
            ],
        )

    def is_owned_by(self, email: Optional[str]) -> bool:
        return email is not None and email.lower() == self.client_email.lower()
