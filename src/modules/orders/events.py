"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderDraftCreated(DomainEvent):
    """Raised when a client's cart is opened."""

    client_id: UUID


@dataclass(frozen=True, kw_only=True)
class OrderSubmitted(DomainEvent):
    """Raised when a draft is submitted and the balance debited."""

    client_id: UUID
    total_price: Decimal


@dataclass(frozen=True, kw_only=True)
class OrderConfirmed(DomainEvent):
    """Raised when an administrator confirms a submitted order."""


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled. No refund is issued."""

    previous_status: str
    total_price: Decimal
