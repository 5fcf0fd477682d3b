"""Order repository interface.

Extends ``IRepository[Order]`` with the queries and mutations the order
lifecycle needs: row locking, the client's draft, line items and the
status audit trail.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Tuple
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.accounts.models import Account
    from modules.orders.models import LineItem, Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes LineItem children and OrderStatusHistory
    records. Callers own the transaction boundary.
    """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with its client, items and history loaded."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an order holding a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[dict] = None) -> "models.QuerySet[Order]":
        """Orders newest first, optionally filtered."""

    @abstractmethod
    def get_draft_for_client(
        self, client_id: UUID, for_update: bool = False
    ) -> Optional[Order]:
        """The client's DRAFT order, if any."""

    @abstractmethod
    def create_draft(self, client: Account) -> Tuple[Order, bool]:
        """Insert a DRAFT for *client*; returns ``(order, created)``.

        When a concurrent transaction committed a draft first, that draft
        is returned with ``created=False``.
        """

    @abstractmethod
    def list_history_for_client(self, client_id: UUID) -> "models.QuerySet[Order]":
        """The client's non-DRAFT orders, newest first."""

    @abstractmethod
    def search_by_client_email(self, keyword: str) -> "models.QuerySet[Order]":
        """Orders whose client email contains *keyword*, newest first."""

    @abstractmethod
    def get_line_item(self, order_id: UUID, book_id: Any) -> Optional[LineItem]:
        """The line for *book_id* in the order, if any."""

    @abstractmethod
    def save_line_item(self, item: LineItem) -> LineItem:
        """Persist (create or update) a line item."""

    @abstractmethod
    def delete_line_item(self, item: LineItem) -> None:
        """Remove a line item from its order."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        old_status: Optional[str] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
