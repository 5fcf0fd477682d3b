"""Order, LineItem, and OrderStatusHistory models.

Business rules implemented:
- At most one DRAFT order per client (partial unique constraint).
- At most one line item per (order, book); quantity is at least 1.
- ``total_price`` is recomputed from live book prices whenever the
  line-item set of a draft changes, and frozen once the order is submitted.
- Each status change generates an append-only history record.
- Client and book FKs use PROTECT to preserve financial history.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import TERMINAL_STATES, VALID_TRANSITIONS, OrderStatus
from shared.domain.events import DomainEventMixin


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    A DRAFT order is the client's cart. Orders are never physically
    deleted; cancelled orders stay in the client's history.
    """

    client = models.ForeignKey(
        "accounts.Account",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.DRAFT,
    )
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["client"],
                condition=models.Q(status=OrderStatus.DRAFT),
                name="orders_single_draft_per_client",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["client", "status"], name="orders_client_status_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_draft(self) -> bool:
        return self.status == OrderStatus.DRAFT

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def calculate_total(self) -> Decimal:
        """Sum of quantity x current book price over all line items."""
        total = Decimal("0.00")
        for item in self.items.select_related("book"):
            total += item.subtotal
        return total

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"


class LineItem(BaseModel):
    """N copies of one book in one order.

    There is no stored price: ``unit_price`` reads the book's current
    price, so a draft follows catalog price changes until submission.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    book = models.ForeignKey(
        "catalog.Book",
        on_delete=models.PROTECT,
        related_name="line_items",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "order_line_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "book"],
                name="order_line_items_unique_book",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_line_items_quantity_positive",
            ),
        ]

    @property
    def unit_price(self) -> Decimal:
        return self.book.price

    @property
    def subtotal(self) -> Decimal:
        return self.book.price * self.quantity

    def __str__(self) -> str:
        return f"{self.book} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    The first record of every order has ``old_status=None`` and
    ``new_status=DRAFT``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
