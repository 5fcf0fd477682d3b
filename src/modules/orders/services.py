"""Order service layer (Use Cases).

The order lifecycle engine: cart mutations on the client's DRAFT order,
submission against the client's balance, and the status state machine.
Every command is a single ``transaction.atomic`` unit; a failure leaves
order and account rows exactly as they were.

Lock order is always the client row first, then the order row, so cart
mutations and submissions of the same client serialize instead of
deadlocking.

Business rules enforced:
- Zero or one DRAFT order per client.
- ``total_price`` equals the sum of quantity x live book price after
  every cart mutation.
- A line reaching quantity zero is deleted.
- The balance is debited exactly once, atomically with DRAFT -> SUBMITTED.
- Status transitions follow ``VALID_TRANSITIONS`` and are never reversed.
- Cancellation does not refund the debited amount.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional

import structlog
from django.db import transaction

from modules.orders.constants import VALID_TRANSITIONS, OrderStatus
from modules.orders.dtos import OrderOutputDTO
from modules.orders.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDraftCreated,
    OrderSubmitted,
)
from modules.orders.exceptions import (
    BookNotFound,
    ClientNotFound,
    EmptyOrder,
    InsufficientFunds,
    InvalidOrderStatus,
    LineItemNotFound,
    OrderNotFound,
)
from modules.orders.models import LineItem

if TYPE_CHECKING:
    from modules.accounts.models import Account
    from modules.accounts.repositories.interfaces import IAccountRepository
    from modules.catalog.repositories.interfaces import IBookRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


def _sources_of(target: str) -> set[str]:
    """Statuses from which *target* can be reached."""
    return {source for source, targets in VALID_TRANSITIONS.items() if target in targets}


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP). Callers are
    expected to have been authorized already; the engine has no notion
    of identity beyond the client email it is given.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        account_repository: IAccountRepository,
        book_repository: IBookRepository,
    ) -> None:
        self._order_repo = order_repository
        self._account_repo = account_repository
        self._book_repo = book_repository

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    @transaction.atomic
    def find_or_create_draft(self, client: Account) -> Order:
        """Return the client's DRAFT order, opening an empty one if needed.

        Must run after the client row has been locked by the caller.
        """
        draft = self._order_repo.get_draft_for_client(client.id)
        if draft is not None:
            return draft

        draft, created = self._order_repo.create_draft(client)
        if created:
            draft.add_domain_event(
                OrderDraftCreated(aggregate_id=draft.id, client_id=client.id)
            )
            self._order_repo.save(draft)
            self._order_repo.add_history(
                order_id=draft.id, status=OrderStatus.DRAFT, notes="Cart opened"
            )
            logger.info(
                "order.draft_created", order_id=str(draft.id), client_id=str(client.id)
            )
        return draft

    @transaction.atomic
    def add_book_to_cart(self, book_id: Any, client_email: str) -> OrderOutputDTO:
        """Add one copy of a book to the client's cart.

        Increments the existing line for the book, or appends a new line
        with quantity 1. Opens the cart when the client has none.

        Raises:
            ClientNotFound: no account with *client_email*.
            BookNotFound: the book is not in the catalog.
        """
        log = logger.bind(client_email=client_email, book_id=str(book_id))

        client = self._lock_client_by_email(client_email)
        book = self._book_repo.get_by_id(book_id)
        if book is None:
            log.warning("order.cart_book_not_found")
            raise BookNotFound(book_id)

        draft = self.find_or_create_draft(client)
        order = self._order_repo.get_for_update(draft.id)

        item = self._order_repo.get_line_item(order.id, book.id)
        if item is not None:
            item.quantity += 1
        else:
            item = LineItem(order=order, book=book, quantity=1)
        self._order_repo.save_line_item(item)

        order.total_price = order.calculate_total()
        self._order_repo.save(order)

        log.info(
            "order.cart_item_added",
            order_id=str(order.id),
            quantity=item.quantity,
            total_price=str(order.total_price),
        )
        return self._view(order.id)

    @transaction.atomic
    def remove_book_from_cart(self, book_id: Any, client_email: str) -> OrderOutputDTO:
        """Remove one copy of a book from the client's cart.

        The line is deleted when its quantity reaches zero; the empty draft
        itself stays open.

        Raises:
            ClientNotFound: no account with *client_email*.
            OrderNotFound: the client has no DRAFT order.
            LineItemNotFound: the book is not in the cart.
        """
        log = logger.bind(client_email=client_email, book_id=str(book_id))

        client = self._lock_client_by_email(client_email)
        order = self._order_repo.get_draft_for_client(client.id, for_update=True)
        if order is None:
            raise OrderNotFound(None, f"Client {client_email} has no draft order.")

        item = self._order_repo.get_line_item(order.id, book_id)
        if item is None:
            raise LineItemNotFound(order.id, book_id)

        remaining = item.quantity - 1
        if remaining:
            item.quantity = remaining
            self._order_repo.save_line_item(item)
        else:
            self._order_repo.delete_line_item(item)

        order.total_price = order.calculate_total()
        self._order_repo.save(order)

        log.info(
            "order.cart_item_removed",
            order_id=str(order.id),
            remaining_quantity=remaining,
            total_price=str(order.total_price),
        )
        return self._view(order.id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @transaction.atomic
    def submit_order(self, order_id: Any) -> OrderOutputDTO:
        """Submit a draft and debit its total from the client's balance.

        Status is re-read under the order row lock, so of two concurrent
        submissions only the first passes the DRAFT precondition.

        Raises:
            OrderNotFound: the order does not exist.
            InvalidOrderStatus: the order is not DRAFT.
            EmptyOrder: the draft has no line items.
            InsufficientFunds: the balance is below the order total.
        """
        order, client = self._lock_order_and_client(order_id)
        log = logger.bind(order_id=str(order.id), client_id=str(client.id))

        if order.status != OrderStatus.DRAFT:
            log.warning(
                "order.invalid_transition",
                current_status=order.status,
                new_status=OrderStatus.SUBMITTED,
            )
            raise InvalidOrderStatus(order.id, [OrderStatus.DRAFT], order.status)

        if not order.items.exists():
            log.warning("order.submit_empty")
            raise EmptyOrder(order.id)

        total = order.total_price
        if client.balance < total:
            exc = InsufficientFunds(order.id, client.balance, total)
            log.warning(
                "order.insufficient_funds",
                balance=str(client.balance),
                total_price=str(total),
                shortfall=str(exc.shortfall),
            )
            raise exc

        self._account_repo.adjust_balance(client.id, -total)

        self._apply_transition(
            order,
            OrderStatus.SUBMITTED,
            OrderSubmitted(aggregate_id=order.id, client_id=client.id, total_price=total),
            notes=f"Debited {total}",
        )
        log.info("order.submitted", total_price=str(total))
        return self._view(order.id)

    @transaction.atomic
    def confirm_order(self, order_id: Any) -> OrderOutputDTO:
        """SUBMITTED -> CONFIRMED. No monetary effect.

        Raises:
            OrderNotFound: the order does not exist.
            InvalidOrderStatus: the order is not SUBMITTED.
        """
        return self._transition(
            order_id,
            OrderStatus.CONFIRMED,
            lambda order: OrderConfirmed(aggregate_id=order.id),
        )

    @transaction.atomic
    def cancel_order(self, order_id: Any) -> OrderOutputDTO:
        """SUBMITTED/CONFIRMED -> CANCELLED.

        The amount debited at submission is **not** refunded.

        Raises:
            OrderNotFound: the order does not exist.
            InvalidOrderStatus: the order is DRAFT or already CANCELLED.
        """
        view = self._transition(
            order_id,
            OrderStatus.CANCELLED,
            lambda order: OrderCancelled(
                aggregate_id=order.id,
                previous_status=str(order.status),
                total_price=order.total_price,
            ),
        )
        logger.warning(
            "order.cancelled_without_refund",
            order_id=str(view.id),
            client_id=str(view.client_id),
            amount=str(view.total_price),
        )
        return view

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any) -> OrderOutputDTO:
        """Raises ``OrderNotFound`` if the order does not exist."""
        return self._view(order_id)

    def get_order_owner_email(self, order_id: Any) -> str:
        """Email of the client owning the order, for ownership checks."""
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order.client.email

    def get_draft_order(self, client_email: str) -> Optional[OrderOutputDTO]:
        """The client's cart, or ``None`` when no draft is open.

        Raises:
            ClientNotFound: no account with *client_email*.
        """
        client = self._get_client_by_email(client_email)
        draft = self._order_repo.get_draft_for_client(client.id)
        return OrderOutputDTO.from_entity(draft) if draft else None

    def get_order_history(self, client_email: str) -> List[OrderOutputDTO]:
        """The client's submitted, confirmed and cancelled orders, newest first."""
        client = self._get_client_by_email(client_email)
        return [
            OrderOutputDTO.from_entity(order)
            for order in self._order_repo.list_history_for_client(client.id)
        ]

    def get_all_orders(self) -> List[OrderOutputDTO]:
        """Every order, drafts included, newest first."""
        return [OrderOutputDTO.from_entity(order) for order in self._order_repo.list()]

    def search_orders_by_client_email(self, keyword: str) -> List[OrderOutputDTO]:
        """Orders whose client email contains *keyword* (case-insensitive)."""
        return [
            OrderOutputDTO.from_entity(order)
            for order in self._order_repo.search_by_client_email(keyword)
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _view(self, order_id: Any) -> OrderOutputDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return OrderOutputDTO.from_entity(order)

    def _get_client_by_email(self, email: str) -> Account:
        client = self._account_repo.get_by_email(email)
        if client is None:
            raise ClientNotFound(email)
        return client

    def _lock_client_by_email(self, email: str) -> Account:
        client = self._account_repo.get_by_email_for_update(email)
        if client is None:
            raise ClientNotFound(email)
        return client

    def _lock_order_and_client(self, order_id: Any) -> tuple[Order, Account]:
        """Lock the owning client row, then the order row."""
        snapshot = self._order_repo.get_by_id(order_id)
        if snapshot is None:
            raise OrderNotFound(order_id)
        client = self._account_repo.get_for_update(snapshot.client_id)
        order = self._order_repo.get_for_update(snapshot.id)
        return order, client

    def _transition(
        self,
        order_id: Any,
        new_status: str,
        event_factory: Callable[[Order], DomainEvent],
    ) -> OrderOutputDTO:
        order, _ = self._lock_order_and_client(order_id)

        if not order.can_transition_to(new_status):
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                current_status=order.status,
                new_status=new_status,
            )
            raise InvalidOrderStatus(order.id, _sources_of(new_status), order.status)

        event = event_factory(order)
        self._apply_transition(order, new_status, event)
        logger.info(
            "order.status_updated", order_id=str(order.id), new_status=new_status
        )
        return self._view(order.id)

    def _apply_transition(
        self, order: Order, new_status: str, event: DomainEvent, notes: str = ""
    ) -> None:
        old_status = order.status
        order.status = new_status
        order.add_domain_event(event)
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            old_status=old_status,
            notes=notes,
        )
