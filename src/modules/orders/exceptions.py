"""Order domain exceptions.

Raised by the Service Layer when business rules are violated. Each
exception carries the identifiers the API layer needs to build a
structured error response.
"""

from __future__ import annotations

from decimal import Decimal


class OrderNotFound(Exception):
    """The requested order does not exist."""

    def __init__(self, order_id, message: str | None = None) -> None:
        self.order_id = order_id
        super().__init__(message or f"Order {order_id} not found.")


class ClientNotFound(Exception):
    """No client account matches the given email."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Client {email} not found.")


class BookNotFound(Exception):
    """The book added to or removed from a cart is not in the catalog."""

    def __init__(self, book_id) -> None:
        self.book_id = book_id
        super().__init__(f"Book {book_id} not found.")


class LineItemNotFound(Exception):
    """The cart has no line for the given book."""

    def __init__(self, order_id, book_id) -> None:
        self.order_id = order_id
        self.book_id = book_id
        super().__init__(f"Order {order_id} has no line item for book {book_id}.")


class InvalidOrderStatus(Exception):
    """The operation is not allowed in the order's current status."""

    def __init__(self, order_id, expected, actual: str) -> None:
        self.order_id = order_id
        if isinstance(expected, str):
            expected = [expected]
        self.expected = sorted(expected)
        self.actual = actual
        super().__init__(
            f"Order {order_id} is {actual}; "
            f"expected {' or '.join(str(s) for s in self.expected)}."
        )


class InsufficientFunds(Exception):
    """The client's balance does not cover the order total."""

    def __init__(self, order_id, balance: Decimal, total_price: Decimal) -> None:
        self.order_id = order_id
        self.balance = balance
        self.total_price = total_price
        super().__init__(
            f"Insufficient funds to submit order {order_id}: balance {balance}, "
            f"order total {total_price}, shortfall {self.shortfall}."
        )

    @property
    def shortfall(self) -> Decimal:
        return self.total_price - self.balance


class EmptyOrder(Exception):
    """A draft without line items cannot be submitted."""

    def __init__(self, order_id) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} has no items.")
