from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import (
    EmptyOrder,
    InsufficientFunds,
    InvalidOrderStatus,
    LineItemNotFound,
    OrderNotFound,
)

pytestmark = pytest.mark.unit


class TestInvalidOrderStatus:
    def test_single_expected_status_becomes_list(self):
        exc = InvalidOrderStatus("o-1", OrderStatus.DRAFT, OrderStatus.SUBMITTED)
        assert exc.expected == ["DRAFT"]
        assert exc.actual == "SUBMITTED"
        assert str(exc) == "Order o-1 is SUBMITTED; expected DRAFT."

    def test_set_of_expected_statuses_is_sorted(self):
        exc = InvalidOrderStatus(
            "o-1", {OrderStatus.SUBMITTED, OrderStatus.CONFIRMED}, OrderStatus.DRAFT
        )
        assert exc.expected == ["CONFIRMED", "SUBMITTED"]
        assert "expected CONFIRMED or SUBMITTED" in str(exc)


class TestInsufficientFunds:
    def test_shortfall(self):
        exc = InsufficientFunds("o-1", Decimal("10.00"), Decimal("45.00"))
        assert exc.shortfall == Decimal("35.00")
        assert "shortfall 35.00" in str(exc)


def test_order_not_found_custom_message():
    exc = OrderNotFound(None, "Client x has no draft order.")
    assert exc.order_id is None
    assert str(exc) == "Client x has no draft order."


def test_line_item_not_found_keeps_ids():
    exc = LineItemNotFound("o-1", "b-1")
    assert (exc.order_id, exc.book_id) == ("o-1", "b-1")


def test_empty_order_message():
    assert str(EmptyOrder("o-1")) == "Order o-1 has no items."
