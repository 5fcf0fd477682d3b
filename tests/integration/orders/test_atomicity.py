"""Submission is all-or-nothing across the order and account rows."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderStatusHistory

pytestmark = pytest.mark.integration

CLIENT = "client@example.com"


@pytest.fixture()
def draft(order_service, client_account, book):
    return order_service.add_book_to_cart(book.id, CLIENT)


def test_history_failure_rolls_back_debit(order_service, client_account, draft):
    with patch(
        "modules.orders.repositories.django_repository.OrderDjangoRepository.add_history",
        side_effect=RuntimeError("history store down"),
    ):
        with pytest.raises(RuntimeError):
            order_service.submit_order(draft.id)

    client_account.refresh_from_db()
    assert client_account.balance == Decimal("100.00")
    assert Order.objects.get(id=draft.id).status == OrderStatus.DRAFT
    assert not OutboxEvent.objects.filter(event_type="OrderSubmitted").exists()
    assert OrderStatusHistory.objects.filter(order_id=draft.id).count() == 1


def test_order_save_failure_rolls_back_debit(order_service, client_account, draft):
    with patch(
        "modules.orders.repositories.django_repository.OrderDjangoRepository.save",
        side_effect=RuntimeError("write failed"),
    ):
        with pytest.raises(RuntimeError):
            order_service.submit_order(draft.id)

    client_account.refresh_from_db()
    assert client_account.balance == Decimal("100.00")


def test_failed_cart_mutation_leaves_no_draft(order_service, client_account, book):
    with patch(
        "modules.orders.repositories.django_repository.OrderDjangoRepository.save_line_item",
        side_effect=RuntimeError("boom"),
    ):
        with pytest.raises(RuntimeError):
            order_service.add_book_to_cart(book.id, CLIENT)

    assert not Order.objects.exists()
    assert not OutboxEvent.objects.exists()
