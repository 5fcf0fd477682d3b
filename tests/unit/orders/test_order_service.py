"""Unit tests for the order lifecycle engine.

Scenarios run against the real repositories; a few edge cases use
mocked repositories to check the service's own branching.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.accounts.repositories.interfaces import IAccountRepository
from modules.catalog.repositories.interfaces import IBookRepository
from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import (
    BookNotFound,
    ClientNotFound,
    EmptyOrder,
    InsufficientFunds,
    InvalidOrderStatus,
    LineItemNotFound,
    OrderNotFound,
)
from modules.orders.models import LineItem, Order
from modules.orders.repositories.interfaces import IOrderRepository
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit

CLIENT = "client@example.com"


def _submitted_order(order_service, book, email=CLIENT):
    order_service.add_book_to_cart(book.id, email)
    draft = order_service.get_draft_order(email)
    return order_service.submit_order(draft.id)


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


class TestAddBookToCart:
    def test_opens_draft_on_first_add(self, order_service, client_account, book):
        view = order_service.add_book_to_cart(book.id, CLIENT)

        assert view.status == OrderStatus.DRAFT
        assert view.client_email == CLIENT
        assert view.total_price == Decimal("20.00")
        assert [(i.book_id, i.quantity) for i in view.items] == [(book.id, 1)]

    def test_second_add_increments_quantity(self, order_service, client_account, book):
        order_service.add_book_to_cart(book.id, CLIENT)
        view = order_service.add_book_to_cart(book.id, CLIENT)

        assert len(view.items) == 1
        assert view.items[0].quantity == 2
        assert view.items[0].subtotal == Decimal("40.00")
        assert view.total_price == Decimal("40.00")

    def test_reuses_the_same_draft(self, order_service, client_account, make_book):
        first = order_service.add_book_to_cart(make_book().id, CLIENT)
        second = order_service.add_book_to_cart(make_book(price="7.50").id, CLIENT)

        assert first.id == second.id
        assert second.total_price == Decimal("27.50")
        assert Order.objects.filter(client=client_account).count() == 1

    def test_draft_creation_recorded_once(self, order_service, client_account, book):
        order_service.add_book_to_cart(book.id, CLIENT)
        view = order_service.add_book_to_cart(book.id, CLIENT)

        assert [(h.old_status, h.new_status) for h in view.history] == [
            (None, OrderStatus.DRAFT)
        ]
        assert (
            OutboxEvent.objects.filter(
                event_type="OrderDraftCreated", aggregate_id=str(view.id)
            ).count()
            == 1
        )

    def test_unknown_client(self, order_service, book):
        with pytest.raises(ClientNotFound):
            order_service.add_book_to_cart(book.id, "ghost@example.com")

    def test_unknown_book_opens_no_draft(self, order_service, client_account):
        with pytest.raises(BookNotFound):
            order_service.add_book_to_cart(uuid4(), CLIENT)
        assert not Order.objects.exists()

    def test_deleted_book_cannot_be_added(self, order_service, client_account, book):
        book.delete()
        with pytest.raises(BookNotFound):
            order_service.add_book_to_cart(book.id, CLIENT)

    def test_client_email_is_case_insensitive(self, order_service, client_account, book):
        view = order_service.add_book_to_cart(book.id, "Client@Example.COM")
        assert view.client_id == client_account.id

    def test_new_draft_after_submission(self, order_service, client_account, book):
        submitted = _submitted_order(order_service, book)
        view = order_service.add_book_to_cart(book.id, CLIENT)

        assert view.id != submitted.id
        assert view.status == OrderStatus.DRAFT


class TestRemoveBookFromCart:
    def test_decrements_quantity(self, order_service, client_account, book):
        order_service.add_book_to_cart(book.id, CLIENT)
        order_service.add_book_to_cart(book.id, CLIENT)

        view = order_service.remove_book_from_cart(book.id, CLIENT)

        assert view.items[0].quantity == 1
        assert view.total_price == Decimal("20.00")

    def test_last_copy_deletes_line_but_keeps_draft(
        self, order_service, client_account, book
    ):
        added = order_service.add_book_to_cart(book.id, CLIENT)

        view = order_service.remove_book_from_cart(book.id, CLIENT)

        assert view.id == added.id
        assert view.items == []
        assert view.total_price == Decimal("0.00")
        assert view.status == OrderStatus.DRAFT
        assert not LineItem.objects.exists()

    def test_without_draft(self, order_service, client_account, book):
        with pytest.raises(OrderNotFound, match="has no draft order"):
            order_service.remove_book_from_cart(book.id, CLIENT)

    def test_book_not_in_cart(self, order_service, client_account, make_book):
        order_service.add_book_to_cart(make_book().id, CLIENT)
        other = make_book()
        with pytest.raises(LineItemNotFound):
            order_service.remove_book_from_cart(other.id, CLIENT)

    def test_works_for_book_deleted_from_catalog(
        self, order_service, client_account, book
    ):
        order_service.add_book_to_cart(book.id, CLIENT)
        book.delete()

        view = order_service.remove_book_from_cart(book.id, CLIENT)

        assert view.items == []

    def test_malformed_book_id(self, order_service, client_account, book):
        order_service.add_book_to_cart(book.id, CLIENT)
        with pytest.raises(LineItemNotFound):
            order_service.remove_book_from_cart("not-a-uuid", CLIENT)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class TestSubmitOrder:
    def test_debits_balance_and_submits(self, order_service, client_account, book):
        order_service.add_book_to_cart(book.id, CLIENT)
        order_service.add_book_to_cart(book.id, CLIENT)
        draft = order_service.get_draft_order(CLIENT)

        view = order_service.submit_order(draft.id)

        assert view.status == OrderStatus.SUBMITTED
        assert view.total_price == Decimal("40.00")
        assert view.client_balance == Decimal("60.00")
        client_account.refresh_from_db()
        assert client_account.balance == Decimal("60.00")
        assert order_service.get_draft_order(CLIENT) is None

    def test_history_records_debit(self, order_service, client_account, book):
        view = _submitted_order(order_service, book)

        last = view.history[-1]
        assert (last.old_status, last.new_status) == (
            OrderStatus.DRAFT,
            OrderStatus.SUBMITTED,
        )
        assert last.notes == "Debited 20.00"

    def test_exact_balance_is_enough(self, order_service, make_account, make_book):
        make_account("exact@example.com", balance="20.00")
        view = _submitted_order(order_service, make_book(price="20.00"), "exact@example.com")
        assert view.client_balance == Decimal("0.00")

    def test_insufficient_funds_changes_nothing(
        self, order_service, make_account, make_book
    ):
        account = make_account("poor@example.com", balance="10.00")
        order_service.add_book_to_cart(make_book(price="45.00").id, "poor@example.com")
        draft = order_service.get_draft_order("poor@example.com")

        with pytest.raises(InsufficientFunds) as exc_info:
            order_service.submit_order(draft.id)

        assert exc_info.value.shortfall == Decimal("35.00")
        account.refresh_from_db()
        assert account.balance == Decimal("10.00")
        assert Order.objects.get(id=draft.id).status == OrderStatus.DRAFT
        assert not OutboxEvent.objects.filter(event_type="OrderSubmitted").exists()

    def test_empty_draft_rejected(self, order_service, client_account, book):
        order_service.add_book_to_cart(book.id, CLIENT)
        view = order_service.remove_book_from_cart(book.id, CLIENT)

        with pytest.raises(EmptyOrder):
            order_service.submit_order(view.id)

    def test_submit_twice(self, order_service, client_account, book):
        view = _submitted_order(order_service, book)

        with pytest.raises(InvalidOrderStatus) as exc_info:
            order_service.submit_order(view.id)

        assert exc_info.value.expected == [OrderStatus.DRAFT]
        assert exc_info.value.actual == OrderStatus.SUBMITTED
        client_account.refresh_from_db()
        assert client_account.balance == Decimal("80.00")

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.submit_order(uuid4())

    def test_writes_outbox_event(self, order_service, client_account, book):
        view = _submitted_order(order_service, book)

        row = OutboxEvent.objects.get(event_type="OrderSubmitted")
        assert row.aggregate_id == str(view.id)
        assert row.topic == "orders"
        assert row.payload["total_price"] == "20.00"
        assert row.payload["client_id"] == str(client_account.id)


class TestPriceChanges:
    def test_draft_follows_price_on_next_mutation(
        self, order_service, client_account, make_book
    ):
        book = make_book(price="20.00")
        order_service.add_book_to_cart(book.id, CLIENT)

        book.price = Decimal("25.00")
        book.save()
        view = order_service.add_book_to_cart(book.id, CLIENT)

        assert view.total_price == Decimal("50.00")

    def test_submission_debits_stored_total(self, order_service, client_account, book):
        order_service.add_book_to_cart(book.id, CLIENT)
        draft = order_service.get_draft_order(CLIENT)

        book.price = Decimal("30.00")
        book.save()
        view = order_service.submit_order(draft.id)

        assert view.total_price == Decimal("20.00")
        assert view.client_balance == Decimal("80.00")

    def test_submitted_total_is_frozen(self, order_service, client_account, book):
        view = _submitted_order(order_service, book)

        book.price = Decimal("99.00")
        book.save()

        assert order_service.get_order(view.id).total_price == Decimal("20.00")


# ---------------------------------------------------------------------------
# Confirmation / cancellation
# ---------------------------------------------------------------------------


class TestConfirmAndCancel:
    def test_confirm_submitted(self, order_service, client_account, book):
        view = order_service.confirm_order(_submitted_order(order_service, book).id)

        assert view.status == OrderStatus.CONFIRMED
        assert view.client_balance == Decimal("80.00")

    def test_cancel_submitted_without_refund(self, order_service, client_account, book):
        submitted = _submitted_order(order_service, book)

        view = order_service.cancel_order(submitted.id)

        assert view.status == OrderStatus.CANCELLED
        client_account.refresh_from_db()
        assert client_account.balance == Decimal("80.00")

    def test_cancel_confirmed(self, order_service, client_account, book):
        submitted = _submitted_order(order_service, book)
        order_service.confirm_order(submitted.id)

        view = order_service.cancel_order(submitted.id)

        assert view.status == OrderStatus.CANCELLED
        assert [h.new_status for h in view.history] == [
            OrderStatus.DRAFT,
            OrderStatus.SUBMITTED,
            OrderStatus.CONFIRMED,
            OrderStatus.CANCELLED,
        ]
        payload = OutboxEvent.objects.get(event_type="OrderCancelled").payload
        assert payload["previous_status"] == OrderStatus.CONFIRMED

    def test_confirm_draft_rejected(self, order_service, client_account, book):
        draft = order_service.add_book_to_cart(book.id, CLIENT)
        with pytest.raises(InvalidOrderStatus) as exc_info:
            order_service.confirm_order(draft.id)
        assert exc_info.value.expected == [OrderStatus.SUBMITTED]

    def test_cancel_draft_rejected(self, order_service, client_account, book):
        draft = order_service.add_book_to_cart(book.id, CLIENT)
        with pytest.raises(InvalidOrderStatus) as exc_info:
            order_service.cancel_order(draft.id)
        assert exc_info.value.expected == [OrderStatus.CONFIRMED, OrderStatus.SUBMITTED]

    def test_cancelled_is_terminal(self, order_service, client_account, book):
        submitted = _submitted_order(order_service, book)
        order_service.cancel_order(submitted.id)

        with pytest.raises(InvalidOrderStatus):
            order_service.cancel_order(submitted.id)
        with pytest.raises(InvalidOrderStatus):
            order_service.confirm_order(submitted.id)

    def test_confirm_twice_rejected(self, order_service, client_account, book):
        submitted = _submitted_order(order_service, book)
        order_service.confirm_order(submitted.id)
        with pytest.raises(InvalidOrderStatus):
            order_service.confirm_order(submitted.id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_get_draft_order_none(self, order_service, client_account):
        assert order_service.get_draft_order(CLIENT) is None

    def test_get_draft_order_unknown_client(self, order_service):
        with pytest.raises(ClientNotFound):
            order_service.get_draft_order("ghost@example.com")

    def test_history_excludes_draft(self, order_service, client_account, make_book):
        first = _submitted_order(order_service, make_book())
        second = _submitted_order(order_service, make_book())
        order_service.add_book_to_cart(make_book().id, CLIENT)

        history = order_service.get_order_history(CLIENT)

        assert [v.id for v in history] == [second.id, first.id]

    def test_all_orders_newest_first_including_drafts(
        self, order_service, make_account, make_book
    ):
        make_account("a@example.com", balance="50.00")
        make_account("b@example.com", balance="50.00")
        submitted = _submitted_order(order_service, make_book(), "a@example.com")
        draft = order_service.add_book_to_cart(make_book().id, "b@example.com")

        assert [v.id for v in order_service.get_all_orders()] == [draft.id, submitted.id]

    def test_search_by_client_email(self, order_service, make_account, make_book):
        make_account("alice@books.com", balance="50.00")
        make_account("bob@other.com", balance="50.00")
        alice = order_service.add_book_to_cart(make_book().id, "alice@books.com")
        order_service.add_book_to_cart(make_book().id, "bob@other.com")

        assert [v.id for v in order_service.search_orders_by_client_email("BOOKS")] == [
            alice.id
        ]

    def test_get_order_owner_email(self, order_service, client_account, book):
        view = order_service.add_book_to_cart(book.id, CLIENT)
        assert order_service.get_order_owner_email(view.id) == CLIENT

    def test_get_order_malformed_id(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order("not-a-uuid")


# ---------------------------------------------------------------------------
# Mocked repositories
# ---------------------------------------------------------------------------


@pytest.fixture()
def mocked_service():
    order_repo = MagicMock(spec=IOrderRepository)
    account_repo = MagicMock(spec=IAccountRepository)
    book_repo = MagicMock(spec=IBookRepository)
    service = OrderService(
        order_repository=order_repo,
        account_repository=account_repo,
        book_repository=book_repo,
    )
    return service, order_repo, account_repo, book_repo


class TestWithMockedRepositories:
    def test_get_order_not_found(self, mocked_service):
        service, order_repo, _, _ = mocked_service
        order_repo.get_by_id.return_value = None

        with pytest.raises(OrderNotFound):
            service.get_order(uuid4())

    def test_missing_book_never_touches_orders(self, mocked_service):
        service, order_repo, account_repo, book_repo = mocked_service
        account_repo.get_by_email_for_update.return_value = MagicMock(id=uuid4())
        book_repo.get_by_id.return_value = None

        with pytest.raises(BookNotFound):
            service.add_book_to_cart(uuid4(), CLIENT)

        order_repo.create_draft.assert_not_called()
        order_repo.save_line_item.assert_not_called()

    def test_insufficient_funds_never_debits(self, mocked_service):
        service, order_repo, account_repo, _ = mocked_service
        order = MagicMock(status=OrderStatus.DRAFT, total_price=Decimal("45.00"))
        order.items.exists.return_value = True
        order_repo.get_by_id.return_value = order
        order_repo.get_for_update.return_value = order
        account_repo.get_for_update.return_value = MagicMock(
            id=uuid4(), balance=Decimal("10.00")
        )

        with pytest.raises(InsufficientFunds):
            service.submit_order(uuid4())

        account_repo.adjust_balance.assert_not_called()
        order_repo.save.assert_not_called()
