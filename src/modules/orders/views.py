"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet. Each action
resolves the caller, runs the authorization interceptor, then calls the
engine. Domain exceptions are translated into HTTP status codes; the view
never swallows generic exceptions.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.authorization import (
    Caller,
    Capability,
    authorize,
    resolve_caller,
)
from modules.accounts.exceptions import AccessDenied
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.catalog.repositories.django_repository import BookDjangoRepository
from modules.orders.exceptions import (
    BookNotFound,
    ClientNotFound,
    EmptyOrder,
    InsufficientFunds,
    InvalidOrderStatus,
    LineItemNotFound,
    OrderNotFound,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import AddToCartSerializer
from modules.orders.services import OrderService

NOT_FOUND_ERRORS = (OrderNotFound, ClientNotFound, BookNotFound, LineItemNotFound)
DOMAIN_ERRORS = (
    AccessDenied,
    InvalidOrderStatus,
    InsufficientFunds,
    EmptyOrder,
    *NOT_FOUND_ERRORS,
)


def _error_response(exc: Exception) -> Response:
    """Translate a domain exception into an HTTP response."""
    if isinstance(exc, AccessDenied):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, NOT_FOUND_ERRORS):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, InvalidOrderStatus):
        return Response(
            {
                "detail": str(exc),
                "order_id": str(exc.order_id),
                "expected": exc.expected,
                "actual": exc.actual,
            },
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, InsufficientFunds):
        return Response(
            {
                "detail": str(exc),
                "order_id": str(exc.order_id),
                "balance": str(exc.balance),
                "total_price": str(exc.total_price),
                "shortfall": str(exc.shortfall),
            },
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, EmptyOrder):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    raise exc


class OrderViewSet(GenericViewSet):
    """ViewSet for the cart and the order lifecycle.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    ``OrderService``.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            account_repository=AccountDjangoRepository(),
            book_repository=BookDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        self.throttle_scope = "order_submission" if self.action == "submit" else None
        return super().get_throttles()

    def _authorize(
        self, request: Request, capability: Capability, owner_email: Optional[str] = None
    ) -> Caller:
        caller = resolve_caller(request.user)
        authorize(caller, capability, owner_email=owner_email)
        return caller

    def _authorize_owner(self, request: Request, capability: Capability, pk) -> Caller:
        """Authorize an action on one order.

        Clients get ``AccessDenied`` both for orders of other clients and for
        ids that match no order, so order ids cannot be discovered.
        """
        caller = resolve_caller(request.user)
        owner_email = None
        if not caller.is_admin:
            try:
                owner_email = self._service.get_order_owner_email(pk)
            except OrderNotFound:
                # Denied exactly like an order owned by another client.
                authorize(caller, capability)
                raise
        authorize(caller, capability, owner_email=owner_email)
        return caller

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def cart(self, request: Request) -> Response:
        """GET /api/v1/orders/cart/

        204 when the client has no open cart.
        """
        try:
            caller = self._authorize(request, Capability.MANAGE_CART)
            view = self._service.get_draft_order(caller.email)
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        if view is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(view.model_dump(mode="json"))

    @action(detail=False, methods=["post"], url_path="cart/items")
    def add_cart_item(self, request: Request) -> Response:
        """POST /api/v1/orders/cart/items/ ``{"book_id": ...}``"""
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            caller = self._authorize(request, Capability.MANAGE_CART)
            view = self._service.add_book_to_cart(
                serializer.validated_data["book_id"], caller.email
            )
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(view.model_dump(mode="json"))

    @action(
        detail=False,
        methods=["delete"],
        url_path=r"cart/items/(?P<book_id>[^/.]+)",
    )
    def remove_cart_item(self, request: Request, book_id: str) -> Response:
        """DELETE /api/v1/orders/cart/items/{book_id}/"""
        try:
            caller = self._authorize(request, Capability.MANAGE_CART)
            view = self._service.remove_book_from_cart(book_id, caller.email)
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(view.model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def history(self, request: Request) -> Response:
        """GET /api/v1/orders/history/"""
        try:
            caller = self._authorize(request, Capability.VIEW_OWN_ORDERS)
            views = self._service.get_order_history(caller.email)
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response([v.model_dump(mode="json") for v in views])

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/?email=

        Every order newest first, or those whose client email contains
        ``email``. Paginated.
        """
        try:
            self._authorize(request, Capability.VIEW_ALL_ORDERS)
        except AccessDenied as exc:
            return _error_response(exc)

        keyword = request.query_params.get("email")
        if keyword:
            views = self._service.search_orders_by_client_email(keyword)
        else:
            views = self._service.get_all_orders()

        page = self.paginate_queryset(views)
        data = [v.model_dump(mode="json") for v in (page if page is not None else views)]
        if page is not None:
            return self.get_paginated_response(data)
        return Response(data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            self._authorize_owner(request, Capability.VIEW_ORDER, pk)
            view = self._service.get_order(pk)
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(view.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def submit(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/submit/"""
        try:
            self._authorize_owner(request, Capability.SUBMIT_ORDER, pk)
            view = self._service.submit_order(pk)
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(view.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/confirm/"""
        try:
            self._authorize(request, Capability.CONFIRM_ORDER)
            view = self._service.confirm_order(pk)
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(view.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        The debited amount is not refunded.
        """
        try:
            self._authorize_owner(request, Capability.CANCEL_ORDER, pk)
            view = self._service.cancel_order(pk)
        except DOMAIN_ERRORS as exc:
            return _error_response(exc)
        return Response(view.model_dump(mode="json"))
