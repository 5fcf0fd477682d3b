"""Account API views.

Exposes the ``AccountService`` via HTTP using DRF ViewSets.
Every action resolves the caller and runs it through the authorization
interceptor first. Domain exceptions are translated into HTTP status
codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.authorization import Capability, authorize, resolve_caller
from modules.accounts.dtos import RegisterAccountDTO
from modules.accounts.exceptions import (
    AccessDenied,
    AccountAlreadyExists,
    AccountNotFound,
    InvalidAmount,
)
from modules.accounts.filters import AccountFilter
from modules.accounts.models import Account
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.accounts.serializers import (
    AccountSerializer,
    RegisterAccountSerializer,
    TopUpSerializer,
)
from modules.accounts.services import AccountService


def _forbidden(exc: AccessDenied) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)


def _not_found() -> Response:
    return Response({"detail": "Account not found."}, status=status.HTTP_404_NOT_FOUND)


class AccountViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for account registration, self-service and administration."""

    queryset = Account.objects.all()
    serializer_class = AccountSerializer
    filterset_class = AccountFilter

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AccountService(repository=AccountDjangoRepository())

    def get_permissions(self):
        if self.action == "register":
            return [AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        keyword = self.request.query_params.get("email")
        if keyword:
            return self._service.search_accounts_by_email(keyword)
        return self._service.list_accounts()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"])
    def register(self, request: Request) -> Response:
        """POST /api/v1/accounts/register/"""
        serializer = RegisterAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = RegisterAccountDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": [err["msg"] for err in exc.errors()]},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            account = self._service.register_client(dto)
        except AccountAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Self-service
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"])
    def me(self, request: Request) -> Response:
        """GET /api/v1/accounts/me/"""
        try:
            caller = resolve_caller(request.user)
        except AccessDenied as exc:
            return _forbidden(exc)
        try:
            account = self._service.get_account(str(caller.account_id))
        except AccountNotFound:
            return _not_found()
        return Response(AccountSerializer(account).data)

    @action(detail=False, methods=["post"], url_path="me/top-up")
    def top_up(self, request: Request) -> Response:
        """POST /api/v1/accounts/me/top-up/"""
        serializer = TopUpSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            caller = resolve_caller(request.user)
            authorize(caller, Capability.TOP_UP_BALANCE, owner_email=caller.email)
        except AccessDenied as exc:
            return _forbidden(exc)

        try:
            account = self._service.top_up_balance(
                caller.email, serializer.validated_data["amount"]
            )
        except InvalidAmount as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except AccountNotFound:
            return _not_found()

        return Response(AccountSerializer(account).data)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def list(self, request: Request, *args, **kwargs) -> Response:
        """GET /api/v1/accounts/?email=&role=&active="""
        try:
            authorize(resolve_caller(request.user), Capability.MANAGE_ACCOUNTS)
        except AccessDenied as exc:
            return _forbidden(exc)
        return super().list(request, *args, **kwargs)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/accounts/{pk}/"""
        try:
            authorize(resolve_caller(request.user), Capability.MANAGE_ACCOUNTS)
        except AccessDenied as exc:
            return _forbidden(exc)
        try:
            account = self._service.get_account(pk)
        except AccountNotFound:
            return _not_found()
        return Response(AccountSerializer(account).data)

    @action(detail=True, methods=["post"])
    def block(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/accounts/{pk}/block/"""
        return self._toggle(request, pk, self._service.block_account)

    @action(detail=True, methods=["post"])
    def unblock(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/accounts/{pk}/unblock/"""
        return self._toggle(request, pk, self._service.unblock_account)

    def _toggle(self, request: Request, pk: str | None, operation) -> Response:
        try:
            authorize(resolve_caller(request.user), Capability.MANAGE_ACCOUNTS)
        except AccessDenied as exc:
            return _forbidden(exc)
        try:
            account = operation(pk)
        except AccountNotFound:
            return _not_found()
        return Response(AccountSerializer(account).data)
