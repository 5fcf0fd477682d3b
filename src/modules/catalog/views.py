"""Book API views.

Reads are open to any authenticated caller; writes require the
MANAGE_CATALOG capability.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.authorization import Capability, authorize, resolve_caller
from modules.accounts.exceptions import AccessDenied
from modules.catalog.dtos import CreateBookDTO, UpdateBookDTO
from modules.catalog.exceptions import BookAlreadyExists, BookNotFound
from modules.catalog.filters import BookFilter
from modules.catalog.models import Book
from modules.catalog.repositories.django_repository import BookDjangoRepository
from modules.catalog.serializers import BookSerializer
from modules.catalog.services import BookService

BOOK_FIELDS = (
    "name",
    "author",
    "genre",
    "price",
    "pages",
    "publication_date",
    "language",
    "target_age_group",
    "description",
    "characteristics",
)


def _not_found() -> Response:
    return Response({"detail": "Book not found."}, status=status.HTTP_404_NOT_FOUND)


def _invalid(exc: PydanticValidationError) -> Response:
    return Response(
        {"detail": [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]},
        status=status.HTTP_400_BAD_REQUEST,
    )


class BookViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for catalog browsing and management.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    ``BookService``.
    """

    filterset_class = BookFilter
    ordering_fields = ["name", "author", "price", "publication_date"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    queryset = Book.objects.alive()
    serializer_class = BookSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = BookService(repository=BookDjangoRepository())

    def get_queryset(self):
        keyword = self.request.query_params.get("search")
        if keyword:
            return self._service.search_books(keyword)
        return self._service.list_books()

    def _authorize_write(self, request: Request) -> None:
        authorize(resolve_caller(request.user), Capability.MANAGE_CATALOG)

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/books/{pk}/"""
        try:
            book = self._service.get_book(pk)
        except BookNotFound:
            return _not_found()
        return Response(BookSerializer(book).data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/books/"""
        try:
            self._authorize_write(request)
        except AccessDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)

        data = {f: request.data[f] for f in BOOK_FIELDS if request.data.get(f) not in (None, "")}
        try:
            dto = CreateBookDTO(**data)
        except PydanticValidationError as exc:
            return _invalid(exc)

        try:
            book = self._service.create_book(dto)
        except BookAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(BookSerializer(book).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/books/{pk}/"""
        try:
            self._authorize_write(request)
        except AccessDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)

        data = {f: request.data[f] for f in BOOK_FIELDS if f in request.data}
        try:
            dto = UpdateBookDTO(**data)
        except PydanticValidationError as exc:
            return _invalid(exc)

        try:
            book = self._service.update_book(pk, dto)
        except BookNotFound:
            return _not_found()
        except BookAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(BookSerializer(book).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/books/{pk}/"""
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/books/{pk}/"""
        try:
            self._authorize_write(request)
        except AccessDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        try:
            self._service.delete_book(pk)
        except BookNotFound:
            return _not_found()
        return Response(status=status.HTTP_204_NO_CONTENT)
