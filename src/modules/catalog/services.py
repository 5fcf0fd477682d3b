"""Book service layer (Use Cases).

Catalog management on top of the injected ``IBookRepository``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.catalog.exceptions import BookAlreadyExists, BookNotFound
from modules.catalog.models import Book

if TYPE_CHECKING:
    from django.db import models

    from modules.catalog.dtos import CreateBookDTO, UpdateBookDTO
    from modules.catalog.repositories.interfaces import IBookRepository

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = (
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


class BookService:
    """Application service for catalog use-cases.

    Receives an ``IBookRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IBookRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_book(self, dto: CreateBookDTO) -> Book:
        """Add a book to the catalog.

        Raises:
            BookAlreadyExists: a book with the same name exists.
        """
        log = logger.bind(name=dto.name)

        if self._repo.get_by_name(dto.name):
            log.warning("book.duplicate_name")
            raise BookAlreadyExists(f"Book '{dto.name}' already exists.")

        book = Book(
            name=dto.name,
            author=dto.author,
            genre=dto.genre,
            price=dto.price,
            pages=dto.pages,
            publication_date=dto.publication_date,
            language=dto.language or "",
            target_age_group=dto.target_age_group or "",
            description=dto.description,
            characteristics=dto.characteristics,
        )
        book = self._repo.save(book)
        log.info("book.created", book_id=str(book.id))
        return book

    @transaction.atomic
    def update_book(self, id: str, dto: UpdateBookDTO) -> Book:
        """Update the supplied fields of a book.

        A price change applies to every open draft on its next mutation;
        submitted orders keep the total they were debited for.

        Raises:
            BookNotFound: the book does not exist.
            BookAlreadyExists: the new name collides with another book.
        """
        book = self._repo.get_by_id(id)
        if not book:
            raise BookNotFound(f"Book {id} not found.")

        log = logger.bind(book_id=str(book.id))

        if dto.name is not None and dto.name.lower() != book.name.lower():
            if self._repo.get_by_name(dto.name):
                log.warning("book.duplicate_name", name=dto.name)
                raise BookAlreadyExists(f"Book '{dto.name}' already exists.")

        for field in UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(book, field, value)

        book = self._repo.save(book)
        log.info("book.updated")
        return book

    @transaction.atomic
    def delete_book(self, id: str) -> None:
        """Soft-delete a book; existing line items keep referencing it.

        Raises:
            BookNotFound: the book does not exist.
        """
        if not self._repo.delete(id):
            raise BookNotFound(f"Book {id} not found.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_book(self, id: str) -> Book:
        """Raises ``BookNotFound`` if the book does not exist."""
        book = self._repo.get_by_id(id)
        if not book:
            raise BookNotFound(f"Book {id} not found.")
        return book

    def list_books(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet[Book]:
        return self._repo.list(filters)

    def search_books(self, keyword: str) -> models.QuerySet[Book]:
        """Case-insensitive match on name, author or genre."""
        return self._repo.search(keyword)
