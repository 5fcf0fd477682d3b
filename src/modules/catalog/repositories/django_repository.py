"""Django ORM implementation of the Book repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.catalog.models import Book
from modules.catalog.repositories.interfaces import IBookRepository

logger = structlog.get_logger(__name__)


class BookDjangoRepository(IBookRepository):
    """Concrete Book repository backed by Django ORM."""

    def get_by_id(self, id: Any) -> Optional[Book]:
        """Returns ``None`` for soft-deleted, non-existent or malformed IDs."""
        try:
            return Book.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_name(self, name: str) -> Optional[Book]:
        # Names of soft-deleted books stay reserved by the unique index.
        return Book.objects.filter(name__iexact=name).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet[Book]:
        queryset = Book.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def search(self, keyword: str) -> models.QuerySet[Book]:
        return Book.objects.alive().filter(
            models.Q(name__icontains=keyword)
            | models.Q(author__icontains=keyword)
            | models.Q(genre__icontains=keyword)
        )

    @transaction.atomic
    def save(self, entity: Book) -> Book:
        is_new = entity._state.adding
        entity.save()
        logger.info("book.saved", book_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        book = self.get_by_id(id)
        if not book:
            return False
        book.delete()
        logger.info("book.soft_deleted", book_id=str(id))
        return True
