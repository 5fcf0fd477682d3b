"""Book repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.catalog.models import Book


class IBookRepository(IRepository["Book"]):
    """Repository contract for catalog books.

    Soft-deleted books are invisible to every look-up except ``get_by_name``.
    """

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Book]:
        """Retrieve a book by exact name (case-insensitive), deleted or not."""

    @abstractmethod
    def search(self, keyword: str) -> "models.QuerySet[Book]":
        """Books whose name, author or genre contains *keyword*."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a book by ID."""
