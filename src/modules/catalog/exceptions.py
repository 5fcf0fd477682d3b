"""Catalog domain exceptions."""

from __future__ import annotations


class BookNotFound(Exception):
    """The requested book does not exist or has been soft-deleted."""


class BookAlreadyExists(Exception):
    """A book with the same name is already in the catalog."""
