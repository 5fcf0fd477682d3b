"""Book DTOs for the Service Layer.

- ``CreateBookDTO``: input for book creation.
- ``UpdateBookDTO``: input for partial book updates.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, field_validator

from modules.catalog.models import AgeGroup, Language


def _validate_price(v: Decimal) -> Decimal:
    if v <= 0:
        raise ValueError("Price must be greater than zero.")
    return v


def _validate_pages(v: int) -> int:
    if v < 1:
        raise ValueError("Number of pages must be at least 1.")
    return v


def _validate_publication_date(v: date) -> date:
    if v > date.today():
        raise ValueError("Publication date cannot be in the future.")
    return v


Price = Annotated[Decimal, AfterValidator(_validate_price)]
Pages = Annotated[int, AfterValidator(_validate_pages)]
PublicationDate = Annotated[date, AfterValidator(_validate_publication_date)]


class CreateBookDTO(BaseModel):
    """Immutable DTO for book creation requests."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    author: str
    genre: str
    price: Price
    pages: Pages
    publication_date: PublicationDate | None = None
    language: Language | None = None
    target_age_group: AgeGroup | None = None
    description: str = ""
    characteristics: str = ""

    @field_validator("name", "author", "genre")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field must not be blank.")
        return v


class UpdateBookDTO(BaseModel):
    """Immutable DTO for book update requests.

    All fields are optional; only supplied fields will be updated.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str | None = None
    author: str | None = None
    genre: str | None = None
    price: Price | None = None
    pages: Pages | None = None
    publication_date: PublicationDate | None = None
    language: Language | None = None
    target_age_group: AgeGroup | None = None
    description: str | None = None
    characteristics: str | None = None
