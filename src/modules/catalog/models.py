"""Book model for the catalog.

Business rules implemented:
- Book names are unique.
- Price is strictly positive and pages are at least 1 (database checks).
- Publication date, when known, is not in the future.
- Books are soft-deleted so past orders keep their line items.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import SoftDeleteModel


class Language(models.TextChoices):
    ENGLISH = "ENGLISH", "English"
    UKRAINIAN = "UKRAINIAN", "Ukrainian"
    SPANISH = "SPANISH", "Spanish"
    FRENCH = "FRENCH", "French"
    GERMAN = "GERMAN", "German"
    OTHER = "OTHER", "Other"


class AgeGroup(models.TextChoices):
    CHILD = "CHILD", "Child"
    TEEN = "TEEN", "Teen"
    ADULT = "ADULT", "Adult"
    OTHER = "OTHER", "Other"


class Book(SoftDeleteModel):
    """A priced item of the catalog.

    Orders read ``price`` live while they are drafts, so a price change is
    reflected in every open cart on its next mutation.
    """

    name = models.CharField(max_length=255, unique=True)
    author = models.CharField(max_length=100)
    genre = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    pages = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    publication_date = models.DateField(null=True, blank=True)
    language = models.CharField(
        max_length=20, choices=Language.choices, blank=True, default=""
    )
    target_age_group = models.CharField(
        max_length=20, choices=AgeGroup.choices, blank=True, default=""
    )
    description = models.TextField(blank=True, default="")
    characteristics = models.TextField(blank=True, default="")

    class Meta:
        db_table = "books"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="books_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(pages__gte=1),
                name="books_pages_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["author"], name="books_author_idx"),
            models.Index(fields=["genre"], name="books_genre_idx"),
        ]

    def clean(self) -> None:
        super().clean()
        if self.publication_date and self.publication_date > timezone.localdate():
            raise ValidationError(
                {"publication_date": "Publication date cannot be in the future."}
            )

    def __str__(self) -> str:
        return f"{self.name} by {self.author}"
