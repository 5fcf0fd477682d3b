"""Book DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.catalog.models import Book


class BookSerializer(serializers.ModelSerializer):
    """Read serializer for the Book resource."""

    class Meta:
        model = Book
        fields = [
            "id",
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
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
