"""Order DRF serializers for API input.

Responses are rendered from ``OrderOutputDTO``; these serializers only
validate request payloads.
"""

from __future__ import annotations

from rest_framework import serializers


class AddToCartSerializer(serializers.Serializer):
    """Validates the add-to-cart request payload."""

    book_id = serializers.UUIDField()
