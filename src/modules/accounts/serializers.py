"""Account DRF serializers for API input/output.

Business logic lives in the Service Layer, which receives Pydantic DTOs
from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.accounts.models import Account


class RegisterAccountSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    first_name = serializers.CharField(required=False, default="", allow_blank=True)
    last_name = serializers.CharField(required=False, default="", allow_blank=True)


class TopUpSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class AccountSerializer(serializers.ModelSerializer):
    """Read serializer for the Account resource."""

    class Meta:
        model = Account
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "balance",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
