"""Account model: identity, role tag and monetary balance.

Business rules implemented:
- Email is the identity key and is unique across accounts.
- Balance never drops below zero (database check constraint).
- A blocked account (``is_active=False``) is denied by the authorization
  interceptor before any service call.
- Balance is mutated only through ``IAccountRepository.adjust_balance``.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Role(models.TextChoices):
    CLIENT = "CLIENT", "Client"
    ADMIN = "ADMIN", "Admin"


class Account(BaseModel):
    """A client or administrator of the bookstore.

    ``user`` links the account to the Django auth user that authenticates
    the request; passwords live there and are hashed by Django.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="account",
    )
    email = models.EmailField(max_length=100, unique=True)
    first_name = models.CharField(max_length=50, blank=True, default="")
    last_name = models.CharField(max_length=50, blank=True, default="")
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.CLIENT)
    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "accounts"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name="accounts_balance_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["role"], name="accounts_role_idx"),
        ]

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"
