"""Account repository interface.

Extends ``IRepository[Account]`` with the ledger primitives the order
lifecycle relies on: look-up by email / auth user, row locking and the
single balance mutator ``adjust_balance``.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.accounts.models import Account


class IAccountRepository(IRepository["Account"]):
    """Repository contract for the Account aggregate."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[Account]:
        """Retrieve an account by email (case-insensitive)."""

    @abstractmethod
    def get_by_user(self, user: Any) -> Optional[Account]:
        """Retrieve the account linked to a Django auth user."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[Account]:
        """Retrieve an account holding a row-level lock."""

    @abstractmethod
    def get_by_email_for_update(self, email: str) -> Optional[Account]:
        """Retrieve an account by email holding a row-level lock."""

    @abstractmethod
    def search_by_email(self, keyword: str) -> "models.QuerySet[Account]":
        """Accounts whose email contains *keyword* (case-insensitive)."""

    @abstractmethod
    def adjust_balance(self, account_id: Any, delta: Decimal) -> Account:
        """Add *delta* (may be negative) to the balance under a row lock."""
