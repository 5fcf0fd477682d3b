"""Django ORM implementation of the Account repository.

Look-ups follow the Null Object pattern: they return ``None`` instead of
raising, and the Service Layer decides how to report a missing account.
``adjust_balance`` is the only code path that writes ``balance``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.accounts.exceptions import (
    AccountNotFound,
    BalanceLimitExceeded,
    NegativeBalance,
)
from modules.accounts.models import Account
from modules.accounts.repositories.interfaces import IAccountRepository

logger = structlog.get_logger(__name__)


def _max_balance() -> Decimal:
    """Largest value the ``balance`` column can store (9999999999.99)."""
    field = Account._meta.get_field("balance")
    step = Decimal(10) ** -field.decimal_places
    return Decimal(10) ** (field.max_digits - field.decimal_places) - step


class AccountDjangoRepository(IAccountRepository):
    """Concrete Account repository backed by Django ORM."""

    def get_by_id(self, id: Any) -> Optional[Account]:
        """Returns ``None`` for non-existent or malformed IDs."""
        try:
            return Account.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_email(self, email: str) -> Optional[Account]:
        return Account.objects.filter(email__iexact=email).first()

    def get_by_user(self, user: Any) -> Optional[Account]:
        if user is None or not getattr(user, "pk", None):
            return None
        return Account.objects.filter(user_id=user.pk).first()

    def get_for_update(self, id: Any) -> Optional[Account]:
        try:
            return Account.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_email_for_update(self, email: str) -> Optional[Account]:
        return Account.objects.select_for_update().filter(email__iexact=email).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet[Account]:
        """List accounts with optional Django ORM look-ups, newest first."""
        queryset = Account.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def search_by_email(self, keyword: str) -> models.QuerySet[Account]:
        return Account.objects.filter(email__icontains=keyword)

    @transaction.atomic
    def save(self, entity: Account) -> Account:
        is_new = entity._state.adding
        entity.save()
        logger.info("account.saved", account_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def adjust_balance(self, account_id: Any, delta: Decimal) -> Account:
        """Apply *delta* to the account balance.

        Runs inside the caller's transaction when there is one, so a debit
        commits or rolls back together with the order change that caused it.

        Raises:
            AccountNotFound: no account with *account_id*.
            NegativeBalance: the resulting balance would be below zero.
            BalanceLimitExceeded: the resulting balance would not fit the
                balance column.
        """
        account = self.get_for_update(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found.")

        new_balance = account.balance + delta
        if new_balance < 0:
            raise NegativeBalance(account.id, account.balance, delta)

        limit = _max_balance()
        if new_balance > limit:
            logger.warning(
                "account.balance_limit_exceeded",
                account_id=str(account.id),
                delta=str(delta),
                limit=str(limit),
            )
            raise BalanceLimitExceeded(account.id, account.balance, delta, limit)

        old_balance = account.balance
        account.balance = new_balance
        account.save(update_fields=["balance", "updated_at"])

        logger.info(
            "account.balance_adjusted",
            account_id=str(account.id),
            delta=str(delta),
            old_balance=str(old_balance),
            new_balance=str(new_balance),
        )
        return account
