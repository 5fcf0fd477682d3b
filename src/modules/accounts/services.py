"""Account service layer (Use Cases).

Registration, administration (block / unblock, search) and balance
top-up. Balance changes always go through
``IAccountRepository.adjust_balance``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.contrib.auth import get_user_model
from django.db import transaction

from modules.accounts.exceptions import (
    AccountAlreadyExists,
    AccountNotFound,
    InvalidAmount,
)
from modules.accounts.models import Account, Role

if TYPE_CHECKING:
    from django.db import models

    from modules.accounts.dtos import RegisterAccountDTO
    from modules.accounts.repositories.interfaces import IAccountRepository

logger = structlog.get_logger(__name__)


class AccountService:
    """Application service for Account use-cases.

    Receives an ``IAccountRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IAccountRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def register_client(self, dto: RegisterAccountDTO) -> Account:
        """Create a login user and a CLIENT account with zero balance.

        Raises:
            AccountAlreadyExists: the email is already registered.
        """
        return self._register(dto, Role.CLIENT)

    @transaction.atomic
    def register_admin(self, dto: RegisterAccountDTO) -> Account:
        """Create a login user and an ADMIN account.

        Not exposed over HTTP; used from the Django shell to bootstrap
        the first administrator.
        """
        return self._register(dto, Role.ADMIN)

    def _register(self, dto: RegisterAccountDTO, role: Role) -> Account:
        log = logger.bind(email=dto.email, role=role)

        User = get_user_model()
        if (
            self._repo.get_by_email(dto.email)
            or User.objects.filter(username__iexact=dto.email).exists()
        ):
            log.warning("account.duplicate_email")
            raise AccountAlreadyExists(f"Account already exists with email {dto.email}.")

        user = User.objects.create_user(
            username=dto.email,
            email=dto.email,
            password=dto.password,
            first_name=dto.first_name,
            last_name=dto.last_name,
        )
        account = self._repo.save(
            Account(
                user=user,
                email=dto.email,
                first_name=dto.first_name,
                last_name=dto.last_name,
                role=role,
            )
        )
        log.info("account.registered", account_id=str(account.id))
        return account

    @transaction.atomic
    def block_account(self, id: str) -> Account:
        """Disable an account; the caller check rejects it from now on."""
        return self._set_active(id, False)

    @transaction.atomic
    def unblock_account(self, id: str) -> Account:
        return self._set_active(id, True)

    def _set_active(self, id: str, active: bool) -> Account:
        account = self._repo.get_for_update(id)
        if not account:
            raise AccountNotFound(f"Account {id} not found.")
        account.is_active = active
        account.save(update_fields=["is_active", "updated_at"])
        logger.info(
            "account.unblocked" if active else "account.blocked",
            account_id=str(account.id),
        )
        return account

    @transaction.atomic
    def top_up_balance(self, email: str, amount: Decimal) -> Account:
        """Credit *amount* to the account identified by *email*.

        Raises:
            InvalidAmount: *amount* is zero or negative (nothing is changed).
            BalanceLimitExceeded: the credited balance would exceed the
                account limit (nothing is changed).
            AccountNotFound: no account with *email*.
        """
        if amount is None or amount <= 0:
            logger.warning("account.invalid_top_up", email=email, amount=str(amount))
            raise InvalidAmount(amount)

        account = self._repo.get_by_email(email)
        if not account:
            raise AccountNotFound(f"Account {email} not found.")

        account = self._repo.adjust_balance(account.id, amount)
        logger.info(
            "account.topped_up",
            account_id=str(account.id),
            amount=str(amount),
            balance=str(account.balance),
        )
        return account

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_account(self, id: str) -> Account:
        """Raises ``AccountNotFound`` if the account does not exist."""
        account = self._repo.get_by_id(id)
        if not account:
            raise AccountNotFound(f"Account {id} not found.")
        return account

    def get_account_by_email(self, email: str) -> Account:
        """Raises ``AccountNotFound`` if the account does not exist."""
        account = self._repo.get_by_email(email)
        if not account:
            raise AccountNotFound(f"Account {email} not found.")
        return account

    def list_accounts(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> models.QuerySet[Account]:
        return self._repo.list(filters)

    def search_accounts_by_email(self, keyword: str) -> models.QuerySet[Account]:
        return self._repo.search_by_email(keyword)
