"""Account domain exceptions.

Raised by the Service Layer and the authorization interceptor.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from decimal import Decimal


class AccountNotFound(Exception):
    """The requested account does not exist."""


class AccountAlreadyExists(Exception):
    """An account with the same email is already registered."""


class InvalidAmount(Exception):
    """A monetary amount cannot be applied to a balance."""

    def __init__(self, amount: Decimal, message: str | None = None) -> None:
        self.amount = amount
        super().__init__(message or f"Amount must be positive, got {amount}.")


class BalanceLimitExceeded(InvalidAmount):
    """Crediting the amount would exceed the largest balance an account can hold."""

    def __init__(self, account_id, balance: Decimal, delta: Decimal, limit: Decimal) -> None:
        self.account_id = account_id
        self.balance = balance
        self.limit = limit
        super().__init__(
            delta,
            f"Account {account_id}: balance {balance} plus {delta} "
            f"exceeds the limit of {limit}.",
        )


class NegativeBalance(Exception):
    """Applying a balance delta would leave the account below zero."""

    def __init__(self, account_id, balance: Decimal, delta: Decimal) -> None:
        self.account_id = account_id
        self.balance = balance
        self.delta = delta
        super().__init__(
            f"Account {account_id}: balance {balance} cannot absorb {delta}."
        )


class AccessDenied(Exception):
    """The caller may not perform the requested operation."""
