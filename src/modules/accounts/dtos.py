"""Account DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``RegisterAccountDTO``: input for client self-registration.
- ``AccountOutputDTO``: output for account API responses.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

if TYPE_CHECKING:
    from modules.accounts.models import Account

PASSWORD_SPECIAL_CHARACTERS = "@#$%^&+=!()_.,:;?-"
PASSWORD_PATTERN = re.compile(
    r"^(?=.*\d)(?=.*[a-z])(?=.*[A-Z])"
    rf"(?=.*[{re.escape(PASSWORD_SPECIAL_CHARACTERS)}]).{{8,}}$"
)


class RegisterAccountDTO(BaseModel):
    """Immutable DTO for registration requests.

    Validates:
    - ``email`` is well-formed and is stored lower-cased.
    - ``password`` has at least 8 characters with a digit, a lower-case
      letter, an upper-case letter and a special character.
    - names, when given, are 2-50 characters.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    email: EmailStr
    password: str
    first_name: str = ""
    last_name: str = ""

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        if not PASSWORD_PATTERN.match(v):
            raise ValueError(
                "Password must have at least 8 characters, including a digit, "
                "a lower-case letter, an upper-case letter and a special character."
            )
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def name_length(cls, v: str) -> str:
        if v and not 2 <= len(v) <= 50:
            raise ValueError("Names must be between 2 and 50 characters.")
        return v


class AccountOutputDTO(BaseModel):
    """Immutable DTO for account API responses."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    role: str
    balance: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, account: Account) -> AccountOutputDTO:
        return cls(
            id=account.id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            role=account.role,
            balance=account.balance,
            is_active=account.is_active,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )
