"""Authorization interceptor invoked by the REST boundary.

The views resolve a ``Caller`` from the authenticated Django user and call
``authorize`` before touching a service. Services never see identity.

Policy:

=================  ==========  ==================
Capability         ADMIN       CLIENT
=================  ==========  ==================
MANAGE_CART        -           yes
VIEW_OWN_ORDERS    -           yes
SUBMIT_ORDER       -           owner
CONFIRM_ORDER      yes         -
CANCEL_ORDER       yes         owner
VIEW_ORDER         yes         owner
VIEW_ALL_ORDERS    yes         -
MANAGE_CATALOG     yes         -
MANAGE_ACCOUNTS    yes         -
TOP_UP_BALANCE     -           owner
=================  ==========  ==================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional
from uuid import UUID

import structlog

from modules.accounts.exceptions import AccessDenied
from modules.accounts.models import Role
from modules.accounts.repositories.django_repository import AccountDjangoRepository

logger = structlog.get_logger(__name__)


class Capability(StrEnum):
    MANAGE_CART = "MANAGE_CART"
    VIEW_OWN_ORDERS = "VIEW_OWN_ORDERS"
    SUBMIT_ORDER = "SUBMIT_ORDER"
    CONFIRM_ORDER = "CONFIRM_ORDER"
    CANCEL_ORDER = "CANCEL_ORDER"
    VIEW_ORDER = "VIEW_ORDER"
    VIEW_ALL_ORDERS = "VIEW_ALL_ORDERS"
    MANAGE_CATALOG = "MANAGE_CATALOG"
    MANAGE_ACCOUNTS = "MANAGE_ACCOUNTS"
    TOP_UP_BALANCE = "TOP_UP_BALANCE"


ROLE_CAPABILITIES: dict[str, frozenset[Capability]] = {
    Role.ADMIN: frozenset(
        {
            Capability.CONFIRM_ORDER,
            Capability.CANCEL_ORDER,
            Capability.VIEW_ORDER,
            Capability.VIEW_ALL_ORDERS,
            Capability.MANAGE_CATALOG,
            Capability.MANAGE_ACCOUNTS,
        }
    ),
    Role.CLIENT: frozenset({Capability.MANAGE_CART, Capability.VIEW_OWN_ORDERS}),
}

# Granted only when the resource belongs to the caller.
OWNER_CAPABILITIES: dict[str, frozenset[Capability]] = {
    Role.ADMIN: frozenset(),
    Role.CLIENT: frozenset(
        {
            Capability.SUBMIT_ORDER,
            Capability.CANCEL_ORDER,
            Capability.VIEW_ORDER,
            Capability.TOP_UP_BALANCE,
        }
    ),
}


@dataclass(frozen=True)
class Caller:
    """The account on whose behalf a request is executed."""

    account_id: UUID
    email: str
    role: str
    is_active: bool

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def owns(self, owner_email: Optional[str]) -> bool:
        return owner_email is not None and owner_email.lower() == self.email.lower()


def resolve_caller(user: Any, repository: Optional[AccountDjangoRepository] = None) -> Caller:
    """Build the ``Caller`` for an authenticated Django user.

    Raises:
        AccessDenied: the user is anonymous or has no linked account.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        raise AccessDenied("Authentication required.")

    account = (repository or AccountDjangoRepository()).get_by_user(user)
    if account is None:
        logger.warning("authorization.no_account", user_id=getattr(user, "pk", None))
        raise AccessDenied("No account is linked to this user.")

    return Caller(
        account_id=account.id,
        email=account.email,
        role=account.role,
        is_active=account.is_active,
    )


def is_allowed(
    caller: Caller, capability: Capability, owner_email: Optional[str] = None
) -> bool:
    if not caller.is_active:
        return False
    if capability in ROLE_CAPABILITIES.get(caller.role, frozenset()):
        return True
    return capability in OWNER_CAPABILITIES.get(
        caller.role, frozenset()
    ) and caller.owns(owner_email)


def authorize(
    caller: Caller, capability: Capability, owner_email: Optional[str] = None
) -> None:
    """Raise ``AccessDenied`` unless *caller* may exercise *capability*.

    *owner_email* identifies the owner of the target resource for
    capabilities granted on own resources only.
    """
    if is_allowed(caller, capability, owner_email):
        return
    logger.warning(
        "authorization.denied",
        account_id=str(caller.account_id),
        role=caller.role,
        capability=str(capability),
        is_active=caller.is_active,
    )
    if not caller.is_active:
        raise AccessDenied("Account is blocked.")
    raise AccessDenied(f"Not allowed to {capability.lower().replace('_', ' ')}.")
