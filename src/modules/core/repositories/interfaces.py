"""Base repository contract shared by the account, catalog and order modules.

Services receive repositories through their constructor and only talk to
these abstractions; the Django ORM stays behind the concrete classes in
each module's ``repositories/django_repository.py``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Look-up, listing and persistence for one aggregate type ``T``.

    Look-ups return ``None`` for missing rows; services decide which
    domain exception that becomes.
    """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[T]: ...

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Any: ...

    @abstractmethod
    def save(self, entity: T) -> T: ...
