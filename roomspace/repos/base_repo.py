from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from roomspace.domain.enums import Collection
from roomspace.errors import AppError, NotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# Columns the store manages itself; a patch can never rewrite them.
PROTECTED_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})


# =============================================================================
# Public helpers (IMPORTABLE)
# =============================================================================
def encode_blob(value: Any) -> Optional[str]:
    """Serialize a structured field into an opaque text blob."""
    if value is None:
        return None
    return json.dumps(value, default=str, separators=(",", ":"))


def decode_blob(value: Any, *, default: Any = None) -> Any:
    """
    Reverse of encode_blob, tolerant of rows written by older clients.

    Handles:
    - dict/list/number -> returned as-is (already structured)
    - JSON text -> parsed
    - any other string -> returned raw
    - None/empty -> default
    """
    if value is None:
        return default
    if isinstance(value, (dict, list, int, float, bool)):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return default
        try:
            return json.loads(s)
        except ValueError:
            return value
    return value


def iso(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class CollectionSpec:
    name: Collection
    label: str    # "room scan"
    plural: str   # "room scans"
    not_found: str


COLLECTIONS: Dict[Collection, CollectionSpec] = {
    Collection.room_scans: CollectionSpec(Collection.room_scans, "room scan", "rooms", "Room not found"),
    Collection.saved_designs: CollectionSpec(Collection.saved_designs, "design", "designs", "Design not found"),
    Collection.user_favorites: CollectionSpec(Collection.user_favorites, "favorite", "favorites", "Favorite not found"),
}


# =============================================================================
# Owner-scoped collection
# =============================================================================
class ScopedCollection(ABC):
    """
    Uniform CRUD over one resource type.

    Every operation takes owner_id first and filters on it. A record owned by
    someone else is reported exactly like a missing one (NotFoundError).
    Backend failures surface as StoreUnavailableError("<verb> <label>").
    """

    # Exceptions from the backend that mean "store unavailable"
    backend_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(self, spec: CollectionSpec):
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name.value

    # -- backend hooks -------------------------------------------------------
    @abstractmethod
    async def _insert(self, owner_id: str, record: Record) -> Record: ...

    @abstractmethod
    async def _select(
        self,
        owner_id: str,
        filters: Mapping[str, Any],
        order_by: Optional[str],
        descending: bool,
        limit: Optional[int],
    ) -> List[Record]: ...

    @abstractmethod
    async def _update(self, owner_id: str, record_id: str, patch: Record) -> Optional[Record]: ...

    @abstractmethod
    async def _delete(self, owner_id: str, filters: Mapping[str, Any]) -> int: ...

    # -- public API ----------------------------------------------------------
    async def create(self, owner_id: str, record: Record) -> Record:
        owner = self._owner(owner_id)
        clean = {k: v for k, v in record.items() if k not in PROTECTED_FIELDS}
        return await self._guard(f"save {self.spec.label}", owner, None, self._insert(owner, clean))

    async def list(
        self,
        owner_id: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Record]:
        owner = self._owner(owner_id)
        scoped = {**(filters or {}), "user_id": owner}
        return await self._guard(
            f"fetch {self.spec.plural}", owner, None, self._select(owner, scoped, order_by, descending, limit)
        )

    async def get(self, owner_id: str, record_id: str) -> Record:
        owner = self._owner(owner_id)
        rows = await self._guard(
            f"fetch {self.spec.label}",
            owner,
            record_id,
            self._select(owner, {"id": str(record_id), "user_id": owner}, None, False, 1),
        )
        if not rows:
            raise NotFoundError(self.spec.not_found)
        return rows[0]

    async def update(self, owner_id: str, record_id: str, patch: Record) -> Record:
        owner = self._owner(owner_id)
        clean = {k: v for k, v in patch.items() if k not in PROTECTED_FIELDS}
        row = await self._guard(f"update {self.spec.label}", owner, record_id, self._update(owner, str(record_id), clean))
        if row is None:
            raise NotFoundError(self.spec.not_found)
        return row

    async def delete(self, owner_id: str, record_id: str) -> None:
        owner = self._owner(owner_id)
        n = await self._guard(
            f"delete {self.spec.label}", owner, record_id, self._delete(owner, {"id": str(record_id), "user_id": owner})
        )
        if not n:
            raise NotFoundError(self.spec.not_found)

    async def delete_where(self, owner_id: str, filters: Mapping[str, Any]) -> int:
        owner = self._owner(owner_id)
        return await self._guard(
            f"delete {self.spec.plural}", owner, None, self._delete(owner, {**filters, "user_id": owner})
        )

    # -- internals -----------------------------------------------------------
    @staticmethod
    def _owner(owner_id: str) -> str:
        owner = str(owner_id or "").strip()
        if not owner:
            raise ValueError("owner_id is required for scoped store access")
        return owner

    async def _guard(self, operation: str, owner_id: str, record_id: Optional[str], coro):
        try:
            return await coro
        except AppError:
            raise
        except self.backend_errors as e:
            logger.error(
                "store operation failed",
                extra={
                    "operation": operation,
                    "collection": self.name,
                    "owner_id": owner_id,
                    "resource_id": record_id,
                    "error": str(e),
                },
            )
            raise StoreUnavailableError(operation) from e


# =============================================================================
# Store
# =============================================================================
class ResourceStore(ABC):
    """All persistence the API needs: owner-scoped collections plus accounts."""

    @abstractmethod
    def collection(self, name: Collection) -> ScopedCollection: ...

    @property
    def rooms(self) -> ScopedCollection:
        return self.collection(Collection.room_scans)

    @property
    def designs(self) -> ScopedCollection:
        return self.collection(Collection.saved_designs)

    @property
    def favorites(self) -> ScopedCollection:
        return self.collection(Collection.user_favorites)

    # -- accounts (not owner-scoped) ------------------------------------------
    @abstractmethod
    async def create_account(self, record: Record) -> Record:
        """Insert an account; ConflictError if the email is taken."""

    @abstractmethod
    async def find_account_by_email(self, email: str) -> Optional[Record]: ...

    @abstractmethod
    async def get_account(self, account_id: str) -> Optional[Record]: ...

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
