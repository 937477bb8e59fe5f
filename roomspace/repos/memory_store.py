from __future__ import annotations

import asyncio
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from roomspace.domain.enums import Collection
from roomspace.errors import ConflictError
from roomspace.repos.base_repo import COLLECTIONS, CollectionSpec, Record, ResourceStore, ScopedCollection

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _matches(item: Record, filters: Mapping[str, Any]) -> bool:
    return all(item.get(k) == v for k, v in filters.items())


def _sort_key(column: str):
    # None sorts below any value
    return lambda item: (item.get(column) is not None, item.get(column) if item.get(column) is not None else "")


class InMemoryCollection(ScopedCollection):
    """
    One ordered list of rows. Queries are a linear scan with equality
    filters, an optional sort and an optional limit; nothing richer.
    """

    def __init__(self, spec: CollectionSpec, lock: asyncio.Lock):
        super().__init__(spec)
        self._rows: List[Record] = []
        self._lock = lock

    async def _insert(self, owner_id: str, record: Record) -> Record:
        row = {"id": str(uuid4()), **copy.deepcopy(record), "user_id": owner_id, "created_at": _now(), "updated_at": None}
        async with self._lock:
            self._rows.append(row)
        return copy.deepcopy(row)

    async def _select(
        self,
        owner_id: str,
        filters: Mapping[str, Any],
        order_by: Optional[str],
        descending: bool,
        limit: Optional[int],
    ) -> List[Record]:
        results = [r for r in self._rows if _matches(r, filters)]
        if order_by:
            results = sorted(results, key=_sort_key(order_by), reverse=descending)
        if limit:
            results = results[:limit]
        return copy.deepcopy(results)

    async def _update(self, owner_id: str, record_id: str, patch: Record) -> Optional[Record]:
        async with self._lock:
            for i, row in enumerate(self._rows):
                if row["id"] == record_id and row["user_id"] == owner_id:
                    updated = {**row, **copy.deepcopy(patch), "updated_at": _now()}
                    self._rows[i] = updated
                    return copy.deepcopy(updated)
        return None

    async def _delete(self, owner_id: str, filters: Mapping[str, Any]) -> int:
        async with self._lock:
            before = len(self._rows)
            self._rows = [r for r in self._rows if not _matches(r, filters)]
            return before - len(self._rows)


class InMemoryStore(ResourceStore):
    """Process-local store for development and tests. Create one per app/test."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._collections: Dict[Collection, InMemoryCollection] = {
            name: InMemoryCollection(spec, self._lock) for name, spec in COLLECTIONS.items()
        }
        self._accounts: List[Record] = []

    def collection(self, name: Collection) -> ScopedCollection:
        return self._collections[Collection(name)]

    async def create_account(self, record: Record) -> Record:
        email = str(record["email"]).strip().lower()
        async with self._lock:
            if any(a["email"] == email for a in self._accounts):
                raise ConflictError("User already exists with this email")
            row = {"id": str(uuid4()), **copy.deepcopy(record), "email": email, "created_at": _now()}
            self._accounts.append(row)
        logger.info("account created", extra={"user_id": row["id"], "store": "memory"})
        return copy.deepcopy(row)

    async def find_account_by_email(self, email: str) -> Optional[Record]:
        key = str(email).strip().lower()
        for a in self._accounts:
            if a["email"] == key:
                return copy.deepcopy(a)
        return None

    async def get_account(self, account_id: str) -> Optional[Record]:
        for a in self._accounts:
            if a["id"] == str(account_id):
                return copy.deepcopy(a)
        return None
