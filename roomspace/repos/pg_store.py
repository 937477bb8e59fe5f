from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Mapping, Optional
from uuid import UUID

import asyncpg

from roomspace.db import DatabaseNotConfiguredError, get_pool
from roomspace.domain.enums import Collection
from roomspace.errors import ConflictError, StoreUnavailableError
from roomspace.repos.base_repo import COLLECTIONS, CollectionSpec, Record, ResourceStore, ScopedCollection, iso

logger = logging.getLogger(__name__)

_SCHEMA = "public"
_TABLE_USERS = f"{_SCHEMA}.users"

_VALID_IDENT = re.compile(r"^[a-z_][a-z0-9_]*$")

# Writable columns per table (id/user_id/created_at/updated_at are managed here)
_COLUMNS: Dict[Collection, FrozenSet[str]] = {
    Collection.room_scans: frozenset(
        {"name", "dimensions", "scan_data", "room_type", "budget_min", "budget_max", "style"}
    ),
    Collection.saved_designs: frozenset(
        {
            "room_id", "style", "budget_min", "budget_max", "design_data", "furniture_items",
            "total_cost", "is_favorite", "notes", "custom_layout",
        }
    ),
    Collection.user_favorites: frozenset(
        {"product_asin", "product_title", "product_price", "product_image_url", "design_id"}
    ),
}

_SORTABLE = frozenset({"created_at", "updated_at"})
_UUID_COLUMNS = frozenset({"id", "user_id", "room_id", "design_id"})

_BACKEND_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, DatabaseNotConfiguredError)

PoolGetter = Callable[[], Awaitable[asyncpg.Pool]]


def _as_uuid(value: Any) -> Optional[UUID]:
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def _row_to_record(row: Optional[asyncpg.Record]) -> Record:
    if not row:
        return {}
    out: Record = {}
    for k, v in dict(row).items():
        if isinstance(v, UUID):
            out[k] = str(v)
        else:
            out[k] = iso(v)
    return out


def _ident(name: str) -> str:
    if not _VALID_IDENT.match(name):
        raise ValueError(f"invalid identifier: {name}")
    return name


class PostgresCollection(ScopedCollection):
    backend_errors = _BACKEND_ERRORS

    def __init__(self, spec: CollectionSpec, pool_getter: PoolGetter):
        super().__init__(spec)
        self._pool = pool_getter
        self._table = f"{_SCHEMA}.{_ident(spec.name.value)}"
        self._columns = _COLUMNS[spec.name]

    def _param(self, column: str, value: Any) -> Any:
        if column in _UUID_COLUMNS:
            return _as_uuid(value)
        return value

    def _where(self, filters: Mapping[str, Any], start: int = 1) -> tuple[str, List[Any]] | None:
        """
        Equality filters -> SQL. Returns None when a uuid filter can never
        match (malformed id), so callers can short-circuit to "not found".
        """
        clauses: List[str] = []
        params: List[Any] = []
        for col, value in filters.items():
            _ident(col)
            if col not in self._columns and col not in _UUID_COLUMNS:
                raise ValueError(f"unknown filter column {col} for {self.name}")
            p = self._param(col, value)
            if col in _UUID_COLUMNS and value is not None and p is None:
                return None
            if p is None:
                clauses.append(f"{col} IS NULL")
                continue
            params.append(p)
            clauses.append(f"{col} = ${start + len(params) - 1}")
        return " AND ".join(clauses) or "TRUE", params

    async def _insert(self, owner_id: str, record: Record) -> Record:
        cols = [c for c in record if c in self._columns]
        values = [self._param(c, record[c]) for c in cols]
        placeholders = ", ".join(f"${i}" for i in range(2, len(cols) + 2))
        col_sql = ", ".join(cols)
        pool = await self._pool()
        row = await pool.fetchrow(
            f"""
            INSERT INTO {self._table}(user_id{', ' + col_sql if cols else ''})
            VALUES ($1{', ' + placeholders if cols else ''})
            RETURNING *
            """,
            _as_uuid(owner_id),
            *values,
        )
        return _row_to_record(row)

    async def _select(
        self,
        owner_id: str,
        filters: Mapping[str, Any],
        order_by: Optional[str],
        descending: bool,
        limit: Optional[int],
    ) -> List[Record]:
        where = self._where(filters)
        if where is None:
            return []
        clause, params = where
        sql = f"SELECT * FROM {self._table} WHERE {clause}"
        if order_by:
            if order_by not in _SORTABLE:
                raise ValueError(f"cannot order by {order_by}")
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'} NULLS LAST"
        if limit:
            sql += f" LIMIT {int(limit)}"
        pool = await self._pool()
        rows = await pool.fetch(sql, *params)
        return [_row_to_record(r) for r in rows]

    async def _update(self, owner_id: str, record_id: str, patch: Record) -> Optional[Record]:
        rid = _as_uuid(record_id)
        if rid is None:
            return None
        cols = [c for c in patch if c in self._columns]
        sets = [f"{c} = ${i}" for i, c in enumerate(cols, start=3)]
        sets.append("updated_at = now()")
        pool = await self._pool()
        row = await pool.fetchrow(
            f"""
            UPDATE {self._table}
               SET {', '.join(sets)}
             WHERE id = $1 AND user_id = $2
            RETURNING *
            """,
            rid,
            _as_uuid(owner_id),
            *[self._param(c, patch[c]) for c in cols],
        )
        return _row_to_record(row) if row else None

    async def _delete(self, owner_id: str, filters: Mapping[str, Any]) -> int:
        where = self._where(filters)
        if where is None:
            return 0
        clause, params = where
        pool = await self._pool()
        rows = await pool.fetch(f"DELETE FROM {self._table} WHERE {clause} RETURNING id", *params)
        return len(rows)


class PostgresStore(ResourceStore):
    def __init__(self, pool_getter: PoolGetter = get_pool):
        self._pool = pool_getter
        self._collections = {name: PostgresCollection(spec, pool_getter) for name, spec in COLLECTIONS.items()}

    def collection(self, name: Collection) -> ScopedCollection:
        return self._collections[Collection(name)]

    async def create_account(self, record: Record) -> Record:
        try:
            pool = await self._pool()
            row = await pool.fetchrow(
                f"""
                INSERT INTO {_TABLE_USERS}(email, password_hash, first_name, last_name)
                VALUES (lower($1), $2, $3, $4)
                RETURNING *
                """,
                str(record["email"]).strip(),
                record["password_hash"],
                record.get("first_name"),
                record.get("last_name"),
            )
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("User already exists with this email") from e
        except _BACKEND_ERRORS as e:
            logger.error("account insert failed", extra={"error": str(e)})
            raise StoreUnavailableError("create user") from e
        return _row_to_record(row)

    async def find_account_by_email(self, email: str) -> Optional[Record]:
        try:
            pool = await self._pool()
            row = await pool.fetchrow(f"SELECT * FROM {_TABLE_USERS} WHERE email = lower($1)", str(email).strip())
        except _BACKEND_ERRORS as e:
            logger.error("account lookup failed", extra={"error": str(e)})
            raise StoreUnavailableError("fetch user") from e
        return _row_to_record(row) if row else None

    async def get_account(self, account_id: str) -> Optional[Record]:
        uid = _as_uuid(account_id)
        if uid is None:
            return None
        try:
            pool = await self._pool()
            row = await pool.fetchrow(f"SELECT * FROM {_TABLE_USERS} WHERE id = $1", uid)
        except _BACKEND_ERRORS as e:
            logger.error("account lookup failed", extra={"user_id": account_id, "error": str(e)})
            raise StoreUnavailableError("fetch user") from e
        return _row_to_record(row) if row else None

    async def ping(self) -> bool:
        try:
            pool = await self._pool()
            return bool(await pool.fetchval("SELECT 1"))
        except _BACKEND_ERRORS:
            return False
