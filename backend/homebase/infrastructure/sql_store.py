"""SQL Data Store — DataStore protocol over SQLAlchemy Core and an AsyncSession.

Invariants:
    - Every write commits on its own; a failure rolls back only that write
    - Tables resolved by name from Base.metadata (unknown table/column → DatabaseError)
    - Rows returned as plain dicts: UUIDs as str, datetimes timezone-aware UTC
    - update/delete refuse empty filters (no accidental full-table writes)
    - decrement is a single conditional UPDATE (col > 0): no read-then-write race

Design Decisions:
    - SQLAlchemy Core over ORM objects: the protocol is table-generic, so Table objects
      are a closer fit than per-model classes (ORM models still own the schema)
    - String ids that are not valid UUIDs match nothing instead of raising: a bogus
      household id in a URL is a 404, not a 500
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import Table, Uuid, and_, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from homebase.core.enforce_invite import as_utc
from homebase.core.errors import DatabaseError, DuplicateKeyError
from homebase.core.repository_protocols import Filters, Row
from homebase.db.base import Base
import homebase.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)

_NO_MATCH = object()


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == "23505":
        return True
    text = str(orig).lower()
    return "unique" in text or "duplicate key" in text


def _coerce(column, value):
    """Convert str ids to uuid.UUID for UUID columns. Bad ids → _NO_MATCH."""
    if isinstance(column.type, Uuid) and isinstance(value, str):
        try:
            return uuid.UUID(value)
        except ValueError:
            return _NO_MATCH
    return value


def _to_row(mapping) -> Row:
    row = {}
    for key, value in mapping.items():
        if isinstance(value, uuid.UUID):
            value = str(value)
        elif isinstance(value, datetime):
            value = as_utc(value)
        row[key] = value
    return row


class SqlDataStore:
    """DataStore implementation backed by a SQLAlchemy AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._metadata = Base.metadata

    # ─── Resolution helpers ─────────────────────────────────────

    def _table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise DatabaseError(f"unknown table '{name}'", "resolve")
        return table

    def _column(self, table: Table, name: str):
        if name not in table.c:
            raise DatabaseError(
                f"unknown column '{table.name}.{name}'", "resolve",
            )
        return table.c[name]

    def _where(self, table: Table, filters: Filters):
        """Build equality clauses; None when a filter value can never match."""
        clauses = []
        for name, value in filters.items():
            column = self._column(table, name)
            if value is None:
                clauses.append(column.is_(None))
                continue
            coerced = _coerce(column, value)
            if coerced is _NO_MATCH:
                return None
            clauses.append(column == coerced)
        return clauses

    def _values(self, table: Table, values: Row, operation: str) -> Row:
        out = {}
        for name, value in values.items():
            coerced = _coerce(self._column(table, name), value)
            if coerced is _NO_MATCH:
                raise DatabaseError(
                    f"invalid value for '{table.name}.{name}'", operation,
                )
            out[name] = coerced
        return out

    async def _execute(self, stmt, operation: str, *, commit: bool):
        try:
            result = await self.db.execute(stmt)
            if commit:
                await self.db.commit()
            return result
        except IntegrityError as e:
            await self.db.rollback()
            if _is_unique_violation(e):
                logger.warning(f"Unique constraint violated on {operation}: {e.orig}")
                raise DuplicateKeyError("Unique constraint violated", operation)
            logger.error(f"DB integrity error on {operation}: {e.orig}")
            raise DatabaseError("Integrity constraint violated", operation)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"DB error on {operation}: {e}")
            raise DatabaseError("Database operation failed", operation)

    # ─── DataStore protocol ─────────────────────────────────────

    async def insert(self, table: str, row: Row) -> Row:
        t = self._table(table)
        stmt = insert(t).values(**self._values(t, row, "insert")).returning(*t.c)
        result = await self._execute(stmt, "insert", commit=False)
        inserted = _to_row(result.mappings().one())
        await self._commit("insert")
        return inserted

    async def select(
        self, table: str, filters: Filters, *, limit: int | None = None,
    ) -> list[Row]:
        t = self._table(table)
        clauses = self._where(t, filters)
        if clauses is None:
            return []
        stmt = select(t).where(and_(True, *clauses))
        if "created_at" in t.c:
            stmt = stmt.order_by(t.c.created_at)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._execute(stmt, "select", commit=False)
        return [_to_row(m) for m in result.mappings().all()]

    async def select_one(self, table: str, filters: Filters) -> Row | None:
        rows = await self.select(table, filters, limit=1)
        return rows[0] if rows else None

    async def count(self, table: str, filters: Filters) -> int:
        t = self._table(table)
        clauses = self._where(t, filters)
        if clauses is None:
            return 0
        stmt = select(func.count()).select_from(t).where(and_(True, *clauses))
        result = await self._execute(stmt, "count", commit=False)
        return int(result.scalar_one())

    async def update(self, table: str, patch: Row, filters: Filters) -> int:
        if not filters:
            raise ValueError("update requires at least one filter")
        t = self._table(table)
        clauses = self._where(t, filters)
        if clauses is None:
            return 0
        stmt = update(t).where(*clauses).values(**self._values(t, patch, "update"))
        result = await self._execute(stmt, "update", commit=True)
        return result.rowcount

    async def delete(self, table: str, filters: Filters) -> int:
        if not filters:
            raise ValueError("delete requires at least one filter")
        t = self._table(table)
        clauses = self._where(t, filters)
        if clauses is None:
            return 0
        result = await self._execute(delete(t).where(*clauses), "delete", commit=True)
        return result.rowcount

    async def decrement(self, table: str, column: str, filters: Filters) -> int:
        """UPDATE table SET column = column - 1 WHERE filters AND column > 0."""
        if not filters:
            raise ValueError("decrement requires at least one filter")
        t = self._table(table)
        col = self._column(t, column)
        clauses = self._where(t, filters)
        if clauses is None:
            return 0
        stmt = (
            update(t)
            .where(*clauses, col.is_not(None), col > 0)
            .values({col: col - 1})
        )
        result = await self._execute(stmt, "decrement", commit=True)
        return result.rowcount

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if _is_unique_violation(e):
                raise DuplicateKeyError("Unique constraint violated", operation)
            raise DatabaseError("Integrity constraint violated", operation)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"DB commit failed on {operation}: {e}")
            raise DatabaseError("Database commit failed", operation)
