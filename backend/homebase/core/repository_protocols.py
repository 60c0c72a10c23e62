"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - Every DataStore write commits on its own (no cross-call transaction)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Table-generic store (insert/select/update/delete) mirrors the backend-as-a-service
      surface the household flows were written against; services stay storage-agnostic
      and an in-memory fake substitutes in tests
    - decrement() is a dedicated atomic conditional update: a plain update cannot
      express "col = col - 1 WHERE col > 0" without a read-then-write race
"""

from datetime import datetime
from typing import Any, Protocol

Row = dict[str, Any]
Filters = dict[str, Any]


class DataStore(Protocol):
    """Contract for relational persistence — implemented by shell.

    Filters are column → value equality; a None value matches SQL NULL.
    Failures raise DatabaseError (DuplicateKeyError on unique violations).
    """
    async def insert(self, table: str, row: Row) -> Row: ...
    async def select(
        self, table: str, filters: Filters, *, limit: int | None = None,
    ) -> list[Row]: ...
    async def select_one(self, table: str, filters: Filters) -> Row | None: ...
    async def count(self, table: str, filters: Filters) -> int: ...
    async def update(self, table: str, patch: Row, filters: Filters) -> int: ...
    async def delete(self, table: str, filters: Filters) -> int: ...
    async def decrement(self, table: str, column: str, filters: Filters) -> int: ...


class Clock(Protocol):
    """Port for time operations — enables deterministic testing."""
    def now(self) -> datetime:
        """Current timezone-aware UTC time."""
        ...
