# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Relational backend: SQLAlchemy Core over an async engine.

Where and order-by strings pass straight through to SQL. Each positional
``?`` placeholder becomes a named bind parameter (``:p0``, ``:p1``, ...) and
the identifier alias ``documentId`` is rewritten to ``id`` so callers can
write the same filters against both backends.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

import structlog
from sqlalchemy import func, literal_column, select, text
from sqlalchemy import column as sa_column
from sqlalchemy import delete as sa_delete
from sqlalchemy import insert as sa_insert
from sqlalchemy import table as sa_table
from sqlalchemy import update as sa_update
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.elements import TextClause

from tilldata.config.properties.data import DataProperties, RelationalProperties
from tilldata.core.config import Config
from tilldata.data import catalog
from tilldata.data.handle_shapes import DeleteTarget, UpdateTarget, delete_arguments, update_arguments
from tilldata.data.query import QuerySpec
from tilldata.data.record import Record, now_millis
from tilldata.data.relational.schema import metadata

logger = structlog.get_logger("tilldata.data.relational")

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\?")
_DOCUMENT_ID_RE = re.compile(r"\bdocumentId\b")


def bind_where(where: str, args: Sequence[Any] | None = None) -> TextClause:
    """Turn ``"status = ? AND documentId = ?"`` into a bound :class:`TextClause`.

    Placeholders without a matching argument are left unbound; execution
    then fails with SQLAlchemy's missing-parameter error.
    """
    values = list(args or [])
    names: list[str] = []

    def _rename(_match: re.Match[str]) -> str:
        name = f"p{len(names)}"
        names.append(name)
        return f":{name}"

    sql = _PLACEHOLDER_RE.sub(_rename, _DOCUMENT_ID_RE.sub("id", where))
    params = {name: values[i] for i, name in enumerate(names) if i < len(values)}
    clause = text(sql)
    return clause.bindparams(**params) if params else clause


def _table(collection: str, fields: Mapping[str, Any] | None = None):
    return sa_table(collection, *(sa_column(name) for name in fields or {}))


# ---------------------------------------------------------------------------
# Connection-level operations
# ---------------------------------------------------------------------------


async def _select(conn: AsyncConnection, collection: str, spec: QuerySpec) -> list[Record]:
    stmt = select(literal_column("*")).select_from(_table(collection))
    if spec.where and spec.where.strip():
        stmt = stmt.where(bind_where(spec.where, spec.args))
    if spec.order_by and spec.order_by.strip():
        stmt = stmt.order_by(text(_DOCUMENT_ID_RE.sub("id", spec.order_by)))
    if spec.limit is not None:
        stmt = stmt.limit(spec.limit)
    if spec.offset:
        stmt = stmt.offset(spec.offset)
    result = await conn.execute(stmt)
    return [dict(row._mapping) for row in result]


async def _insert(conn: AsyncConnection, collection: str, fields: Mapping[str, Any]) -> int:
    stmt = sa_insert(_table(collection, fields))
    if fields:
        stmt = stmt.values(dict(fields))
    result = await conn.execute(stmt)
    return int(result.lastrowid)


async def _update(
    conn: AsyncConnection,
    collection: str,
    fields: Mapping[str, Any],
    where: str | None,
    args: Sequence[Any] | None,
) -> int:
    if not fields:
        return 0
    stmt = sa_update(_table(collection, fields)).values(dict(fields))
    if where and where.strip():
        stmt = stmt.where(bind_where(where, args))
    result = await conn.execute(stmt)
    return result.rowcount


async def _delete(conn: AsyncConnection, collection: str, where: str | None, args: Sequence[Any] | None) -> int:
    stmt = sa_delete(_table(collection))
    if where and where.strip():
        stmt = stmt.where(bind_where(where, args))
    result = await conn.execute(stmt)
    return result.rowcount


async def _seed_defaults(conn: AsyncConnection) -> None:
    """Insert missing default settings and, on an empty menu, the locked categories."""
    now = now_millis()
    existing = {row[0] for row in await conn.execute(select(sa_column("key")).select_from(_table(catalog.SETTINGS)))}
    for row in catalog.default_setting_rows(now):
        if row["key"] not in existing:
            await _insert(conn, catalog.SETTINGS, {**row, "created_at": now})

    count = (await conn.execute(select(func.count()).select_from(_table(catalog.CATEGORIES)))).scalar_one()
    if count == 0:
        for category in catalog.DEFAULT_CATEGORIES:
            await _insert(conn, catalog.CATEGORIES, {**category, "created_at": now, "updated_at": now})


# ---------------------------------------------------------------------------
# Transaction handle
# ---------------------------------------------------------------------------


class RelationalTransaction:
    """Transaction handle bound to one connection inside ``engine.begin()``.

    Accepts the key-addressed shapes of :mod:`tilldata.data.handle_shapes`.
    """

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def query(
        self,
        collection: str,
        where: str | None = None,
        args: Sequence[Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Record]:
        spec = QuerySpec(where=where, args=tuple(args or ()), order_by=order_by, limit=limit, offset=offset)
        return await _select(self._conn, collection, spec)

    async def insert(self, collection: str, fields: Mapping[str, Any], explicit_id: str | None = None) -> int:
        return await _insert(self._conn, collection, fields)

    async def update(
        self,
        collection: str,
        target: UpdateTarget,
        data: Mapping[str, Any] | str | None = None,
        args: Sequence[Any] | None = None,
        *,
        where: str | None = None,
    ) -> int:
        fields, where, args = update_arguments(collection, target, data, args, where)
        return await _update(self._conn, collection, fields, where, args)

    async def delete(
        self,
        collection: str,
        target: DeleteTarget = None,
        args: Sequence[Any] | None = None,
        *,
        where: str | None = None,
    ) -> int:
        where, args = delete_arguments(target, args, where)
        return await _delete(self._conn, collection, where, args)


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class RelationalAdapter:
    """Backend adapter for the embedded relational store.

    Implements ``start()`` / ``stop()`` with the ``ddl_auto`` schema strategy:

    * ``create``: create tables that don't exist and seed defaults
    * ``create-drop``: create on start, drop on stop
    * ``none``: skip DDL and seeding (externally managed schema)

    ``insert`` returns the auto-increment primary key; ``explicit_id`` is
    ignored. A caller-supplied ``id`` field is written as-is.
    """

    _VALID_DDL_MODES = {"none", "create", "create-drop"}

    def __init__(self, engine: AsyncEngine, *, ddl_auto: str = "create", seed_defaults: bool = True) -> None:
        self._engine = engine
        self._ddl_auto = ddl_auto if ddl_auto in self._VALID_DDL_MODES else "create"
        self._seed_defaults = seed_defaults

    @classmethod
    def from_url(
        cls, url: str, *, echo: bool = False, ddl_auto: str = "create", seed_defaults: bool = True
    ) -> RelationalAdapter:
        kwargs: dict[str, Any] = {"echo": echo}
        if make_url(url).database in (None, "", ":memory:"):
            # In-memory SQLite lives as long as its single connection.
            kwargs["poolclass"] = StaticPool
        return cls(create_async_engine(url, **kwargs), ddl_auto=ddl_auto, seed_defaults=seed_defaults)

    @classmethod
    def from_config(cls, config: Config) -> RelationalAdapter:
        props = config.bind(RelationalProperties)
        data = config.bind(DataProperties)
        return cls.from_url(props.url, echo=props.echo, ddl_auto=props.ddl_auto, seed_defaults=data.seed_defaults)

    @property
    def name(self) -> str:
        return "relational"

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        """Check connectivity, then apply the DDL strategy."""
        async with self._engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if self._ddl_auto in ("create", "create-drop"):
                logger.info("schema_initializing", ddl_auto=self._ddl_auto)
                await conn.run_sync(metadata.create_all)
                if self._seed_defaults:
                    await _seed_defaults(conn)
                logger.info("schema_initialized", tables=len(metadata.tables))

    async def stop(self) -> None:
        if self._ddl_auto == "create-drop":
            logger.info("schema_dropping", ddl_auto=self._ddl_auto)
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.drop_all)
        await self._engine.dispose()

    # -- operations ---------------------------------------------------------

    async def query(self, collection: str, spec: QuerySpec) -> list[Record]:
        async with self._engine.connect() as conn:
            return await _select(conn, collection, spec)

    async def insert(self, collection: str, fields: Mapping[str, Any], explicit_id: str | None = None) -> int:
        async with self._engine.begin() as conn:
            return await _insert(conn, collection, fields)

    async def update(
        self,
        collection: str,
        fields: Mapping[str, Any],
        where: str | None = None,
        args: Sequence[Any] | None = None,
    ) -> int:
        async with self._engine.begin() as conn:
            return await _update(conn, collection, fields, where, args)

    async def delete(self, collection: str, where: str | None = None, args: Sequence[Any] | None = None) -> int:
        async with self._engine.begin() as conn:
            return await _delete(conn, collection, where, args)

    async def transaction(self, fn: Callable[[RelationalTransaction], Awaitable[T]]) -> T:
        """Run *fn* atomically; any exception rolls back every write and propagates."""
        async with self._engine.begin() as conn:
            return await fn(RelationalTransaction(conn))

    async def reset_database(self) -> None:
        """Drop and recreate every table, then reseed defaults."""
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.drop_all)
            await conn.run_sync(metadata.create_all)
            await _seed_defaults(conn)
        logger.info("database_reset", backend=self.name, tables=len(metadata.tables))

    async def clear_business_data(self, seed_defaults: bool = True) -> None:
        """Empty the business tables in one transaction; users and settings are kept."""
        async with self._engine.begin() as conn:
            deleted = 0
            for collection in catalog.BUSINESS_COLLECTIONS:
                deleted += await _delete(conn, collection, None, None)
            if seed_defaults:
                await _seed_defaults(conn)
        logger.info("business_data_cleared", backend=self.name, deleted=deleted)

    async def health_check(self) -> dict[str, Any]:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"ok": True, "backend": self.name}
