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
"""Document-store backend: MongoDB through motor.

Query routing
-------------
1. **Point lookup**: a filter that is exactly ``documentId = ?`` (or
   ``id = ?``) with a string argument goes straight to ``find_one`` by key.
2. **Membership**: an ``IN`` clause is split into chunks of at most
   ``membership_ceiling`` values; one ``find`` per chunk runs concurrently,
   the results merge by ``id`` and are sorted, offset and limited in memory.
3. **General**: one native ``find`` with filter, sort, skip and limit. Sorted
   finds use a case-insensitive collation so the server orders text the same
   way the in-memory comparator does. When
   the server rejects the filter/sort combination for lack of an index the
   query is re-run without sort and window, then ordered in memory.

Offsets are best-effort: a positional skip over the current result set.
Concurrent writes can shift which records a given offset lands on.
"""

from __future__ import annotations

import asyncio
import secrets
import string
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

import structlog
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.collation import Collation, CollationStrength
from pymongo.errors import ConfigurationError, ConnectionFailure, OperationFailure

from tilldata.config.properties.data import DataProperties, DocumentProperties
from tilldata.core.config import Config
from tilldata.data import catalog
from tilldata.data.document.errors import is_index_precondition_failure
from tilldata.data.document.query_compiler import build_filter, build_sort, chunked
from tilldata.data.document.transaction import PseudoTransaction
from tilldata.data.query import QuerySpec
from tilldata.data.query_parser import InClause, point_lookup_key
from tilldata.data.record import Record, now_millis
from tilldata.data.sort import sort_records, window
from tilldata.kernel.exceptions import InvalidRequestException, PermanentInitException, TransientInitException

logger = structlog.get_logger("tilldata.data.document")

T = TypeVar("T")

KEY_ALPHABET = string.ascii_letters + string.digits
KEY_LENGTH = 20

# Secondary strength compares base letters only: "apple" < "Banana".
SORT_COLLATION = Collation(locale="en", strength=CollationStrength.SECONDARY)


def generate_key() -> str:
    """Random 20-character alphanumeric document key."""
    return "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_LENGTH))


def normalize(document: Mapping[str, Any]) -> Record:
    """Native document -> Record: ``_id`` becomes ``id``."""
    record = dict(document)
    record["id"] = record.pop("_id", record.get("id"))
    return record


class DocumentStoreAdapter:
    """Backend adapter for the remote document store.

    ``insert`` returns the string key. ``update`` and ``delete`` that do not
    address a single key read the matching ids first, then write them in
    batches of at most ``batch_ceiling`` ids; a batch covers the ids of one
    read snapshot, so records written concurrently may or may not be hit.
    """

    def __init__(
        self,
        client: Any,
        database: str,
        *,
        membership_ceiling: int = 10,
        batch_ceiling: int = 500,
        delete_page_size: int = 400,
        seed_defaults: bool = True,
    ) -> None:
        self._client = client
        self._db = client[database]
        self._database_name = database
        self._membership_ceiling = membership_ceiling
        self._batch_ceiling = batch_ceiling
        self._delete_page_size = min(delete_page_size, batch_ceiling)
        self._seed_defaults = seed_defaults

    @classmethod
    def from_uri(cls, uri: str, database: str, *, server_selection_timeout_ms: int = 5000, **kwargs: Any) -> DocumentStoreAdapter:
        try:
            client: AsyncIOMotorClient = AsyncIOMotorClient(  # type: ignore[type-arg]
                uri, serverSelectionTimeoutMS=server_selection_timeout_ms
            )
        except ConfigurationError as exc:
            raise PermanentInitException(
                f"Invalid document store URI: {exc}", code="INIT_CONFIG", context={"database": database}
            ) from exc
        return cls(client, database, **kwargs)

    @classmethod
    def from_config(cls, config: Config) -> DocumentStoreAdapter:
        props = config.bind(DocumentProperties)
        data = config.bind(DataProperties)
        return cls.from_uri(
            props.uri,
            props.database,
            server_selection_timeout_ms=props.server_selection_timeout_ms,
            membership_ceiling=data.membership_ceiling,
            batch_ceiling=data.batch_ceiling,
            delete_page_size=data.delete_page_size,
            seed_defaults=data.seed_defaults,
        )

    @property
    def name(self) -> str:
        return "document"

    @property
    def database(self) -> Any:
        return self._db

    # -- lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        """Ping the server, then seed default settings when the store is empty."""
        try:
            await self._client.admin.command("ping")
        except ConnectionFailure as exc:
            raise TransientInitException(
                f"Document store unreachable: {exc}", code="INIT_TRANSIENT", context={"database": self._database_name}
            ) from exc
        except (ConfigurationError, OperationFailure) as exc:
            raise PermanentInitException(
                f"Document store rejected the handshake: {exc}",
                code="INIT_PERMANENT",
                context={"database": self._database_name},
            ) from exc
        if self._seed_defaults:
            await self._seed_settings()

    async def stop(self) -> None:
        self._client.close()

    async def _seed_settings(self) -> None:
        settings = self._db[catalog.SETTINGS]
        try:
            if await settings.find_one({}) is not None:
                return
            now = now_millis()
            await settings.insert_many([{"_id": row["key"], **row} for row in catalog.default_setting_rows(now)])
            logger.info("default_settings_seeded", count=len(catalog.DEFAULT_SETTINGS))
        except OperationFailure as exc:
            # The store stays usable without default settings.
            logger.warning("default_settings_seed_failed", error=str(exc))

    # -- query --------------------------------------------------------------

    async def query(self, collection: str, spec: QuerySpec) -> list[Record]:
        if spec.limit is not None and spec.limit <= 0:
            return []
        key = point_lookup_key(spec.where, spec.args)
        if isinstance(key, str):
            document = await self._db[collection].find_one({"_id": key})
            records = [] if document is None else [normalize(document)]
            return window(records, spec.limit, spec.offset)

        in_clause = spec.parsed.in_clause
        if in_clause is not None:
            return await self._query_membership(collection, spec, in_clause)

        return await self._query_general(collection, spec)

    async def _query_membership(self, collection: str, spec: QuerySpec, in_clause: InClause) -> list[Record]:
        predicates = spec.parsed.predicates
        chunks = chunked(in_clause.values, self._membership_ceiling)
        tasks = [
            asyncio.ensure_future(self._find(collection, build_filter(predicates, in_clause, chunk))) for chunk in chunks
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        merged: dict[Any, Record] = {}
        for records in results:
            for record in records:
                merged[record["id"]] = record
        return window(sort_records(merged.values(), spec.sort), spec.limit, spec.offset)

    async def _query_general(self, collection: str, spec: QuerySpec) -> list[Record]:
        filter_doc = build_filter(spec.parsed.predicates)
        sort_spec = build_sort(spec.sort)
        try:
            return await self._find(collection, filter_doc, sort=sort_spec, skip=spec.offset, limit=spec.limit)
        except Exception as exc:
            if not is_index_precondition_failure(exc):
                raise
            logger.warning("index_precondition_fallback", collection=collection, order_by=spec.order_by, error=str(exc))
        records = await self._find(collection, filter_doc)
        return window(sort_records(records, spec.sort), spec.limit, spec.offset)

    async def _find(
        self,
        collection: str,
        filter_doc: dict[str, Any],
        *,
        sort: list[tuple[str, int]] | None = None,
        skip: int | None = None,
        limit: int | None = None,
        projection: dict[str, Any] | None = None,
    ) -> list[Record]:
        kwargs: dict[str, Any] = {}
        if projection:
            kwargs["projection"] = projection
        if sort:
            kwargs["sort"] = sort
            kwargs["collation"] = SORT_COLLATION
        if skip:
            kwargs["skip"] = skip
        if limit:
            kwargs["limit"] = limit
        cursor = self._db[collection].find(filter_doc, **kwargs)
        return [normalize(doc) for doc in await cursor.to_list(length=None)]

    async def _matching_ids(self, collection: str, where: str | None, args: Sequence[Any] | None) -> list[Any]:
        if where is None or not where.strip():
            records = await self._find(collection, {}, projection={"_id": 1})
        else:
            spec = QuerySpec(where=where, args=tuple(args or ()))
            if spec.parsed.dropped:
                # Writes require every clause to be understood.
                raise InvalidRequestException(
                    f"Cannot write to {collection}: unsupported where clause",
                    code="UNSUPPORTED_WHERE",
                    context={"collection": collection, "dropped": list(spec.parsed.dropped)},
                )
            records = await self.query(collection, spec)
        return [record["id"] for record in records]

    # -- writes -------------------------------------------------------------

    async def insert(self, collection: str, fields: Mapping[str, Any], explicit_id: str | None = None) -> str:
        document = {k: v for k, v in fields.items() if k not in ("id", "_id")}
        now = now_millis()
        document.setdefault("created_at", now)
        document.setdefault("updated_at", now)
        document["_id"] = explicit_id or generate_key()
        await self._db[collection].insert_one(document)
        return document["_id"]

    async def update(
        self,
        collection: str,
        fields: Mapping[str, Any],
        where: str | None = None,
        args: Sequence[Any] | None = None,
    ) -> int:
        changes = {k: v for k, v in fields.items() if k not in ("id", "_id")}
        changes["updated_at"] = now_millis()
        native = self._db[collection]

        key = point_lookup_key(where, args)
        if isinstance(key, str):
            result = await native.update_one({"_id": key}, {"$set": changes})
            return result.matched_count

        count = 0
        for batch in chunked(await self._matching_ids(collection, where, args), self._batch_ceiling):
            result = await native.update_many({"_id": {"$in": batch}}, {"$set": changes})
            count += result.matched_count
        logger.debug("documents_updated", collection=collection, count=count)
        return count

    async def delete(self, collection: str, where: str | None = None, args: Sequence[Any] | None = None) -> int:
        native = self._db[collection]
        if where is None or not where.strip():
            return await self.delete_all(collection)

        key = point_lookup_key(where, args)
        if isinstance(key, str):
            result = await native.delete_one({"_id": key})
            return result.deleted_count

        count = 0
        for batch in chunked(await self._matching_ids(collection, where, args), self._batch_ceiling):
            result = await native.delete_many({"_id": {"$in": batch}})
            count += result.deleted_count
        logger.debug("documents_deleted", collection=collection, count=count)
        return count

    async def delete_all(self, collection: str) -> int:
        """Empty *collection* page by page: fetch up to ``delete_page_size`` ids, delete them, repeat."""
        native = self._db[collection]
        total = 0
        while True:
            page = await self._find(collection, {}, projection={"_id": 1}, limit=self._delete_page_size)
            if not page:
                return total
            result = await native.delete_many({"_id": {"$in": [record["id"] for record in page]}})
            if not result.deleted_count:
                return total
            total += result.deleted_count

    async def transaction(self, fn: Callable[[PseudoTransaction], Awaitable[T]]) -> T:
        """Run *fn* against a :class:`PseudoTransaction`; there is no rollback."""
        return await fn(PseudoTransaction(self))

    # -- bulk ---------------------------------------------------------------

    async def reset_database(self) -> None:
        total = 0
        for collection in catalog.ALL_COLLECTIONS:
            total += await self.delete_all(collection)
        logger.info("database_reset", backend=self.name, deleted=total)
        await self._seed_settings()

    async def clear_business_data(self, seed_defaults: bool = True) -> None:
        total = 0
        for collection in catalog.BUSINESS_COLLECTIONS:
            total += await self.delete_all(collection)
        logger.info("business_data_cleared", backend=self.name, deleted=total)
        if seed_defaults:
            await self._seed_settings()

    async def health_check(self) -> dict[str, Any]:
        await self._client.admin.command("ping")
        return {"ok": True, "backend": self.name, "database": self._database_name}
