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
"""Best-effort transaction handle for the document store."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from tilldata.data.handle_shapes import DeleteTarget, UpdateTarget, delete_arguments, update_arguments
from tilldata.data.query import QuerySpec
from tilldata.data.record import Record

if TYPE_CHECKING:
    from tilldata.data.document.adapter import DocumentStoreAdapter


class PseudoTransaction:
    """Forwards each operation to the adapter as soon as it is issued.

    Writes are applied in issue order and are **not** rolled back when the
    callback fails: anything written before the failure stays written.
    Key-addressed shapes follow :mod:`tilldata.data.handle_shapes`.
    """

    def __init__(self, adapter: DocumentStoreAdapter) -> None:
        self._adapter = adapter

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
        return await self._adapter.query(collection, spec)

    async def insert(self, collection: str, fields: Mapping[str, Any], explicit_id: str | None = None) -> str:
        return await self._adapter.insert(collection, fields, explicit_id)

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
        return await self._adapter.update(collection, fields, where, args)

    async def delete(
        self,
        collection: str,
        target: DeleteTarget = None,
        args: Sequence[Any] | None = None,
        *,
        where: str | None = None,
    ) -> int:
        where, args = delete_arguments(target, args, where)
        return await self._adapter.delete(collection, where, args)
