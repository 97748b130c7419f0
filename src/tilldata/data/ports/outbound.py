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
"""Outbound ports: the contract every storage backend satisfies."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from tilldata.data.handle_shapes import DeleteTarget, UpdateTarget
from tilldata.data.query import QuerySpec
from tilldata.data.record import Record, RecordId
from tilldata.kernel.lifecycle import Lifecycle

T = TypeVar("T")


@runtime_checkable
class TransactionPort(Protocol):
    """Handle passed to a transaction callback.

    Operations on the handle always raise on failure; they are never
    converted into safe defaults. ``update`` and ``delete`` also take a
    record key in place of the where clause.
    """

    async def query(
        self,
        collection: str,
        where: str | None = None,
        args: Sequence[Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Record]: ...

    async def insert(self, collection: str, fields: Mapping[str, Any], explicit_id: str | None = None) -> RecordId: ...

    async def update(
        self,
        collection: str,
        target: UpdateTarget,
        data: Mapping[str, Any] | str | None = None,
        args: Sequence[Any] | None = None,
        *,
        where: str | None = None,
    ) -> int: ...

    async def delete(
        self,
        collection: str,
        target: DeleteTarget = None,
        args: Sequence[Any] | None = None,
        *,
        where: str | None = None,
    ) -> int: ...


@runtime_checkable
class BackendPort(Lifecycle, Protocol):
    """A storage backend behind the unified provider.

    Adapters raise on failure. Converting failures into safe defaults is the
    provider's job.
    """

    @property
    def name(self) -> str: ...

    async def query(self, collection: str, spec: QuerySpec) -> list[Record]: ...

    async def insert(self, collection: str, fields: Mapping[str, Any], explicit_id: str | None = None) -> RecordId: ...

    async def update(
        self,
        collection: str,
        fields: Mapping[str, Any],
        where: str | None = None,
        args: Sequence[Any] | None = None,
    ) -> int: ...

    async def delete(self, collection: str, where: str | None = None, args: Sequence[Any] | None = None) -> int: ...

    async def transaction(self, fn: Callable[[TransactionPort], Awaitable[T]]) -> T: ...

    async def reset_database(self) -> None: ...

    async def clear_business_data(self, seed_defaults: bool = True) -> None: ...

    async def health_check(self) -> dict[str, Any]: ...
