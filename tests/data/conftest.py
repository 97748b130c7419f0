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
"""Shared fixtures for the data layer tests.

Document-store tests run against ``mongomock_motor.AsyncMongoMockClient``.
``MongoSpy`` patches the mock collection class so every native call is
recorded, ``find`` failures can be injected per collection, and the admin
handle answers ``ping`` through an ``AsyncMock``.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from mongomock_motor import AsyncMongoMockClient

from tilldata.data.document.adapter import DocumentStoreAdapter
from tilldata.data.relational.adapter import RelationalAdapter

TEST_DATABASE = "tilldata_test"

RECORDED_METHODS = (
    "find",
    "find_one",
    "insert_one",
    "insert_many",
    "update_one",
    "update_many",
    "delete_one",
    "delete_many",
)

FindFailure = Callable[[dict[str, Any], dict[str, Any]], BaseException | None]


class MongoSpy:
    """Call log and fault switches around an ``AsyncMongoMockClient``."""

    def __init__(self) -> None:
        self.client = AsyncMongoMockClient()
        self.admin = MagicMock()
        self.admin.command = AsyncMock(return_value={"ok": 1.0})
        self.calls: list[tuple[str, str, Any, dict[str, Any]]] = []
        self.find_failures: dict[str, FindFailure] = {}

    def calls_to(self, collection: str, method: str) -> list[tuple[Any, dict[str, Any]]]:
        return [(f, kw) for c, m, f, kw in self.calls if c == collection and m == method]

    @property
    def pings(self) -> int:
        return self.admin.command.await_count

    def _wrap(self, method: str, original: Callable[..., Any]) -> Callable[..., Any]:
        def recorded(collection: Any, *args: Any, **kwargs: Any) -> Any:
            name = collection.name
            filter_doc = args[0] if args else kwargs.get("filter")
            self.calls.append((name, method, filter_doc, dict(kwargs)))
            failure = self.find_failures.get(name) if method == "find" else None
            if failure is not None:
                error = failure(filter_doc or {}, kwargs)
                if error is not None:
                    raise error
            return original(collection, *args, **kwargs)

        return recorded

    @contextlib.contextmanager
    def installed(self) -> Iterator[MongoSpy]:
        collection_cls = type(self.client[TEST_DATABASE]["settings"])
        with contextlib.ExitStack() as stack:
            for method in RECORDED_METHODS:
                original = getattr(collection_cls, method)
                stack.enter_context(patch.object(collection_cls, method, self._wrap(method, original)))
            stack.enter_context(patch.object(self.client, "admin", self.admin, create=True))
            stack.enter_context(patch.object(self.client, "close", MagicMock(), create=True))
            yield self


@pytest.fixture
def mongo() -> Iterator[MongoSpy]:
    spy = MongoSpy()
    with spy.installed():
        yield spy


@pytest.fixture
def mongo_client(mongo: MongoSpy) -> AsyncMongoMockClient:
    return mongo.client


@pytest.fixture
def document_adapter(mongo_client: AsyncMongoMockClient) -> DocumentStoreAdapter:
    return DocumentStoreAdapter(mongo_client, TEST_DATABASE, seed_defaults=False)


@pytest.fixture
async def relational_adapter():
    adapter = RelationalAdapter.from_url("sqlite+aiosqlite://", seed_defaults=False)
    await adapter.start()
    yield adapter
    await adapter.stop()
