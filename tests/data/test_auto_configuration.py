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
"""Tests for building the provider and its backend from configuration."""

from __future__ import annotations

import pytest

from tilldata.core.config import Config
from tilldata.data.auto_configuration import create_backend, create_database
from tilldata.data.document.adapter import DocumentStoreAdapter
from tilldata.data.provider import ProviderState, UnifiedDatabase
from tilldata.data.relational.adapter import RelationalAdapter
from tilldata.kernel.exceptions import InvalidRequestException


def _config(**data_section) -> Config:
    return Config({"tilldata": {"data": data_section}})


class TestCreateBackend:
    def test_relational_is_the_default(self):
        backend = create_backend(Config({}))
        assert isinstance(backend, RelationalAdapter)
        assert backend.name == "relational"

    def test_relational_url_from_config(self):
        backend = create_backend(_config(backend="relational", relational={"url": "sqlite+aiosqlite://"}))
        assert isinstance(backend, RelationalAdapter)
        assert str(backend.engine.url) == "sqlite+aiosqlite://"

    def test_document_backend(self):
        config = _config(
            backend="document",
            **{"membership-ceiling": 5},
            document={"uri": "mongodb://localhost:27017", "database": "shop"},
        )
        backend = create_backend(config)
        assert isinstance(backend, DocumentStoreAdapter)
        assert backend.name == "document"
        assert backend.database.name == "shop"

    def test_backend_name_is_case_insensitive(self):
        assert isinstance(create_backend(_config(backend=" Relational ")), RelationalAdapter)

    def test_env_var_selects_backend(self, monkeypatch):
        monkeypatch.setenv("TILLDATA_DATA_BACKEND", "document")
        assert isinstance(create_backend(Config({})), DocumentStoreAdapter)

    def test_unknown_backend_raises(self):
        with pytest.raises(InvalidRequestException) as exc_info:
            create_backend(_config(backend="firebird"))
        assert exc_info.value.code == "UNKNOWN_BACKEND"
        assert exc_info.value.context == {"backend": "firebird"}


class TestCreateDatabase:
    def test_returns_uninitialized_provider(self):
        db = create_database(_config(relational={"url": "sqlite+aiosqlite://"}))
        assert isinstance(db, UnifiedDatabase)
        assert db.state is ProviderState.UNINITIALIZED
        assert db.backend_name == "relational"

    def test_defaults_are_loaded_from_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / "tilldata.yaml").write_text(
            "tilldata:\n  data:\n    relational:\n      url: sqlite+aiosqlite://\n"
        )
        monkeypatch.chdir(tmp_path)
        db = create_database()
        assert str(db.backend.engine.url) == "sqlite+aiosqlite://"

    @pytest.mark.asyncio
    async def test_first_operation_initializes(self):
        db = create_database(_config(relational={"url": "sqlite+aiosqlite://"}))
        try:
            assert len(await db.query("categories")) == 3
            assert db.state is ProviderState.READY
        finally:
            await db.close()
