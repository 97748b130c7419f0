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
"""Data subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from tilldata.core.config import config_properties


@config_properties(prefix="tilldata.data")
@dataclass
class DataProperties:
    """Backend selection and document-store ceilings (tilldata.data.*)."""

    backend: str = "relational"
    membership_ceiling: int = 10
    batch_ceiling: int = 500
    delete_page_size: int = 400
    init_retry_delay: float = 1.0
    seed_defaults: bool = True


@config_properties(prefix="tilldata.data.relational")
@dataclass
class RelationalProperties:
    """Configuration for the embedded relational store (tilldata.data.relational.*)."""

    url: str = "sqlite+aiosqlite:///./tilldata.db"
    echo: bool = False
    ddl_auto: str = "create"


@config_properties(prefix="tilldata.data.document")
@dataclass
class DocumentProperties:
    """Configuration for the remote document store (tilldata.data.document.*)."""

    uri: str = "mongodb://localhost:27017"
    database: str = "tilldata"
    server_selection_timeout_ms: int = 5000
