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
"""Composition root: build the provider and its backend from configuration."""

from __future__ import annotations

from pathlib import Path

import structlog

from tilldata.config.properties.data import DataProperties
from tilldata.core.config import Config
from tilldata.data.document.adapter import DocumentStoreAdapter
from tilldata.data.ports.outbound import BackendPort
from tilldata.data.provider import UnifiedDatabase
from tilldata.data.relational.adapter import RelationalAdapter
from tilldata.kernel.exceptions import InvalidRequestException

logger = structlog.get_logger("tilldata.data")

BACKENDS = ("relational", "document")


def create_backend(config: Config) -> BackendPort:
    """Instantiate the adapter named by ``tilldata.data.backend``."""
    backend = config.bind(DataProperties).backend.strip().lower()
    if backend == "relational":
        return RelationalAdapter.from_config(config)
    if backend == "document":
        return DocumentStoreAdapter.from_config(config)
    raise InvalidRequestException(
        f"Unknown data backend '{backend}'; expected one of {', '.join(BACKENDS)}",
        code="UNKNOWN_BACKEND",
        context={"backend": backend},
    )


def create_database(config: Config | None = None) -> UnifiedDatabase:
    """Build a :class:`UnifiedDatabase` from *config* (library defaults when omitted).

    The provider is not initialized here; the first operation (or an
    explicit ``init()``) runs the handshake.
    """
    config = config if config is not None else Config.from_sources(Path.cwd())
    props = config.bind(DataProperties)
    backend = create_backend(config)
    logger.info("database_created", backend=backend.name)
    return UnifiedDatabase(backend, init_retry_delay=props.init_retry_delay)
