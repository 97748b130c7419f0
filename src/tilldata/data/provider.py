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
"""UnifiedDatabase: the single entry point application code talks to.

The provider owns one backend adapter for its whole life and is the only
thing that changes its state::

    UNINITIALIZED --init()--> INITIALIZING --+--> READY
                                             +--> FAILED --force_init()--> INITIALIZING

Reads never raise: failures become ``[]``. Generic writes become ``None``
(insert) or ``0`` (update, delete) unless the caller passes ``strict=True``,
in which case they raise :class:`OperationFailureException`. ``transaction()`` becomes ``None`` on
infrastructure failure but re-raises a :class:`BusinessException` thrown by
the callback, so a domain check can abort a half-applied operation.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

import structlog

from tilldata.data import catalog
from tilldata.data.document.errors import is_permission_denied
from tilldata.data.ports.outbound import BackendPort, TransactionPort
from tilldata.data.query import QuerySpec
from tilldata.data.record import Record, RecordId
from tilldata.kernel.exceptions import (
    BackendUnavailableException,
    BusinessException,
    OperationFailureException,
    TransientInitException,
)

logger = structlog.get_logger("tilldata.data.provider")

T = TypeVar("T")


class ProviderState(enum.Enum):
    """Initialization state of a :class:`UnifiedDatabase`."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class UnifiedDatabase:
    """Backend-agnostic data access with lazy, single-flight initialization."""

    def __init__(self, backend: BackendPort, *, init_retry_delay: float = 1.0) -> None:
        self._backend = backend
        self._init_retry_delay = init_retry_delay
        self._state = ProviderState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._last_error: BaseException | None = None

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def is_available(self) -> bool:
        return self._state is ProviderState.READY

    @property
    def backend_name(self) -> str:
        return self._backend.name

    @property
    def backend(self) -> BackendPort:
        return self._backend

    @property
    def last_error(self) -> BaseException | None:
        """The exception that moved the provider to ``FAILED``, if any."""
        return self._last_error

    def require_available(self) -> None:
        """Raise :class:`BackendUnavailableException` unless the provider is ``READY``."""
        if not self.is_available:
            raise BackendUnavailableException(
                f"{self.backend_name} backend is not available",
                code="BACKEND_UNAVAILABLE",
                context={"state": self._state.value},
            )

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def init(self, force_retry: bool = False) -> None:
        """Run the backend handshake once.

        Concurrent callers share the in-flight handshake. After a failure,
        only ``force_retry=True`` (or :meth:`force_init`) tries again.
        """
        if not force_retry and self._state is ProviderState.READY:
            return
        if not force_retry and self._state is ProviderState.FAILED:
            logger.info("init_skipped", backend=self.backend_name, reason="previous_failure")
            return

        async with self._lock:
            if not force_retry and self._state in (ProviderState.READY, ProviderState.FAILED):
                return
            if force_retry:
                logger.info("init_forced", backend=self.backend_name, previous_state=self._state.value)
            await self._handshake()

    async def force_init(self) -> None:
        await self.init(force_retry=True)

    async def _handshake(self) -> None:
        self._state = ProviderState.INITIALIZING
        try:
            await self._start_backend()
        except TransientInitException as exc:
            self._fail(exc, kind="transient")
            return
        except Exception as exc:
            self._fail(exc, kind="permanent")
            return
        self._last_error = None
        self._state = ProviderState.READY
        logger.info("init_succeeded", backend=self.backend_name)

    async def _start_backend(self) -> None:
        try:
            await self._backend.start()
        except TransientInitException as exc:
            logger.warning(
                "init_transient_retry", backend=self.backend_name, delay=self._init_retry_delay, error=str(exc)
            )
            await asyncio.sleep(self._init_retry_delay)
            await self._backend.start()

    def _fail(self, exc: BaseException, *, kind: str) -> None:
        self._last_error = exc
        self._state = ProviderState.FAILED
        logger.error(
            "init_failed",
            backend=self.backend_name,
            kind=kind,
            error=str(exc),
            hint="call force_init() to retry",
        )

    async def _ensure_available(self, operation: str, collection: str | None = None, *, strict: bool = False) -> bool:
        if self._state in (ProviderState.UNINITIALIZED, ProviderState.INITIALIZING):
            await self.init()
        if self.is_available:
            return True
        if strict:
            self.require_available()
        logger.warning(
            "operation_skipped",
            operation=operation,
            collection=collection,
            backend=self.backend_name,
            state=self._state.value,
        )
        return False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self.init()

    async def stop(self) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the backend handle, whether or not the handshake succeeded."""
        await self._backend.stop()
        self._state = ProviderState.UNINITIALIZED
        logger.info("closed", backend=self.backend_name)

    async def test_connection(self) -> bool:
        """Check the backend with a one-record read.

        A permission-denied answer still proves the store is reachable.
        """
        if not await self._ensure_available("test_connection"):
            return False
        try:
            await self._backend.query(catalog.CATEGORIES, QuerySpec(limit=1))
        except Exception as exc:
            if is_permission_denied(exc):
                logger.warning("connection_permission_denied", backend=self.backend_name, error=str(exc))
                return True
            logger.error("connection_test_failed", backend=self.backend_name, error=str(exc))
            return False
        return True

    async def health_check(self) -> dict[str, Any]:
        status: dict[str, Any] = {"ok": False, "backend": self.backend_name, "state": self._state.value}
        if not self.is_available:
            return status
        try:
            details = await self._backend.health_check()
        except Exception as exc:
            status["error"] = str(exc)
            return status
        return {**details, "state": self._state.value}

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def query(
        self,
        collection: str,
        where: str | None = None,
        args: Sequence[Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Record]:
        if not await self._ensure_available("query", collection):
            return []
        spec = QuerySpec(where=where, args=tuple(args or ()), order_by=order_by, limit=limit, offset=offset)
        try:
            return await self._backend.query(collection, spec)
        except Exception as exc:
            logger.error("query_failed", collection=collection, where=where, error=str(exc))
            return []

    async def insert(
        self, collection: str, fields: Mapping[str, Any], explicit_id: str | None = None, *, strict: bool = False
    ) -> RecordId | None:
        if not await self._ensure_available("insert", collection, strict=strict):
            return None
        try:
            return await self._backend.insert(collection, fields, explicit_id)
        except Exception as exc:
            logger.error("insert_failed", collection=collection, error=str(exc))
            if strict:
                if isinstance(exc, BusinessException):
                    raise
                raise self._strict_failure("insert", collection, exc) from exc
            return None

    async def update(
        self,
        collection: str,
        fields: Mapping[str, Any],
        where: str | None = None,
        args: Sequence[Any] | None = None,
        *,
        strict: bool = False,
    ) -> int:
        if not await self._ensure_available("update", collection, strict=strict):
            return 0
        try:
            return await self._backend.update(collection, fields, where, args)
        except Exception as exc:
            logger.error("update_failed", collection=collection, where=where, error=str(exc))
            if strict:
                if isinstance(exc, BusinessException):
                    raise
                raise self._strict_failure("update", collection, exc) from exc
            return 0

    async def delete(
        self,
        collection: str,
        where: str | None = None,
        args: Sequence[Any] | None = None,
        *,
        strict: bool = False,
    ) -> int:
        if not await self._ensure_available("delete", collection, strict=strict):
            return 0
        try:
            return await self._backend.delete(collection, where, args)
        except Exception as exc:
            logger.error("delete_failed", collection=collection, where=where, error=str(exc))
            if strict:
                if isinstance(exc, BusinessException):
                    raise
                raise self._strict_failure("delete", collection, exc) from exc
            return 0

    def _strict_failure(self, operation: str, collection: str, exc: Exception) -> OperationFailureException:
        return OperationFailureException(
            f"{operation} on {collection} failed: {exc}",
            code="WRITE_FAILED",
            context={"operation": operation, "collection": collection, "backend": self.backend_name},
        )

    async def transaction(self, fn: Callable[[TransactionPort], Awaitable[T]]) -> T | None:
        """Run *fn* with a transaction handle.

        Atomic on the relational backend. On the document store writes apply
        as issued and are not rolled back.
        """
        if not await self._ensure_available("transaction"):
            return None
        try:
            return await self._backend.transaction(fn)
        except BusinessException:
            raise
        except Exception as exc:
            logger.error("transaction_failed", backend=self.backend_name, error=str(exc))
            return None

    async def reset_database(self) -> None:
        """Wipe every collection, users and settings included, then reseed defaults."""
        if not await self._ensure_available("reset_database"):
            return
        try:
            await self._backend.reset_database()
        except Exception as exc:
            logger.error("reset_failed", backend=self.backend_name, error=str(exc))

    async def clear_business_data(self, seed_defaults: bool = True) -> None:
        """Wipe business collections; users and settings are kept."""
        if not await self._ensure_available("clear_business_data"):
            return
        try:
            await self._backend.clear_business_data(seed_defaults=seed_defaults)
        except Exception as exc:
            logger.error("clear_business_data_failed", backend=self.backend_name, error=str(exc))
