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
"""Unified exception hierarchy for tilldata.

All library exceptions inherit from TillDataException, so callers can catch
one base type or target a specific category.

Categories:
- BusinessException: Domain rule violations raised by callers (e.g. stock
  sufficiency checks inside a transaction). Never swallowed by the provider.
- InfrastructureException: Backend availability, initialization and
  operation failures.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class TillDataException(Exception):
    """Base exception for all tilldata errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "INIT_TRANSIENT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# ---------------------------------------------------------------------------
# Business
# ---------------------------------------------------------------------------


class BusinessException(TillDataException):
    """Domain rule violations and business logic errors."""


class InvalidRequestException(BusinessException):
    """Request is syntactically valid but semantically incorrect."""


class InsufficientStockException(BusinessException):
    """A stock movement would take a product's quantity below zero."""


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class InfrastructureException(TillDataException):
    """Backend failures: availability, initialization, queries and writes."""


class BackendUnavailableException(InfrastructureException):
    """The provider is not ``READY``; the operation was not attempted."""


class IndexingPreconditionException(InfrastructureException):
    """A compound filter + order combination needs a server-side index that does not exist."""


class BackendInitException(InfrastructureException):
    """The backend handshake failed."""


class TransientInitException(BackendInitException):
    """Handshake failed in a way that is worth retrying (network, timeouts)."""


class PermanentInitException(BackendInitException):
    """Handshake failed for a reason a retry will not fix (bad config, auth)."""


class OperationFailureException(InfrastructureException):
    """A query or write failed after the backend was initialized."""
