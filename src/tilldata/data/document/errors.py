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
"""Classification of native document-store errors."""

from __future__ import annotations

from pymongo.errors import OperationFailure

from tilldata.kernel.exceptions import IndexingPreconditionException

# IndexNotFound, NoQueryExecutionPlans, QueryExceededMemoryLimitNoDiskUseAllowed
INDEX_PRECONDITION_CODES: frozenset[int] = frozenset({27, 291, 292})


def is_index_precondition_failure(exc: BaseException) -> bool:
    """True when *exc* means "this filter/order combination needs an index"."""
    if isinstance(exc, IndexingPreconditionException):
        return True
    if isinstance(exc, OperationFailure):
        if exc.code in INDEX_PRECONDITION_CODES:
            return True
        return "index" in str(exc).lower()
    return False

# Unauthorized
PERMISSION_DENIED_CODES: frozenset[int] = frozenset({13})


def is_permission_denied(exc: BaseException) -> bool:
    """True when the server was reached but refused the caller's credentials."""
    if isinstance(exc, OperationFailure):
        return exc.code in PERMISSION_DENIED_CODES or "not authorized" in str(exc).lower()
    return False
