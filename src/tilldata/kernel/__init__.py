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
"""tilldata kernel: exceptions and lifecycle contracts with zero external dependencies."""

from tilldata.kernel.exceptions import (
    BackendInitException,
    BackendUnavailableException,
    BusinessException,
    IndexingPreconditionException,
    InfrastructureException,
    InsufficientStockException,
    InvalidRequestException,
    OperationFailureException,
    PermanentInitException,
    TillDataException,
    TransientInitException,
)
from tilldata.kernel.lifecycle import Lifecycle

__all__ = [
    "BackendInitException",
    "BackendUnavailableException",
    "BusinessException",
    "IndexingPreconditionException",
    "InfrastructureException",
    "InsufficientStockException",
    "InvalidRequestException",
    "Lifecycle",
    "OperationFailureException",
    "PermanentInitException",
    "TillDataException",
    "TransientInitException",
]
