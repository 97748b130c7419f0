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
"""Document-store backend (MongoDB via motor)."""

from tilldata.data.document.adapter import DocumentStoreAdapter, generate_key, normalize
from tilldata.data.document.errors import is_index_precondition_failure, is_permission_denied
from tilldata.data.document.query_compiler import build_filter, build_sort, chunked
from tilldata.data.document.transaction import PseudoTransaction

__all__ = [
    "DocumentStoreAdapter",
    "PseudoTransaction",
    "build_filter",
    "build_sort",
    "chunked",
    "generate_key",
    "is_index_precondition_failure",
    "is_permission_denied",
    "normalize",
]
