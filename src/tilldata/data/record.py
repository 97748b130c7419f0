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
"""Record shape shared by every backend."""

from __future__ import annotations

import time
from typing import Any, TypeAlias

Record: TypeAlias = dict[str, Any]
"""Field name -> scalar/None mapping; always carries ``id``."""

RecordId: TypeAlias = int | str
"""Auto-increment integer (relational) or string key (document store)."""


def now_millis() -> int:
    """Epoch milliseconds, the timestamp unit stored in ``created_at`` / ``updated_at``."""
    return int(time.time() * 1000)
