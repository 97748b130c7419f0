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
"""Argument shapes shared by the transaction handles of both backends.

Besides ``update(collection, fields, where, args)`` and
``delete(collection, where, args)``, a handle accepts a record key in place
of the where clause::

    await txn.update("orders", order_id, {"status": "paid"})
    await txn.delete("order_items", item_id)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from tilldata.kernel.exceptions import InvalidRequestException

KEY_WHERE = "documentId = ?"

UpdateTarget = Mapping[str, Any] | str | int
DeleteTarget = str | int | None


def update_arguments(
    collection: str,
    target: UpdateTarget,
    data: Mapping[str, Any] | str | None,
    args: Sequence[Any] | None,
    where: str | None,
) -> tuple[Mapping[str, Any], str | None, Sequence[Any] | None]:
    """Normalize either update shape to ``(fields, where, args)``."""
    if not isinstance(target, Mapping):
        if not isinstance(data, Mapping):
            raise InvalidRequestException(
                "update by key requires a fields mapping", context={"collection": collection, "key": target}
            )
        return data, KEY_WHERE, [target]
    if data is not None and not isinstance(data, str):
        raise InvalidRequestException("expected a where clause after the fields mapping", context={"collection": collection})
    return target, where if where is not None else data, args


def delete_arguments(
    target: DeleteTarget, args: Sequence[Any] | None, where: str | None
) -> tuple[str | None, Sequence[Any] | None]:
    """Normalize either delete shape to ``(where, args)``."""
    if isinstance(target, int) and not isinstance(target, bool):
        return KEY_WHERE, [target]
    # A bare key never contains a placeholder; a where clause always does.
    if isinstance(target, str) and args is None and "?" not in target:
        return KEY_WHERE, [target]
    return where if where is not None else target, args
