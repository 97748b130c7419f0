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
"""tilldata data layer: one query dialect over a relational and a document backend.

Usage::

    from tilldata.data import create_database

    db = create_database()
    rows = await db.query("orders", where="status = ?", args=["paid"], order_by="created_at DESC")
"""

from tilldata.data.auto_configuration import create_backend, create_database
from tilldata.data.document import DocumentStoreAdapter, PseudoTransaction
from tilldata.data.ports.outbound import BackendPort, TransactionPort
from tilldata.data.provider import ProviderState, UnifiedDatabase
from tilldata.data.query import QuerySpec
from tilldata.data.query_parser import InClause, OrderByParser, ParsedWhere, Predicate, WhereClauseParser
from tilldata.data.record import Record, RecordId
from tilldata.data.relational import RelationalAdapter, RelationalTransaction
from tilldata.data.sort import Order, Sort, sort_records

__all__ = [
    # Provider
    "ProviderState",
    "UnifiedDatabase",
    "create_backend",
    "create_database",
    # Ports
    "BackendPort",
    "TransactionPort",
    # Adapters
    "DocumentStoreAdapter",
    "PseudoTransaction",
    "RelationalAdapter",
    "RelationalTransaction",
    # Query
    "InClause",
    "OrderByParser",
    "Order",
    "ParsedWhere",
    "Predicate",
    "QuerySpec",
    "Record",
    "RecordId",
    "Sort",
    "WhereClauseParser",
    "sort_records",
]
