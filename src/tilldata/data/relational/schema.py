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
"""SQLAlchemy Core tables for the point-of-sale collections.

Every table carries an auto-increment ``id`` so relational rows satisfy the
same Record shape as documents. Timestamps are epoch milliseconds.
"""

from __future__ import annotations

from sqlalchemy import Column, Float, Index, Integer, MetaData, String, Table, Text, text

metadata = MetaData()


def _id() -> Column:
    return Column("id", Integer, primary_key=True, autoincrement=True)


def _timestamps() -> list[Column]:
    return [Column("created_at", Integer), Column("updated_at", Integer)]


def _synced() -> Column:
    return Column("synced", Integer, nullable=False, server_default=text("0"))


settings = Table(
    "settings",
    metadata,
    _id(),
    Column("key", String(100), unique=True, nullable=False),
    Column("value", Text, nullable=False),
    *_timestamps(),
)

users = Table(
    "users",
    metadata,
    _id(),
    Column("username", String(100), unique=True, nullable=False),
    Column("pin_hash", String(255), nullable=False),
    Column("email", String(255)),
    Column("role", String(20), nullable=False, server_default="cashier"),
    *_timestamps(),
)

categories = Table(
    "categories",
    metadata,
    _id(),
    Column("name", String(200), nullable=False),
    Column("display_order", Integer, nullable=False, server_default=text("0")),
    Column("is_active", Integer, nullable=False, server_default=text("1")),
    Column("is_locked", Integer, nullable=False, server_default=text("0")),
    *_timestamps(),
)

products = Table(
    "products",
    metadata,
    _id(),
    Column("category_id", Integer),
    Column("name", String(200), nullable=False),
    Column("description", Text),
    Column("price", Float, nullable=False, server_default=text("0")),
    Column("cost", Float, server_default=text("0")),
    Column("image_url", Text),
    Column("is_veg", Integer, nullable=False, server_default=text("1")),
    Column("is_active", Integer, nullable=False, server_default=text("1")),
    *_timestamps(),
)

tables = Table(
    "tables",
    metadata,
    _id(),
    Column("table_number", String(50), unique=True, nullable=False),
    Column("capacity", Integer, nullable=False, server_default=text("4")),
    Column("status", String(20), nullable=False, server_default="available"),
    Column("row_position", Integer),
    Column("column_position", Integer),
    Column("position_label", String(100)),
    Column("notes", Text),
    *_timestamps(),
)

customers = Table(
    "customers",
    metadata,
    _id(),
    Column("name", String(200), nullable=False),
    Column("phone", String(50)),
    Column("email", String(255)),
    Column("address", Text),
    Column("credit_limit", Float, server_default=text("0")),
    Column("credit_balance", Float, server_default=text("0")),
    Column("notes", Text),
    *_timestamps(),
)

orders = Table(
    "orders",
    metadata,
    _id(),
    Column("order_number", String(50), unique=True),
    Column("table_id", Integer),
    Column("customer_id", Integer),
    Column("order_type", String(20), server_default="dine_in"),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("subtotal", Float, nullable=False, server_default=text("0")),
    Column("discount_amount", Float, nullable=False, server_default=text("0")),
    Column("discount_percent", Float, nullable=False, server_default=text("0")),
    Column("tax_amount", Float, nullable=False, server_default=text("0")),
    Column("tax_percent", Float, nullable=False, server_default=text("0")),
    Column("total_amount", Float, nullable=False, server_default=text("0")),
    Column("payment_method", String(20)),
    Column("payment_status", String(20), nullable=False, server_default="unpaid"),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
    _synced(),
)

order_items = Table(
    "order_items",
    metadata,
    _id(),
    Column("order_id", Integer, nullable=False),
    Column("product_id", Integer, nullable=False),
    Column("quantity", Integer, nullable=False, server_default=text("1")),
    Column("unit_price", Float, nullable=False, server_default=text("0")),
    Column("total_price", Float, nullable=False, server_default=text("0")),
    Column("notes", Text),
    *_timestamps(),
)

payments = Table(
    "payments",
    metadata,
    _id(),
    Column("order_id", Integer, nullable=False),
    Column("amount", Float, nullable=False),
    Column("payment_method", String(20), nullable=False, server_default="cash"),
    Column("transaction_id", String(100)),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
    _synced(),
)

inventory = Table(
    "inventory",
    metadata,
    _id(),
    Column("product_id", Integer, nullable=False),
    Column("quantity", Float, nullable=False, server_default=text("0")),
    Column("unit", String(20), nullable=False, server_default="pcs"),
    Column("min_stock_level", Float, nullable=False, server_default=text("0")),
    *_timestamps(),
)

inventory_ledger = Table(
    "inventory_ledger",
    metadata,
    _id(),
    Column("product_id", Integer, nullable=False),
    Column("product_name", String(200)),
    Column("unit", String(20), nullable=False, server_default="pcs"),
    Column("quantity_in", Float, nullable=False, server_default=text("0")),
    Column("quantity_out", Float, nullable=False, server_default=text("0")),
    Column("unit_price", Float, server_default=text("0")),
    Column("transaction_type", String(30)),
    Column("reference_type", String(30)),
    Column("reference_id", Integer),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
    _synced(),
)

stock_transactions = Table(
    "stock_transactions",
    metadata,
    _id(),
    Column("product_id", Integer, nullable=False),
    Column("transaction_type", String(20), nullable=False),
    Column("quantity", Float, nullable=False),
    Column("unit_price", Float, server_default=text("0")),
    Column("reference_type", String(20)),
    Column("reference_id", Integer),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
    _synced(),
)

credit_transactions = Table(
    "credit_transactions",
    metadata,
    _id(),
    Column("customer_id", Integer, nullable=False),
    Column("order_id", Integer),
    Column("transaction_type", String(20), nullable=False),
    Column("amount", Float, nullable=False),
    Column("balance_after", Float),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
)

suppliers = Table(
    "suppliers",
    metadata,
    _id(),
    Column("name", String(200), unique=True, nullable=False),
    Column("contact_person", String(200)),
    Column("phone", String(50)),
    Column("email", String(255)),
    Column("address", Text),
    Column("notes", Text),
    Column("is_active", Integer, nullable=False, server_default=text("1")),
    *_timestamps(),
)

purchases = Table(
    "purchases",
    metadata,
    _id(),
    Column("purchase_number", String(50), unique=True),
    Column("bill_number", String(100)),
    Column("supplier_id", Integer),
    Column("supplier_name", String(200)),
    Column("total_amount", Float, nullable=False, server_default=text("0")),
    Column("paid_amount", Float, nullable=False, server_default=text("0")),
    Column("payment_status", String(20), server_default="unpaid"),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
    _synced(),
)

purchase_items = Table(
    "purchase_items",
    metadata,
    _id(),
    Column("purchase_id", Integer, nullable=False),
    Column("product_id", Integer, nullable=False),
    Column("quantity", Float, nullable=False),
    Column("unit_price", Float, nullable=False),
    Column("total_price", Float, nullable=False),
    *_timestamps(),
)

purchase_payments = Table(
    "purchase_payments",
    metadata,
    _id(),
    Column("purchase_id", Integer, nullable=False),
    Column("amount", Float, nullable=False),
    Column("payment_method", String(20)),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
    _synced(),
)

expenses = Table(
    "expenses",
    metadata,
    _id(),
    Column("expense_number", String(50), unique=True),
    Column("title", String(200), nullable=False),
    Column("category", String(100)),
    Column("amount", Float, nullable=False),
    Column("payment_method", String(20)),
    Column("notes", Text),
    Column("created_by", Integer),
    *_timestamps(),
    _synced(),
)

day_sessions = Table(
    "day_sessions",
    metadata,
    _id(),
    Column("session_date", String(20), nullable=False),
    Column("opened_at", Integer, nullable=False),
    Column("closed_at", Integer),
    Column("opening_cash", Float, nullable=False, server_default=text("0")),
    Column("closing_cash", Float),
    Column("total_sales", Float, nullable=False, server_default=text("0")),
    Column("total_orders", Integer, nullable=False, server_default=text("0")),
    Column("notes", Text),
    Column("opened_by", Integer),
    Column("closed_by", Integer),
    Column("is_closed", Integer, nullable=False, server_default=text("0")),
    *_timestamps(),
    _synced(),
)

audit_log = Table(
    "audit_log",
    metadata,
    _id(),
    Column("action", String(50), nullable=False),
    Column("entity_type", String(50), nullable=False),
    Column("entity_id", Integer),
    Column("user_id", Integer),
    Column("old_value", Text),
    Column("new_value", Text),
    *_timestamps(),
)

Index("idx_orders_created_at", orders.c.created_at)
Index("idx_order_items_order_id", order_items.c.order_id)
Index("idx_payments_order_id", payments.c.order_id)
Index("idx_inventory_ledger_product_id", inventory_ledger.c.product_id)
Index("idx_stock_transactions_product_id", stock_transactions.c.product_id)
Index("idx_day_sessions_session_date", day_sessions.c.session_date)
