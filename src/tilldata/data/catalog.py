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
"""Point-of-sale collection catalog and default rows.

The same collection name addresses the same entity set on both backends.
"""

from __future__ import annotations

from typing import Any

USERS = "users"
SETTINGS = "settings"
CATEGORIES = "categories"
PRODUCTS = "products"
TABLES = "tables"
CUSTOMERS = "customers"
ORDERS = "orders"
ORDER_ITEMS = "order_items"
PAYMENTS = "payments"
INVENTORY = "inventory"
INVENTORY_LEDGER = "inventory_ledger"
STOCK_TRANSACTIONS = "stock_transactions"
CREDIT_TRANSACTIONS = "credit_transactions"
SUPPLIERS = "suppliers"
PURCHASES = "purchases"
PURCHASE_ITEMS = "purchase_items"
PURCHASE_PAYMENTS = "purchase_payments"
EXPENSES = "expenses"
DAY_SESSIONS = "day_sessions"
AUDIT_LOG = "audit_log"

# Cleared by ``clear_business_data``; users and settings survive.
BUSINESS_COLLECTIONS: tuple[str, ...] = (
    ORDERS,
    ORDER_ITEMS,
    PAYMENTS,
    PRODUCTS,
    CATEGORIES,
    CUSTOMERS,
    INVENTORY,
    PURCHASES,
    PURCHASE_ITEMS,
    PURCHASE_PAYMENTS,
    EXPENSES,
    STOCK_TRANSACTIONS,
    CREDIT_TRANSACTIONS,
    TABLES,
    DAY_SESSIONS,
    AUDIT_LOG,
    SUPPLIERS,
    INVENTORY_LEDGER,
)

# Wiped by ``reset_database``.
ALL_COLLECTIONS: tuple[str, ...] = (USERS, SETTINGS, *BUSINESS_COLLECTIONS)

DEFAULT_SETTINGS: dict[str, str] = {
    "cafe_name": "चिया गढी",
    "cafe_name_en": "Chiya Gadhi",
    "tax_percent": "13",
    "discount_enabled": "1",
    "default_discount_percent": "0",
    "max_discount_percent": "50",
}

# Locked categories cannot be deleted from the menu screens.
DEFAULT_CATEGORIES: tuple[dict[str, Any], ...] = (
    {"name": "Food (Veg/Non Veg)", "display_order": 1, "is_active": 1, "is_locked": 1},
    {"name": "Cigarette", "display_order": 2, "is_active": 1, "is_locked": 1},
    {"name": "Beverages", "display_order": 3, "is_active": 1, "is_locked": 1},
)


def default_setting_rows(now: int) -> list[dict[str, Any]]:
    """Settings rows keyed by ``key``, stamped with *now*."""
    return [{"key": key, "value": value, "updated_at": now} for key, value in DEFAULT_SETTINGS.items()]
