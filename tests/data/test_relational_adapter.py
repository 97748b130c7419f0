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
"""Tests for RelationalAdapter over in-memory SQLite."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import DBAPIError, StatementError

from tilldata.data.query import QuerySpec
from tilldata.data.relational.adapter import RelationalAdapter, bind_where
from tilldata.kernel.exceptions import InsufficientStockException


async def _seed_products(adapter: RelationalAdapter) -> list[int]:
    rows = [
        {"name": "Milk Tea", "price": 40.0, "category_id": 3, "is_veg": 1, "is_active": 1},
        {"name": "Chicken Momo", "price": 180.0, "category_id": 1, "is_veg": 0, "is_active": 1},
        {"name": "Veg Momo", "price": 150.0, "category_id": 1, "is_veg": 1, "is_active": 1},
        {"name": "black coffee", "price": 60.0, "category_id": 3, "is_veg": 1, "is_active": 0},
    ]
    return [await adapter.insert("products", row) for row in rows]


class TestBindWhere:
    def test_placeholders_become_named_parameters(self):
        clause = bind_where("status = ? AND total > ?", ["paid", 10])
        assert str(clause) == "status = :p0 AND total > :p1"

    def test_document_id_alias_is_rewritten(self):
        clause = bind_where("documentId = ?", [5])
        assert str(clause) == "id = :p0"

    def test_alias_inside_longer_names_is_kept(self):
        clause = bind_where("parent_documentId = ?", [1])
        assert str(clause) == "parent_documentId = :p0"


class TestRelationalQuery:
    @pytest.mark.asyncio
    async def test_insert_returns_integer_keys(self, relational_adapter):
        ids = await _seed_products(relational_adapter)
        assert ids == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_where_order_limit_offset(self, relational_adapter):
        await _seed_products(relational_adapter)

        rows = await relational_adapter.query(
            "products",
            QuerySpec(where="is_active = ? AND price >= ?", args=(1, 50), order_by="price DESC", limit=1, offset=1),
        )

        assert [r["name"] for r in rows] == ["Veg Momo"]
        assert rows[0]["id"] == 3

    @pytest.mark.asyncio
    async def test_records_carry_all_columns(self, relational_adapter):
        await _seed_products(relational_adapter)
        (row,) = await relational_adapter.query("products", QuerySpec.by_id(1))
        assert row["id"] == 1
        assert row["name"] == "Milk Tea"
        assert "description" in row

    @pytest.mark.asyncio
    async def test_in_clause_passes_through(self, relational_adapter):
        await _seed_products(relational_adapter)
        rows = await relational_adapter.query(
            "products", QuerySpec(where="id IN (?, ?)", args=(2, 4), order_by="name")
        )
        assert [r["id"] for r in rows] == [2, 4]

    @pytest.mark.asyncio
    async def test_multi_field_order(self, relational_adapter):
        await _seed_products(relational_adapter)
        rows = await relational_adapter.query("products", QuerySpec(order_by="category_id ASC, price DESC"))
        assert [r["id"] for r in rows] == [2, 3, 4, 1]

    @pytest.mark.asyncio
    async def test_offset_without_limit(self, relational_adapter):
        await _seed_products(relational_adapter)
        rows = await relational_adapter.query("products", QuerySpec(order_by="id", offset=3))
        assert [r["id"] for r in rows] == [4]

    @pytest.mark.asyncio
    async def test_missing_argument_raises(self, relational_adapter):
        with pytest.raises(StatementError):
            await relational_adapter.query("products", QuerySpec(where="name = ? AND price = ?", args=("Tea",)))

    @pytest.mark.asyncio
    async def test_unknown_table_raises(self, relational_adapter):
        with pytest.raises(DBAPIError):
            await relational_adapter.query("no_such_table", QuerySpec())


class TestRelationalWrites:
    @pytest.mark.asyncio
    async def test_update_returns_rowcount(self, relational_adapter):
        await _seed_products(relational_adapter)

        count = await relational_adapter.update("products", {"is_active": 0}, "category_id = ?", [1])

        assert count == 2
        inactive = await relational_adapter.query("products", QuerySpec(where="is_active = ?", args=(0,)))
        assert len(inactive) == 3

    @pytest.mark.asyncio
    async def test_update_by_document_id(self, relational_adapter):
        await _seed_products(relational_adapter)
        assert await relational_adapter.update("products", {"cost": 42.5}, "documentId = ?", [2]) == 1
        (row,) = await relational_adapter.query("products", QuerySpec.by_id(2))
        assert row["cost"] == 42.5

    @pytest.mark.asyncio
    async def test_update_without_filter(self, relational_adapter):
        await _seed_products(relational_adapter)
        assert await relational_adapter.update("products", {"price": 1.0}) == 4

    @pytest.mark.asyncio
    async def test_delete_returns_rowcount(self, relational_adapter):
        await _seed_products(relational_adapter)
        assert await relational_adapter.delete("products", "is_veg = ?", [1]) == 3
        assert await relational_adapter.delete("products") == 1
        assert await relational_adapter.query("products", QuerySpec()) == []


class TestRelationalTransaction:
    @pytest.mark.asyncio
    async def test_commits_all_operations(self, relational_adapter):
        async def place_order(txn):
            order_id = await txn.insert("orders", {"order_number": "ORD-1", "status": "pending", "total_amount": 80.0})
            await txn.insert("order_items", {"order_id": order_id, "product_id": 1, "quantity": 2, "unit_price": 40.0})
            await txn.update("orders", {"status": "completed"}, "id = ?", [order_id])
            return order_id

        order_id = await relational_adapter.transaction(place_order)

        (order,) = await relational_adapter.query("orders", QuerySpec.by_id(order_id))
        assert order["status"] == "completed"
        items = await relational_adapter.query("order_items", QuerySpec(where="order_id = ?", args=(order_id,)))
        assert len(items) == 1

    @pytest.mark.asyncio
    async def test_key_addressed_update_and_delete(self, relational_adapter):
        async def settle(txn):
            customer_id = await txn.insert("customers", {"name": "Hari", "credit_balance": 250.0})
            item_id = await txn.insert("order_items", {"order_id": 1, "product_id": 1, "quantity": 1, "unit_price": 5.0})
            updated = await txn.update("customers", customer_id, {"credit_balance": 0.0})
            deleted = await txn.delete("order_items", item_id)
            return customer_id, updated, deleted

        customer_id, updated, deleted = await relational_adapter.transaction(settle)

        assert (updated, deleted) == (1, 1)
        (customer,) = await relational_adapter.query("customers", QuerySpec.by_id(customer_id))
        assert customer["credit_balance"] == 0.0
        assert await relational_adapter.query("order_items", QuerySpec()) == []

    @pytest.mark.asyncio
    async def test_where_shapes_by_keyword(self, relational_adapter):
        async def close_tabs(txn):
            await txn.insert("customers", {"name": "A", "credit_balance": 10.0})
            await txn.insert("customers", {"name": "B", "credit_balance": 0.0})
            updated = await txn.update("customers", {"credit_balance": 1.0}, where="credit_balance > ?", args=[5])
            deleted = await txn.delete("customers", where="credit_balance = ?", args=[0.0])
            return updated, deleted

        assert await relational_adapter.transaction(close_tabs) == (1, 1)

    @pytest.mark.asyncio
    async def test_reads_see_uncommitted_writes(self, relational_adapter):
        async def insert_and_read(txn):
            await txn.insert("customers", {"name": "Sita"})
            return await txn.query("customers", where="name = ?", args=["Sita"])

        rows = await relational_adapter.transaction(insert_and_read)
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_failure_rolls_back_everything(self, relational_adapter):
        await relational_adapter.insert("inventory", {"product_id": 1, "quantity": 1.0})

        async def sell(txn):
            await txn.insert("orders", {"order_number": "ORD-2"})
            (stock,) = await txn.query("inventory", "product_id = ?", [1])
            await txn.delete("inventory", "product_id = ?", [1])
            if stock["quantity"] < 3:
                raise InsufficientStockException("not enough stock", context={"product_id": 1})

        with pytest.raises(InsufficientStockException):
            await relational_adapter.transaction(sell)

        assert await relational_adapter.query("orders", QuerySpec()) == []
        assert len(await relational_adapter.query("inventory", QuerySpec())) == 1


class TestRelationalLifecycle:
    @pytest.mark.asyncio
    async def test_start_creates_schema_and_seeds_defaults(self):
        adapter = RelationalAdapter.from_url("sqlite+aiosqlite://")
        await adapter.start()
        try:
            settings = await adapter.query("settings", QuerySpec(order_by="id"))
            assert [s["key"] for s in settings][:2] == ["cafe_name", "cafe_name_en"]
            categories = await adapter.query("categories", QuerySpec(order_by="display_order"))
            assert [c["name"] for c in categories] == ["Food (Veg/Non Veg)", "Cigarette", "Beverages"]
            assert all(c["is_locked"] == 1 for c in categories)
        finally:
            await adapter.stop()

    @pytest.mark.asyncio
    async def test_restart_does_not_duplicate_seed(self):
        adapter = RelationalAdapter.from_url("sqlite+aiosqlite://")
        await adapter.start()
        await adapter.start()
        try:
            assert len(await adapter.query("settings", QuerySpec())) == 6
            assert len(await adapter.query("categories", QuerySpec())) == 3
        finally:
            await adapter.stop()

    @pytest.mark.asyncio
    async def test_ddl_none_skips_schema(self):
        adapter = RelationalAdapter.from_url("sqlite+aiosqlite://", ddl_auto="none")
        await adapter.start()
        try:
            with pytest.raises(DBAPIError):
                await adapter.query("settings", QuerySpec())
        finally:
            await adapter.stop()

    @pytest.mark.asyncio
    async def test_invalid_ddl_mode_defaults_to_create(self):
        adapter = RelationalAdapter.from_url("sqlite+aiosqlite://", ddl_auto="update")
        await adapter.start()
        try:
            assert len(await adapter.query("settings", QuerySpec())) == 6
        finally:
            await adapter.stop()

    @pytest.mark.asyncio
    async def test_reset_database_wipes_and_reseeds(self, relational_adapter):
        await relational_adapter.insert("users", {"username": "admin", "pin_hash": "x"})
        await _seed_products(relational_adapter)

        await relational_adapter.reset_database()

        assert await relational_adapter.query("users", QuerySpec()) == []
        assert await relational_adapter.query("products", QuerySpec()) == []
        assert len(await relational_adapter.query("settings", QuerySpec())) == 6
        assert len(await relational_adapter.query("categories", QuerySpec())) == 3

    @pytest.mark.asyncio
    async def test_clear_business_data_keeps_users_and_settings(self, relational_adapter):
        await relational_adapter.insert("users", {"username": "admin", "pin_hash": "x"})
        await relational_adapter.insert("settings", {"key": "printer", "value": "none"})
        await _seed_products(relational_adapter)
        await relational_adapter.insert("orders", {"order_number": "ORD-9"})

        await relational_adapter.clear_business_data(seed_defaults=False)

        assert len(await relational_adapter.query("users", QuerySpec())) == 1
        assert len(await relational_adapter.query("settings", QuerySpec())) == 1
        assert await relational_adapter.query("products", QuerySpec()) == []
        assert await relational_adapter.query("orders", QuerySpec()) == []
        assert await relational_adapter.query("categories", QuerySpec()) == []

    @pytest.mark.asyncio
    async def test_clear_business_data_reseeds_categories(self, relational_adapter):
        await relational_adapter.clear_business_data()
        assert len(await relational_adapter.query("categories", QuerySpec())) == 3

    @pytest.mark.asyncio
    async def test_health_check(self, relational_adapter):
        assert await relational_adapter.health_check() == {"ok": True, "backend": "relational"}
