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
"""Tests for Sort and the in-memory record comparator."""

from __future__ import annotations

import random

from tilldata.data.sort import Order, Sort, compare_values, sort_records, window


class TestSort:
    def test_by_creates_ascending_orders(self):
        sort = Sort.by("name", "price")
        assert sort.orders == (Order.asc("name"), Order.asc("price"))

    def test_unsorted(self):
        sort = Sort.unsorted()
        assert not sort.is_sorted
        assert len(sort) == 0

    def test_and_then(self):
        sort = Sort.by("category_id").and_then(Sort(orders=(Order.desc("price"),)))
        assert [o.property for o in sort] == ["category_id", "price"]
        assert sort.orders[1].is_descending


class TestCompareValues:
    def test_none_sorts_first(self):
        assert compare_values(None, 0) < 0
        assert compare_values("a", None) > 0
        assert compare_values(None, None) == 0

    def test_numbers_compare_numerically(self):
        assert compare_values(9, 10) < 0
        assert compare_values(2.5, 2) > 0

    def test_strings_compare_case_insensitively(self):
        assert compare_values("apple", "Banana") < 0
        assert compare_values("TEA", "tea") == 0

    def test_mixed_types_compare_as_text(self):
        assert compare_values(10, "9") < 0

    def test_booleans_are_not_numbers(self):
        assert compare_values(True, 0) > 0
        assert compare_values(False, "true") < 0


class TestSortRecords:
    def test_single_descending_key(self):
        records = [{"id": "a", "total": 10}, {"id": "b", "total": 30}, {"id": "c", "total": 20}]
        result = sort_records(records, Sort(orders=(Order.desc("total"),)))
        assert [r["id"] for r in result] == ["b", "c", "a"]

    def test_nulls_first_in_ascending_order(self):
        records = [{"id": "a", "closed_at": 5}, {"id": "b", "closed_at": None}, {"id": "c"}]
        result = sort_records(records, Sort.by("closed_at"))
        assert [r["id"] for r in result] == ["b", "c", "a"]

    def test_secondary_key_breaks_ties(self):
        records = [
            {"id": "1", "status": "paid", "total": 5},
            {"id": "2", "status": "open", "total": 7},
            {"id": "3", "status": "paid", "total": 9},
        ]
        result = sort_records(records, Sort(orders=(Order.asc("status"), Order.desc("total"))))
        assert [r["id"] for r in result] == ["2", "3", "1"]

    def test_identifier_tie_break_makes_order_total(self):
        records = [{"id": key, "status": "paid"} for key in ("k3", "k1", "k2")]
        result = sort_records(records, Sort.by("status"))
        assert [r["id"] for r in result] == ["k1", "k2", "k3"]

    def test_repeated_sorts_are_identical(self):
        records = [{"id": f"r{i:02d}", "bucket": i % 3, "name": random.choice(["x", "Y", None])} for i in range(40)]
        sort = Sort(orders=(Order.asc("bucket"), Order.desc("name")))
        first = sort_records(records, sort)
        shuffled = list(records)
        random.shuffle(shuffled)
        assert sort_records(shuffled, sort) == first

    def test_unsorted_orders_by_identifier(self):
        records = [{"id": 3}, {"id": 1}, {"id": 2}]
        assert [r["id"] for r in sort_records(records, Sort())] == [1, 2, 3]


class TestWindow:
    def test_limit_only(self):
        assert window([1, 2, 3, 4], limit=2) == [1, 2]

    def test_offset_then_limit(self):
        assert window([1, 2, 3, 4, 5], limit=2, offset=1) == [2, 3]

    def test_offset_past_end(self):
        assert window([1, 2], offset=5) == []

    def test_no_window(self):
        assert window([1, 2, 3]) == [1, 2, 3]
