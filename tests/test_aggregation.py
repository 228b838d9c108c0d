"""Unit tests for smartauto.aggregation."""

from __future__ import annotations

import pytest

from smartauto.aggregation import (
    LOW_STOCK_THRESHOLD,
    build_customer_aggregates,
    customer_rows,
    filter_orders,
    low_stock,
    total_revenue,
)


@pytest.fixture
def orders() -> list:
    return [
        {"order_id": "SA-20240101-1111", "product_name": "Brake Pads", "customer_email": "ann@smartauto.io",
         "total_price": 49.99, "status": "pending"},
        {"order_id": "SA-20240215-2222", "product_name": "Engine Oil", "customer_email": "bob@smartauto.io",
         "total_price": 34.5, "status": "completed"},
        {"order_id": "SA-20230930-3333", "product_name": "Oil Filter", "customer_email": "Ann@SmartAuto.io",
         "total_price": 12.0, "status": "pending"},
        {"order_id": "SA-20240301-4444", "product_name": "Wiper Blades", "customer_email": "ann@smartauto.io",
         "total_price": "22.01", "status": "cancelled"},
        {"order_id": "SA-20240302-5555", "product_name": "Battery", "customer_email": "cy@smartauto.io",
         "total_price": None, "status": "pending"},
    ]


class TestTotals:
    """Tests for revenue and low-stock derivations."""

    def test_total_revenue(self, orders: list) -> None:
        assert total_revenue(orders) == pytest.approx(118.5)

    def test_total_revenue_empty(self) -> None:
        assert total_revenue([]) == 0

    def test_low_stock_threshold(self) -> None:
        products = [{"name": "a", "stock": 9}, {"name": "b", "stock": LOW_STOCK_THRESHOLD},
                    {"name": "c", "stock": 0}, {"name": "d", "stock": 50}]
        assert [p["name"] for p in low_stock(products)] == ["a", "c"]


class TestCustomerAggregates:
    """Tests for build_customer_aggregates."""

    def test_one_entry_per_distinct_email(self, orders: list) -> None:
        complaints = [{"customer_email": "bob@smartauto.io"}, {"customer_email": "dee@smartauto.io"}]
        reviews = [{"customer_email": "eve@smartauto.io"}, {"customer_email": "ann@smartauto.io"},
                   {"customer_email": "eve@smartauto.io"}]
        customers = build_customer_aggregates(orders, complaints, reviews)

        assert list(customers) == [
            "ann@smartauto.io", "bob@smartauto.io", "Ann@SmartAuto.io", "cy@smartauto.io",
            "dee@smartauto.io", "eve@smartauto.io",
        ]
        ann = customers["ann@smartauto.io"]
        assert len(ann.orders) == 2
        assert len(ann.reviews) == 1
        assert float(ann.revenue) == pytest.approx(72.0)

        assert len(customers["bob@smartauto.io"].complaints) == 1
        assert len(customers["eve@smartauto.io"].reviews) == 2

    def test_email_without_orders_has_zero_revenue(self) -> None:
        customers = build_customer_aggregates([], [{"customer_email": "dee@smartauto.io"}], [])
        dee = customers["dee@smartauto.io"]
        assert dee.revenue == 0
        assert dee.orders == []
        assert len(dee.complaints) == 1

    def test_counts_add_up(self, orders: list) -> None:
        complaints = [{"customer_email": "cy@smartauto.io"}] * 3
        reviews = [{"customer_email": "bob@smartauto.io"}] * 2
        customers = build_customer_aggregates(orders, complaints, reviews)
        assert sum(len(c.orders) for c in customers.values()) == len(orders)
        assert sum(len(c.complaints) for c in customers.values()) == 3
        assert sum(len(c.reviews) for c in customers.values()) == 2

    def test_customer_rows(self, orders: list) -> None:
        rows = customer_rows(build_customer_aggregates(orders[:2], [], [{"customer_email": "bob@smartauto.io"}]))
        assert rows == [
            {"email": "ann@smartauto.io", "orders": 1, "complaints": 0, "reviews": 0, "revenue": 49.99},
            {"email": "bob@smartauto.io", "orders": 1, "complaints": 0, "reviews": 1, "revenue": 34.5},
        ]


class TestFilterOrders:
    """Tests for filter_orders."""

    def test_no_filters_returns_everything(self, orders: list) -> None:
        assert filter_orders(orders) == orders

    def test_text_and_status_compose(self, orders: list) -> None:
        result = filter_orders(orders, "SA-2024", "pending")
        assert [o["order_id"] for o in result] == ["SA-20240101-1111", "SA-20240302-5555"]

    def test_code_match_is_literal(self, orders: list) -> None:
        assert filter_orders(orders, "sa-2024") == []

    def test_product_name_is_case_insensitive(self, orders: list) -> None:
        assert [o["order_id"] for o in filter_orders(orders, "OIL")] == ["SA-20240215-2222", "SA-20230930-3333"]

    def test_email_is_case_insensitive(self, orders: list) -> None:
        result = filter_orders(orders, "ANN@smartauto")
        assert [o["order_id"] for o in result] == ["SA-20240101-1111", "SA-20230930-3333", "SA-20240301-4444"]

    def test_status_only(self, orders: list) -> None:
        assert [o["order_id"] for o in filter_orders(orders, status="cancelled")] == ["SA-20240301-4444"]

    def test_missing_fields_do_not_match(self) -> None:
        assert filter_orders([{"status": "pending"}], "x") == []
