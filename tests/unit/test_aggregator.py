"""
Unit Tests - Reporting Aggregator
"""
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from marketplace.analytics import aggregator
from marketplace.analytics.scope import ReportScope
from marketplace.database.models import OrderStatus, UserRole

DAY = datetime(2025, 3, 10, 9, 0)


def make_order(total, seller="s1", user="u1", created_at=DAY, status=OrderStatus.DELIVERED, items=()):
    return SimpleNamespace(
        total_amount=Decimal(str(total)),
        seller_id=seller,
        user_id=user,
        created_at=created_at,
        status=status,
        items=list(items),
    )


def make_item(product_id, total, quantity=1, category="c1", seller="s1", order_id="o1", order=None):
    product = SimpleNamespace(id=product_id, category_id=category, seller_id=seller, category=None)
    return SimpleNamespace(
        product_id=product_id,
        product=product,
        quantity=quantity,
        total_price=Decimal(str(total)),
        order_id=order_id,
        order=order,
    )


class TestScalarMetrics:
    """Tests for revenue, averages and ratios"""

    def test_revenue_total_sums_amounts(self):
        orders = [make_order("10.50"), make_order("20.25"), make_order("5")]

        assert aggregator.revenue_total(orders) == Decimal("35.75")

    def test_revenue_total_skips_cancelled(self):
        orders = [make_order(10), make_order(1000, status=OrderStatus.CANCELLED)]

        assert aggregator.revenue_total(orders) == Decimal("10")

    def test_revenue_total_of_nothing_is_zero(self):
        assert aggregator.revenue_total([]) == Decimal("0")

    def test_average_order_value_of_empty_set(self):
        assert aggregator.average_order_value([]) == Decimal("0")

    def test_average_order_value_is_exact_to_cents(self):
        orders = [make_order("10.00"), make_order("20.00"), make_order("30.01")]

        assert aggregator.average_order_value(orders) == Decimal("20.00")

    def test_average_order_value_ignores_cancelled(self):
        orders = [make_order(40), make_order(60), make_order(1, status=OrderStatus.CANCELLED)]

        assert aggregator.average_order_value(orders) == Decimal("50.00")

    @pytest.mark.parametrize("current,previous,expected", [
        (0, 0, 0.0),
        (150, 100, 50.0),
        (50, 100, -50.0),
        (10, 0, 0.0),
        (Decimal("110.00"), Decimal("100.00"), 10.0),
    ])
    def test_growth_percent(self, current, previous, expected):
        assert aggregator.growth_percent(current, previous) == pytest.approx(expected)

    def test_conversion_rate(self):
        assert aggregator.conversion_rate(3, 2) == pytest.approx(150.0)
        assert aggregator.conversion_rate(5, 0) == 0.0


class TestGroupings:
    """Tests for day, category, product and seller groupings"""

    def test_group_by_day_partitions_revenue(self):
        orders = [
            make_order(10, user="u1", created_at=DAY),
            make_order(15, user="u2", created_at=DAY + timedelta(hours=3)),
            make_order(7, user="u1", created_at=DAY + timedelta(hours=5)),
            make_order(99, created_at=DAY - timedelta(days=2)),
            make_order(500, created_at=DAY, status=OrderStatus.CANCELLED),
        ]

        days = aggregator.group_by_day(orders)

        assert [d.date.isoformat() for d in days] == ["2025-03-08", "2025-03-10"]
        assert sum(d.revenue for d in days) == aggregator.revenue_total(orders)
        assert days[1].orders == 3
        assert days[1].customers == 2

    def test_group_by_day_is_empty_for_no_orders(self):
        assert aggregator.group_by_day([]) == []

    def test_group_by_category_counts_distinct_orders_and_products(self):
        items = [
            make_item("p1", 10, category="books", order_id="o1"),
            make_item("p2", 5, category="books", order_id="o1"),
            make_item("p1", 10, category="books", order_id="o2"),
            make_item("p3", 40, category="games", order_id="o2"),
        ]

        groups = aggregator.group_by_category(items)

        assert [g.category_id for g in groups] == ["books", "games"]
        books = groups[0]
        assert books.revenue == Decimal("25")
        assert books.orders == 2
        assert books.products == 2

    def test_item_groupings_skip_loaded_cancelled_orders(self):
        cancelled = make_order(100, status=OrderStatus.CANCELLED)
        items = [make_item("p1", 10), make_item("p1", 100, order=cancelled)]

        assert aggregator.group_by_product(items)[0].total_revenue == Decimal("10")
        assert aggregator.group_by_category(items)[0].revenue == Decimal("10")

    def test_group_by_product_sums_units(self):
        items = [make_item("p1", 10, quantity=1), make_item("p1", 30, quantity=3), make_item("p2", 5)]

        groups = aggregator.group_by_product(items)

        assert [(g.product_id, g.total_sold, g.total_revenue) for g in groups] == [
            ("p1", 4, Decimal("40")),
            ("p2", 1, Decimal("5")),
        ]

    def test_group_by_seller(self):
        orders = [make_order(10, seller="a"), make_order(30, seller="b"), make_order(5, seller="a")]

        groups = aggregator.group_by_seller(orders)

        assert [(g.seller_id, g.total_revenue, g.total_orders) for g in groups] == [
            ("a", Decimal("15"), 2),
            ("b", Decimal("30"), 1),
        ]

    def test_group_users_by_day(self):
        users = [
            SimpleNamespace(role=UserRole.CUSTOMER, created_at=DAY),
            SimpleNamespace(role=UserRole.SELLER, created_at=DAY),
            SimpleNamespace(role=UserRole.ADMIN, created_at=DAY),
            SimpleNamespace(role=UserRole.CUSTOMER, created_at=DAY - timedelta(days=1)),
        ]

        points = aggregator.group_users_by_day(users)

        assert [(p.date.isoformat(), p.customers, p.sellers) for p in points] == [
            ("2025-03-09", 1, 0),
            ("2025-03-10", 1, 1),
        ]


class TestTopN:
    """Tests for ranking"""

    def test_sorted_descending_and_truncated(self):
        groups = aggregator.group_by_seller([
            make_order(10, seller="a"),
            make_order(30, seller="b"),
            make_order(20, seller="c"),
        ])

        top = aggregator.top_n(groups, 2)

        assert [g.seller_id for g in top] == ["b", "c"]

    def test_length_is_min_of_n_and_groups(self):
        groups = aggregator.group_by_seller([make_order(10, seller="a")])

        assert len(aggregator.top_n(groups, 5)) == 1

    def test_ties_keep_input_order(self):
        groups = aggregator.group_by_seller([
            make_order(10, seller="first"),
            make_order(50, seller="big"),
            make_order(10, seller="second"),
            make_order(10, seller="third"),
        ])

        top = aggregator.top_n(groups, 4)

        assert [g.seller_id for g in top] == ["big", "first", "second", "third"]

    def test_rank_by_other_key(self):
        groups = aggregator.group_by_product([
            make_item("p1", 100, quantity=1),
            make_item("p2", 10, quantity=7),
        ])

        top = aggregator.top_n(groups, 1, key="total_sold")

        assert top[0].product_id == "p2"

    def test_non_positive_n_gives_nothing(self):
        groups = aggregator.group_by_seller([make_order(10)])

        assert aggregator.top_n(groups, 0) == []
        assert aggregator.top_n(groups, None) == groups


class TestSummarizeSales:
    """Tests for the shared sales summary"""

    def test_scope_drops_other_sellers(self):
        orders = [make_order(30, seller="a"), make_order(100, seller="b")]
        previous = [make_order(10, seller="a"), make_order(10, seller="b")]

        summary = aggregator.summarize_sales(orders, previous, ReportScope(seller_id="a"))

        assert summary.total_revenue == Decimal("30")
        assert summary.total_orders == 1
        assert summary.revenue_growth == pytest.approx(200.0)
        assert summary.order_growth == 0.0

    def test_empty_inputs_degrade_to_zero(self):
        summary = aggregator.summarize_sales([], [])

        assert summary.total_revenue == Decimal("0")
        assert summary.total_orders == 0
        assert summary.average_order_value == Decimal("0")
        assert summary.revenue_growth == 0.0
        assert summary.daily == []

    def test_category_scope_matches_orders_through_items(self):
        book_order = make_order(10, items=[make_item("p1", 10, category="books")])
        game_order = make_order(20, items=[make_item("p2", 20, category="games")])

        summary = aggregator.summarize_sales([book_order, game_order], scope=ReportScope(category_id="books"))

        assert summary.total_revenue == Decimal("10")
