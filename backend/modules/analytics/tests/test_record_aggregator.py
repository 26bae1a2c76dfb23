# backend/modules/analytics/tests/test_record_aggregator.py

import pytest
from datetime import date, datetime

from modules.analytics.exceptions import ComputationError
from modules.analytics.schemas.analytics_schemas import (
    Granularity,
    GroupBy,
    TransactionRecord,
    TrendMetric,
)
from modules.analytics.services.record_aggregator import (
    aggregate,
    build_metric_series,
    filter_window,
)


class TestAggregate:
    """Test cases for grouping raw records"""

    def test_empty_input(self):
        """No records gives no entities, not an error"""
        assert aggregate([]) == []

    def test_sums_per_entity(self, make_record):
        """Totals are summed per entity id"""
        records = [
            make_record("latte", quantity=2, unit_revenue=5.0, unit_cost=2.0),
            make_record("latte", quantity=3, unit_revenue=5.0, unit_cost=2.0),
            make_record("bagel", quantity=1, unit_revenue=3.0, unit_cost=1.0),
        ]

        entities = aggregate(records)

        assert [e.entity_id for e in entities] == ["latte", "bagel"]
        latte = entities[0]
        assert latte.total_quantity == 5
        assert latte.total_revenue == pytest.approx(25.0)
        assert latte.total_cost == pytest.approx(10.0)

    def test_first_seen_name_wins(self, make_record):
        """Display name is taken from the first record of a key"""
        records = [
            make_record("latte", entity_name="Latte"),
            make_record("latte", entity_name="Caffe Latte"),
        ]

        assert aggregate(records)[0].name == "Latte"

    def test_group_by_category(self, sample_records):
        """Category grouping uses the category as key and name"""
        entities = aggregate(sample_records, GroupBy.CATEGORY)

        assert [e.entity_id for e in entities] == ["Beverages", "Bakery"]
        bakery = entities[1]
        assert bakery.name == "Bakery"
        assert bakery.total_revenue == pytest.approx(150.0)

    def test_rejects_negative_quantity(self):
        """Records that bypassed validation still cannot carry negative values"""
        record = TransactionRecord.model_construct(
            entity_id="latte",
            entity_name="Latte",
            category="Beverages",
            quantity=-1,
            unit_revenue=5.0,
            unit_cost=2.0,
            timestamp=datetime(2024, 3, 1),
            customer_id=None,
        )

        with pytest.raises(ComputationError) as exc_info:
            aggregate([record])

        assert exc_info.value.kind == "computation_error"
        assert exc_info.value.details["stage"] == "aggregation"


class TestFilterWindow:
    """Test cases for window filtering"""

    def test_window_is_inclusive(self, make_record):
        """Both window ends are included"""
        records = [
            make_record(timestamp=datetime(2024, 2, 29, 23, 59)),
            make_record(timestamp=datetime(2024, 3, 1, 0, 0)),
            make_record(timestamp=datetime(2024, 3, 31, 23, 59)),
            make_record(timestamp=datetime(2024, 4, 1, 0, 0)),
        ]

        kept = filter_window(records, date(2024, 3, 1), date(2024, 3, 31))

        assert [r.timestamp.day for r in kept] == [1, 31]


class TestBuildMetricSeries:
    """Test cases for metric series construction"""

    def test_revenue_by_day(self, make_record):
        records = [
            make_record(quantity=2, unit_revenue=5.0, timestamp=datetime(2024, 3, 2, 9)),
            make_record(quantity=1, unit_revenue=5.0, timestamp=datetime(2024, 3, 1, 9)),
            make_record(quantity=1, unit_revenue=5.0, timestamp=datetime(2024, 3, 2, 18)),
        ]

        series = build_metric_series(records, TrendMetric.REVENUE, Granularity.DAY)

        assert [p.period for p in series] == ["2024-03-01", "2024-03-02"]
        assert [p.value for p in series] == [5.0, 15.0]

    def test_no_zero_fill(self, make_record):
        """Periods without sales are skipped"""
        records = [
            make_record(timestamp=datetime(2024, 3, 1)),
            make_record(timestamp=datetime(2024, 3, 5)),
        ]

        series = build_metric_series(records, TrendMetric.SALES_VOLUME)

        assert [p.period for p in series] == ["2024-03-01", "2024-03-05"]

    def test_profit_by_month(self, make_record):
        records = [
            make_record(quantity=2, unit_revenue=5.0, unit_cost=2.0, timestamp=datetime(2024, 1, 31)),
            make_record(quantity=1, unit_revenue=5.0, unit_cost=8.0, timestamp=datetime(2024, 2, 1)),
        ]

        series = build_metric_series(records, "profit", "month")

        assert [(p.period, p.value) for p in series] == [("2024-01", 6.0), ("2024-02", -3.0)]

    def test_weeks_across_year_boundary(self, make_record):
        """ISO week keys stay in time order across a year change"""
        records = [
            make_record(timestamp=datetime(2025, 1, 6)),
            make_record(timestamp=datetime(2024, 12, 30)),
            make_record(timestamp=datetime(2024, 12, 23)),
        ]

        series = build_metric_series(records, TrendMetric.SALES_VOLUME, Granularity.WEEK)

        assert [p.period for p in series] == ["2024-W52", "2025-W01", "2025-W02"]

    def test_customers_metric(self, make_record):
        """Distinct customers; anonymous sales count once per hour"""
        records = [
            make_record(customer_id="c1", timestamp=datetime(2024, 3, 1, 9, 5)),
            make_record(customer_id="c1", timestamp=datetime(2024, 3, 1, 12, 0)),
            make_record(customer_id="c2", timestamp=datetime(2024, 3, 1, 12, 30)),
            make_record(timestamp=datetime(2024, 3, 1, 14, 5)),
            make_record(timestamp=datetime(2024, 3, 1, 14, 50)),
        ]

        series = build_metric_series(records, TrendMetric.CUSTOMERS)

        assert series[0].value == 3.0

    def test_empty_records(self):
        assert build_metric_series([], TrendMetric.REVENUE) == []
