# backend/modules/analytics/tests/conftest.py

import pytest
from datetime import date, datetime
from fastapi.testclient import TestClient

from modules.analytics.config.analytics_config import AnalyticsSettings
from modules.analytics.schemas.analytics_schemas import (
    AggregatedEntity,
    TransactionRecord,
    TrendDataPoint,
)


WINDOW_START = date(2024, 3, 1)
WINDOW_END = date(2024, 3, 31)


@pytest.fixture
def make_record():
    """Factory for transaction records with sensible defaults"""

    def _make(
        entity_id="latte",
        quantity=1,
        unit_revenue=10.0,
        unit_cost=4.0,
        timestamp=None,
        entity_name=None,
        category="Beverages",
        customer_id=None,
    ):
        return TransactionRecord(
            entity_id=entity_id,
            entity_name=entity_name or entity_id.title(),
            category=category,
            quantity=quantity,
            unit_revenue=unit_revenue,
            unit_cost=unit_cost,
            timestamp=timestamp or datetime(2024, 3, 10, 12, 0),
            customer_id=customer_id,
        )

    return _make


@pytest.fixture
def make_entity():
    """Factory for aggregated entities"""

    def _make(entity_id, revenue, cost=0.0, quantity=1.0, category="General"):
        return AggregatedEntity(
            entity_id=entity_id,
            name=entity_id.title(),
            category=category,
            total_quantity=quantity,
            total_revenue=revenue,
            total_cost=cost,
        )

    return _make


@pytest.fixture
def make_series():
    """Factory turning a list of values into daily data points"""

    def _make(values, start_day=1):
        return [
            TrendDataPoint(period=f"2024-03-{start_day + i:02d}", value=value)
            for i, value in enumerate(values)
        ]

    return _make


@pytest.fixture
def analytics_settings():
    """Default analytics thresholds, independent of the environment"""
    return AnalyticsSettings(_env_file=None)


@pytest.fixture
def sample_records(make_record):
    """A month of sales for three products"""
    return [
        make_record("latte", 30, 5.0, 2.0, datetime(2024, 3, 2, 9), category="Beverages"),
        make_record("latte", 40, 5.0, 2.0, datetime(2024, 3, 9, 9), category="Beverages"),
        make_record("bagel", 20, 5.0, 3.0, datetime(2024, 3, 9, 10), category="Bakery"),
        make_record("muffin", 10, 5.0, 6.0, datetime(2024, 3, 16, 11), category="Bakery"),
        # Outside the March window
        make_record("latte", 100, 5.0, 2.0, datetime(2024, 4, 2, 9), category="Beverages"),
    ]


@pytest.fixture
def window_request():
    return {"windowStart": WINDOW_START.isoformat(), "windowEnd": WINDOW_END.isoformat()}


@pytest.fixture
def client():
    """Test client for the BI analytics API"""
    from app.main import create_app

    return TestClient(create_app())
