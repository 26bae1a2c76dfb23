# backend/modules/analytics/tests/test_trend_service.py

import pytest

from modules.analytics.exceptions import AnalyticsValidationError, ComputationError
from modules.analytics.schemas.analytics_schemas import (
    Granularity,
    TrendDataPoint,
    TrendDirection,
)
from modules.analytics.services.trend_service import TrendService, analyze_trend


@pytest.fixture
def trend_service(analytics_settings):
    return TrendService(analytics_settings)


class TestTrendRegression:
    """Test cases for the linear fit and direction"""

    def test_flat_series(self, trend_service, make_series):
        """Constant values are a stable trend with a flat forecast"""
        result = trend_service.analyze_trend(make_series([10, 10, 10, 10]), 3)

        assert result.trend.slope == pytest.approx(0)
        assert result.trend.direction == TrendDirection.STABLE
        assert result.trend.r_squared == 1.0
        for point in result.forecast:
            assert point.value == pytest.approx(10)
            assert point.upper_bound - point.lower_bound == pytest.approx(0)

    def test_rising_series_forecast(self, trend_service, make_series):
        """10, 20, 30, 40 continues with 50 and 60"""
        result = trend_service.analyze_trend(make_series([10, 20, 30, 40]), 2)

        assert result.trend.slope == pytest.approx(10)
        assert result.trend.intercept == pytest.approx(10)
        assert result.trend.direction == TrendDirection.UP
        assert result.trend.r_squared == pytest.approx(1.0)
        assert result.trend.strength == pytest.approx(10)
        assert result.trend.description == "Upward trend with strong fit"
        assert [p.value for p in result.forecast] == pytest.approx([50, 60])
        assert [p.confidence for p in result.forecast] == pytest.approx([0.9, 0.8])

    def test_falling_series(self, trend_service, make_series):
        result = trend_service.analyze_trend(make_series([40, 30, 20, 10]), 1)

        assert result.trend.slope == pytest.approx(-10)
        assert result.trend.direction == TrendDirection.DOWN
        assert result.forecast[0].value == pytest.approx(0)

    def test_slope_within_epsilon_is_stable(self, trend_service, make_series):
        result = trend_service.analyze_trend(make_series([10, 10.05, 10.1, 10.15]), 0)

        assert result.trend.slope == pytest.approx(0.05)
        assert result.trend.direction == TrendDirection.STABLE
        assert result.forecast == []

    def test_forecast_may_go_negative(self, trend_service, make_series):
        """Profit series can legitimately be projected below zero"""
        result = trend_service.analyze_trend(make_series([10, 0]), 2)

        assert [p.value for p in result.forecast] == pytest.approx([-10, -20])


class TestTrendDegenerateCases:
    """Test cases for empty and tiny series"""

    def test_empty_series(self, trend_service):
        result = trend_service.analyze_trend([], 5)

        assert result.data_points == []
        assert result.trend.direction == TrendDirection.STABLE
        assert result.forecast == []
        assert result.summary.total_value == 0
        assert result.summary.growth == 0

    def test_single_point(self, trend_service, make_series):
        """One point repeats itself with zero-width bounds"""
        result = trend_service.analyze_trend(make_series([42]), 3)

        assert result.trend.slope == 0
        assert result.trend.r_squared == 0
        assert len(result.forecast) == 3
        for point in result.forecast:
            assert point.value == 42
            assert point.upper_bound == point.lower_bound == 42
            assert point.confidence == pytest.approx(0.1)

    def test_non_finite_value(self, trend_service):
        points = [
            TrendDataPoint(period="2024-03-01", value=1.0),
            TrendDataPoint.model_construct(period="2024-03-02", value=float("nan")),
        ]

        with pytest.raises(ComputationError) as exc_info:
            trend_service.analyze_trend(points, 1)

        assert "2024-03-02" in exc_info.value.message

    def test_negative_horizon(self, trend_service, make_series):
        with pytest.raises(AnalyticsValidationError):
            trend_service.analyze_trend(make_series([1, 2]), -1)


class TestForecast:
    """Test cases for forecast bounds and period keys"""

    def test_bounds_contain_value_and_widen(self, trend_service, make_series):
        result = trend_service.analyze_trend(
            make_series([10, 12, 9, 14, 13, 16, 15, 19]), 6
        )

        widths = []
        for point in result.forecast:
            assert point.lower_bound <= point.value <= point.upper_bound
            widths.append(point.upper_bound - point.lower_bound)

        assert widths[0] > 0
        assert all(b >= a for a, b in zip(widths, widths[1:]))

    def test_daily_period_keys(self, trend_service, make_series):
        result = trend_service.analyze_trend(
            make_series([10, 20, 30, 40]), 2, Granularity.DAY
        )

        assert [p.period for p in result.forecast] == ["2024-03-05", "2024-03-06"]

    def test_weekly_keys_cross_the_year(self, trend_service):
        points = [
            TrendDataPoint(period="2024-W51", value=5),
            TrendDataPoint(period="2024-W52", value=6),
        ]

        result = trend_service.analyze_trend(points, 2, Granularity.WEEK)

        assert [p.period for p in result.forecast] == ["2025-W01", "2025-W02"]

    def test_unparseable_keys_fall_back(self, trend_service):
        points = [TrendDataPoint(period="Q1", value=5), TrendDataPoint(period="Q2", value=6)]

        result = trend_service.analyze_trend(points, 2, Granularity.DAY)

        assert [p.period for p in result.forecast] == ["forecast_1", "forecast_2"]


class TestTrendSummary:
    """Test cases for summary statistics"""

    def test_summary_values(self, trend_service, make_series):
        result = trend_service.analyze_trend(make_series([10, 20, 30, 40]), 0)

        summary = result.summary
        assert summary.total_value == 100
        assert summary.average_value == 25
        assert summary.min_value == 10
        assert summary.max_value == 40
        assert summary.growth == pytest.approx(300)

    def test_growth_zero_when_first_is_zero(self, trend_service, make_series):
        result = trend_service.analyze_trend(make_series([0, 5, 10]), 0)

        assert result.summary.growth == 0

    def test_idempotent(self, trend_service, make_series):
        """Same input, same output"""
        points = make_series([3.2, 7.9, 1.4, 8.8, 6.1, 2.7, 9.3])

        first = trend_service.analyze_trend(points, 4, Granularity.DAY)
        second = trend_service.analyze_trend(points, 4, Granularity.DAY)

        assert first.model_dump() == second.model_dump()


class TestSeasonality:
    """Test cases for seasonality detection"""

    def test_repeating_cycle(self, trend_service, make_series):
        result = trend_service.analyze_trend(make_series([0, 10, 10, 0] * 3), 0)

        assert result.seasonality.has_seasonality is True
        assert result.seasonality.period == 4
        assert result.seasonality.strength == pytest.approx(2 / 3)

    def test_too_short_for_cycles(self, trend_service, make_series):
        result = trend_service.analyze_trend(make_series([1, 5, 2]), 0)

        assert result.seasonality.has_seasonality is False
        assert result.seasonality.period is None

    def test_linear_series_has_no_seasonality(self, trend_service, make_series):
        result = trend_service.analyze_trend(make_series([10, 20, 30, 40, 50, 60]), 0)

        assert result.seasonality.has_seasonality is False


class TestModuleShortcut:
    def test_analyze_trend_uses_default_config(self, make_series):
        result = analyze_trend(make_series([10, 20, 30, 40]), 1, Granularity.DAY)

        assert result.trend.direction == TrendDirection.UP
        assert [p.period for p in result.forecast] == ["2024-03-05"]
        assert result.forecast[0].value == pytest.approx(50)
