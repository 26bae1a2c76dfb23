# backend/modules/analytics/tests/test_performance_monitor.py

import logging

import pytest

from modules.analytics.utils.performance_monitor import PerformanceMonitor

LOGGER = "modules.analytics.utils.performance_monitor"


class TestPerformanceMonitor:
    """Test cases for computation timing"""

    def test_returns_result_and_keeps_name(self, caplog):
        @PerformanceMonitor.monitor_computation("double", threshold_ms=10_000)
        def double(value):
            """Double a value"""
            return value * 2

        with caplog.at_level(logging.DEBUG, logger=LOGGER):
            assert double(21) == 42

        assert double.__name__ == "double"
        assert "Computation double completed" in caplog.text

    def test_slow_computation_warns(self, caplog):
        @PerformanceMonitor.monitor_computation("slow", threshold_ms=-1)
        def slow():
            return None

        with caplog.at_level(logging.WARNING, logger=LOGGER):
            slow()

        assert "Slow computation detected: slow" in caplog.text

    def test_logs_even_when_computation_fails(self, caplog):
        @PerformanceMonitor.monitor_computation("broken", threshold_ms=-1)
        def broken():
            raise RuntimeError("boom")

        with caplog.at_level(logging.WARNING, logger=LOGGER):
            with pytest.raises(RuntimeError):
                broken()

        assert "Slow computation detected: broken" in caplog.text
