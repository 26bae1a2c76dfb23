# backend/modules/analytics/utils/performance_monitor.py

import time
import logging
from typing import Callable, Optional
from functools import wraps

from ..config.analytics_config import get_analytics_config

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """Time analytics computations and flag the slow ones"""

    @staticmethod
    def monitor_computation(computation_name: str, threshold_ms: Optional[int] = None):
        """Decorator logging how long a computation took"""

        def _log(execution_ms: float) -> None:
            limit = (
                threshold_ms
                if threshold_ms is not None
                else get_analytics_config().SLOW_COMPUTATION_THRESHOLD_MS
            )
            if execution_ms > limit:
                logger.warning(
                    f"Slow computation detected: {computation_name} took {execution_ms:.0f} ms"
                )
            else:
                logger.debug(
                    f"Computation {computation_name} completed in {execution_ms:.1f} ms"
                )

        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    _log((time.perf_counter() - start_time) * 1000)

            return wrapper

        return decorator
