# backend/modules/analytics/config/__init__.py

from .analytics_config import AnalyticsSettings, get_analytics_config

__all__ = ["AnalyticsSettings", "get_analytics_config"]
