# backend/modules/analytics/config/analytics_config.py

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """
    Thresholds for the business intelligence analytics core.

    Every value can be overridden with an ``ANALYTICS_`` prefixed environment
    variable, e.g. ``ANALYTICS_TREND_STABLE_EPSILON=0.5``.
    """

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_", case_sensitive=False)

    # Cumulative revenue share (percent) closing the A and B tiers
    ABC_A_THRESHOLD: float = 80.0
    ABC_B_THRESHOLD: float = 95.0

    # Slopes within +/- epsilon are reported as "stable"
    TREND_STABLE_EPSILON: float = 0.1

    # z-value applied to the residual standard error (~95% interval)
    FORECAST_CONFIDENCE_MULTIPLIER: float = 1.96

    DEFAULT_FORECAST_HORIZON: int = 5
    MAX_FORECAST_HORIZON: int = 90

    # A period is anomalous when its residual exceeds this many standard errors
    ANOMALY_STD_MULTIPLIER: float = 2.0
    MIN_POINTS_FOR_ANOMALY: int = 5

    # Minimum rSquared before a direction is reported as an insight
    TREND_CONFIDENCE_FLOOR: float = 0.5

    # Log a warning when a single analysis takes longer than this
    SLOW_COMPUTATION_THRESHOLD_MS: int = 1000

    @model_validator(mode="after")
    def validate_thresholds(self):
        if not 0 < self.ABC_A_THRESHOLD < self.ABC_B_THRESHOLD <= 100:
            raise ValueError(
                "ABC thresholds must satisfy 0 < ABC_A_THRESHOLD < ABC_B_THRESHOLD <= 100"
            )
        if not 0 <= self.TREND_CONFIDENCE_FLOOR < 1:
            raise ValueError("TREND_CONFIDENCE_FLOOR must be in [0, 1)")
        if self.TREND_STABLE_EPSILON < 0 or self.FORECAST_CONFIDENCE_MULTIPLIER < 0:
            raise ValueError("Trend epsilon and confidence multiplier must be non-negative")
        if self.ANOMALY_STD_MULTIPLIER <= 0:
            raise ValueError("ANOMALY_STD_MULTIPLIER must be positive")
        if not 0 <= self.DEFAULT_FORECAST_HORIZON <= self.MAX_FORECAST_HORIZON:
            raise ValueError("DEFAULT_FORECAST_HORIZON must be within [0, MAX_FORECAST_HORIZON]")
        return self


# Global instance
analytics_config = AnalyticsSettings()


def get_analytics_config() -> AnalyticsSettings:
    """Get the analytics threshold configuration."""
    return analytics_config
