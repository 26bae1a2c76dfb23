# backend/modules/analytics/constants.py

"""
Constants for the business intelligence analytics module.

Tunable thresholds live in config/analytics_config.py; values here are fixed
vocabularies and limits of the analytics contracts.
"""

# Floating point tolerance used for share / percentage invariants
PERCENTAGE_TOLERANCE = 1e-6

# Relative Periods
DEFAULT_RELATIVE_PERIOD = "30d"

# Trend Analysis
FORECAST_CONFIDENCE_FLOOR = 0.1  # Minimum per-point forecast confidence
FORECAST_CONFIDENCE_DECAY = 0.1  # Confidence lost per forecast step
STRONG_FIT_R_SQUARED = 0.8
MODERATE_FIT_R_SQUARED = 0.5

# Seasonality Detection
MIN_SEASONAL_LAG = 2
SEASONALITY_STRENGTH_THRESHOLD = 0.5
SEASONAL_CYCLES_REQUIRED = 2  # Need at least 2 full cycles

# Insight Scoring
CONFIDENCE_BASE = 50.0  # Confidence at exactly the trigger threshold
CONFIDENCE_CAP = 100.0
HIGH_IMPACT_ANOMALY_Z = 3.0
ANOMALY_NOISE_FLOOR = 1e-9  # Relative size below which a residual is float noise
HIGH_IMPACT_DECLINE_GROWTH = -20.0  # % growth below which a decline is high impact
HIGH_IMPACT_LOSS_MARGIN = 20.0  # % of revenue lost above which a loss is high impact

# KPI Targets
REVENUE_GROWTH_GOOD = 5.0  # 5% growth target
REVENUE_GROWTH_WARNING = 0.0
PROFIT_GROWTH_GOOD_RATIO = 1.10
PROFIT_GROWTH_WARNING_RATIO = 1.05
MARGIN_TARGET_GOOD = 15.0  # 15% profit margin target
MARGIN_TARGET_WARNING = 10.0

# Error Messages
ERROR_MESSAGES = {
    "invalid_date_range": "Invalid date range. windowEnd must not be before windowStart.",
    "missing_window": "windowStart and windowEnd must be provided together.",
    "invalid_period_token": "Unsupported relative period token: {token}",
    "invalid_horizon": "forecastHorizon must be between {min_value} and {max_value}.",
    "too_many_records": "Too many records in a single request ({count} > {limit}).",
    "negative_value": "Record {entity_id} has a negative {field}: {value}",
    "non_finite_value": "Record {entity_id} has a non-finite {field}",
    "non_finite_series": "Trend series contains a non-finite value at period {period}",
    "abc_share_mismatch": "Cumulative revenue share ended at {value:.6f}, expected 100",
}
