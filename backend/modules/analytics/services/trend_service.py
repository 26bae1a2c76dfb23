# backend/modules/analytics/services/trend_service.py

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..config.analytics_config import AnalyticsSettings, get_analytics_config
from ..constants import (
    ERROR_MESSAGES,
    FORECAST_CONFIDENCE_DECAY,
    FORECAST_CONFIDENCE_FLOOR,
    MIN_SEASONAL_LAG,
    MODERATE_FIT_R_SQUARED,
    SEASONAL_CYCLES_REQUIRED,
    SEASONALITY_STRENGTH_THRESHOLD,
    STRONG_FIT_R_SQUARED,
)
from ..exceptions import AnalyticsValidationError, ComputationError
from ..schemas.analytics_schemas import (
    ForecastPoint,
    Granularity,
    Seasonality,
    TrendDataPoint,
    TrendDirection,
    TrendLine,
    TrendResult,
    TrendSummary,
)
from ..utils.period_utils import next_period_key

logger = logging.getLogger(__name__)


@dataclass
class LineFit:
    """Ordinary least-squares fit of a series against its 0-based index"""

    slope: float
    intercept: float
    r_squared: float
    residual_std_error: float
    n: int
    x_mean: float
    sxx: float

    def predict(self, index: float) -> float:
        return self.intercept + self.slope * index


class TrendService:
    """Linear trend fitting, forecasting and seasonality detection over a series"""

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or get_analytics_config()

    def analyze_trend(
        self,
        points: Sequence[TrendDataPoint],
        forecast_horizon: Optional[int] = None,
        granularity: Optional[Granularity] = None,
    ) -> TrendResult:
        """
        Fit a linear trend to an ordered series and project it forward.

        Args:
            points: Data points in period order
            forecast_horizon: Number of future periods to project
            granularity: Used to continue the period keys of the forecast;
                without it forecast periods are named forecast_1, forecast_2...

        An empty series is a valid empty result, not an error.
        """
        if forecast_horizon is None:
            forecast_horizon = self.config.DEFAULT_FORECAST_HORIZON
        if forecast_horizon < 0:
            raise AnalyticsValidationError(
                ERROR_MESSAGES["invalid_horizon"].format(
                    min_value=0, max_value=self.config.MAX_FORECAST_HORIZON
                ),
                field="forecast_horizon",
            )

        points = list(points)
        if not points:
            return TrendResult()

        values = self._to_array(points)
        fit = self.fit_line(values)
        direction = self.classify_direction(fit.slope)

        trend = TrendLine(
            direction=direction,
            slope=fit.slope,
            r_squared=fit.r_squared,
            intercept=fit.intercept,
            strength=abs(fit.slope),
            residual_std_error=fit.residual_std_error,
            description=self.describe_trend(direction, fit.r_squared),
        )

        result = TrendResult(
            data_points=points,
            trend=trend,
            forecast=self.generate_forecast(
                fit, points[-1].period, forecast_horizon, granularity
            ),
            summary=self.get_trend_statistics(values),
            seasonality=self.detect_seasonality(values, fit),
        )

        logger.debug(
            f"Trend fitted on {fit.n} points: slope={fit.slope:.4f}, "
            f"r2={fit.r_squared:.4f}, direction={direction.value}"
        )
        return result

    def fit_line(self, values: np.ndarray) -> LineFit:
        n = len(values)
        if n < 2:
            return LineFit(
                slope=0.0,
                intercept=float(values[0]) if n else 0.0,
                r_squared=0.0,
                residual_std_error=0.0,
                n=n,
                x_mean=0.0,
                sxx=0.0,
            )

        x = np.arange(n, dtype=float)
        x_mean = x.mean()
        y_mean = values.mean()
        sxx = float(np.sum((x - x_mean) ** 2))
        sxy = float(np.sum((x - x_mean) * (values - y_mean)))

        slope = sxy / sxx
        intercept = float(y_mean) - slope * float(x_mean)

        residuals = values - (intercept + slope * x)
        ss_res = float(np.sum(residuals**2))
        ss_tot = float(np.sum((values - y_mean) ** 2))

        # A perfectly flat series is perfectly explained by a flat line
        r_squared = 1.0 if ss_tot == 0 else 1.0 - ss_res / ss_tot
        r_squared = min(1.0, max(0.0, r_squared))
        residual_std_error = math.sqrt(ss_res / (n - 2)) if n > 2 else 0.0

        return LineFit(
            slope=slope,
            intercept=intercept,
            r_squared=r_squared,
            residual_std_error=residual_std_error,
            n=n,
            x_mean=float(x_mean),
            sxx=sxx,
        )

    def classify_direction(self, slope: float) -> TrendDirection:
        epsilon = self.config.TREND_STABLE_EPSILON
        if slope > epsilon:
            return TrendDirection.UP
        if slope < -epsilon:
            return TrendDirection.DOWN
        return TrendDirection.STABLE

    def describe_trend(self, direction: TrendDirection, r_squared: float) -> str:
        label = {
            TrendDirection.UP: "Upward",
            TrendDirection.DOWN: "Downward",
            TrendDirection.STABLE: "Stable",
        }[direction]
        if r_squared > STRONG_FIT_R_SQUARED:
            fit = "strong"
        elif r_squared > MODERATE_FIT_R_SQUARED:
            fit = "moderate"
        else:
            fit = "weak"
        return f"{label} trend with {fit} fit"

    def generate_forecast(
        self,
        fit: LineFit,
        last_period: str,
        horizon: int,
        granularity: Optional[Granularity] = None,
    ) -> List[ForecastPoint]:
        """
        Project the fitted line ``horizon`` periods past the last observation.

        Bounds are the regression prediction interval, so they widen with
        distance from the observed data. A single observation gives a flat
        forecast with zero-width bounds.
        """
        z = self.config.FORECAST_CONFIDENCE_MULTIPLIER
        last_index = fit.n - 1
        forecast: List[ForecastPoint] = []

        for step in range(1, horizon + 1):
            index = last_index + step
            value = fit.predict(index)

            if fit.n > 1 and fit.sxx > 0:
                spread = math.sqrt(
                    1 + 1 / fit.n + (index - fit.x_mean) ** 2 / fit.sxx
                )
                half_width = z * fit.residual_std_error * spread
            else:
                half_width = 0.0

            period = None
            if granularity is not None:
                period = next_period_key(last_period, granularity, step)

            forecast.append(
                ForecastPoint(
                    period=period or f"forecast_{step}",
                    value=value,
                    upper_bound=value + half_width,
                    lower_bound=value - half_width,
                    confidence=max(
                        FORECAST_CONFIDENCE_FLOOR,
                        fit.r_squared - FORECAST_CONFIDENCE_DECAY * step,
                    ),
                )
            )

        return forecast

    def get_trend_statistics(self, values: np.ndarray) -> TrendSummary:
        """Totals, extremes and first-to-last growth of the observed series"""
        if len(values) == 0:
            return TrendSummary()

        first, last = float(values[0]), float(values[-1])
        growth = 0.0
        if len(values) > 1 and first > 0:
            growth = (last - first) / first * 100

        return TrendSummary(
            total_value=float(values.sum()),
            average_value=float(values.mean()),
            min_value=float(values.min()),
            max_value=float(values.max()),
            growth=growth,
        )

    def detect_seasonality(self, values: np.ndarray, fit: LineFit) -> Seasonality:
        """
        Look for a repeating cycle in the detrended series.

        Every lag that fits at least two full cycles is scored by its
        autocorrelation; the best lag wins when it reaches the strength
        threshold.
        """
        n = len(values)
        max_lag = n // SEASONAL_CYCLES_REQUIRED
        if max_lag < MIN_SEASONAL_LAG:
            return Seasonality()

        residuals = values - (fit.intercept + fit.slope * np.arange(n, dtype=float))
        denominator = float(np.sum(residuals**2))
        # Residuals at rounding-noise level carry no cycle
        if denominator <= 1e-12 * max(1.0, float(np.sum(values**2))):
            return Seasonality()

        best_lag, best_score = None, 0.0
        for lag in range(MIN_SEASONAL_LAG, max_lag + 1):
            score = float(np.sum(residuals[:-lag] * residuals[lag:])) / denominator
            if score > best_score:
                best_lag, best_score = lag, score

        if best_lag is None or best_score < SEASONALITY_STRENGTH_THRESHOLD:
            return Seasonality(strength=best_score)

        return Seasonality(has_seasonality=True, period=best_lag, strength=best_score)

    # Private helper methods

    def _to_array(self, points: List[TrendDataPoint]) -> np.ndarray:
        values = np.array([point.value for point in points], dtype=float)
        if not np.all(np.isfinite(values)):
            bad = next(p for p in points if not math.isfinite(p.value))
            raise ComputationError(
                ERROR_MESSAGES["non_finite_series"].format(period=bad.period),
                stage="trend_analysis",
            )
        return values


def analyze_trend(
    points: Sequence[TrendDataPoint],
    forecast_horizon: Optional[int] = None,
    granularity: Optional[Granularity] = None,
) -> TrendResult:
    """Module-level shortcut using the default analytics configuration"""
    return TrendService().analyze_trend(points, forecast_horizon, granularity)
