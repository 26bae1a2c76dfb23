# backend/modules/analytics/services/insight_service.py

import logging
import math
from typing import Dict, List, Optional

import numpy as np

from ..config.analytics_config import AnalyticsSettings, get_analytics_config
from ..constants import (
    ANOMALY_NOISE_FLOOR,
    CONFIDENCE_BASE,
    CONFIDENCE_CAP,
    HIGH_IMPACT_ANOMALY_Z,
    HIGH_IMPACT_DECLINE_GROWTH,
    HIGH_IMPACT_LOSS_MARGIN,
    STRONG_FIT_R_SQUARED,
)
from ..schemas.analytics_schemas import (
    ABCCategory,
    ABCClassification,
    ProfitabilityResult,
    ProfitItem,
    ProfitSummary,
    TrendDirection,
    TrendResult,
)
from ..schemas.insight_schemas import Insight, InsightImpact, InsightType

logger = logging.getLogger(__name__)


def confidence_score(excess: float, scale: float) -> float:
    """
    Confidence grows with how far an observation is past its trigger.

    Exactly at the trigger the score is 50; it rises linearly and is capped
    at 100.
    """
    if scale <= 0:
        return CONFIDENCE_CAP
    score = CONFIDENCE_BASE + (CONFIDENCE_CAP - CONFIDENCE_BASE) * max(excess, 0.0) / scale
    return round(min(CONFIDENCE_CAP, score), 2)


class InsightService:
    """Rule-based observations over ABC, profitability and trend results"""

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or get_analytics_config()

    def generate_insights(
        self,
        abc: Optional[ABCClassification] = None,
        profit: Optional[ProfitabilityResult] = None,
        trend: Optional[TrendResult] = None,
        previous_profit: Optional[ProfitSummary] = None,
    ) -> List[Insight]:
        """
        Run every rule in a fixed order and collect the insights that fire.

        Rules run as anomalies, trend direction, ABC margin opportunities,
        loss warnings and finally period-over-period success. The same inputs
        always give the same list in the same order.
        """
        insights: List[Insight] = []

        if trend is not None:
            insights.extend(self._detect_anomalies(trend))
            insights.extend(self._analyze_trend_direction(trend))

        if abc is not None and profit is not None:
            insights.extend(self._find_margin_opportunities(abc, profit))

        if profit is not None:
            insights.extend(self._find_loss_makers(profit))
            if previous_profit is not None:
                insights.extend(self._check_margin_improvement(profit.summary, previous_profit))

        logger.debug(f"Generated {len(insights)} insights")
        return insights

    # Private helper methods

    def _detect_anomalies(self, trend: TrendResult) -> List[Insight]:
        """
        Periods that sit further from the trend line than the other periods allow.

        Each point is scored with its externally studentized residual: the
        residual spread is taken from the fit without that point.
        """
        points = trend.data_points
        threshold = self.config.ANOMALY_STD_MULTIPLIER
        n = len(points)

        # Leave-one-out spread needs n - 3 degrees of freedom
        if n < max(self.config.MIN_POINTS_FOR_ANOMALY, 4):
            return []

        x = np.arange(n, dtype=float)
        values = np.array([point.value for point in points], dtype=float)
        expected = trend.trend.intercept + trend.trend.slope * x
        residuals = values - expected
        leverage = 1.0 / n + (x - x.mean()) ** 2 / float(np.sum((x - x.mean()) ** 2))
        ss_res = float(np.sum(residuals**2))
        if ss_res <= 0:
            return []

        anomalies = []
        for index, point in enumerate(points):
            deviation = float(residuals[index])
            if abs(deviation) <= ANOMALY_NOISE_FLOOR * max(1.0, abs(float(expected[index]))):
                continue

            ss_without = ss_res - deviation**2 / (1 - leverage[index])
            if ss_without <= ANOMALY_NOISE_FLOOR * ss_res:
                # The other periods lie exactly on a line
                z_score = math.inf
            else:
                spread = math.sqrt(ss_without / (n - 3))
                z_score = abs(deviation) / (spread * math.sqrt(1 - leverage[index]))
            if z_score <= threshold:
                continue

            kind = "spike" if deviation > 0 else "drop"
            if math.isinf(z_score):
                detail = "while every other period follows the trend exactly"
            else:
                detail = f"{z_score:.1f} standard residuals away"
            anomalies.append(
                Insight(
                    id=f"anomaly-{point.period}",
                    type=InsightType.ANOMALY,
                    title=f"Unusual {kind} in {point.period}",
                    description=(
                        f"The value {point.value:.2f} differs from the expected "
                        f"{expected[index]:.2f} {detail}."
                    ),
                    impact=(
                        InsightImpact.HIGH
                        if z_score > HIGH_IMPACT_ANOMALY_Z
                        else InsightImpact.MEDIUM
                    ),
                    confidence=confidence_score(z_score - threshold, threshold),
                    recommendations=[
                        f"Check orders and stock movements recorded for {point.period}",
                        "Look for promotions, events or data entry errors on that date",
                    ],
                    period=point.period,
                )
            )
        return anomalies

    def _analyze_trend_direction(self, trend: TrendResult) -> List[Insight]:
        line = trend.trend
        floor = self.config.TREND_CONFIDENCE_FLOOR
        if line.r_squared <= floor or line.direction == TrendDirection.STABLE:
            return []

        confidence = confidence_score(line.r_squared - floor, 1 - floor)

        if line.direction == TrendDirection.UP:
            return [
                Insight(
                    id="trend-up",
                    type=InsightType.TREND,
                    title="Sustained growth",
                    description=(
                        f"Values are rising by {line.slope:.2f} per period "
                        f"(R² {line.r_squared:.2f}, growth {trend.summary.growth:.1f}%)."
                    ),
                    impact=(
                        InsightImpact.HIGH
                        if line.r_squared > STRONG_FIT_R_SQUARED
                        else InsightImpact.MEDIUM
                    ),
                    confidence=confidence,
                    actionable=False,
                    recommendations=["Make sure stock levels keep up with demand"],
                )
            ]

        return [
            Insight(
                id="warning-downtrend",
                type=InsightType.WARNING,
                title="Declining trend",
                description=(
                    f"Values are falling by {abs(line.slope):.2f} per period "
                    f"(R² {line.r_squared:.2f}, growth {trend.summary.growth:.1f}%)."
                ),
                impact=(
                    InsightImpact.HIGH
                    if trend.summary.growth <= HIGH_IMPACT_DECLINE_GROWTH
                    else InsightImpact.MEDIUM
                ),
                confidence=confidence,
                recommendations=[
                    "Review pricing and recent menu changes",
                    "Consider a targeted promotion for the affected period",
                ],
            )
        ]

    def _find_margin_opportunities(
        self, abc: ABCClassification, profit: ProfitabilityResult
    ) -> List[Insight]:
        """A-class products earning less than the average margin"""
        overall = profit.summary.overall_margin
        by_entity: Dict[str, ProfitItem] = {item.entity_id: item for item in profit.items}
        scale = max(abs(overall), 1.0)

        opportunities = []
        for product in abc.products:
            if product.abc_category != ABCCategory.A:
                continue
            item = by_entity.get(product.entity_id)
            if item is None or item.profit_margin >= overall:
                continue

            opportunities.append(
                Insight(
                    id=f"opportunity-{product.entity_id}",
                    type=InsightType.OPPORTUNITY,
                    title=f"Margin opportunity on {product.name}",
                    description=(
                        f"{product.name} is an A-class product but its margin "
                        f"({item.profit_margin:.1f}%) is below the overall margin ({overall:.1f}%)."
                    ),
                    impact=InsightImpact.HIGH,
                    confidence=confidence_score(overall - item.profit_margin, scale),
                    recommendations=[
                        f"Review supplier prices for {product.name}",
                        f"Consider a small price increase on {product.name}",
                    ],
                    entity_id=product.entity_id,
                )
            )
        return opportunities

    def _find_loss_makers(self, profit: ProfitabilityResult) -> List[Insight]:
        warnings = []
        for item in profit.items:
            if item.profit >= 0:
                continue

            # Without revenue every unit of cost is lost
            loss_share = -item.profit_margin if item.total_revenue > 0 else 100.0
            warnings.append(
                Insight(
                    id=f"warning-loss-{item.entity_id}",
                    type=InsightType.WARNING,
                    title=f"{item.name} is sold at a loss",
                    description=(
                        f"{item.name} lost {abs(item.profit):.2f} "
                        f"(margin {item.profit_margin:.1f}%)."
                    ),
                    impact=(
                        InsightImpact.HIGH
                        if loss_share >= HIGH_IMPACT_LOSS_MARGIN
                        else InsightImpact.MEDIUM
                    ),
                    confidence=confidence_score(loss_share, 100.0),
                    recommendations=[
                        f"Check the recorded cost of {item.name}",
                        f"Reprice or retire {item.name}",
                    ],
                    entity_id=item.entity_id,
                )
            )
        return warnings

    def _check_margin_improvement(
        self, current: ProfitSummary, previous: ProfitSummary
    ) -> List[Insight]:
        improvement = current.overall_margin - previous.overall_margin
        if current.total_revenue <= 0 or previous.total_revenue <= 0 or improvement <= 0:
            return []

        return [
            Insight(
                id="success-margin",
                type=InsightType.SUCCESS,
                title="Overall margin improved",
                description=(
                    f"Overall margin rose from {previous.overall_margin:.1f}% "
                    f"to {current.overall_margin:.1f}%."
                ),
                impact=InsightImpact.MEDIUM,
                confidence=confidence_score(
                    improvement, max(abs(previous.overall_margin), 1.0)
                ),
                actionable=False,
            )
        ]


def generate_insights(
    abc: Optional[ABCClassification] = None,
    profit: Optional[ProfitabilityResult] = None,
    trend: Optional[TrendResult] = None,
    previous_profit: Optional[ProfitSummary] = None,
) -> List[Insight]:
    """Module-level shortcut using the default analytics configuration"""
    return InsightService().generate_insights(abc, profit, trend, previous_profit)
