# backend/modules/analytics/services/kpi_service.py

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..constants import (
    MARGIN_TARGET_GOOD,
    MARGIN_TARGET_WARNING,
    PROFIT_GROWTH_GOOD_RATIO,
    PROFIT_GROWTH_WARNING_RATIO,
    REVENUE_GROWTH_GOOD,
    REVENUE_GROWTH_WARNING,
)
from ..schemas.analytics_schemas import KPIMetric, KPIStatus, KPITrend, TransactionRecord
from .profitability_service import margin_percent
from .record_aggregator import check_record

logger = logging.getLogger(__name__)


@dataclass
class PeriodTotals:
    """Revenue and cost totals of one window"""

    revenue: float = 0.0
    cost: float = 0.0
    transactions: int = 0

    @property
    def profit(self) -> float:
        return self.revenue - self.cost

    @property
    def margin(self) -> float:
        return margin_percent(self.profit, self.revenue)

    @property
    def average_transaction_value(self) -> float:
        return self.revenue / self.transactions if self.transactions else 0.0


def summarize_period(records: Iterable[TransactionRecord]) -> PeriodTotals:
    totals = PeriodTotals()
    for record in records:
        check_record(record)
        totals.revenue += record.quantity * record.unit_revenue
        totals.cost += record.quantity * record.unit_cost
        totals.transactions += 1
    return totals


def status_by_growth(change_percent: float, good: float, warning: float) -> KPIStatus:
    if change_percent >= good:
        return KPIStatus.GOOD
    if change_percent >= warning:
        return KPIStatus.WARNING
    return KPIStatus.CRITICAL


def status_by_value(value: float, good: float, warning: float) -> KPIStatus:
    if value >= good:
        return KPIStatus.GOOD
    if value >= warning:
        return KPIStatus.WARNING
    return KPIStatus.CRITICAL


def build_metric(
    value: float,
    previous: float,
    status: KPIStatus,
    target: Optional[float] = None,
    unit: str = "",
    description: str = "",
) -> KPIMetric:
    """Compare a value against the previous window"""
    change = value - previous
    change_percent = change / previous * 100 if previous > 0 else 0.0

    if change > 0:
        trend = KPITrend.UP
    elif change < 0:
        trend = KPITrend.DOWN
    else:
        trend = KPITrend.STABLE

    return KPIMetric(
        value=value,
        previous_value=previous,
        change=change,
        change_percent=change_percent,
        trend=trend,
        status=status,
        target=target,
        unit=unit,
        description=description,
    )


def _growth_percent(value: float, previous: float) -> float:
    return (value - previous) / previous * 100 if previous > 0 else 0.0


def compute_kpis(
    current_records: List[TransactionRecord],
    previous_records: List[TransactionRecord],
) -> dict:
    """
    Headline executive KPIs for a window compared with the window before it.

    Returns a dict with total_revenue, net_profit, profit_margin,
    average_transaction_value (each a KPIMetric) and transaction_count.
    """
    current = summarize_period(current_records)
    previous = summarize_period(previous_records)

    revenue_growth = _growth_percent(current.revenue, previous.revenue)
    atv_growth = _growth_percent(
        current.average_transaction_value, previous.average_transaction_value
    )

    kpis = {
        "transaction_count": current.transactions,
        "total_revenue": build_metric(
            current.revenue,
            previous.revenue,
            status_by_growth(revenue_growth, REVENUE_GROWTH_GOOD, REVENUE_GROWTH_WARNING),
            target=previous.revenue * (1 + REVENUE_GROWTH_GOOD / 100),
            unit="currency",
            description="Total sales revenue",
        ),
        "net_profit": build_metric(
            current.profit,
            previous.profit,
            status_by_value(
                current.profit,
                previous.profit * PROFIT_GROWTH_GOOD_RATIO,
                previous.profit * PROFIT_GROWTH_WARNING_RATIO,
            ),
            target=previous.profit * PROFIT_GROWTH_GOOD_RATIO,
            unit="currency",
            description="Revenue minus cost of goods sold",
        ),
        "profit_margin": build_metric(
            current.margin,
            previous.margin,
            status_by_value(current.margin, MARGIN_TARGET_GOOD, MARGIN_TARGET_WARNING),
            target=MARGIN_TARGET_GOOD,
            unit="percent",
            description="Net profit as a percentage of revenue",
        ),
        "average_transaction_value": build_metric(
            current.average_transaction_value,
            previous.average_transaction_value,
            status_by_growth(atv_growth, REVENUE_GROWTH_GOOD, REVENUE_GROWTH_WARNING),
            target=previous.average_transaction_value * (1 + REVENUE_GROWTH_GOOD / 100),
            unit="currency",
            description="Average revenue per transaction",
        ),
    }

    logger.debug(
        f"KPIs computed over {current.transactions} current and "
        f"{previous.transactions} previous transactions"
    )
    return kpis
