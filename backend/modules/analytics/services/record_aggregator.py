# backend/modules/analytics/services/record_aggregator.py

import logging
import math
from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Set

from ..constants import ERROR_MESSAGES
from ..exceptions import ComputationError
from ..schemas.analytics_schemas import (
    AggregatedEntity,
    Granularity,
    GroupBy,
    TransactionRecord,
    TrendDataPoint,
    TrendMetric,
)
from ..utils.period_utils import in_window, period_key, period_start

logger = logging.getLogger(__name__)


def check_record(record: TransactionRecord) -> None:
    """Guard the numeric invariants of a record that bypassed schema validation"""
    for field in ("quantity", "unit_revenue", "unit_cost"):
        value = getattr(record, field)
        if not math.isfinite(value):
            raise ComputationError(
                ERROR_MESSAGES["non_finite_value"].format(
                    entity_id=record.entity_id, field=field
                ),
                stage="aggregation",
            )
        if value < 0:
            raise ComputationError(
                ERROR_MESSAGES["negative_value"].format(
                    entity_id=record.entity_id, field=field, value=value
                ),
                stage="aggregation",
            )


def filter_window(
    records: Iterable[TransactionRecord], start: date, end: date
) -> List[TransactionRecord]:
    """Keep records whose timestamp falls inside the inclusive window"""
    return [record for record in records if in_window(record.timestamp, start, end)]


def aggregate(
    records: Iterable[TransactionRecord], group_by: GroupBy = GroupBy.ENTITY
) -> List[AggregatedEntity]:
    """
    Group raw records by product (or category) and sum their totals.

    Entities come out in first-seen order. The display name and category
    are taken from the first record seen for a key. An empty input gives an
    empty list.
    """
    group_by = GroupBy(group_by)
    totals: Dict[str, Dict] = OrderedDict()

    for record in records:
        check_record(record)

        if group_by is GroupBy.CATEGORY:
            key = record.category
            name = record.category
        else:
            key = record.entity_id
            name = record.entity_name

        entry = totals.get(key)
        if entry is None:
            entry = totals[key] = {
                "entity_id": key,
                "name": name,
                "category": record.category,
                "total_quantity": 0.0,
                "total_revenue": 0.0,
                "total_cost": 0.0,
            }

        entry["total_quantity"] += record.quantity
        entry["total_revenue"] += record.quantity * record.unit_revenue
        entry["total_cost"] += record.quantity * record.unit_cost

    entities = [AggregatedEntity(**entry) for entry in totals.values()]
    logger.debug(f"Aggregated records into {len(entities)} {group_by.value} groups")
    return entities


def _metric_value(metric: TrendMetric, records: List[TransactionRecord]) -> float:
    if metric is TrendMetric.REVENUE:
        return sum(r.quantity * r.unit_revenue for r in records)
    if metric is TrendMetric.PROFIT:
        return sum(r.quantity * (r.unit_revenue - r.unit_cost) for r in records)
    if metric is TrendMetric.SALES_VOLUME:
        return sum(r.quantity for r in records)

    # Customers: distinct customer ids; anonymous sales count once per hour
    customers: Set[str] = set()
    for r in records:
        if r.customer_id:
            customers.add(f"customer:{r.customer_id}")
        else:
            customers.add(f"hour:{r.timestamp.strftime('%Y-%m-%dT%H')}")
    return float(len(customers))


def build_metric_series(
    records: Iterable[TransactionRecord],
    metric: TrendMetric,
    granularity: Granularity = Granularity.DAY,
) -> List[TrendDataPoint]:
    """
    Turn raw records into one data point per observed period.

    Periods without records are not zero-filled, so the regression sees only
    periods that actually had sales.
    """
    metric = TrendMetric(metric)
    granularity = Granularity(granularity)

    buckets: Dict[str, List[TransactionRecord]] = {}
    for record in records:
        check_record(record)
        buckets.setdefault(period_key(record.timestamp, granularity), []).append(record)

    ordered_keys = sorted(buckets, key=lambda key: period_start(key, granularity))
    series = [
        TrendDataPoint(period=key, value=_metric_value(metric, buckets[key]))
        for key in ordered_keys
    ]
    logger.debug(
        f"Built {metric.value} series with {len(series)} {granularity.value} periods"
    )
    return series
