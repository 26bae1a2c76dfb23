# backend/modules/analytics/services/profitability_service.py

import logging
import math
from typing import List

from ..exceptions import ComputationError
from ..schemas.analytics_schemas import (
    AggregatedEntity,
    ProfitabilityResult,
    ProfitItem,
    ProfitSummary,
)

logger = logging.getLogger(__name__)


def margin_percent(profit: float, revenue: float) -> float:
    """Profit as a percentage of revenue, 0 when there is no revenue"""
    return profit / revenue * 100 if revenue > 0 else 0.0


def compute_profitability(entities: List[AggregatedEntity]) -> ProfitabilityResult:
    """
    Compute profit and margin per entity and in aggregate.

    Loss-making entities are kept. Items are returned ordered by profit,
    highest first; entities with equal profit keep their input order.
    """
    if not entities:
        return ProfitabilityResult()

    items: List[ProfitItem] = []
    for entity in entities:
        if not (math.isfinite(entity.total_revenue) and math.isfinite(entity.total_cost)):
            raise ComputationError(
                f"Entity {entity.entity_id} has non-finite revenue or cost",
                stage="profitability",
            )

        profit = entity.total_revenue - entity.total_cost
        items.append(
            ProfitItem(
                **entity.model_dump(),
                profit=profit,
                profit_margin=margin_percent(profit, entity.total_revenue),
            )
        )

    items.sort(key=lambda item: item.profit, reverse=True)

    total_revenue = sum(item.total_revenue for item in items)
    total_cost = sum(item.total_cost for item in items)
    total_profit = sum(item.profit for item in items)

    summary = ProfitSummary(
        total_revenue=total_revenue,
        total_cost=total_cost,
        total_profit=total_profit,
        overall_margin=margin_percent(total_profit, total_revenue),
        total_items=len(items),
        best_performer=items[0],
        worst_performer=items[-1],
    )

    logger.debug(
        f"Profitability computed for {len(items)} entities, "
        f"overall margin {summary.overall_margin:.2f}%"
    )
    return ProfitabilityResult(items=items, summary=summary)
