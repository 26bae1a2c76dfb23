# backend/modules/analytics/services/abc_analysis_service.py

import logging
import math
from typing import List, Optional

from ..config.analytics_config import AnalyticsSettings, get_analytics_config
from ..constants import ERROR_MESSAGES, PERCENTAGE_TOLERANCE
from ..exceptions import ComputationError
from ..schemas.analytics_schemas import (
    ABCCategory,
    ABCCategorySummary,
    ABCClassification,
    ABCProduct,
    ABCSummary,
    AggregatedEntity,
)

logger = logging.getLogger(__name__)


class ABCClassifier:
    """Pareto-style A/B/C tiering of products by cumulative revenue share"""

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or get_analytics_config()

    def classify(self, entities: List[AggregatedEntity]) -> ABCClassification:
        """
        Rank entities by revenue and assign A/B/C tiers.

        Entities are sorted by total revenue descending; equal revenues keep
        their input order. A product whose cumulative share lands exactly on a
        tier boundary belongs to that tier (80.0 is still A). The top-ranked
        product is always A when it has any revenue.
        """
        if not entities:
            return ABCClassification()

        for entity in entities:
            if not math.isfinite(entity.total_revenue) or entity.total_revenue < 0:
                raise ComputationError(
                    f"Entity {entity.entity_id} has invalid revenue {entity.total_revenue}",
                    stage="abc_classification",
                )

        ranked = sorted(entities, key=lambda e: e.total_revenue, reverse=True)
        total_revenue = 0.0
        for entity in ranked:
            total_revenue += entity.total_revenue

        products: List[ABCProduct] = []
        running_revenue = 0.0
        for rank, entity in enumerate(ranked):
            running_revenue += entity.total_revenue
            if total_revenue > 0:
                percentage = entity.total_revenue / total_revenue * 100
                cumulative = running_revenue / total_revenue * 100
            else:
                percentage = 0.0
                cumulative = 0.0

            products.append(
                ABCProduct(
                    **entity.model_dump(),
                    percentage=percentage,
                    cumulative_percentage=cumulative,
                    abc_category=(
                        ABCCategory.A
                        if rank == 0 and entity.total_revenue > 0
                        else self.category_for(cumulative)
                    ),
                )
            )

        self._check_invariants(products, total_revenue)

        result = ABCClassification(products=products, summary=self._summarize(products))
        logger.debug(
            "ABC classification: %d products, A=%d B=%d C=%d",
            len(products),
            result.summary.category_a.count,
            result.summary.category_b.count,
            result.summary.category_c.count,
        )
        return result

    def category_for(self, cumulative_percentage: float) -> ABCCategory:
        if cumulative_percentage <= self.config.ABC_A_THRESHOLD:
            return ABCCategory.A
        if cumulative_percentage <= self.config.ABC_B_THRESHOLD:
            return ABCCategory.B
        return ABCCategory.C

    # Private helper methods

    def _summarize(self, products: List[ABCProduct]) -> ABCSummary:
        buckets = {category: ABCCategorySummary() for category in ABCCategory}
        for product in products:
            bucket = buckets[product.abc_category]
            bucket.count += 1
            bucket.sales_percentage += product.percentage
            bucket.products.append(product)

        return ABCSummary(
            category_a=buckets[ABCCategory.A],
            category_b=buckets[ABCCategory.B],
            category_c=buckets[ABCCategory.C],
        )

    def _check_invariants(self, products: List[ABCProduct], total_revenue: float) -> None:
        if total_revenue <= 0:
            return

        last = products[-1].cumulative_percentage
        if abs(last - 100) > PERCENTAGE_TOLERANCE:
            raise ComputationError(
                ERROR_MESSAGES["abc_share_mismatch"].format(value=last),
                stage="abc_classification",
            )

        previous = 0.0
        for product in products:
            if product.cumulative_percentage < previous:
                raise ComputationError(
                    "Cumulative revenue share decreased during ABC classification",
                    stage="abc_classification",
                )
            previous = product.cumulative_percentage

