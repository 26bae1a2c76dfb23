# backend/modules/analytics/schemas/analytics_schemas.py

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Generic, List, Literal, Optional, TypeVar
from datetime import date, datetime, timezone
from enum import Enum

from ..config.analytics_config import get_analytics_config
from ..constants import DEFAULT_RELATIVE_PERIOD, ERROR_MESSAGES
from ..exceptions import InvalidPeriodError
from ..utils.period_utils import resolve_period
from .insight_schemas import Insight


class AnalyticsModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GroupBy(str, Enum):
    """How raw records are grouped before aggregation"""

    ENTITY = "entity"
    CATEGORY = "category"


class ProfitGroupBy(str, Enum):
    ITEM = "item"
    CATEGORY = "category"

    def to_grouping(self) -> GroupBy:
        return GroupBy.ENTITY if self is ProfitGroupBy.ITEM else GroupBy.CATEGORY


class TrendMetric(str, Enum):
    REVENUE = "revenue"
    PROFIT = "profit"
    SALES_VOLUME = "sales_volume"
    CUSTOMERS = "customers"


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ABCCategory(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class KPITrend(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    STABLE = "STABLE"


class KPIStatus(str, Enum):
    GOOD = "GOOD"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class AnalysisKind(str, Enum):
    ABC = "abc"
    PROFIT = "profit"
    TREND = "trend"
    KPI = "kpi"


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


class TransactionRecord(AnalyticsModel):
    """One line-level sale supplied by the order/inventory store"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    entity_id: str = Field(..., min_length=1, description="Product / menu item id")
    entity_name: str = Field(..., description="Display name of the product")
    category: str = Field("", description="Product category")
    quantity: float = Field(..., ge=0, allow_inf_nan=False)
    unit_revenue: float = Field(..., ge=0, allow_inf_nan=False)
    unit_cost: float = Field(0, ge=0, allow_inf_nan=False)
    timestamp: datetime
    customer_id: Optional[str] = Field(
        None, description="Customer reference, used by the customers trend metric"
    )


# ---------------------------------------------------------------------------
# Aggregation / ABC / profitability
# ---------------------------------------------------------------------------


class AggregatedEntity(AnalyticsModel):
    """Per-product (or per-category) totals over the analysis window"""

    entity_id: str
    name: str
    category: str
    total_quantity: float = 0
    total_revenue: float = 0
    total_cost: float = 0


class ABCProduct(AggregatedEntity):
    percentage: float = Field(..., description="Share of total revenue (0-100)")
    cumulative_percentage: float = Field(
        ..., description="Running revenue share in revenue-descending order"
    )
    abc_category: ABCCategory


class ABCCategorySummary(AnalyticsModel):
    count: int = 0
    sales_percentage: float = 0
    products: List[ABCProduct] = Field(default_factory=list)


class ABCSummary(AnalyticsModel):
    category_a: ABCCategorySummary = Field(default_factory=ABCCategorySummary)
    category_b: ABCCategorySummary = Field(default_factory=ABCCategorySummary)
    category_c: ABCCategorySummary = Field(default_factory=ABCCategorySummary)

    def buckets(self) -> List[ABCCategorySummary]:
        return [self.category_a, self.category_b, self.category_c]


class ABCClassification(AnalyticsModel):
    products: List[ABCProduct] = Field(default_factory=list)
    summary: ABCSummary = Field(default_factory=ABCSummary)

    @property
    def total_sales(self) -> float:
        return sum(product.total_revenue for product in self.products)


class ProfitItem(AggregatedEntity):
    profit: float = Field(..., description="total_revenue - total_cost, negative for a loss")
    profit_margin: float = Field(..., description="profit / revenue * 100, 0 without revenue")


class ProfitSummary(AnalyticsModel):
    total_revenue: float = 0
    total_cost: float = 0
    total_profit: float = 0
    overall_margin: float = 0
    total_items: int = 0
    best_performer: Optional[ProfitItem] = None
    worst_performer: Optional[ProfitItem] = None


class ProfitabilityResult(AnalyticsModel):
    items: List[ProfitItem] = Field(default_factory=list)
    summary: ProfitSummary = Field(default_factory=ProfitSummary)


# ---------------------------------------------------------------------------
# Trend analysis
# ---------------------------------------------------------------------------


class TrendDataPoint(AnalyticsModel):
    period: str = Field(..., description="Ordered period key, e.g. 2024-01-05, 2024-W03, 2024-03")
    value: float = Field(..., allow_inf_nan=False)


class ForecastPoint(TrendDataPoint):
    upper_bound: float
    lower_bound: float
    confidence: float = Field(..., ge=0, le=1)


class TrendLine(AnalyticsModel):
    direction: TrendDirection = TrendDirection.STABLE
    slope: float = 0
    r_squared: float = 0
    intercept: float = 0
    strength: float = 0
    residual_std_error: float = 0
    description: str = "No data available"


class TrendSummary(AnalyticsModel):
    total_value: float = 0
    average_value: float = 0
    min_value: float = 0
    max_value: float = 0
    growth: float = 0


class Seasonality(AnalyticsModel):
    has_seasonality: bool = False
    period: Optional[int] = Field(None, description="Cycle length in periods")
    strength: float = 0


class TrendResult(AnalyticsModel):
    data_points: List[TrendDataPoint] = Field(default_factory=list)
    trend: TrendLine = Field(default_factory=TrendLine)
    forecast: List[ForecastPoint] = Field(default_factory=list)
    summary: TrendSummary = Field(default_factory=TrendSummary)
    seasonality: Seasonality = Field(default_factory=Seasonality)


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------


class KPIMetric(AnalyticsModel):
    value: float = 0
    previous_value: float = 0
    change: float = 0
    change_percent: float = 0
    trend: KPITrend = KPITrend.STABLE
    status: KPIStatus = KPIStatus.CRITICAL
    target: Optional[float] = None
    unit: str = ""
    description: str = ""


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class AnalysisWindowRequest(AnalyticsModel):
    """Explicit window or a relative period token such as "30d" """

    window_start: Optional[date] = Field(None, description="First day of the window")
    window_end: Optional[date] = Field(None, description="Last day of the window (inclusive)")
    period: Optional[str] = Field(
        None, description="Relative period token (7d, 30d, 90d, 1y) used when no window is given"
    )

    @model_validator(mode="after")
    def resolve_window(self):
        if self.window_start is None or self.window_end is None:
            if self.window_start is not None or self.window_end is not None:
                raise ValueError(ERROR_MESSAGES["missing_window"])
            try:
                start, end = resolve_period(self.period or DEFAULT_RELATIVE_PERIOD)
            except InvalidPeriodError as e:
                raise ValueError(e.message)
            self.window_start, self.window_end = start, end

        if self.window_end < self.window_start:
            raise ValueError(ERROR_MESSAGES["invalid_date_range"])
        return self


class ABCAnalysisRequest(AnalysisWindowRequest):
    pass


class ProfitAnalysisRequest(AnalysisWindowRequest):
    group_by: ProfitGroupBy = ProfitGroupBy.ITEM


class TrendAnalysisRequest(AnalysisWindowRequest):
    metric: TrendMetric = TrendMetric.REVENUE
    granularity: Granularity = Granularity.DAY
    forecast_horizon: int = Field(
        default_factory=lambda: get_analytics_config().DEFAULT_FORECAST_HORIZON, ge=0
    )

    @field_validator("forecast_horizon")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        max_horizon = get_analytics_config().MAX_FORECAST_HORIZON
        if v > max_horizon:
            raise ValueError(
                ERROR_MESSAGES["invalid_horizon"].format(min_value=0, max_value=max_horizon)
            )
        return v


class KPIRequest(AnalysisWindowRequest):
    pass


class ABCAnalysisPayload(ABCAnalysisRequest):
    records: List[TransactionRecord] = Field(default_factory=list)


class ProfitAnalysisPayload(ProfitAnalysisRequest):
    records: List[TransactionRecord] = Field(default_factory=list)


class TrendAnalysisPayload(TrendAnalysisRequest):
    records: List[TransactionRecord] = Field(default_factory=list)
    previous_records: Optional[List[TransactionRecord]] = Field(
        None, description="Records of the preceding window, enables period-over-period insights"
    )


class KPIPayload(KPIRequest):
    records: List[TransactionRecord] = Field(default_factory=list)
    previous_records: List[TransactionRecord] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ABCAnalysisResponse(AnalyticsModel):
    window_start: date
    window_end: date
    total_products: int = 0
    total_sales: float = 0
    products: List[ABCProduct] = Field(default_factory=list)
    summary: ABCSummary = Field(default_factory=ABCSummary)


class ProfitAnalysisResponse(AnalyticsModel):
    window_start: date
    window_end: date
    group_by: ProfitGroupBy
    total_revenue: float = 0
    total_cost: float = 0
    total_profit: float = 0
    overall_margin: float = 0
    analysis: List[ProfitItem] = Field(default_factory=list)
    summary: ProfitSummary = Field(default_factory=ProfitSummary)


class TrendAnalysisResponse(TrendResult):
    metric: TrendMetric
    granularity: Granularity
    window_start: date
    window_end: date
    insights: List[Insight] = Field(default_factory=list)


class KPIResponse(AnalyticsModel):
    window_start: date
    window_end: date
    previous_window_start: date
    previous_window_end: date
    transaction_count: int = 0
    total_revenue: KPIMetric
    net_profit: KPIMetric
    profit_margin: KPIMetric
    average_transaction_value: KPIMetric


DataT = TypeVar("DataT")


class ErrorDetail(AnalyticsModel):
    kind: str = Field(..., description="validation_error or computation_error")
    message: str
    details: dict = Field(default_factory=dict)


class AnalyticsSuccess(AnalyticsModel, Generic[DataT]):
    """Successful analysis; an empty data set is still a success"""

    status: Literal["ok"] = "ok"
    analysis: AnalysisKind
    data: DataT
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnalyticsFailure(AnalyticsModel):
    status: Literal["error"] = "error"
    analysis: AnalysisKind
    error: ErrorDetail

    @property
    def status_code(self) -> int:
        return 500 if self.error.kind == "computation_error" else 400
