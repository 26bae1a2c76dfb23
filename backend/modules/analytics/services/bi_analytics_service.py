# backend/modules/analytics/services/bi_analytics_service.py

"""
Result assembler for the business intelligence analyses.

Every public method takes a request (model or plain dict) plus the raw
records supplied by the order/inventory store and returns either an
``AnalyticsSuccess`` or an ``AnalyticsFailure``. A window without records is
a success with zeroed aggregates; only malformed requests and broken
invariants produce failures.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from core.config import Settings, get_settings
from core.exceptions import (
    APIError,
    format_validation_errors,
    jsonable_validation_errors,
)

from ..config.analytics_config import AnalyticsSettings, get_analytics_config
from ..constants import ERROR_MESSAGES
from ..exceptions import AnalyticsValidationError, ComputationError
from ..schemas.analytics_schemas import (
    ABCAnalysisRequest,
    ABCAnalysisResponse,
    AnalysisKind,
    AnalyticsFailure,
    AnalyticsSuccess,
    ErrorDetail,
    GroupBy,
    KPIRequest,
    KPIResponse,
    ProfitAnalysisRequest,
    ProfitAnalysisResponse,
    ProfitSummary,
    TransactionRecord,
    TrendAnalysisRequest,
    TrendAnalysisResponse,
)
from ..utils.performance_monitor import PerformanceMonitor
from ..utils.period_utils import previous_window
from .abc_analysis_service import ABCClassifier
from .insight_service import InsightService
from .kpi_service import compute_kpis
from .profitability_service import compute_profitability
from .record_aggregator import aggregate, build_metric_series, filter_window
from .trend_service import TrendService

logger = logging.getLogger(__name__)

AnalysisResult = Union[AnalyticsSuccess, AnalyticsFailure]


class BIAnalyticsService:
    """Runs the BI analyses and wraps them in the uniform result envelope"""

    def __init__(
        self,
        config: Optional[AnalyticsSettings] = None,
        app_settings: Optional[Settings] = None,
    ):
        self.config = config or get_analytics_config()
        self.app_settings = app_settings or get_settings()
        self.classifier = ABCClassifier(self.config)
        self.trend_service = TrendService(self.config)
        self.insight_service = InsightService(self.config)

    @PerformanceMonitor.monitor_computation("abc_analysis")
    def abc_analysis(self, request: Any, records: Iterable[Any] = ()) -> AnalysisResult:
        """ABC classification of the products sold in the window"""
        return self._run(
            AnalysisKind.ABC, ABCAnalysisResponse, self._abc_analysis, request, records
        )

    @PerformanceMonitor.monitor_computation("profit_analysis")
    def profit_analysis(self, request: Any, records: Iterable[Any] = ()) -> AnalysisResult:
        """Profit and margin per item or category"""
        return self._run(
            AnalysisKind.PROFIT,
            ProfitAnalysisResponse,
            self._profit_analysis,
            request,
            records,
        )

    @PerformanceMonitor.monitor_computation("trend_analysis")
    def trend_analysis(
        self,
        request: Any,
        records: Iterable[Any] = (),
        previous_records: Optional[Iterable[Any]] = None,
    ) -> AnalysisResult:
        """
        Trend, forecast and insights for one metric.

        ``previous_records`` are the records of the preceding window of the
        same length; when given, margin improvement can be reported.
        """
        return self._run(
            AnalysisKind.TREND,
            TrendAnalysisResponse,
            self._trend_analysis,
            request,
            records,
            previous_records,
        )

    @PerformanceMonitor.monitor_computation("kpi_analysis")
    def kpi_analysis(
        self,
        request: Any,
        records: Iterable[Any] = (),
        previous_records: Optional[Iterable[Any]] = None,
    ) -> AnalysisResult:
        """Headline KPIs compared with the preceding window"""
        return self._run(
            AnalysisKind.KPI,
            KPIResponse,
            self._kpi_analysis,
            request,
            records,
            previous_records,
        )

    # Private helper methods

    def _run(
        self,
        kind: AnalysisKind,
        response_cls: Type[BaseModel],
        compute: Callable[..., BaseModel],
        *args,
    ) -> AnalysisResult:
        try:
            data = compute(*args)
        except APIError as e:
            if isinstance(e, ComputationError):
                logger.error(f"{kind.value} analysis failed: {e.message}")
            else:
                logger.warning(f"Invalid {kind.value} analysis request: {e.message}")
            return AnalyticsFailure(analysis=kind, error=ErrorDetail(**e.to_dict()))
        except Exception as e:
            logger.exception(f"Unexpected error during {kind.value} analysis")
            error = ComputationError(
                f"Unexpected error during {kind.value} analysis: {e}",
                details={"exception": e.__class__.__name__},
            )
            return AnalyticsFailure(analysis=kind, error=ErrorDetail(**error.to_dict()))

        logger.info(f"{kind.value} analysis completed")
        return AnalyticsSuccess[response_cls](analysis=kind, data=data)

    def _parse_request(self, model_cls: Type[BaseModel], request: Any):
        if isinstance(request, model_cls):
            return request
        if isinstance(request, BaseModel):
            request = request.model_dump(exclude_unset=True)
        try:
            return model_cls.model_validate(request or {})
        except ValidationError as e:
            raise AnalyticsValidationError(
                format_validation_errors(e.errors()),
                details={"validation_errors": jsonable_validation_errors(e.errors())},
            )

    def _parse_records(
        self, records: Optional[Iterable[Any]], field: str = "records"
    ) -> List[TransactionRecord]:
        if records is None:
            return []
        records = list(records)

        limit = self.app_settings.max_records_per_request
        if len(records) > limit:
            raise AnalyticsValidationError(
                ERROR_MESSAGES["too_many_records"].format(count=len(records), limit=limit),
                field=field,
            )

        parsed = []
        for index, record in enumerate(records):
            if isinstance(record, TransactionRecord):
                parsed.append(record)
                continue
            try:
                parsed.append(TransactionRecord.model_validate(record))
            except ValidationError as e:
                raise AnalyticsValidationError(
                    f"{field}[{index}]: {format_validation_errors(e.errors())}",
                    field=field,
                    details={"validation_errors": jsonable_validation_errors(e.errors())},
                )
        return parsed

    def _abc_analysis(self, request: Any, records: Iterable[Any]) -> ABCAnalysisResponse:
        req = self._parse_request(ABCAnalysisRequest, request)
        in_window = filter_window(
            self._parse_records(records), req.window_start, req.window_end
        )

        abc = self.classifier.classify(aggregate(in_window, GroupBy.ENTITY))
        return ABCAnalysisResponse(
            window_start=req.window_start,
            window_end=req.window_end,
            total_products=len(abc.products),
            total_sales=abc.total_sales,
            products=abc.products,
            summary=abc.summary,
        )

    def _profit_analysis(self, request: Any, records: Iterable[Any]) -> ProfitAnalysisResponse:
        req = self._parse_request(ProfitAnalysisRequest, request)
        in_window = filter_window(
            self._parse_records(records), req.window_start, req.window_end
        )

        profit = compute_profitability(aggregate(in_window, req.group_by.to_grouping()))
        summary = profit.summary
        return ProfitAnalysisResponse(
            window_start=req.window_start,
            window_end=req.window_end,
            group_by=req.group_by,
            total_revenue=summary.total_revenue,
            total_cost=summary.total_cost,
            total_profit=summary.total_profit,
            overall_margin=summary.overall_margin,
            analysis=profit.items,
            summary=summary,
        )

    def _trend_analysis(
        self,
        request: Any,
        records: Iterable[Any],
        previous_records: Optional[Iterable[Any]],
    ) -> TrendAnalysisResponse:
        req = self._parse_request(TrendAnalysisRequest, request)
        in_window = filter_window(
            self._parse_records(records), req.window_start, req.window_end
        )

        series = build_metric_series(in_window, req.metric, req.granularity)
        trend = self.trend_service.analyze_trend(
            series, req.forecast_horizon, req.granularity
        )

        entities = aggregate(in_window, GroupBy.ENTITY)
        previous_profit = None
        if previous_records is not None:
            previous_profit = self._previous_profit_summary(
                req.window_start, req.window_end, previous_records
            )

        insights = self.insight_service.generate_insights(
            abc=self.classifier.classify(entities),
            profit=compute_profitability(entities),
            trend=trend,
            previous_profit=previous_profit,
        )

        return TrendAnalysisResponse(
            **dict(trend),
            metric=req.metric,
            granularity=req.granularity,
            window_start=req.window_start,
            window_end=req.window_end,
            insights=insights,
        )

    def _kpi_analysis(
        self,
        request: Any,
        records: Iterable[Any],
        previous_records: Optional[Iterable[Any]],
    ) -> KPIResponse:
        req = self._parse_request(KPIRequest, request)
        prev_start, prev_end = previous_window(req.window_start, req.window_end)

        current = filter_window(
            self._parse_records(records), req.window_start, req.window_end
        )
        previous = filter_window(
            self._parse_records(previous_records, "previous_records"), prev_start, prev_end
        )

        return KPIResponse(
            window_start=req.window_start,
            window_end=req.window_end,
            previous_window_start=prev_start,
            previous_window_end=prev_end,
            **compute_kpis(current, previous),
        )

    def _previous_profit_summary(self, start, end, previous_records) -> ProfitSummary:
        prev_start, prev_end = previous_window(start, end)
        previous = filter_window(
            self._parse_records(previous_records, "previous_records"), prev_start, prev_end
        )
        return compute_profitability(aggregate(previous, GroupBy.ENTITY)).summary


def get_bi_analytics_service() -> BIAnalyticsService:
    """Dependency provider for the BI analytics service"""
    return BIAnalyticsService()
