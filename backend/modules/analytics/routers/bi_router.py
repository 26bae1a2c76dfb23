# backend/modules/analytics/routers/bi_router.py

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from typing import Union
from datetime import datetime
import logging

from core.config import settings

from ..services.bi_analytics_service import BIAnalyticsService, get_bi_analytics_service
from ..schemas.analytics_schemas import (
    ABCAnalysisPayload, ABCAnalysisResponse, AnalysisKind, AnalyticsFailure,
    AnalyticsSuccess, KPIPayload, KPIResponse, ProfitAnalysisPayload,
    ProfitAnalysisResponse, TrendAnalysisPayload, TrendAnalysisResponse
)

router = APIRouter(prefix="/analytics/bi", tags=["Business Intelligence"])
logger = logging.getLogger(__name__)

FAILURE_RESPONSES = {
    400: {"model": AnalyticsFailure, "description": "Malformed analysis request"},
    500: {"model": AnalyticsFailure, "description": "Internal computation error"},
}


def tag_analysis(kind: AnalysisKind):
    """Record the analysis kind so error handlers can echo it in the envelope"""

    def dependency(request: Request):
        request.state.analysis = kind.value

    return dependency


def _respond(result: Union[AnalyticsSuccess, AnalyticsFailure]):
    if isinstance(result, AnalyticsFailure):
        return JSONResponse(
            status_code=result.status_code,
            content=result.model_dump(mode="json", by_alias=True),
        )
    return result


@router.post(
    "/abc-analysis",
    response_model=AnalyticsSuccess[ABCAnalysisResponse],
    responses=FAILURE_RESPONSES,
    dependencies=[Depends(tag_analysis(AnalysisKind.ABC))],
)
def abc_analysis(
    payload: ABCAnalysisPayload,
    service: BIAnalyticsService = Depends(get_bi_analytics_service),
):
    """
    ABC classification of products by cumulative revenue share.

    A products make up the first 80% of revenue, B the next 15%, C the rest.
    A window without sales returns empty buckets, not an error.
    """
    return _respond(service.abc_analysis(payload, payload.records))


@router.post(
    "/profit-analysis",
    response_model=AnalyticsSuccess[ProfitAnalysisResponse],
    responses=FAILURE_RESPONSES,
    dependencies=[Depends(tag_analysis(AnalysisKind.PROFIT))],
)
def profit_analysis(
    payload: ProfitAnalysisPayload,
    service: BIAnalyticsService = Depends(get_bi_analytics_service),
):
    """Profit and margin per item or per category, ordered by profit."""
    return _respond(service.profit_analysis(payload, payload.records))


@router.post(
    "/trends",
    response_model=AnalyticsSuccess[TrendAnalysisResponse],
    responses=FAILURE_RESPONSES,
    dependencies=[Depends(tag_analysis(AnalysisKind.TREND))],
)
def trend_analysis(
    payload: TrendAnalysisPayload,
    service: BIAnalyticsService = Depends(get_bi_analytics_service),
):
    """
    Linear trend, forecast and insights for one metric.

    Supply previousRecords (the preceding window) to get period-over-period
    insights such as margin improvement.
    """
    return _respond(
        service.trend_analysis(payload, payload.records, payload.previous_records)
    )


@router.post(
    "/kpis",
    response_model=AnalyticsSuccess[KPIResponse],
    responses=FAILURE_RESPONSES,
    dependencies=[Depends(tag_analysis(AnalysisKind.KPI))],
)
def kpi_analysis(
    payload: KPIPayload,
    service: BIAnalyticsService = Depends(get_bi_analytics_service),
):
    """Revenue, net profit, margin and average transaction value vs the previous window."""
    return _respond(
        service.kpi_analysis(payload, payload.records, payload.previous_records)
    )


@router.get("/health")
async def health_check():
    """
    Health check endpoint for the BI analytics service.
    """
    return {
        "status": "healthy",
        "service": "bi-analytics",
        "timestamp": datetime.now().isoformat(),
        "version": settings.app_version
    }
