# backend/modules/analytics/__init__.py

"""
Analytics Module - Business Intelligence core

Turns raw sales records supplied by the order/inventory store into:
- ABC product classification by cumulative revenue share
- Profitability per item or category
- Linear trend analysis with forecasting, seasonality and insights
- Executive KPIs compared with the previous period

Components:
- Services: pure computations plus the result assembler
- Schemas: Pydantic models for requests, results and insights
- Routers: FastAPI endpoints under /analytics/bi
- Tests: pytest suite
"""

__version__ = "1.0.0"
