# backend/modules/analytics/schemas/insight_schemas.py

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from enum import Enum


class InsightType(str, Enum):
    """Types of rule-based insights"""

    ANOMALY = "anomaly"
    TREND = "trend"
    OPPORTUNITY = "opportunity"
    WARNING = "warning"
    SUCCESS = "success"


class InsightImpact(str, Enum):
    """Business impact of an insight"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Insight(BaseModel):
    """A single human-readable observation produced for one analysis call"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "opportunity-latte",
                "type": "opportunity",
                "title": "Margin opportunity on Latte",
                "description": "Latte is an A-class product but its margin (18.0%) "
                "is below the overall margin (31.5%).",
                "impact": "high",
                "confidence": 71.4,
                "actionable": True,
                "recommendations": ["Review supplier prices for Latte"],
            }
        },
    )

    id: str = Field(..., description="Deterministic id: <type>-<subject>")
    type: InsightType
    title: str
    description: str
    impact: InsightImpact
    confidence: float = Field(..., ge=0, le=100, description="Confidence score (0-100)")
    actionable: bool = True
    recommendations: List[str] = Field(default_factory=list)
    entity_id: Optional[str] = Field(None, description="Product or category the insight is about")
    period: Optional[str] = Field(None, description="Period the insight is about")
