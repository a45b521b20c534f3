"""Schemas des réponses IA + requêtes/réponses des endpoints /ai."""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional

from teamflow.models.enums import RiskLevel
from teamflow.schemas.common import UUID_PATTERN

MAX_SUBTASKS = 5


class AIPayload(BaseModel):
    # l'IA répond en camelCase (estimatedHours, riskLevel...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _normalize_risk(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class Subtask(AIPayload):
    title: str
    estimated_hours: float = Field(ge=0)


class TaskBreakdown(AIPayload):
    subtasks: List[Subtask]
    risk_analysis: str
    estimated_total_hours: float = Field(ge=0)

    @field_validator("subtasks")
    @classmethod
    def keep_first_subtasks(cls, value):
        return value[:MAX_SUBTASKS]


class WorkloadRisk(AIPayload):
    risk_level: RiskLevel
    insight: str

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalize_risk(cls, value):
        return _normalize_risk(value)


class BatchRiskItem(AIPayload):
    task_id: str
    risk_level: RiskLevel
    reason: str

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalize_risk(cls, value):
        return _normalize_risk(value)


class QualityAssessment(AIPayload):
    score: int
    analysis: str

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        """Un score hors bornes reste une évaluation: on le ramène dans [0, 100]."""
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError("score must be a number")
        number = float(value)
        if not math.isfinite(number):
            raise ValueError("score must be finite")
        score = round(number)
        return max(0, min(100, score))


# Endpoints /ai

class AnalyzeQualityRequest(BaseModel):
    task_id: str = Field(pattern=UUID_PATTERN)


class AnalyzeQualityResponse(BaseModel):
    success: bool = True
    data: QualityAssessment


class BreakdownRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""


class BreakdownResponse(BaseModel):
    success: bool = True
    data: TaskBreakdown


class WorkloadRiskRequest(BaseModel):
    user_id: Optional[str] = None


class WorkloadRiskResponse(BaseModel):
    success: bool = True
    data: WorkloadRisk


class RiskScanResponse(BaseModel):
    message: str
    scanned: int
    risks_found: int
