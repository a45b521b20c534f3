"""Pydantic schemas for task request/response validation."""

import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, List, Any

from teamflow.models.enums import Priority, RiskLevel, TaskStatus
from teamflow.schemas.common import UUID_PATTERN, to_naive_utc
from teamflow.schemas.evidence import EvidenceResponse

_UUID_RE = re.compile(UUID_PATTERN)


class TaskCreate(BaseModel):
    project_id: str = Field(pattern=UUID_PATTERN)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    due_date: Optional[datetime] = None
    assignee_id: Optional[str] = Field(default=None, pattern=UUID_PATTERN)
    estimated_hours: float = Field(default=0, ge=0)

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value):
        return to_naive_utc(value)


class TaskUpdate(BaseModel):
    """Champs modifiables - le filtrage par rôle est fait par task_lifecycle."""

    status: Optional[TaskStatus] = None
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[str] = None  # UUID ou "unassigned"
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    risk_level: Optional[RiskLevel] = None

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value):
        return to_naive_utc(value)

    @field_validator("assignee_id")
    @classmethod
    def check_assignee(cls, value):
        if value is None or value == "unassigned" or _UUID_RE.match(value):
            return value
        raise ValueError("assignee_id must be a UUID or 'unassigned'")


class TaskResponse(BaseModel):
    id: str
    project_id: str
    creator_id: str
    assignee_id: Optional[str]
    title: str
    description: Optional[str]
    status: str
    priority: str
    due_date: Optional[datetime]
    completed_date: Optional[datetime]
    estimated_hours: Optional[float]
    actual_hours: Optional[float]
    quality_score: Optional[int]
    quality_analysis: Optional[str]
    risk_level: Optional[str]
    ai_risk_analysis: Optional[str]
    ai_breakdown: Optional[dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskDetailResponse(TaskResponse):
    evidences: List[EvidenceResponse] = []


class AuditAssignee(BaseModel):
    name: str
    role: str


class AuditQueueItem(BaseModel):
    id: str
    title: str
    assignee: AuditAssignee
    submitted_at: datetime
    ai_score: int
    status: str
    risk_level: str
    ai_analysis: str
