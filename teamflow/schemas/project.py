from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, List

from teamflow.models.enums import Priority, ProjectStatus
from teamflow.schemas.common import UUID_PATTERN, to_naive_utc


class ProjectTaskInput(BaseModel):
    """Tâche créée (ou synchronisée) avec le projet"""
    id: Optional[str] = Field(default=None, pattern=UUID_PATTERN)  # absent = nouvelle tâche
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    estimated_hours: float = Field(default=0, ge=0)
    due_date: Optional[datetime] = None
    assignee_id: Optional[str] = Field(default=None, pattern=UUID_PATTERN)

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value):
        return to_naive_utc(value)


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    tasks: List[ProjectTaskInput] = []
    member_ids: List[str] = []

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value):
        return to_naive_utc(value)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    tasks: Optional[List[ProjectTaskInput]] = None  # si fourni: synchro complète

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value):
        return to_naive_utc(value)


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    status: str
    manager_id: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    progress: int = 0

    model_config = ConfigDict(from_attributes=True)


class TeamMember(BaseModel):
    id: str
    name: str
    role: str
    department: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ProjectTaskSummary(BaseModel):
    id: str
    title: str
    description: Optional[str]
    assignee_id: Optional[str]
    assignee_name: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime]
    estimated_hours: Optional[float]


class ProjectDetailResponse(ProjectResponse):
    team: List[TeamMember] = []
    tasks: List[ProjectTaskSummary] = []


class MemberAdd(BaseModel):
    user_id: str = Field(pattern=UUID_PATTERN)
