from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from sqlalchemy.orm import Session
from typing import Annotated, List, Optional
from datetime import datetime

from teamflow.core.database import get_db
from teamflow.core.deps import (
    check_assignees_exist,
    get_active_user,
    get_ai_gateway,
    get_task_or_404,
    require_privileged,
)
from teamflow.models.project import Project
from teamflow.models.task import Task
from teamflow.models.user import User
from teamflow.schemas.common import UUID_PATTERN
from teamflow.schemas.evidence import EvidenceCreate, EvidenceResponse
from teamflow.schemas.task import TaskCreate, TaskUpdate, TaskResponse, TaskDetailResponse
from teamflow.services.ai_providers import AIGateway
from teamflow.services.ai_service import BREAKDOWN_FALLBACK, breakdown_task_description
from teamflow.services.evidence_service import submit_evidence
from teamflow.services.task_lifecycle import apply_task_update, can_modify_task, is_privileged
from teamflow.services.task_service import get_overdue_tasks, get_upcoming_tasks
from teamflow.services.trace_service import record_trace

router = APIRouter(prefix="/tasks", tags=["tasks"])

TaskId = Annotated[str, Path(pattern=UUID_PATTERN)]


def _get_modifiable_task(db: Session, task_id: str, current_user: User) -> Task:
    task = get_task_or_404(db, task_id)
    if not can_modify_task(current_user, task):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task is not assigned to you")
    return task


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    project = db.query(Project).filter(Project.id == task_data.project_id.lower()).first()
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    check_assignees_exist(db, [task_data.assignee_id])

    new_task = Task(
        project_id=project.id,
        creator_id=current_user.id,
        assignee_id=task_data.assignee_id.lower() if task_data.assignee_id else None,
        title=task_data.title,
        description=task_data.description,
        priority=task_data.priority,
        due_date=task_data.due_date,
        estimated_hours=task_data.estimated_hours,
        status="todo"
    )
    db.add(new_task)
    db.commit()
    db.refresh(new_task)
    return new_task


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user),
    status_filter: Optional[str] = Query(None),
    project_id: Optional[str] = Query(None, pattern=UUID_PATTERN),
    assignee_id: Optional[str] = Query(None, pattern=UUID_PATTERN)
):
    """employee: ses tâches assignées. pm/hr: toutes, filtrables."""
    query = db.query(Task)

    if not is_privileged(current_user.role):
        query = query.filter(Task.assignee_id == current_user.id)
    elif assignee_id:
        query = query.filter(Task.assignee_id == assignee_id.lower())

    if status_filter and status_filter in ["todo", "in_progress", "review", "done"]:
        query = query.filter(Task.status == status_filter)

    if project_id:
        query = query.filter(Task.project_id == project_id.lower())

    return query.order_by(Task.created_at.desc()).all()


@router.get("/upcoming", response_model=List[TaskResponse])
def upcoming(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user)
):
    return get_upcoming_tasks(db, current_user.id)


@router.get("/overdue", response_model=List[TaskResponse])
def overdue(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user)
):
    return get_overdue_tasks(db, current_user.id)


@router.get("/{task_id}", response_model=TaskDetailResponse)
def get_task(
    task_id: TaskId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user)
):
    task = get_task_or_404(db, task_id)
    if not is_privileged(current_user.role) and task.assignee_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task is not assigned to you")
    return task


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_data: TaskUpdate,
    task_id: TaskId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user)
):
    """
    Mise à jour soumise aux règles de cycle de vie:
    - employee + status=done -> review
    - pm/hr + status=done -> done + completed_date
    - title/due_date/assignee_id... ignorés pour un employee
    """
    task = _get_modifiable_task(db, task_id, current_user)

    changes = task_data.model_dump(exclude_unset=True)
    if isinstance(changes.get("assignee_id"), str) and changes["assignee_id"] != "unassigned":
        changes["assignee_id"] = changes["assignee_id"].lower()
        if is_privileged(current_user.role):
            check_assignees_exist(db, [changes["assignee_id"]])

    apply_task_update(task, changes, current_user.role, now=datetime.utcnow())

    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: TaskId,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    task = get_task_or_404(db, task_id)
    db.delete(task)
    db.commit()


@router.post("/{task_id}/evidence", response_model=EvidenceResponse, status_code=status.HTTP_201_CREATED)
def create_evidence(
    evidence_data: EvidenceCreate,
    task_id: TaskId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user),
    gateway: AIGateway = Depends(get_ai_gateway)
):
    """
    Soumettre une preuve: la tâche passe en review et reçoit un score qualité
    (valeur de repli si l'IA est indisponible).
    """
    task = _get_modifiable_task(db, task_id, current_user)

    return submit_evidence(
        db,
        gateway,
        task,
        current_user,
        file_url=evidence_data.file_url,
        file_type=evidence_data.file_type,
        description=evidence_data.description,
        public_id=evidence_data.public_id,
    )


@router.get("/{task_id}/evidence", response_model=List[EvidenceResponse])
def list_evidence(
    task_id: TaskId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user)
):
    task = _get_modifiable_task(db, task_id, current_user)
    return task.evidences


@router.post("/{task_id}/breakdown", response_model=TaskResponse)
def breakdown_task(
    task_id: TaskId,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged),
    gateway: AIGateway = Depends(get_ai_gateway)
):
    """Découpage IA de la tâche, stocké dans ai_breakdown"""
    task = get_task_or_404(db, task_id)

    outcome = breakdown_task_description(gateway, task.description or "", task.title)
    breakdown = outcome.unwrap_or(BREAKDOWN_FALLBACK)

    task.ai_breakdown = breakdown.model_dump(by_alias=True)
    task.updated_at = datetime.utcnow()
    record_trace(db, "breakdown", outcome, user_id=current_user.id, task_id=task.id)

    db.commit()
    db.refresh(task)
    return task
