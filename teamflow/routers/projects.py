from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.orm import Session
from typing import Annotated, List
from datetime import datetime
import logging

from teamflow.core.database import get_db
from teamflow.core.deps import check_assignees_exist, get_active_user, require_privileged
from teamflow.models.project import Project, ProjectMember
from teamflow.models.task import Task
from teamflow.models.user import User
from teamflow.schemas.common import UUID_PATTERN
from teamflow.schemas.project import (
    MemberAdd,
    ProjectCreate,
    ProjectDetailResponse,
    ProjectResponse,
    ProjectTaskInput,
    ProjectTaskSummary,
    ProjectUpdate,
    TeamMember,
)
from teamflow.services.task_service import project_progress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

ProjectId = Annotated[str, Path(pattern=UUID_PATTERN)]


def _get_project_or_404(db: Session, project_id: str) -> Project:
    project = db.query(Project).filter(Project.id == project_id.lower()).first()
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def _with_progress(project: Project) -> ProjectResponse:
    response = ProjectResponse.model_validate(project)
    response.progress = project_progress(project.tasks)
    return response


def _new_task(project_id: str, creator_id: str, data: ProjectTaskInput) -> Task:
    return Task(
        project_id=project_id,
        creator_id=creator_id,
        title=data.title,
        description=data.description,
        priority=data.priority,
        estimated_hours=data.estimated_hours,
        due_date=data.due_date,
        assignee_id=data.assignee_id.lower() if data.assignee_id else None,
        status="todo"
    )


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user)
):
    projects = db.query(Project).order_by(Project.created_at.desc()).all()
    return [_with_progress(p) for p in projects]


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    """Crée le projet + tâches initiales + membres"""
    check_assignees_exist(db, [t.assignee_id for t in project_data.tasks])

    project = Project(
        name=project_data.name,
        description=project_data.description,
        status=project_data.status,
        manager_id=current_user.id,
        start_date=project_data.start_date,
        end_date=project_data.end_date
    )
    db.add(project)
    db.flush()

    for task_data in project_data.tasks:
        db.add(_new_task(project.id, current_user.id, task_data))

    member_ids = {m.lower() for m in project_data.member_ids}
    if member_ids:
        found = db.query(User.id).filter(User.id.in_(member_ids)).all()
        unknown = member_ids - {row[0] for row in found}
        if unknown:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown member id(s)")
        for user_id in member_ids:
            db.add(ProjectMember(project_id=project.id, user_id=user_id))

    db.commit()
    db.refresh(project)
    logger.info(f"Project {project.id} created with {len(project_data.tasks)} task(s) and {len(member_ids)} member(s)")
    return _with_progress(project)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
def get_project(
    project_id: ProjectId,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user)
):
    project = _get_project_or_404(db, project_id)

    summary = _with_progress(project)
    return ProjectDetailResponse(
        **summary.model_dump(),
        team=[TeamMember.model_validate(m.user) for m in project.members],
        tasks=[
            ProjectTaskSummary(
                id=t.id,
                title=t.title,
                description=t.description,
                assignee_id=t.assignee_id,
                assignee_name=t.assignee.name if t.assignee else None,
                status=t.status,
                priority=t.priority,
                due_date=t.due_date,
                estimated_hours=t.estimated_hours
            )
            for t in project.tasks
        ]
    )


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_data: ProjectUpdate,
    project_id: ProjectId,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    """
    Modifier le projet. Si `tasks` est fourni, la liste fait foi:
    tâches absentes supprimées, tâches avec id mises à jour, sans id créées.
    """
    project = _get_project_or_404(db, project_id)
    update_data = project_data.model_dump(exclude_unset=True, exclude={"tasks"})
    if project_data.tasks is not None:
        check_assignees_exist(db, [t.assignee_id for t in project_data.tasks])

    for field, value in update_data.items():
        if value is None and field in ("name", "status"):
            continue
        setattr(project, field, value)
    project.updated_at = datetime.utcnow()

    if project_data.tasks is not None:
        current = {t.id: t for t in project.tasks}
        incoming_ids = {t.id.lower() for t in project_data.tasks if t.id}

        for task_id, task in current.items():
            if task_id not in incoming_ids:
                db.delete(task)

        for task_data in project_data.tasks:
            if not task_data.id:
                db.add(_new_task(project.id, current_user.id, task_data))
                continue
            task = current.get(task_data.id.lower())
            if task is None:
                db.rollback()
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Task {task_data.id} does not belong to this project")
            task.title = task_data.title
            task.description = task_data.description
            task.priority = task_data.priority
            task.estimated_hours = task_data.estimated_hours
            task.assignee_id = task_data.assignee_id.lower() if task_data.assignee_id else None
            if task_data.due_date is not None:
                task.due_date = task_data.due_date
            task.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(project)
    return _with_progress(project)


@router.delete("/{project_id}")
def delete_project(
    project_id: ProjectId,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    project = _get_project_or_404(db, project_id)

    # membres nettoyés explicitement, les tâches (et preuves) suivent en cascade
    db.query(ProjectMember).filter(ProjectMember.project_id == project.id).delete(synchronize_session=False)
    db.delete(project)
    db.commit()
    return {"message": "Project deleted successfully"}


@router.post("/{project_id}/members", response_model=List[TeamMember], status_code=status.HTTP_201_CREATED)
def add_member(
    member: MemberAdd,
    project_id: ProjectId,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    project = _get_project_or_404(db, project_id)
    user = db.query(User).filter(User.id == member.user_id.lower()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if not any(m.user_id == user.id for m in project.members):
        db.add(ProjectMember(project_id=project.id, user_id=user.id))
        db.commit()
        db.refresh(project)

    return [TeamMember.model_validate(m.user) for m in project.members]


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    project_id: ProjectId,
    user_id: Annotated[str, Path(pattern=UUID_PATTERN)],
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    membership = db.query(ProjectMember).filter(
        ProjectMember.project_id == project_id.lower(),
        ProjectMember.user_id == user_id.lower()
    ).first()
    if not membership:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    db.delete(membership)
    db.commit()
