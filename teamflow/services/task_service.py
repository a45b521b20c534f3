"""Task service"""

import math
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import List, Optional
from teamflow.models.enums import ACTIVE_TASK_STATUSES
from teamflow.models.task import Task


def get_upcoming_tasks(db: Session, user_id: str, days: int = 7, now: Optional[datetime] = None) -> List[Task]:
    now = now or datetime.utcnow()
    horizon = now + timedelta(days=days)

    return db.query(Task).filter(
        Task.assignee_id == user_id,
        Task.due_date >= now,
        Task.due_date <= horizon
    ).order_by(Task.due_date.asc()).all()


def get_overdue_tasks(db: Session, user_id: str, now: Optional[datetime] = None) -> List[Task]:
    now = now or datetime.utcnow()

    return db.query(Task).filter(
        Task.assignee_id == user_id,
        Task.due_date < now,
        Task.status != 'done'
    ).order_by(Task.due_date.asc()).all()


def get_active_tasks_for_user(db: Session, user_id: str) -> List[Task]:
    return db.query(Task).filter(
        Task.assignee_id == user_id,
        Task.status.in_(ACTIVE_TASK_STATUSES)
    ).all()


def get_review_queue(db: Session) -> List[Task]:
    return db.query(Task).filter(
        Task.status == 'review'
    ).order_by(Task.updated_at.desc()).all()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def project_progress(tasks: List[Task]) -> int:
    """% de tâches terminées, arrondi"""
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.status == 'done')
    return round_half_up(done / len(tasks) * 100)
