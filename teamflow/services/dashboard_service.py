"""
Service dashboards - statistiques employee / pm / hr.

Calculs en Python sur les lignes chargées (volumes d'une équipe).
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from teamflow.models.enums import ProjectStatus, Role, TaskStatus, UserStatus
from teamflow.models.project import Project
from teamflow.models.task import Task
from teamflow.models.user import User
from teamflow.services.task_service import round_half_up

CHART_DAYS = 90
OVERLOAD_THRESHOLD = 10  # tâches actives
SECONDS_PER_DAY = 24 * 3600


def _count_by(tasks: List[Task], attr: str, keys) -> Dict[str, int]:
    counts = Counter(getattr(t, attr) for t in tasks)
    return {key: counts.get(key, 0) for key in keys}


def _average_quality(tasks: List[Task]) -> Optional[int]:
    scored = [t.quality_score for t in tasks if t.quality_score is not None]
    if not scored:
        return None
    return round_half_up(sum(scored) / len(scored))


# ============ EMPLOYEE ============

def employee_stats(db: Session, user: User, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    week_end = now + timedelta(days=7)
    tasks = db.query(Task).filter(Task.assignee_id == user.id).all()

    by_status = _count_by(tasks, "status", [s.value for s in TaskStatus])

    upcoming = [t for t in tasks if t.due_date and now <= t.due_date <= week_end]
    overdue = [t for t in tasks if t.due_date and t.due_date < now and t.status != TaskStatus.DONE.value]

    recent_completed = sorted(
        (t for t in tasks if t.status == TaskStatus.DONE.value),
        key=lambda t: t.completed_date or datetime.min,
        reverse=True,
    )[:5]

    return {
        "total_tasks": len(tasks),
        "done_tasks": by_status["done"],
        "in_progress_tasks": by_status["in_progress"],
        "todo_tasks": by_status["todo"],
        "review_tasks": by_status["review"],
        "upcoming_deadlines": len(upcoming),
        "overdue_tasks": len(overdue),
        "avg_quality_score": _average_quality(tasks),
        "task_distribution": by_status,
        "priority_distribution": _count_by(tasks, "priority", ["critical", "high", "medium", "low"]),
        "recent_completed": [
            {
                "id": t.id,
                "title": t.title,
                "completed_date": t.completed_date,
                "quality_score": t.quality_score,
            }
            for t in recent_completed
        ],
    }


def employee_chart(db: Session, user: User, now: Optional[datetime] = None) -> List[dict]:
    """Tâches terminées (par date de fin) et en attente (par date de création) sur 90 jours"""
    now = now or datetime.utcnow()
    tasks = db.query(Task).filter(Task.assignee_id == user.id).all()

    # une entrée par jour, du jour J-89 à aujourd'hui; rien hors de cette fenêtre
    days = {}
    for offset in range(CHART_DAYS):
        day = (now - timedelta(days=CHART_DAYS - 1 - offset)).date().isoformat()
        days[day] = {"completed": 0, "pending": 0}

    for task in tasks:
        if task.completed_date:
            bucket = days.get(task.completed_date.date().isoformat())
            if bucket is not None:
                bucket["completed"] += 1
        if task.status != TaskStatus.DONE.value and task.created_at:
            bucket = days.get(task.created_at.date().isoformat())
            if bucket is not None:
                bucket["pending"] += 1

    return [{"date": day, **counts} for day, counts in sorted(days.items())]


def _signed(value: int, suffix: str = "") -> str:
    return f"+{value}{suffix}" if value >= 0 else f"{value}{suffix}"


def _month_bounds(now: datetime):
    current_start = datetime(now.year, now.month, 1)
    last_end = current_start - timedelta(microseconds=1)
    last_start = datetime(last_end.year, last_end.month, 1)
    return current_start, last_start, last_end


def _period_metrics(tasks: List[Task], start: datetime, end: datetime) -> dict:
    in_range = [t for t in tasks if t.created_at and start <= t.created_at <= end]
    completed = [t for t in in_range if t.status == TaskStatus.DONE.value]

    with_deadline = [t for t in completed if t.due_date]
    on_time = [t for t in with_deadline if t.completed_date and t.completed_date <= t.due_date]
    on_time_rate = round_half_up(len(on_time) / len(with_deadline) * 100) if with_deadline else 100

    durations = [
        (t.completed_date - t.created_at).total_seconds() / SECONDS_PER_DAY
        for t in completed if t.completed_date
    ]
    avg_completion_days = round(sum(durations) / len(durations), 1) if durations else 0

    active_days = set()
    for t in in_range:
        active_days.add(t.created_at.date())
        if t.completed_date:
            active_days.add(t.completed_date.date())

    return {
        "tasks_completed": len(completed),
        "tasks_total": len(in_range),
        "completion_rate": round_half_up(len(completed) / len(in_range) * 100) if in_range else 0,
        "on_time_rate": on_time_rate,
        "late_submissions": len(with_deadline) - len(on_time),
        "avg_completion_days": avg_completion_days,
        "active_days": len(active_days),
    }


def _average_score(tasks: List[Task]) -> float:
    if not tasks:
        return 0
    return sum(t.quality_score for t in tasks) / len(tasks)


def employee_performance(db: Session, user: User, now: Optional[datetime] = None) -> dict:
    """Mois courant vs mois précédent + activité récente + qualité"""
    now = now or datetime.utcnow()
    current_start, last_start, last_end = _month_bounds(now)
    tasks = db.query(Task).filter(Task.assignee_id == user.id).all()

    current_month = _period_metrics(tasks, current_start, now)
    last_month = _period_metrics(tasks, last_start, last_end)

    recent = sorted(
        (t for t in tasks if t.status == TaskStatus.DONE.value and t.completed_date and t.created_at),
        key=lambda t: t.completed_date,
        reverse=True,
    )[:10]

    scored = [t for t in tasks if t.quality_score is not None]
    quality_metrics = None
    if scored:
        best = max(scored, key=lambda t: t.quality_score)

        def completed_between(start, end):
            return [t for t in scored if t.completed_date and start <= t.completed_date <= end]

        quality_trend = round_half_up(
            _average_score(completed_between(current_start, now)) - _average_score(completed_between(last_start, last_end))
        )
        quality_metrics = {
            "avg_quality_score": _average_quality(scored),
            "tasks_with_score": len(scored),
            "best_task": {"title": best.title, "score": best.quality_score},
            "trend": _signed(quality_trend),
        }

    return {
        "current_month": current_month,
        "last_month": last_month,
        "task_breakdown": {
            "by_priority": _count_by(tasks, "priority", ["critical", "high", "medium", "low"]),
            "by_status": _count_by(tasks, "status", [s.value for s in TaskStatus]),
        },
        "recent_activity": [
            {
                "id": t.id,
                "date": t.completed_date,
                "title": t.title,
                "status": t.status,
                "priority": t.priority,
                "on_time": t.completed_date <= t.due_date if t.due_date else True,
                "days_to_complete": round_half_up((t.completed_date - t.created_at).total_seconds() / SECONDS_PER_DAY),
                "quality_score": t.quality_score,
            }
            for t in recent
        ],
        "trend": {
            "tasks_completed": _signed(current_month["tasks_completed"] - last_month["tasks_completed"]),
            "completion_rate": _signed(current_month["completion_rate"] - last_month["completion_rate"], "%"),
            "on_time_rate": _signed(current_month["on_time_rate"] - last_month["on_time_rate"], "%"),
        },
        "quality_metrics": quality_metrics,
    }


# ============ PM ============

def team_efficiency(tasks: List[Task]) -> int:
    """% de tâches terminées à temps parmi celles terminées avec échéance"""
    finished = [t for t in tasks if t.status == TaskStatus.DONE.value and t.due_date and t.completed_date]
    if not finished:
        return 100
    on_time = [t for t in finished if t.completed_date <= t.due_date]
    return round_half_up(len(on_time) / len(finished) * 100)


def pm_stats(db: Session) -> dict:
    projects = db.query(Project).all()
    tasks = db.query(Task).all()

    active = [t for t in tasks if t.status != TaskStatus.DONE.value]
    workload = Counter(t.assignee_id for t in active if t.assignee_id)

    names = {}
    if workload:
        users = db.query(User).filter(User.id.in_(list(workload))).all()
        names = {u.id: u.name for u in users}

    top_workload = sorted(
        ({"name": names[user_id], "tasks": count} for user_id, count in workload.items() if user_id in names),
        key=lambda row: row["tasks"],
        reverse=True,
    )[:5]

    return {
        "stats": {
            "total_projects": len(projects),
            "active_tasks": len(active),
            "team_efficiency": team_efficiency(tasks),
            "pending_review": sum(1 for t in tasks if t.status == TaskStatus.REVIEW.value),
        },
        "project_status": _count_by(projects, "status", [s.value for s in ProjectStatus]),
        "workload": top_workload,
    }


# ============ HR ============

def hr_stats(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    one_month_ago = now - timedelta(days=30)

    users = db.query(User).all()
    projects = db.query(Project).all()
    tasks = db.query(Task).all()

    staff_roles = (Role.EMPLOYEE.value, Role.PM.value)
    approved = [u for u in users if u.status == UserStatus.ACTIVE.value and u.role in staff_roles]
    pending = [u for u in users if u.status == UserStatus.PENDING.value]
    total_employees = len(approved)

    last_month_employees = sum(1 for u in approved if u.created_at and u.created_at < one_month_ago)
    active_projects = [p for p in projects if p.status == ProjectStatus.ACTIVE.value]
    last_month_projects = sum(1 for p in active_projects if p.created_at and p.created_at < one_month_ago)

    active_tasks = [t for t in tasks if t.status != TaskStatus.DONE.value and t.assignee_id]
    avg_workload = round(len(active_tasks) / total_employees, 1) if total_employees else 0

    departments = Counter(u.department or "Unassigned" for u in approved)
    department_distribution = sorted(
        (
            {"name": name, "count": count, "percentage": round_half_up(count / total_employees * 100)}
            for name, count in departments.items()
        ),
        key=lambda row: row["count"],
        reverse=True,
    )

    per_user = Counter(t.assignee_id for t in active_tasks)
    workload_by_user = [per_user.get(u.id, 0) for u in approved]

    return {
        "overview": {
            "total_employees": total_employees,
            "employee_growth": total_employees - last_month_employees,
            "pending_approvals": len(pending),
            "active_projects": len(active_projects),
            "project_growth": len(active_projects) - last_month_projects,
            "avg_workload": avg_workload,
        },
        "department_distribution": department_distribution,
        "top_departments": department_distribution[:5],
        "user_status_breakdown": {
            "approved": sum(1 for u in users if u.status == UserStatus.ACTIVE.value),
            "pending": len(pending),
            "rejected": sum(1 for u in users if u.status == UserStatus.REJECTED.value),
            "total": len(users),
        },
        "workload_stats": {
            "total_active_tasks": len(active_tasks),
            "avg_tasks_per_employee": avg_workload,
            "overloaded_users": sum(1 for count in workload_by_user if count > OVERLOAD_THRESHOLD),
            "max_workload": max(workload_by_user, default=0),
            "min_workload": min(workload_by_user, default=0),
        },
        "pending_approvals_list": [
            {"id": u.id, "name": u.name, "email": u.email, "role": u.role, "created_at": u.created_at}
            for u in pending[:5]
        ],
    }
