"""
Règles de cycle de vie des tâches.

Une seule table de politique (champ -> rôles autorisés) évaluée une fois
par requête. Les champs non autorisés sont ignorés silencieusement.

Statuts: todo -> in_progress -> review -> done
- un employee qui demande "done" passe en "review" (pas d'auto-validation)
- un pm/hr qui demande "done" valide et date completed_date
- la soumission de preuve force "review" (voir evidence_service)
"""

from datetime import datetime
from typing import Dict, FrozenSet, Optional

from teamflow.models.enums import PRIVILEGED_ROLES, Role, TaskStatus
from teamflow.models.task import Task
from teamflow.models.user import User

ALL_ROLES: FrozenSet[Role] = frozenset(Role)

FIELD_POLICY: Dict[str, FrozenSet[Role]] = {
    "status": ALL_ROLES,
    "actual_hours": ALL_ROLES,
    "title": PRIVILEGED_ROLES,
    "description": PRIVILEGED_ROLES,
    "priority": PRIVILEGED_ROLES,
    "due_date": PRIVILEGED_ROLES,
    "assignee_id": PRIVILEGED_ROLES,
    "estimated_hours": PRIVILEGED_ROLES,
    "risk_level": PRIVILEGED_ROLES,
}

UNASSIGNED = "unassigned"


def is_privileged(role) -> bool:
    return Role(role) in PRIVILEGED_ROLES


def writable_fields(role) -> FrozenSet[str]:
    role = Role(role)
    return frozenset(field for field, roles in FIELD_POLICY.items() if role in roles)


def can_modify_task(user: User, task: Task) -> bool:
    """pm/hr: toutes les tâches. employee: seulement celles qui lui sont assignées."""
    return is_privileged(user.role) or task.assignee_id == user.id


def resolve_status(requested: str, role) -> str:
    if requested == TaskStatus.DONE.value and Role(role) == Role.EMPLOYEE:
        return TaskStatus.REVIEW.value
    return requested


def apply_task_update(task: Task, changes: dict, role, now: Optional[datetime] = None) -> dict:
    """
    Applique `changes` sur `task` selon la politique du rôle.

    Retourne les champs réellement appliqués (updated_at inclus).
    """
    now = now or datetime.utcnow()
    allowed = writable_fields(role)
    applied = {}

    for field, value in changes.items():
        if field not in allowed:
            continue

        if field == "status":
            if value is None:
                continue
            value = resolve_status(value, role)
            if value == TaskStatus.DONE.value:
                task.completed_date = now
                applied["completed_date"] = now
        elif field == "assignee_id" and value == UNASSIGNED:
            value = None
        elif field in ("title", "priority") and value is None:
            # colonnes non nullables côté métier
            continue

        setattr(task, field, value)
        applied[field] = value

    task.updated_at = now
    applied["updated_at"] = now
    return applied
