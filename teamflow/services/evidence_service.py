"""
Soumission de preuve.

1. enregistre la preuve
2. calcule le retard par rapport à due_date
3. relance l'analyse qualité (fallback si l'IA est indisponible)
4. passe la tâche en "review" avec score + analyse
"""

import logging
import math
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from teamflow.models.enums import TaskStatus
from teamflow.models.evidence import Evidence
from teamflow.models.task import Task
from teamflow.models.user import User
from teamflow.services.ai_providers import AIGateway
from teamflow.services.ai_service import QUALITY_FALLBACK, analyze_task_quality
from teamflow.services.trace_service import record_trace

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 3600
DEFAULT_TASK_DESCRIPTION = "No description"
DEFAULT_EVIDENCE_DESCRIPTION = "Evidence submitted"


def compute_lateness(due_date: Optional[datetime], reference: datetime) -> Tuple[bool, int]:
    """(is_late, days_late) - days_late arrondi au jour supérieur."""
    if due_date is None or reference <= due_date:
        return False, 0
    elapsed = (reference - due_date).total_seconds()
    return True, math.ceil(elapsed / SECONDS_PER_DAY)


def summarize_evidences(evidences: List[Evidence]) -> str:
    return "; ".join(f"[{e.file_type}] {e.description}" for e in evidences)


def submit_evidence(
    db: Session,
    gateway: AIGateway,
    task: Task,
    user: User,
    file_url: str,
    file_type: Optional[str] = None,
    description: Optional[str] = None,
    public_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Evidence:
    now = now or datetime.utcnow()

    evidence = Evidence(
        task_id=task.id,
        user_id=user.id,
        file_url=file_url,
        public_id=public_id,
        file_type=file_type,
        description=description,
        created_at=now,
    )
    db.add(evidence)

    is_late, days_late = compute_lateness(task.due_date, now)
    outcome = analyze_task_quality(
        gateway,
        task.title,
        task.description or DEFAULT_TASK_DESCRIPTION,
        description or DEFAULT_EVIDENCE_DESCRIPTION,
        is_late,
        days_late,
    )
    if not outcome.ok:
        logger.warning(f"Quality analysis unavailable for task {task.id}, storing fallback score")
    assessment = outcome.unwrap_or(QUALITY_FALLBACK)

    task.status = TaskStatus.REVIEW.value
    task.quality_score = assessment.score
    task.quality_analysis = assessment.analysis
    task.updated_at = now

    record_trace(db, "quality", outcome, user_id=user.id, task_id=task.id)

    db.commit()
    db.refresh(evidence)
    return evidence


def reanalyze_quality(db: Session, gateway: AIGateway, task: Task, user: User, now: Optional[datetime] = None):
    """Analyse qualité à la demande (pm/hr) à partir de toutes les preuves."""
    now = now or datetime.utcnow()

    completion_date = task.completed_date or now
    due_date = task.due_date or now
    is_late, days_late = compute_lateness(due_date, completion_date)

    outcome = analyze_task_quality(
        gateway,
        task.title,
        task.description or DEFAULT_TASK_DESCRIPTION,
        summarize_evidences(task.evidences),
        is_late,
        days_late,
    )
    assessment = outcome.unwrap_or(QUALITY_FALLBACK)

    task.quality_score = assessment.score
    task.quality_analysis = assessment.analysis

    record_trace(db, "quality", outcome, user_id=user.id, task_id=task.id)
    db.commit()
    return assessment
