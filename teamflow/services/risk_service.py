"""Scan de risque des tâches actives"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from teamflow.models.enums import ACTIVE_TASK_STATUSES
from teamflow.models.task import Task
from teamflow.services.ai_providers import AIGateway
from teamflow.services.ai_service import BATCH_RISK_FALLBACK, analyze_batch_tasks_risk
from teamflow.services.trace_service import record_trace

logger = logging.getLogger(__name__)


def run_risk_scan(db: Session, gateway: AIGateway, user_id: Optional[str] = None, today: Optional[datetime] = None) -> dict:
    """
    Analyse les tâches todo/in_progress/review et écrit risk_level +
    ai_risk_analysis sur celles jugées high/critical.

    Une écriture (et un commit) par tâche risquée: un échec au milieu
    laisse les tâches précédentes à jour.
    """
    active_tasks = db.query(Task).filter(Task.status.in_(ACTIVE_TASK_STATUSES)).all()

    if not active_tasks:
        return {"message": "No active tasks to scan", "scanned": 0, "risks_found": 0}

    tasks_for_ai = [
        {
            "id": t.id,
            "title": t.title,
            "dueDate": t.due_date.isoformat() if t.due_date else "",
            "status": t.status or "todo",
        }
        for t in active_tasks
    ]

    outcome = analyze_batch_tasks_risk(gateway, tasks_for_ai, today=today)
    risks = outcome.unwrap_or(BATCH_RISK_FALLBACK)
    record_trace(db, "batch_risk", outcome, user_id=user_id)
    db.commit()

    tasks_by_id = {t.id: t for t in active_tasks}
    for risk in risks:
        task = tasks_by_id[risk.task_id]
        task.risk_level = risk.risk_level.value
        task.ai_risk_analysis = risk.reason
        db.commit()

    logger.info(f"Risk scan: {len(active_tasks)} tasks scanned, {len(risks)} risky")
    return {"message": "Risk scan completed", "scanned": len(active_tasks), "risks_found": len(risks)}
