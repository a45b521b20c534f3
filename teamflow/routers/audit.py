"""
Router audit - file de revue + scan de risque IA.

Endpoints:
- GET /audit - tâches en review (pm/hr)
- POST /audit/scan - scan de risque des tâches actives (pm/hr)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from teamflow.core.database import get_db
from teamflow.core.deps import get_ai_gateway, require_privileged
from teamflow.models.user import User
from teamflow.schemas.ai import RiskScanResponse
from teamflow.schemas.task import AuditAssignee, AuditQueueItem
from teamflow.services.ai_providers import AIGateway
from teamflow.services.risk_service import run_risk_scan
from teamflow.services.task_service import get_review_queue

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=List[AuditQueueItem])
def audit_queue(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    return [
        AuditQueueItem(
            id=t.id,
            title=t.title,
            assignee=AuditAssignee(
                name=t.assignee.name if t.assignee else "Unknown",
                role=t.assignee.role if t.assignee else "employee",
            ),
            submitted_at=t.updated_at,
            ai_score=t.quality_score or 0,
            status=t.status,
            risk_level=t.risk_level or "low",
            ai_analysis=t.quality_analysis or "No analysis generated yet.",
        )
        for t in get_review_queue(db)
    ]


@router.post("/scan", response_model=RiskScanResponse)
def scan_risks(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged),
    gateway: AIGateway = Depends(get_ai_gateway)
):
    return run_risk_scan(db, gateway, user_id=current_user.id)
