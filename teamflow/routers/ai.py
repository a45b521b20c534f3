"""
Router pour les analyses IA à la demande.

Endpoints:
- POST /ai/analyze-quality - re-noter une tâche à partir de ses preuves (pm/hr)
- POST /ai/breakdown - découper un titre/description libre (pm/hr)
- POST /ai/workload-risk - risque de charge d'un utilisateur
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from teamflow.core.database import get_db
from teamflow.core.deps import get_active_user, get_ai_gateway, get_task_or_404, require_privileged
from teamflow.models.user import User
from teamflow.schemas.ai import (
    AnalyzeQualityRequest,
    AnalyzeQualityResponse,
    BreakdownRequest,
    BreakdownResponse,
    WorkloadRiskRequest,
    WorkloadRiskResponse,
)
from teamflow.services.ai_providers import AIGateway
from teamflow.services.ai_service import (
    BREAKDOWN_FALLBACK,
    WORKLOAD_RISK_FALLBACK,
    analyze_workload_risk,
    breakdown_task_description,
)
from teamflow.services.evidence_service import reanalyze_quality
from teamflow.services.task_lifecycle import is_privileged
from teamflow.services.task_service import get_active_tasks_for_user
from teamflow.services.trace_service import record_trace

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/analyze-quality", response_model=AnalyzeQualityResponse)
def analyze_quality(
    request: AnalyzeQualityRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged),
    gateway: AIGateway = Depends(get_ai_gateway)
):
    task = get_task_or_404(db, request.task_id)

    if not task.evidences:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No evidence found. Cannot analyze quality."
        )

    assessment = reanalyze_quality(db, gateway, task, current_user)
    return AnalyzeQualityResponse(data=assessment)


@router.post("/breakdown", response_model=BreakdownResponse)
def breakdown(
    request: BreakdownRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged),
    gateway: AIGateway = Depends(get_ai_gateway)
):
    outcome = breakdown_task_description(gateway, request.description, request.title)
    record_trace(db, "breakdown", outcome, user_id=current_user.id)
    db.commit()
    return BreakdownResponse(data=outcome.unwrap_or(BREAKDOWN_FALLBACK))


@router.post("/workload-risk", response_model=WorkloadRiskResponse)
def workload_risk(
    request: WorkloadRiskRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_active_user),
    gateway: AIGateway = Depends(get_ai_gateway)
):
    """Sans user_id: l'utilisateur courant. Un employee ne peut viser que lui-même."""
    target_id = (request.user_id or current_user.id).lower()

    if target_id != current_user.id:
        if not is_privileged(current_user.role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="PM or HR role required")
        if not db.query(User).filter(User.id == target_id).first():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    tasks = [
        {
            "title": t.title,
            "dueDate": t.due_date.isoformat() if t.due_date else None,
            "status": t.status,
        }
        for t in get_active_tasks_for_user(db, target_id)
    ]

    outcome = analyze_workload_risk(gateway, tasks)
    record_trace(db, "workload_risk", outcome, user_id=current_user.id)
    db.commit()
    return WorkloadRiskResponse(data=outcome.unwrap_or(WORKLOAD_RISK_FALLBACK))
