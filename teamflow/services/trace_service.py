"""Journal des appels IA (AITrace)"""

from typing import Optional
from sqlalchemy.orm import Session

from teamflow.models.ai_trace import AITrace
from teamflow.services.ai_service import AnalysisOutcome


def record_trace(
    db: Session,
    analysis_type: str,
    outcome: AnalysisOutcome,
    user_id: Optional[str] = None,
    task_id: Optional[str] = None,
) -> AITrace:
    # ajouté à la session, le commit est fait par l'appelant
    trace = AITrace(
        user_id=user_id,
        task_id=task_id,
        analysis_type=analysis_type,
        provider=outcome.provider,
        execution_time_ms=outcome.elapsed_ms,
        success=outcome.ok,
        error_message=outcome.error.message if outcome.error else None,
    )
    db.add(trace)
    return trace
