from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from typing import Annotated, List

from teamflow.core.database import get_db
from teamflow.core.deps import require_privileged
from teamflow.models.ai_trace import AITrace
from teamflow.models.user import User
from teamflow.schemas.ai_trace import AITraceResponse
from teamflow.schemas.common import UUID_PATTERN

router = APIRouter(prefix="/ai-traces", tags=["ai-traces"])


@router.get("", response_model=List[AITraceResponse])
def list_ai_traces(db: Session = Depends(get_db), current_user: User = Depends(require_privileged)):
    return db.query(AITrace).order_by(AITrace.created_at.desc()).limit(200).all()


@router.get("/task/{task_id}", response_model=List[AITraceResponse])
def get_traces_for_task(
    task_id: Annotated[str, Path(pattern=UUID_PATTERN)],
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged)
):
    return db.query(AITrace).filter(
        AITrace.task_id == task_id.lower()
    ).order_by(AITrace.created_at.desc()).all()
