from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional

class AITraceResponse(BaseModel):
    """Trace IA retournée par l'API"""
    id: str
    user_id: Optional[str]
    task_id: Optional[str]
    analysis_type: str
    provider: Optional[str]
    execution_time_ms: Optional[int]
    success: bool
    error_message: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
