from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from datetime import datetime
import uuid
from teamflow.core.database import Base

class AITrace(Base):
    __tablename__ = "ai_traces"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True)
    analysis_type = Column(String, nullable=False)  # "breakdown", "workload_risk", "batch_risk", "quality"
    provider = Column(String, nullable=True)  # provider qui a répondu (gemini, groq)
    execution_time_ms = Column(Integer, nullable=True)
    success = Column(Boolean, default=True)
    error_message = Column(String, nullable=True)  # si fallback
    created_at = Column(DateTime, default=datetime.utcnow)
