"""Task model"""

from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from teamflow.core.database import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    assignee_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)

    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, default="todo", index=True)
    priority = Column(String, default="medium")

    due_date = Column(DateTime, nullable=True, index=True)
    completed_date = Column(DateTime, nullable=True)
    estimated_hours = Column(Float, default=0)
    actual_hours = Column(Float, nullable=True)

    # Résultats IA
    quality_score = Column(Integer, nullable=True)
    quality_analysis = Column(String, nullable=True)
    risk_level = Column(String, nullable=True)
    ai_risk_analysis = Column(String, nullable=True)
    ai_breakdown = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assignee_id])
    evidences = relationship(
        "Evidence",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Evidence.created_at",
    )
