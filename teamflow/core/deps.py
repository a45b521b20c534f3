"""Dépendances FastAPI partagées par les routers (auth, rôles, gateway IA)."""

from fastapi import Depends, HTTPException, Header, Request, status
from sqlalchemy.orm import Session
from typing import Optional

from teamflow.core.database import get_db
from teamflow.core.security import decode_token
from teamflow.models.enums import PRIVILEGED_ROLES, Role, UserStatus
from teamflow.models.task import Task
from teamflow.models.user import User
from teamflow.services.ai_providers import AIConfigurationError, AIGateway


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None)
) -> User:
    # Check token
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = authorization.replace("Bearer ", "")
    user_id = decode_token(token)

    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return user


def get_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Comptes pending/rejected: pas d'accès au dashboard"""
    if current_user.status == UserStatus.PENDING.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account pending approval")
    if current_user.status != UserStatus.ACTIVE.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account rejected")
    return current_user


def require_privileged(current_user: User = Depends(get_active_user)) -> User:
    if Role(current_user.role) not in PRIVILEGED_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="PM or HR role required")
    return current_user


def require_hr(current_user: User = Depends(get_active_user)) -> User:
    if current_user.role != Role.HR.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden - HR access only")
    return current_user


def get_ai_gateway(request: Request) -> AIGateway:
    """Gateway construit au démarrage (lifespan), surchargé dans les tests."""
    gateway = getattr(request.app.state, "ai_gateway", None)
    if gateway is None:
        raise AIConfigurationError("AI gateway is not initialised")
    return gateway


def get_task_or_404(db: Session, task_id: str) -> Task:
    task = db.query(Task).filter(Task.id == task_id.lower()).first()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


def check_assignees_exist(db: Session, assignee_ids) -> None:
    """400 avant toute écriture si un assignee_id ne correspond à aucun utilisateur"""
    wanted = {a.lower() for a in assignee_ids if a and a != "unassigned"}
    if not wanted:
        return
    found = {row[0] for row in db.query(User.id).filter(User.id.in_(wanted)).all()}
    if wanted - found:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assignee not found")
