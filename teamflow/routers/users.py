from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from teamflow.core.database import get_db
from teamflow.core.deps import get_current_user, require_hr, require_privileged
from teamflow.models.user import User
from teamflow.schemas.common import UUID_PATTERN
from teamflow.schemas.user import UserAdminUpdate, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_privileged),
    status_filter: Optional[str] = Query(None),
    role_filter: Optional[str] = Query(None)
):
    query = db.query(User)
    if status_filter:
        query = query.filter(User.status == status_filter)
    if role_filter:
        query = query.filter(User.role == role_filter)
    return query.order_by(User.created_at.desc()).all()


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    # accessible aussi aux comptes pending (affiche l'état de validation)
    return current_user


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_data: UserAdminUpdate,
    user_id: str = Path(..., pattern=UUID_PATTERN),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr)
):
    """Valider / rejeter un compte, changer rôle ou département (hr)"""
    user = db.query(User).filter(User.id == user_id.lower()).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    for field, value in user_data.model_dump(exclude_unset=True).items():
        if value is None and field != "department":
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user
