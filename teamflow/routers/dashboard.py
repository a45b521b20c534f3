from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teamflow.core.database import get_db
from teamflow.core.deps import get_active_user, require_hr, require_privileged
from teamflow.models.user import User
from teamflow.services.dashboard_service import employee_chart, employee_performance, employee_stats, hr_stats, pm_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/employee/stats")
def employee_dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(get_active_user)):
    return employee_stats(db, current_user)


@router.get("/employee/chart")
def employee_dashboard_chart(db: Session = Depends(get_db), current_user: User = Depends(get_active_user)):
    return employee_chart(db, current_user)


@router.get("/employee/performance")
def employee_dashboard_performance(db: Session = Depends(get_db), current_user: User = Depends(get_active_user)):
    return employee_performance(db, current_user)


@router.get("/pm/stats")
def pm_dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(require_privileged)):
    return pm_stats(db)


@router.get("/hr/stats")
def hr_dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(require_hr)):
    return {"success": True, "data": hr_stats(db)}
