from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import require_staff
from core.database import get_db
from schemas import Principal
from services.dashboard_service import get_dashboard_stats

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
def stats(db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return get_dashboard_stats(db)
