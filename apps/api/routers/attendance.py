"""
Attendance API endpoints.

Marking is open to the front-desk kiosk; the read views are staff only.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import require_staff
from core.database import get_db
from schemas import MarkAttendanceRequest, Principal
from services import attendance_service

router = APIRouter(prefix="/api/attendance", tags=["attendance"])


@router.post("/mark")
def mark_attendance(request: MarkAttendanceRequest, db: Session = Depends(get_db)):
    return attendance_service.mark_attendance(db, request.member_id, request.type)


@router.get("/today")
def today(db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return attendance_service.get_today_attendance(db)


@router.get("/history")
def history(
    days: int = Query(default=365, ge=1, le=3660),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    return attendance_service.get_history(db, range_days=days)


@router.get("/member/{member_id}")
def member_attendance(member_id: int, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    records = attendance_service.get_member_attendance(db, member_id)
    return [
        {
            "id": r.id,
            "member_id": r.member_id,
            "date": r.date,
            "check_in_time": r.check_in_time,
            "check_out_time": r.check_out_time,
            "method": r.method,
        }
        for r in records
    ]
