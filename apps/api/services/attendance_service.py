"""
Attendance tracker.

Check-in always opens a new record for today (no guard against an already
open session). Check-out closes the most recent open record for today.
Both manual marking and fingerprint authentication go through
``mark_attendance``.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.clock import local_now, local_today
from core.exceptions import InvalidStateError
from models import Attendance, Member
from services.member_service import get_member_or_404

logger = logging.getLogger(__name__)

NO_OPEN_SESSION = "No active check-in found for today. Please check in first."


def _member_summary(member: Member) -> Dict[str, Any]:
    return {"id": member.id, "name": member.full_name, "status": member.status}


def find_open_session(db: Session, member_id: int) -> Optional[Attendance]:
    return (
        db.query(Attendance)
        .filter(
            Attendance.member_id == member_id,
            Attendance.date == local_today(),
            Attendance.check_out_time.is_(None),
        )
        .order_by(Attendance.check_in_time.desc(), Attendance.id.desc())
        .first()
    )


def check_in(db: Session, member: Member, method: str = "manual") -> Attendance:
    record = Attendance(
        member_id=member.id,
        date=local_today(),
        check_in_time=local_now(),
        method=method,
    )
    db.add(record)
    db.flush()
    return record


def check_out(db: Session, member: Member) -> Attendance:
    record = find_open_session(db, member.id)
    if record is None:
        raise InvalidStateError(NO_OPEN_SESSION)
    record.check_out_time = max(local_now(), record.check_in_time)
    db.flush()
    return record


def mark_attendance(db: Session, member_id: int, direction: str, method: str = "manual") -> Dict[str, Any]:
    """
    Record a check-in or check-out for a member.

    Raises:
        NotFoundError: member does not exist
        InvalidStateError: check-out with no open check-in today
    """
    member = get_member_or_404(db, member_id)

    if direction == "in":
        record = check_in(db, member, method=method)
        message = f"Welcome, {member.first_name}! Checked IN successfully."
    else:
        record = check_out(db, member)
        message = f"Goodbye, {member.first_name}! Checked OUT successfully."

    logger.info(f"Attendance {direction}: member={member.id} method={method} record={record.id}")
    return {
        "success": True,
        "message": message,
        "member": _member_summary(member),
        "attendance_id": record.id,
    }


def _rows(results) -> List[Dict[str, Any]]:
    rows = []
    for record, first_name, last_name, photo_url in results:
        rows.append(
            {
                "id": record.id,
                "member_id": record.member_id,
                "date": record.date,
                "check_in_time": record.check_in_time,
                "check_out_time": record.check_out_time,
                "method": record.method,
                "first_name": first_name,
                "last_name": last_name,
                "photo_url": photo_url,
            }
        )
    return rows


def _joined(db: Session):
    return db.query(Attendance, Member.first_name, Member.last_name, Member.photo_url).join(
        Member, Attendance.member_id == Member.id
    )


def get_today_attendance(db: Session) -> List[Dict[str, Any]]:
    results = (
        _joined(db)
        .filter(Attendance.date == local_today())
        .order_by(Attendance.check_in_time.desc(), Attendance.id.desc())
        .all()
    )
    return _rows(results)


def get_history(db: Session, range_days: int = 365) -> List[Dict[str, Any]]:
    since = local_today() - timedelta(days=range_days)
    results = (
        _joined(db)
        .filter(Attendance.date >= since)
        .order_by(Attendance.date.desc(), Attendance.check_in_time.desc(), Attendance.id.desc())
        .all()
    )
    return _rows(results)


def get_member_attendance(db: Session, member_id: int) -> List[Attendance]:
    """All records for one member, newest first. Empty list when there are none."""
    return (
        db.query(Attendance)
        .filter(Attendance.member_id == member_id)
        .order_by(Attendance.date.desc(), Attendance.check_in_time.desc(), Attendance.id.desc())
        .all()
    )
