"""
Member registry: CRUD over members plus their personal weekly schedule.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from core.clock import local_today
from core.exceptions import ConflictError, NotFoundError
from models import (
    ActivityCompletion,
    DAYS_OF_WEEK,
    Member,
    MemberSchedule,
    Membership,
    MembershipPlan,
    WorkoutPlan,
)
from schemas import MemberCreate, MemberUpdate, ScheduleItemCreate

logger = logging.getLogger(__name__)


def day_order(column):
    """ORDER BY expression placing Mon..Sun in week order."""
    return case({day: i for i, day in enumerate(DAYS_OF_WEEK)}, value=column)


def get_member_or_404(db: Session, member_id: int) -> Member:
    member = db.get(Member, member_id)
    if not member:
        raise NotFoundError("Member", member_id)
    return member


def _ensure_unique(db: Session, *, email: Optional[str], nic: Optional[str], exclude_id: Optional[int] = None) -> None:
    if email:
        q = db.query(Member.id).filter(Member.email == email)
        if exclude_id is not None:
            q = q.filter(Member.id != exclude_id)
        if q.first():
            raise ConflictError("Email already registered")
    if nic:
        q = db.query(Member.id).filter(Member.nic == nic)
        if exclude_id is not None:
            q = q.filter(Member.id != exclude_id)
        if q.first():
            raise ConflictError("NIC already registered")


def list_members(db: Session) -> List[Member]:
    return db.query(Member).order_by(Member.created_at.desc(), Member.id.desc()).all()


def create_member(db: Session, data: MemberCreate) -> Member:
    _ensure_unique(db, email=data.email, nic=data.nic)
    member = Member(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
        nic=data.nic,
        dob=data.dob,
        gender=data.gender,
        address=data.address,
    )
    db.add(member)
    db.flush()
    logger.info(f"Member created: id={member.id}")
    return member


def update_member(db: Session, member_id: int, data: MemberUpdate) -> Member:
    member = get_member_or_404(db, member_id)
    changes = data.model_dump(exclude_unset=True)
    _ensure_unique(db, email=changes.get("email"), nic=changes.get("nic"), exclude_id=member_id)
    for field, value in changes.items():
        setattr(member, field, value)
    db.flush()
    return member


def delete_member(db: Session, member_id: int) -> None:
    member = get_member_or_404(db, member_id)
    # Dependents go with the member via ON DELETE CASCADE
    db.delete(member)
    db.flush()
    logger.info(f"Member deleted: id={member_id}")


# --- Schedule ---

def list_schedule(db: Session, member_id: int) -> List[MemberSchedule]:
    return (
        db.query(MemberSchedule)
        .filter(MemberSchedule.member_id == member_id)
        .order_by(day_order(MemberSchedule.day_of_week), MemberSchedule.time, MemberSchedule.id)
        .all()
    )


def get_member_schedule(db: Session, member_id: int) -> Dict[str, Any]:
    member = get_member_or_404(db, member_id)
    plan = None
    if member.active_plan_id is not None:
        active = db.get(WorkoutPlan, member.active_plan_id)
        if active:
            plan = {
                "id": active.id,
                "name": active.name,
                "description": active.description,
                "difficulty_level": active.difficulty_level,
            }
    return {"schedule": list_schedule(db, member_id), "plan": plan}


def add_schedule_item(db: Session, member_id: int, data: ScheduleItemCreate) -> MemberSchedule:
    get_member_or_404(db, member_id)
    item = MemberSchedule(
        member_id=member_id,
        day_of_week=data.day,
        activity=data.activity,
        time=data.time,
        type=data.type,
        trainer=data.trainer,
    )
    db.add(item)
    db.flush()
    return item


def _get_schedule_item(db: Session, member_id: int, item_id: int) -> MemberSchedule:
    item = (
        db.query(MemberSchedule)
        .filter(MemberSchedule.id == item_id, MemberSchedule.member_id == member_id)
        .first()
    )
    if not item:
        raise NotFoundError("Schedule item", item_id)
    return item


def delete_schedule_item(db: Session, member_id: int, item_id: int) -> None:
    item = _get_schedule_item(db, member_id, item_id)
    db.delete(item)
    db.flush()


def get_schedule_completions(db: Session, member_id: int, on: Optional[date] = None) -> List[ActivityCompletion]:
    on = on or local_today()
    return (
        db.query(ActivityCompletion)
        .filter(ActivityCompletion.member_id == member_id, ActivityCompletion.completion_date == on)
        .order_by(ActivityCompletion.schedule_id)
        .all()
    )


def toggle_schedule_completion(db: Session, member_id: int, item_id: int, on: Optional[date] = None) -> Dict[str, Any]:
    """Mark the item done for the day, or undo it if it already was."""
    on = on or local_today()
    _get_schedule_item(db, member_id, item_id)
    existing = (
        db.query(ActivityCompletion)
        .filter(
            ActivityCompletion.member_id == member_id,
            ActivityCompletion.schedule_id == item_id,
            ActivityCompletion.completion_date == on,
        )
        .first()
    )
    if existing:
        db.delete(existing)
        completed = False
    else:
        db.add(ActivityCompletion(member_id=member_id, schedule_id=item_id, completion_date=on))
        completed = True
    db.flush()
    return {"schedule_id": item_id, "completion_date": on, "completed": completed}


def get_member_membership(db: Session, member_id: int) -> Optional[Dict[str, Any]]:
    """Latest active membership with its plan name, or None."""
    get_member_or_404(db, member_id)
    row = (
        db.query(Membership, MembershipPlan.name)
        .join(MembershipPlan, Membership.plan_id == MembershipPlan.id)
        .filter(Membership.member_id == member_id, Membership.status == "active")
        .order_by(Membership.end_date.desc(), Membership.id.desc())
        .first()
    )
    if not row:
        return None
    membership, plan_name = row
    return {
        "id": membership.id,
        "member_id": membership.member_id,
        "plan_id": membership.plan_id,
        "plan_name": plan_name,
        "start_date": membership.start_date,
        "end_date": membership.end_date,
        "status": membership.status,
        "amount": membership.amount,
    }
