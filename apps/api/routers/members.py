"""
Member API endpoints.

Staff manage the registry; a signed-in member can read their own record,
schedule, completions and membership, and tick off schedule items.
"""
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from core.auth import require_member_or_staff, require_staff
from core.database import get_db
from schemas import (
    CompletionToggle,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    Principal,
    ScheduleItemCreate,
    ScheduleItemResponse,
)
from services import member_service

router = APIRouter(prefix="/api/members", tags=["members"])


@router.get("", response_model=List[MemberResponse])
def list_members(db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return member_service.list_members(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_member(data: MemberCreate, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    member = member_service.create_member(db, data)
    return {"id": member.id, "message": "Member created successfully"}


@router.get("/{id}", response_model=MemberResponse)
def get_member(id: int, db: Session = Depends(get_db), _: Principal = Depends(require_member_or_staff)):
    return member_service.get_member_or_404(db, id)


@router.put("/{id}")
def update_member(id: int, data: MemberUpdate, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    member_service.update_member(db, id, data)
    return {"message": "Member updated successfully"}


@router.delete("/{id}")
def delete_member(id: int, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    member_service.delete_member(db, id)
    return {"message": "Member deleted successfully"}


# --- Schedule ---

@router.get("/{id}/schedule")
def get_schedule(id: int, db: Session = Depends(get_db), _: Principal = Depends(require_member_or_staff)):
    result = member_service.get_member_schedule(db, id)
    return {
        "schedule": [ScheduleItemResponse.model_validate(i) for i in result["schedule"]],
        "plan": result["plan"],
    }


@router.post("/{id}/schedule", status_code=status.HTTP_201_CREATED, response_model=ScheduleItemResponse)
def add_schedule_item(
    id: int,
    data: ScheduleItemCreate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    return member_service.add_schedule_item(db, id, data)


@router.get("/{id}/schedule/completions")
def get_completions(
    id: int,
    on: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_member_or_staff),
):
    completions = member_service.get_schedule_completions(db, id, on)
    return [
        {"id": c.id, "schedule_id": c.schedule_id, "completion_date": c.completion_date}
        for c in completions
    ]


@router.delete("/{id}/schedule/{item_id}")
def delete_schedule_item(
    id: int,
    item_id: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_staff),
):
    member_service.delete_schedule_item(db, id, item_id)
    return {"message": "Schedule item deleted"}


@router.post("/{id}/schedule/{item_id}/completion")
def toggle_completion(
    id: int,
    item_id: int,
    data: Optional[CompletionToggle] = None,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_member_or_staff),
):
    on = data.completion_date if data else None
    return member_service.toggle_schedule_completion(db, id, item_id, on)


# --- Membership ---

@router.get("/{id}/membership")
def get_membership(id: int, db: Session = Depends(get_db), _: Principal = Depends(require_member_or_staff)):
    return member_service.get_member_membership(db, id)
