"""
Workout-plan templates and their assignment to members.

Assigning a plan replaces each target member's personal schedule with a copy
of the plan's items. Members keep their copy even if the plan is later edited
or deleted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from core.database import transaction
from core.exceptions import InvalidStateError, NotFoundError, ValidationError
from models import Member, MemberSchedule, WorkoutPlan, WorkoutPlanItem
from schemas import WorkoutPlanCreate
from services.member_service import day_order
from tasks.notification_tasks import dispatch, send_schedule_assigned_email_task

logger = logging.getLogger(__name__)


def _item_dict(item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "plan_id": item.plan_id,
        "day_of_week": item.day_of_week,
        "activity": item.activity,
        "time": item.time,
        "type": item.type,
        "trainer": item.trainer,
    }


def _plan_items(db: Session, plan_id: int) -> List[WorkoutPlanItem]:
    return (
        db.query(WorkoutPlanItem)
        .filter(WorkoutPlanItem.plan_id == plan_id)
        .order_by(day_order(WorkoutPlanItem.day_of_week), WorkoutPlanItem.id)
        .all()
    )


def list_workout_plans(db: Session) -> List[Dict[str, Any]]:
    plans = db.query(WorkoutPlan).order_by(WorkoutPlan.created_at.desc(), WorkoutPlan.id.desc()).all()
    return [
        {
            "id": plan.id,
            "name": plan.name,
            "description": plan.description,
            "difficulty_level": plan.difficulty_level,
            "created_at": plan.created_at,
            "items": [_item_dict(i) for i in _plan_items(db, plan.id)],
        }
        for plan in plans
    ]


def create_workout_plan(db: Session, data: WorkoutPlanCreate) -> Dict[str, Any]:
    with transaction(db):
        plan = WorkoutPlan(name=data.name, description=data.description, difficulty_level=data.difficulty)
        db.add(plan)
        db.flush()
        for item in data.items:
            db.add(
                WorkoutPlanItem(
                    plan_id=plan.id,
                    day_of_week=item.day_of_week,
                    activity=item.activity,
                    time=item.time or "09:00 AM",
                    type=item.type or "Gym",
                    trainer=item.trainer or "Staff",
                )
            )
        db.flush()

    logger.info(f"Workout plan created: id={plan.id} items={len(data.items)}")
    return {"message": "Workout plan created successfully", "planId": plan.id}


def assign_plan(db: Session, plan_id: int, member_ids: List[int]) -> Dict[str, Any]:
    """
    Replace every target member's schedule with the plan's items.

    All members are updated in one transaction. A missing or empty plan, or an
    unknown member id, leaves every existing schedule untouched.
    """
    if not member_ids:
        raise ValidationError("No members selected", field="memberIds")
    targets = list(dict.fromkeys(member_ids))

    with transaction(db):
        plan = db.get(WorkoutPlan, plan_id)
        items = _plan_items(db, plan_id) if plan else []
        if not items:
            raise InvalidStateError("Plan has no items or does not exist")

        members = []
        for member_id in targets:
            member = db.get(Member, member_id)
            if not member:
                raise NotFoundError("Member", member_id)

            db.query(MemberSchedule).filter(MemberSchedule.member_id == member_id).delete(
                synchronize_session=False
            )
            member.active_plan_id = plan.id
            for item in items:
                db.add(
                    MemberSchedule(
                        member_id=member_id,
                        day_of_week=item.day_of_week,
                        activity=item.activity,
                        time=item.time,
                        type=item.type,
                        trainer=item.trainer,
                    )
                )
            members.append(member)
        db.flush()

    logger.info(f"Workout plan {plan.id} assigned to {len(targets)} member(s)")

    schedule = [
        {
            "day_of_week": i.day_of_week,
            "activity": i.activity,
            "time": i.time,
            "type": i.type,
            "trainer": i.trainer,
        }
        for i in items
    ]
    for member in members:
        if member.email:
            dispatch(
                send_schedule_assigned_email_task,
                to_email=member.email,
                member_name=member.first_name,
                plan_name=plan.name,
                items=schedule,
            )

    return {"message": f"Plan assigned to {len(targets)} member(s) successfully"}


def delete_workout_plan(db: Session, plan_id: int) -> None:
    plan = db.get(WorkoutPlan, plan_id)
    if not plan:
        raise NotFoundError("Workout plan", plan_id)
    # Items cascade; members.active_plan_id is cleared by the FK
    db.delete(plan)
    db.flush()
    logger.info(f"Workout plan deleted: id={plan_id}")
