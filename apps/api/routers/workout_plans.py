"""
Workout-plan API endpoints (staff only).
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import require_staff
from core.database import get_db
from schemas import AssignPlanRequest, Principal, WorkoutPlanCreate
from services import workout_plan_service

router = APIRouter(prefix="/api/workout-plans", tags=["workout-plans"])


@router.get("")
def list_plans(db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return workout_plan_service.list_workout_plans(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_plan(data: WorkoutPlanCreate, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return workout_plan_service.create_workout_plan(db, data)


@router.post("/assign")
def assign_plan(request: AssignPlanRequest, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return workout_plan_service.assign_plan(db, request.plan_id, request.targets())


@router.delete("/{id}")
def delete_plan(id: int, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    workout_plan_service.delete_workout_plan(db, id)
    return {"message": "Plan deleted successfully"}
