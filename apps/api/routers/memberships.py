"""
Membership API endpoints.

Members browse plans and submit requests for themselves; staff review the
pending queue.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.auth import ensure_member_access, get_current_principal, require_staff
from core.database import get_db
from schemas import MembershipRequest, Principal
from services import membership_service

router = APIRouter(prefix="/api/memberships", tags=["memberships"])


@router.get("/plans")
def list_plans(db: Session = Depends(get_db)):
    return [
        {
            "id": p.id,
            "name": p.name,
            "duration_months": p.duration_months,
            "price": p.price,
            "description": p.description,
        }
        for p in membership_service.list_plans(db)
    ]


@router.post("/request", status_code=status.HTTP_201_CREATED)
def request_membership(
    request: MembershipRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_member_access(principal, request.member_id)
    return membership_service.request_membership(
        db, request.member_id, request.plan_id, request.payment_method or "online"
    )


@router.get("/pending")
def list_pending(db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return membership_service.list_pending_memberships(db)


@router.put("/{id}/approve")
def approve(id: int, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return membership_service.approve_membership(db, id)


@router.put("/{id}/reject")
def reject(id: int, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return membership_service.reject_membership(db, id)
