"""
Membership lifecycle: plans, member requests and staff approval.

A membership starts ``pending`` (or ``active``, depending on
MEMBERSHIP_REQUEST_INITIAL_STATUS) and moves to ``active`` or ``cancelled``
only from ``pending``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from core.clock import add_months, local_now, local_today
from core.config import settings
from core.database import transaction
from core.exceptions import InvalidStateError, NotFoundError
from models import Member, Membership, MembershipPlan, Payment
from services.invoice import next_timestamp_invoice_number
from services.member_service import get_member_or_404
from tasks.notification_tasks import dispatch, send_membership_approved_email_task

logger = logging.getLogger(__name__)


def list_plans(db: Session) -> List[MembershipPlan]:
    return db.query(MembershipPlan).order_by(MembershipPlan.duration_months, MembershipPlan.id).all()


def get_plan_or_404(db: Session, plan_id: int) -> MembershipPlan:
    plan = db.get(MembershipPlan, plan_id)
    if not plan:
        raise NotFoundError("Plan", detail="Plan not found")
    return plan


def get_membership_or_404(db: Session, membership_id: int) -> Membership:
    membership = db.get(Membership, membership_id)
    if not membership:
        raise NotFoundError("Membership", membership_id)
    return membership


def request_membership(db: Session, member_id: int, plan_id: int, payment_method: str = "online") -> Dict[str, Any]:
    """
    Member-initiated purchase: one membership row plus its payment row.

    The payment is recorded straight away; staff verify the money and approve
    the membership afterwards (unless requests are configured to start active).
    """
    member = get_member_or_404(db, member_id)
    plan = get_plan_or_404(db, plan_id)
    status = settings.MEMBERSHIP_REQUEST_INITIAL_STATUS

    start = local_today()
    membership = Membership(
        member_id=member.id,
        plan_id=plan.id,
        start_date=start,
        end_date=add_months(start, plan.duration_months),
        status=status,
        amount=plan.price,
    )
    db.add(membership)
    db.flush()

    db.add(
        Payment(
            member_id=member.id,
            membership_id=membership.id,
            amount=plan.price,
            payment_method=payment_method or "online",
            invoice_number=next_timestamp_invoice_number(db),
            created_at=local_now(),
        )
    )
    if status == "active":
        member.status = "active"
    db.flush()

    logger.info(f"Membership requested: id={membership.id} member={member.id} plan={plan.id} status={status}")
    return {"message": "Membership request submitted successfully", "membershipId": membership.id}


def list_pending_memberships(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Membership, Member.first_name, Member.last_name, MembershipPlan.name)
        .join(Member, Membership.member_id == Member.id)
        .join(MembershipPlan, Membership.plan_id == MembershipPlan.id)
        .filter(Membership.status == "pending")
        .order_by(Membership.created_at.desc(), Membership.id.desc())
        .all()
    )
    return [
        {
            "id": m.id,
            "member_id": m.member_id,
            "plan_id": m.plan_id,
            "start_date": m.start_date,
            "end_date": m.end_date,
            "status": m.status,
            "amount": m.amount,
            "created_at": m.created_at,
            "first_name": first_name,
            "last_name": last_name,
            "plan_name": plan_name,
        }
        for m, first_name, last_name, plan_name in rows
    ]


def _ensure_pending(membership: Membership) -> None:
    if membership.status != "pending":
        raise InvalidStateError(
            f"Membership is {membership.status}, only pending memberships can be changed",
            extra={"status": membership.status},
        )


def approve_membership(db: Session, membership_id: int) -> Dict[str, Any]:
    """
    pending -> active, and the member becomes active.

    The approval email is queued only once the change is committed; a failure
    to queue or send never undoes the approval.
    """
    with transaction(db):
        membership = get_membership_or_404(db, membership_id)
        _ensure_pending(membership)
        membership.status = "active"
        member = db.get(Member, membership.member_id)
        member.status = "active"
        plan = db.get(MembershipPlan, membership.plan_id)

    logger.info(f"Membership approved: id={membership.id} member={member.id}")

    if member.email:
        dispatch(
            send_membership_approved_email_task,
            to_email=member.email,
            member_name=member.first_name,
            plan_name=plan.name,
            start_date=membership.start_date.isoformat(),
            end_date=membership.end_date.isoformat(),
        )
    return {"message": "Membership approved successfully"}


def reject_membership(db: Session, membership_id: int) -> Dict[str, Any]:
    membership = get_membership_or_404(db, membership_id)
    _ensure_pending(membership)
    membership.status = "cancelled"
    db.flush()
    logger.info(f"Membership rejected: id={membership.id}")
    return {"message": "Membership rejected"}
