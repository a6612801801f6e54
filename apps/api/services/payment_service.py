"""
Payment ledger.

``create_payment`` is the desk flow: optional new membership, payment row and
member activation, committed together or not at all.
``record_manual_payment`` is the lighter variant with no plan attached.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.clock import add_months, local_now, local_today
from core.database import transaction
from core.exceptions import InternalError, NotFoundError
from models import Member, Membership, MembershipPlan, Payment
from services.invoice import InvoiceNumbersExhausted, next_daily_invoice_number
from services.member_service import get_member_or_404

logger = logging.getLogger(__name__)


def _payment_dict(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "member_id": payment.member_id,
        "membership_id": payment.membership_id,
        "amount": payment.amount,
        "payment_method": payment.payment_method,
        "invoice_number": payment.invoice_number,
        "created_at": payment.created_at,
    }


def list_payments(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Payment, Member.first_name, Member.last_name, Member.email)
        .join(Member, Payment.member_id == Member.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    result = []
    for payment, first_name, last_name, email in rows:
        row = _payment_dict(payment)
        row.update(first_name=first_name, last_name=last_name, email=email)
        result.append(row)
    return result


def list_member_payments(db: Session, member_id: int) -> List[Dict[str, Any]]:
    payments = (
        db.query(Payment)
        .filter(Payment.member_id == member_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    return [_payment_dict(p) for p in payments]


def _invoice_number(db: Session) -> str:
    try:
        return next_daily_invoice_number(db)
    except InvoiceNumbersExhausted as e:
        raise InternalError("Could not allocate an invoice number", cause=e)


def activate_membership(
    db: Session,
    member: Member,
    plan: MembershipPlan,
    amount: Decimal,
) -> Membership:
    """Insert an active membership starting today. Caller owns the transaction."""
    start = local_today()
    membership = Membership(
        member_id=member.id,
        plan_id=plan.id,
        start_date=start,
        end_date=add_months(start, plan.duration_months),
        status="active",
        amount=amount,
    )
    db.add(membership)
    db.flush()
    return membership


def create_payment(
    db: Session,
    member_id: int,
    amount: Decimal,
    payment_method: str,
    plan_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Record a desk payment.

    With a plan, a new active membership is created first. The member is
    always set active. Any failure rolls back every row written here.
    """
    with transaction(db):
        member = get_member_or_404(db, member_id)
        membership_id = None
        if plan_id:
            plan = db.get(MembershipPlan, plan_id)
            if not plan:
                raise NotFoundError("Plan", detail="Invalid Plan ID")
            membership_id = activate_membership(db, member, plan, amount).id

        payment = Payment(
            member_id=member.id,
            membership_id=membership_id,
            amount=amount,
            payment_method=payment_method,
            invoice_number=_invoice_number(db),
            created_at=local_now(),
        )
        db.add(payment)
        member.status = "active"
        db.flush()

    logger.info(
        f"Payment recorded: id={payment.id} member={member_id} invoice={payment.invoice_number} "
        f"membership={membership_id}"
    )
    return {
        "id": payment.id,
        "invoice_number": payment.invoice_number,
        "membership_id": membership_id,
        "message": "Payment recorded and membership updated successfully",
    }


def record_manual_payment(db: Session, member_id: int, amount: Decimal, payment_method: str) -> Dict[str, Any]:
    """Plain ledger entry: no membership, member status untouched."""
    get_member_or_404(db, member_id)
    payment = Payment(
        member_id=member_id,
        amount=amount,
        payment_method=payment_method,
        invoice_number=_invoice_number(db),
        created_at=local_now(),
    )
    db.add(payment)
    db.flush()
    logger.info(f"Manual payment recorded: id={payment.id} member={member_id} invoice={payment.invoice_number}")
    return {"id": payment.id, "invoice_number": payment.invoice_number, "message": "Payment recorded successfully"}
