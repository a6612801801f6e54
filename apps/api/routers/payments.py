"""
Payment API endpoints.

Provides:
- Ledger views and desk payments (staff)
- PayHere checkout initiation (member for themselves, or staff)
- PayHere notify webhook (server-to-server, signed by the gateway)
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from urllib.parse import parse_qsl
import json
import logging

from core.auth import ensure_member_access, get_current_principal, require_staff
from core.database import get_db
from core.exceptions import ValidationError
from schemas import GatewayInitiateRequest, PaymentCreate, Principal
from services import payhere_service, payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("")
def list_payments(db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return payment_service.list_payments(db)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment(data: PaymentCreate, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    return payment_service.create_payment(
        db,
        member_id=data.member_id,
        amount=data.amount,
        payment_method=data.payment_method,
        plan_id=data.plan_id,
    )


@router.post("/manual", status_code=status.HTTP_201_CREATED)
def record_manual_payment(data: PaymentCreate, db: Session = Depends(get_db), _: Principal = Depends(require_staff)):
    if data.plan_id:
        raise ValidationError("Manual payments cannot create a membership; use POST /payments", field="plan_id")
    return payment_service.record_manual_payment(
        db, member_id=data.member_id, amount=data.amount, payment_method=data.payment_method
    )


@router.get("/member/{member_id}")
def member_payments(
    member_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_member_access(principal, member_id)
    return payment_service.list_member_payments(db, member_id)


@router.post("/payhere/initiate")
def payhere_initiate(
    request: GatewayInitiateRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Signed PayHere checkout fields. The client posts them to the hosted
    checkout page (sandbox or live, per the `sandbox` flag).
    """
    ensure_member_access(principal, request.member_id)
    try:
        return payhere_service.initiate_gateway_payment(db, request.member_id, request.plan_id)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/payhere/notify")
async def payhere_notify(request: Request, db: Session = Depends(get_db)):
    """
    PayHere notify webhook.

    Verifies md5sig and records the payment once per order id. Non-success
    statuses are acknowledged with 200 so the gateway stops retrying.
    """
    body = await request.body()
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            payload = {k: str(v) for k, v in json.loads(body or b"{}").items()}
        except (ValueError, AttributeError):
            raise ValidationError("Malformed notification body")
    else:
        try:
            payload = dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
        except UnicodeDecodeError:
            raise ValidationError("Malformed notification body")

    try:
        result = payhere_service.process_notification(db, payload)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"ok": True, "result": result}
