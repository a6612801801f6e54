from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.clock import local_now
from core.config import settings
from core.database import transaction
from core.exceptions import InvalidStateError, NotFoundError, ValidationError
from models import Member, MembershipPlan, Payment
from services.invoice import next_gateway_order_id
from services.member_service import get_member_or_404
from services.membership_service import get_plan_or_404
from services.payment_service import activate_membership

logger = logging.getLogger(__name__)

# PayHere reports a completed payment with status_code 2
STATUS_SUCCESS = "2"
PAYMENT_METHOD = "payhere"


@dataclass(frozen=True)
class PayHereConfig:
    merchant_id: str
    merchant_secret: str
    currency: str
    sandbox: bool
    return_url: str
    cancel_url: str
    notify_url: str


def _get_payhere_config() -> PayHereConfig:
    """
    Load gateway config from Settings.

    Fail closed: without merchant credentials no checkout can be signed and no
    notification can be trusted.
    """
    missing = [
        name
        for name, val in [
            ("PAYHERE_MERCHANT_ID", settings.PAYHERE_MERCHANT_ID),
            ("PAYHERE_MERCHANT_SECRET", settings.PAYHERE_MERCHANT_SECRET),
        ]
        if not val
    ]
    if missing:
        raise RuntimeError(f"PayHere not configured (missing: {', '.join(missing)})")

    return PayHereConfig(
        merchant_id=str(settings.PAYHERE_MERCHANT_ID),
        merchant_secret=str(settings.PAYHERE_MERCHANT_SECRET),
        currency=settings.PAYHERE_CURRENCY,
        sandbox=settings.PAYHERE_SANDBOX,
        return_url=settings.PAYHERE_RETURN_URL,
        cancel_url=settings.PAYHERE_CANCEL_URL,
        notify_url=settings.PAYHERE_NOTIFY_URL,
    )


def _md5_upper(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest().upper()


def format_amount(amount: Any) -> str:
    """PayHere signs amounts with exactly two decimals and no thousands separator."""
    return f"{Decimal(str(amount)):.2f}"


def checkout_hash(config: PayHereConfig, order_id: str, amount: str) -> str:
    return _md5_upper(
        config.merchant_id + order_id + amount + config.currency + _md5_upper(config.merchant_secret)
    )


def notification_signature(
    config: PayHereConfig,
    order_id: str,
    payhere_amount: str,
    payhere_currency: str,
    status_code: str,
) -> str:
    return _md5_upper(
        config.merchant_id
        + order_id
        + payhere_amount
        + payhere_currency
        + status_code
        + _md5_upper(config.merchant_secret)
    )


def initiate_gateway_payment(db: Session, member_id: int, plan_id: int) -> Dict[str, Any]:
    """
    Build the signed form fields for a PayHere checkout redirect.

    Nothing is written: the membership and payment only exist once the
    gateway notifies a successful payment.
    """
    config = _get_payhere_config()
    member = get_member_or_404(db, member_id)
    plan = get_plan_or_404(db, plan_id)

    order_id = next_gateway_order_id(db)
    amount = format_amount(plan.price)

    logger.info(f"PayHere checkout initiated: order={order_id} member={member.id} plan={plan.id} amount={amount}")
    return {
        "merchant_id": config.merchant_id,
        "return_url": config.return_url,
        "cancel_url": config.cancel_url,
        "notify_url": config.notify_url,
        "order_id": order_id,
        "items": plan.name,
        "currency": config.currency,
        "amount": amount,
        "first_name": member.first_name,
        "last_name": member.last_name,
        "email": member.email or "",
        "phone": member.phone,
        "address": member.address or "",
        "city": "",
        "country": "Sri Lanka",
        "custom_1": str(member.id),
        "custom_2": str(plan.id),
        "hash": checkout_hash(config, order_id, amount),
        "sandbox": config.sandbox,
    }


def verify_notification(config: PayHereConfig, payload: Mapping[str, str]) -> bool:
    expected = notification_signature(
        config,
        order_id=payload.get("order_id", ""),
        payhere_amount=payload.get("payhere_amount", ""),
        payhere_currency=payload.get("payhere_currency", ""),
        status_code=payload.get("status_code", ""),
    )
    return hmac.compare_digest(expected, (payload.get("md5sig") or "").upper())


def _int_field(payload: Mapping[str, str], name: str) -> int:
    try:
        return int(payload.get(name) or "")
    except ValueError:
        raise ValidationError(f"Invalid {name}", field=name)


def _already_recorded(db: Session, order_id: str) -> Optional[Payment]:
    return db.query(Payment).filter(Payment.invoice_number == order_id).first()


def process_notification(db: Session, payload: Mapping[str, str]) -> Dict[str, Any]:
    """
    Handle the gateway's server-to-server callback.

    - bad signature: InvalidStateError, nothing written
    - any status other than success: acknowledged, nothing written
    - success: membership + payment + member activation in one transaction
    - an order id that already has a payment: acknowledged, nothing written
    """
    config = _get_payhere_config()
    order_id = payload.get("order_id") or ""

    if not verify_notification(config, payload):
        logger.warning(f"PayHere notification rejected: bad signature for order={order_id!r}")
        raise InvalidStateError("Invalid payment signature")

    status_code = payload.get("status_code")
    if status_code != STATUS_SUCCESS:
        logger.info(f"PayHere notification acknowledged: order={order_id} status_code={status_code}")
        return {"processed": False, "reason": "status", "status_code": status_code}

    if _already_recorded(db, order_id):
        logger.info(f"PayHere notification for already recorded order={order_id}")
        return {"processed": False, "idempotent": True, "order_id": order_id}

    member_id = _int_field(payload, "custom_1")
    plan_id = _int_field(payload, "custom_2")
    try:
        amount = Decimal(payload.get("payhere_amount") or "")
    except InvalidOperation:
        raise ValidationError("Invalid payhere_amount", field="payhere_amount")

    try:
        with transaction(db):
            member = db.get(Member, member_id)
            if not member:
                raise NotFoundError("Member", member_id)
            plan = db.get(MembershipPlan, plan_id)
            if not plan:
                raise NotFoundError("Plan", detail="Plan not found")

            membership = activate_membership(db, member, plan, amount)
            db.add(
                Payment(
                    member_id=member.id,
                    membership_id=membership.id,
                    amount=amount,
                    payment_method=PAYMENT_METHOD,
                    invoice_number=order_id,
                    created_at=local_now(),
                )
            )
            member.status = "active"
            db.flush()
    except IntegrityError:
        # A concurrent delivery of the same notification won the insert
        logger.info(f"PayHere notification raced on order={order_id}; already recorded")
        return {"processed": False, "idempotent": True, "order_id": order_id}

    logger.info(f"PayHere payment recorded: order={order_id} member={member_id} membership={membership.id}")
    return {"processed": True, "order_id": order_id, "membership_id": membership.id}
