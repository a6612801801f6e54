"""
Member notification tasks.

Enqueued only after the triggering transaction has committed. A failure to
enqueue or to send is logged and never reaches the caller: the membership
approval or plan assignment already stands.
"""

from typing import Dict, List
from celery import Task
from tasks import celery_app
from services.email_service import email_service
import logging

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.send_membership_approved_email", bind=True)
def send_membership_approved_email_task(
    self: Task,
    to_email: str,
    member_name: str,
    plan_name: str,
    start_date: str,
    end_date: str,
) -> Dict:
    sent = email_service.send_membership_approved(
        to_email=to_email,
        member_name=member_name,
        plan_name=plan_name,
        start_date=start_date,
        end_date=end_date,
    )
    return {"status": "sent" if sent else "not_sent", "email": to_email}


@celery_app.task(name="tasks.send_schedule_assigned_email", bind=True)
def send_schedule_assigned_email_task(
    self: Task,
    to_email: str,
    member_name: str,
    plan_name: str,
    items: List[Dict[str, str]],
) -> Dict:
    sent = email_service.send_schedule_assigned(
        to_email=to_email,
        member_name=member_name,
        plan_name=plan_name,
        items=items,
    )
    return {"status": "sent" if sent else "not_sent", "email": to_email}


def dispatch(task, **kwargs) -> bool:
    """
    Fire-and-forget enqueue. Returns False (and logs) if the broker is unreachable
    or the task raised in eager mode.
    """
    try:
        task.delay(**kwargs)
        return True
    except Exception as e:
        logger.error(f"Failed to enqueue {task.name}: {e}")
        return False
