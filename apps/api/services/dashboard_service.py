"""
Dashboard rollups. Read-only.

Month bucketing is done here rather than in SQL so the same code runs on
PostgreSQL and SQLite.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from core.clock import add_months, local_today
from models import Attendance, Member, Payment

RECENT_ACTIVITY_LIMIT = 5
REVENUE_CHART_MONTHS = 6


def _count_members(db: Session, status: str = None) -> int:
    q = db.query(func.count(Member.id))
    if status:
        q = q.filter(Member.status == status)
    return q.scalar() or 0


def _revenue_by_month(db: Session, first_month: date) -> "OrderedDict[str, Decimal]":
    """Sum of payments per YYYY-MM from first_month through the current month."""
    buckets: "OrderedDict[str, Decimal]" = OrderedDict()
    month = first_month
    today = local_today()
    while (month.year, month.month) <= (today.year, today.month):
        buckets[month.strftime("%Y-%m")] = Decimal("0")
        month = add_months(month, 1)

    since = datetime(first_month.year, first_month.month, 1)
    rows = db.query(Payment.created_at, Payment.amount).filter(Payment.created_at >= since).all()
    for created_at, amount in rows:
        key = created_at.strftime("%Y-%m")
        if key in buckets:
            buckets[key] += Decimal(amount or 0)
    return buckets


def _recent_activity(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Attendance.check_in_time, Member.first_name, Member.last_name)
        .join(Member, Attendance.member_id == Member.id)
        .order_by(Attendance.check_in_time.desc(), Attendance.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return [
        {"check_in_time": check_in_time, "first_name": first_name, "last_name": last_name}
        for check_in_time, first_name, last_name in rows
    ]


def get_dashboard_stats(db: Session) -> Dict[str, Any]:
    today = local_today()
    this_month = today.replace(day=1)
    first_month = add_months(this_month, -(REVENUE_CHART_MONTHS - 1))

    revenue = _revenue_by_month(db, first_month)
    today_attendance = (
        db.query(func.count(distinct(Attendance.member_id))).filter(Attendance.date == today).scalar() or 0
    )

    return {
        "totalMembers": _count_members(db),
        "activeMembers": _count_members(db, "active"),
        "expiredMembers": _count_members(db, "expired"),
        "monthlyRevenue": float(revenue[this_month.strftime("%Y-%m")]),
        "todayAttendance": today_attendance,
        "recentActivity": _recent_activity(db),
        "revenueChart": [
            {
                "month": key,
                "name": datetime.strptime(key, "%Y-%m").strftime("%b"),
                "revenue": float(total),
            }
            for key, total in revenue.items()
        ],
    }
