from datetime import datetime, timedelta

from core.clock import add_months, local_now, local_today
from models import Attendance, Payment


def test_dashboard_rollups(client, db, make_member, staff_headers):
    a = make_member(status="active")
    b = make_member(status="active")
    make_member(status="expired")
    make_member()

    now = local_now()
    last_month = add_months(local_today().replace(day=1), -1)
    db.add_all(
        [
            Payment(member_id=a.id, amount=8000, payment_method="cash", invoice_number="INV-1", created_at=now),
            Payment(member_id=b.id, amount=1500.5, payment_method="card", invoice_number="INV-2", created_at=now),
            Payment(
                member_id=a.id,
                amount=5000,
                payment_method="cash",
                invoice_number="INV-3",
                created_at=datetime(last_month.year, last_month.month, 15, 10, 0),
            ),
        ]
    )
    db.commit()
    # Same member twice today counts once
    client.post("/api/attendance/mark", json={"memberId": a.id, "type": "in"})
    client.post("/api/attendance/mark", json={"memberId": a.id, "type": "in"})
    client.post("/api/attendance/mark", json={"memberId": b.id, "type": "in"})

    resp = client.get("/api/dashboard/stats", headers=staff_headers)
    assert resp.status_code == 200
    stats = resp.json()
    assert stats["totalMembers"] == 4
    assert stats["activeMembers"] == 2
    assert stats["expiredMembers"] == 1
    assert stats["monthlyRevenue"] == 9500.5
    assert stats["todayAttendance"] == 2
    assert len(stats["recentActivity"]) == 3

    chart = stats["revenueChart"]
    assert len(chart) == 6
    assert chart[-1]["month"] == local_today().strftime("%Y-%m")
    assert chart[-1]["revenue"] == 9500.5
    assert chart[-2]["revenue"] == 5000.0
    assert chart[0]["revenue"] == 0.0
    assert chart[-1]["name"] == local_today().strftime("%b")


def test_recent_activity_is_capped_at_five(client, db, make_member, staff_headers):
    member = make_member()
    start = local_now() - timedelta(hours=1)
    for i in range(7):
        db.add(Attendance(member_id=member.id, date=local_today(), check_in_time=start + timedelta(minutes=i), method="manual"))
    db.commit()

    stats = client.get("/api/dashboard/stats", headers=staff_headers).json()
    assert len(stats["recentActivity"]) == 5
    assert stats["todayAttendance"] == 1


def test_empty_dashboard(client, staff_headers):
    stats = client.get("/api/dashboard/stats", headers=staff_headers).json()
    assert stats["totalMembers"] == 0
    assert stats["monthlyRevenue"] == 0
    assert [m["revenue"] for m in stats["revenueChart"]] == [0.0] * 6


def test_dashboard_requires_staff(client, make_member, member_headers):
    member = make_member()
    assert client.get("/api/dashboard/stats", headers=member_headers(member.id)).status_code == 403
