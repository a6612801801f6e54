from models import Attendance


def _mark(client, member_id, direction):
    return client.post("/api/attendance/mark", json={"memberId": member_id, "type": direction})


def test_check_in_then_out_round_trip(client, db, staff_headers):
    resp = client.post(
        "/api/members",
        json={"first_name": "Jo", "last_name": "Lee", "phone": "0771234567"},
        headers=staff_headers,
    )
    assert resp.status_code == 201
    member_id = resp.json()["id"]

    resp = _mark(client, member_id, "in")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Welcome, Jo! Checked IN successfully."
    assert body["member"] == {"id": member_id, "name": "Jo Lee", "status": "inactive"}

    today = client.get("/api/attendance/today", headers=staff_headers).json()
    assert len(today) == 1
    assert (today[0]["first_name"], today[0]["last_name"]) == ("Jo", "Lee")
    assert today[0]["check_out_time"] is None
    assert today[0]["method"] == "manual"

    resp = _mark(client, member_id, "out")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Goodbye, Jo! Checked OUT successfully."

    record = db.query(Attendance).filter(Attendance.member_id == member_id).one()
    assert record.check_out_time is not None
    assert record.check_out_time >= record.check_in_time


def test_check_out_without_open_session_is_rejected(client, db, make_member):
    member = make_member()

    resp = _mark(client, member.id, "out")

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_STATE"
    assert "check in first" in resp.json()["message"]
    assert db.query(Attendance).count() == 0


def test_check_out_after_session_already_closed_is_rejected(client, make_member):
    member = make_member()
    assert _mark(client, member.id, "in").status_code == 200
    assert _mark(client, member.id, "out").status_code == 200

    resp = _mark(client, member.id, "out")
    assert resp.status_code == 400


def test_double_check_in_is_allowed_and_check_out_closes_latest(client, db, make_member):
    member = make_member()
    first = _mark(client, member.id, "in").json()["attendance_id"]
    second = _mark(client, member.id, "in").json()["attendance_id"]

    assert _mark(client, member.id, "out").status_code == 200

    db.expire_all()
    assert db.get(Attendance, second).check_out_time is not None
    assert db.get(Attendance, first).check_out_time is None


def test_mark_unknown_member_is_404(client):
    resp = _mark(client, 999, "in")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Member with ID 999 not found"


def test_mark_rejects_bad_direction(client, make_member):
    member = make_member()
    resp = _mark(client, member.id, "sideways")
    assert resp.status_code == 400
    assert resp.json()["issues"][0]["field"] == "type"


def test_history_and_member_views(client, make_member, staff_headers):
    a = make_member()
    b = make_member()
    _mark(client, a.id, "in")
    _mark(client, b.id, "in")
    _mark(client, a.id, "out")

    history = client.get("/api/attendance/history", headers=staff_headers).json()
    assert {row["member_id"] for row in history} == {a.id, b.id}

    mine = client.get(f"/api/attendance/member/{a.id}", headers=staff_headers).json()
    assert len(mine) == 1
    assert mine[0]["check_out_time"] is not None

    assert client.get("/api/attendance/member/12345", headers=staff_headers).json() == []


def test_attendance_reads_require_staff(client, make_member, member_headers):
    member = make_member()
    assert client.get("/api/attendance/today").status_code == 401
    assert client.get("/api/attendance/today", headers=member_headers(member.id)).status_code == 403
