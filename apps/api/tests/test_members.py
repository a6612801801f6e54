from datetime import date

from models import ActivityCompletion, Attendance, Member, MemberSchedule


def _create(client, headers, **fields):
    body = {"first_name": "Ann", "last_name": "Perera", "phone": "0711111111"}
    body.update(fields)
    return client.post("/api/members", json=body, headers=headers)


def test_create_and_fetch_member(client, staff_headers):
    resp = _create(client, staff_headers, email="ann@example.com", nic="901234567V", dob="1990-04-01")
    assert resp.status_code == 201
    assert resp.json()["message"] == "Member created successfully"
    member_id = resp.json()["id"]

    member = client.get(f"/api/members/{member_id}", headers=staff_headers).json()
    assert member["email"] == "ann@example.com"
    assert member["dob"] == "1990-04-01"
    assert member["status"] == "inactive"

    listed = client.get("/api/members", headers=staff_headers).json()
    assert [m["id"] for m in listed] == [member_id]


def test_missing_required_fields_reported_as_issues(client, staff_headers):
    resp = client.post("/api/members", json={"first_name": "Ann"}, headers=staff_headers)
    assert resp.status_code == 400
    fields = {issue["field"] for issue in resp.json()["issues"]}
    assert {"last_name", "phone"} <= fields


def test_blank_optional_fields_are_stored_as_null(client, db, staff_headers):
    resp = _create(client, staff_headers, email="", nic="  ", dob="")
    assert resp.status_code == 201
    member = db.get(Member, resp.json()["id"])
    assert member.email is None
    assert member.nic is None
    assert member.dob is None


def test_duplicate_email_and_nic_are_conflicts(client, staff_headers):
    assert _create(client, staff_headers, email="dup@example.com", nic="111V").status_code == 201

    resp = _create(client, staff_headers, email="dup@example.com")
    assert resp.status_code == 400
    assert resp.json() == {"message": "Email already registered", "error_code": "CONFLICT"}

    resp = _create(client, staff_headers, nic="111V")
    assert resp.status_code == 400
    assert resp.json()["message"] == "NIC already registered"


def test_update_member(client, db, make_member, staff_headers):
    member = make_member(email="old@example.com")
    other = make_member(email="taken@example.com")

    resp = client.put(f"/api/members/{member.id}", json={"phone": "0799999999", "status": "expired"}, headers=staff_headers)
    assert resp.status_code == 200

    db.expire_all()
    assert db.get(Member, member.id).phone == "0799999999"
    assert db.get(Member, member.id).status == "expired"
    assert db.get(Member, member.id).email == "old@example.com"

    resp = client.put(f"/api/members/{member.id}", json={"email": other.email}, headers=staff_headers)
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "CONFLICT"

    # Re-saving one's own email is not a conflict
    resp = client.put(f"/api/members/{member.id}", json={"email": "old@example.com"}, headers=staff_headers)
    assert resp.status_code == 200


def test_update_rejects_null_for_required_fields(client, db, make_member, staff_headers):
    member = make_member(first_name="Ann", status="active")
    for field in ("first_name", "last_name", "phone", "status"):
        resp = client.put(f"/api/members/{member.id}", json={field: None}, headers=staff_headers)
        assert resp.status_code == 400
        assert resp.json()["issues"][0]["field"] == field

    db.expire_all()
    assert db.get(Member, member.id).first_name == "Ann"
    assert db.get(Member, member.id).status == "active"

    # Nullable fields may still be cleared
    resp = client.put(f"/api/members/{member.id}", json={"email": None}, headers=staff_headers)
    assert resp.status_code == 200


def test_delete_member_cascades(client, db, make_member, staff_headers):
    member = make_member()
    member_id = member.id
    client.post("/api/attendance/mark", json={"memberId": member_id, "type": "in"})
    client.post(
        f"/api/members/{member_id}/schedule",
        json={"day": "Mon", "activity": "Squats", "time": "07:00 AM"},
        headers=staff_headers,
    )
    assert db.query(Attendance).count() == 1
    assert db.query(MemberSchedule).count() == 1

    resp = client.delete(f"/api/members/{member_id}", headers=staff_headers)
    assert resp.status_code == 200

    db.expunge_all()
    assert db.get(Member, member_id) is None
    assert db.query(Attendance).count() == 0
    assert db.query(MemberSchedule).count() == 0


def test_unknown_member_is_404(client, staff_headers):
    assert client.get("/api/members/404", headers=staff_headers).status_code == 404
    assert client.delete("/api/members/404", headers=staff_headers).status_code == 404


def test_registry_requires_staff(client, make_member, member_headers):
    member = make_member()
    assert client.get("/api/members").status_code == 401
    assert client.get("/api/members", headers=member_headers(member.id)).status_code == 403
    assert client.get("/api/members", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_member_can_read_only_own_record(client, make_member, member_headers):
    me = make_member()
    other = make_member()
    assert client.get(f"/api/members/{me.id}", headers=member_headers(me.id)).status_code == 200
    assert client.get(f"/api/members/{other.id}", headers=member_headers(me.id)).status_code == 403


def test_schedule_is_ordered_by_weekday(client, make_member, staff_headers):
    member = make_member()
    for day, activity in [("Fri", "Run"), ("Mon", "Bench Press"), ("Wed", "Rows")]:
        resp = client.post(
            f"/api/members/{member.id}/schedule",
            json={"day": day, "activity": activity, "time": "06:00 PM", "type": "Gym"},
            headers=staff_headers,
        )
        assert resp.status_code == 201

    body = client.get(f"/api/members/{member.id}/schedule", headers=staff_headers).json()
    assert [i["day_of_week"] for i in body["schedule"]] == ["Mon", "Wed", "Fri"]
    assert body["plan"] is None


def test_schedule_rejects_unknown_day(client, make_member, staff_headers):
    member = make_member()
    resp = client.post(
        f"/api/members/{member.id}/schedule",
        json={"day": "Someday", "activity": "Run", "time": "06:00 PM"},
        headers=staff_headers,
    )
    assert resp.status_code == 400


def test_completion_toggle(client, db, make_member, member_headers, staff_headers):
    member = make_member()
    item_id = client.post(
        f"/api/members/{member.id}/schedule",
        json={"day": "Tue", "activity": "Yoga", "time": "08:00 AM", "type": "Class"},
        headers=staff_headers,
    ).json()["id"]
    headers = member_headers(member.id)

    resp = client.post(f"/api/members/{member.id}/schedule/{item_id}/completion", json={"date": "2026-03-03"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["completed"] is True

    done = client.get(f"/api/members/{member.id}/schedule/completions?date=2026-03-03", headers=headers).json()
    assert [c["schedule_id"] for c in done] == [item_id]
    assert client.get(f"/api/members/{member.id}/schedule/completions?date=2026-03-04", headers=headers).json() == []

    resp = client.post(f"/api/members/{member.id}/schedule/{item_id}/completion", json={"date": "2026-03-03"}, headers=headers)
    assert resp.json()["completed"] is False
    assert db.query(ActivityCompletion).count() == 0


def test_completion_defaults_to_today(client, db, make_member, member_headers, staff_headers):
    member = make_member()
    item_id = client.post(
        f"/api/members/{member.id}/schedule",
        json={"day": "Tue", "activity": "Yoga", "time": "08:00 AM"},
        headers=staff_headers,
    ).json()["id"]

    resp = client.post(f"/api/members/{member.id}/schedule/{item_id}/completion", headers=member_headers(member.id))
    assert resp.status_code == 200
    completion = db.query(ActivityCompletion).one()
    assert isinstance(completion.completion_date, date)


def test_delete_schedule_item_of_another_member_is_404(client, make_member, staff_headers):
    owner = make_member()
    stranger = make_member()
    item_id = client.post(
        f"/api/members/{owner.id}/schedule",
        json={"day": "Sat", "activity": "Swim", "time": "10:00 AM"},
        headers=staff_headers,
    ).json()["id"]

    assert client.delete(f"/api/members/{stranger.id}/schedule/{item_id}", headers=staff_headers).status_code == 404
    assert client.delete(f"/api/members/{owner.id}/schedule/{item_id}", headers=staff_headers).status_code == 200
