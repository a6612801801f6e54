import pytest

from core.security import get_password_hash
from models import Role, User


@pytest.fixture
def admin(db):
    role = Role(name="admin")
    db.add(role)
    db.flush()
    user = User(name="Admin", email="admin@gym.com", password=get_password_hash("admin@123"), role_id=role.id)
    db.add(user)
    db.commit()
    return user


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_staff_login(client, admin):
    resp = _login(client, "admin@gym.com", "admin@123")
    assert resp.status_code == 200
    body = resp.json()
    assert body["user"] == {"id": admin.id, "name": "Admin", "role": "admin", "email": "admin@gym.com"}

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"}).json()
    assert me == {"id": admin.id, "role": "admin", "kind": "user"}


def test_member_login_with_nic(client, make_member):
    member = make_member(email="member@example.com", nic="199012345678", first_name="Ann", last_name="Perera")
    resp = _login(client, "member@example.com", "199012345678")
    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["role"] == "member"
    assert body["user"]["name"] == "Ann Perera"

    # The member token opens the member's own record only
    headers = {"Authorization": f"Bearer {body['token']}"}
    assert client.get(f"/api/members/{member.id}", headers=headers).status_code == 200
    assert client.get("/api/members", headers=headers).status_code == 403


def test_member_login_when_email_is_also_staff(client, admin, make_member):
    make_member(email="admin@gym.com", nic="881234567V")
    resp = _login(client, "admin@gym.com", "881234567V")
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "member"


@pytest.mark.parametrize(
    "email,password",
    [
        ("admin@gym.com", "wrong"),
        ("nobody@gym.com", "admin@123"),
        ("member@example.com", "not-the-nic"),
    ],
)
def test_bad_credentials(client, admin, make_member, email, password):
    make_member(email="member@example.com", nic="199012345678")
    resp = _login(client, email, password)
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


def test_member_without_nic_cannot_log_in(client, make_member):
    make_member(email="nonic@example.com")
    assert _login(client, "nonic@example.com", "anything").status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
