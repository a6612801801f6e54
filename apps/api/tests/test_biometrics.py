"""
Fingerprint enrolment and check-in.

Option generation runs through py_webauthn for real; the two verify calls
are replaced so the tests don't need an authenticator.
"""
import base64
from types import SimpleNamespace

import pytest
from webauthn.helpers import bytes_to_base64url
from webauthn.helpers.exceptions import InvalidAuthenticationResponse, InvalidRegistrationResponse

from models import Attendance, BiometricCredential
from services import biometric_service

CREDENTIAL_ID = bytes_to_base64url(b"cred-1")


@pytest.fixture
def verifier(monkeypatch):
    calls = {"registration": 0, "authentication": 0}

    def fake_registration(**kwargs):
        calls["registration"] += 1
        return SimpleNamespace(credential_id=b"cred-1", credential_public_key=b"pk", sign_count=0, fmt="none")

    def fake_authentication(**kwargs):
        calls["authentication"] += 1
        assert kwargs["credential_public_key"] == b"pk"
        return SimpleNamespace(new_sign_count=5)

    monkeypatch.setattr(biometric_service, "verify_registration_response", fake_registration)
    monkeypatch.setattr(biometric_service, "verify_authentication_response", fake_authentication)
    return calls


def _register(client, member_id):
    options = client.post("/api/biometrics/register/options", json={"memberId": member_id})
    assert options.status_code == 200
    return client.post(
        "/api/biometrics/register/verify",
        json={"memberId": member_id, "response": {"id": CREDENTIAL_ID, "response": {"transports": ["internal"]}}},
    )


def test_registration_options_shape(client, make_member):
    member = make_member(email="fp@example.com")
    body = client.post("/api/biometrics/register/options", json={"memberId": member.id}).json()
    assert body["challenge"]
    assert body["user"]["name"] == "fp@example.com"
    assert body["authenticatorSelection"]["authenticatorAttachment"] == "platform"


def test_registration_stores_credential(client, db, make_member, verifier):
    member = make_member()
    resp = _register(client, member.id)
    assert resp.status_code == 200
    assert resp.json() == {"verified": True}

    credential = db.get(BiometricCredential, CREDENTIAL_ID)
    assert credential.member_id == member.id
    assert base64.b64decode(credential.public_key) == b"pk"
    assert credential.counter == 0
    assert credential.transports == '["internal"]'


def test_verify_without_challenge_never_reaches_verifier(client, make_member, verifier):
    member = make_member()
    resp = client.post("/api/biometrics/register/verify", json={"memberId": member.id, "response": {"id": CREDENTIAL_ID}})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Challenge expired or not found"
    assert verifier["registration"] == 0


def test_failed_registration_consumes_challenge(client, db, make_member, monkeypatch):
    def reject(**kwargs):
        raise InvalidRegistrationResponse("bad attestation")

    monkeypatch.setattr(biometric_service, "verify_registration_response", reject)
    member = make_member()

    resp = _register(client, member.id)
    assert resp.status_code == 400
    assert resp.json()["verified"] is False
    assert resp.json()["error"] == "bad attestation"
    assert db.query(BiometricCredential).count() == 0

    # Challenge was single-use
    resp = client.post("/api/biometrics/register/verify", json={"memberId": member.id, "response": {"id": CREDENTIAL_ID}})
    assert resp.json()["message"] == "Challenge expired or not found"


def test_authentication_options_need_a_credential(client, make_member):
    member = make_member()
    resp = client.post("/api/biometrics/auth/options", json={"memberId": member.id})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No fingerprints registered"


def test_fingerprint_check_in_and_out(client, db, make_member, verifier):
    member = make_member(first_name="Kasun")
    _register(client, member.id)

    options = client.post("/api/biometrics/auth/options", json={"memberId": member.id}).json()
    assert [c["id"] for c in options["allowCredentials"]] == [CREDENTIAL_ID]

    resp = client.post("/api/biometrics/auth/verify", json={"memberId": member.id, "response": {"id": CREDENTIAL_ID}})
    assert resp.status_code == 200
    body = resp.json()
    assert body["verified"] is True
    assert body["attendance"]["message"] == "Welcome, Kasun! Checked IN successfully."

    db.expire_all()
    record = db.query(Attendance).one()
    assert record.method == "fingerprint"
    assert record.check_out_time is None
    assert db.get(BiometricCredential, CREDENTIAL_ID).counter == 5

    client.post("/api/biometrics/auth/options", json={"memberId": member.id})
    resp = client.post(
        "/api/biometrics/auth/verify",
        json={"memberId": member.id, "response": {"id": CREDENTIAL_ID}, "type": "out"},
    )
    assert resp.json()["attendance"]["message"] == "Goodbye, Kasun! Checked OUT successfully."
    db.expire_all()
    assert db.query(Attendance).one().check_out_time is not None


def test_fingerprint_check_out_without_session_is_still_verified(client, db, make_member, verifier):
    member = make_member()
    _register(client, member.id)
    client.post("/api/biometrics/auth/options", json={"memberId": member.id})

    resp = client.post(
        "/api/biometrics/auth/verify",
        json={"memberId": member.id, "response": {"id": CREDENTIAL_ID}, "type": "out"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["verified"] is True
    assert body["attendance"] is None
    assert body["message"]
    assert db.query(Attendance).count() == 0


def test_authentication_without_challenge_is_rejected(client, make_member, verifier):
    member = make_member()
    _register(client, member.id)
    resp = client.post("/api/biometrics/auth/verify", json={"memberId": member.id, "response": {"id": CREDENTIAL_ID}})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Challenge expired"
    assert verifier["authentication"] == 0


def test_credential_of_another_member_is_rejected(client, db, make_member, verifier):
    owner = make_member()
    intruder = make_member()
    _register(client, owner.id)

    # Intruder needs a credential of their own to get an authentication challenge
    db.add(BiometricCredential(id="other-cred", member_id=intruder.id, public_key="cGs=", counter=0))
    db.commit()
    client.post("/api/biometrics/auth/options", json={"memberId": intruder.id})

    resp = client.post("/api/biometrics/auth/verify", json={"memberId": intruder.id, "response": {"id": CREDENTIAL_ID}})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Credential not found"
    assert verifier["authentication"] == 0
    assert db.query(Attendance).count() == 0


def test_failed_assertion_records_nothing(client, db, make_member, verifier, monkeypatch):
    member = make_member()
    _register(client, member.id)

    def reject(**kwargs):
        raise InvalidAuthenticationResponse("bad signature")

    monkeypatch.setattr(biometric_service, "verify_authentication_response", reject)
    client.post("/api/biometrics/auth/options", json={"memberId": member.id})

    resp = client.post("/api/biometrics/auth/verify", json={"memberId": member.id, "response": {"id": CREDENTIAL_ID}})
    assert resp.status_code == 400
    assert resp.json()["verified"] is False
    db.expire_all()
    assert db.query(Attendance).count() == 0
    assert db.get(BiometricCredential, CREDENTIAL_ID).counter == 0
