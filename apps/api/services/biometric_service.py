"""
Fingerprint (WebAuthn platform authenticator) enrolment and check-in.

Cryptographic verification is delegated to py_webauthn; this module owns the
challenge bookkeeping, credential storage and the attendance side effect.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    options_to_json,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.exceptions import WebAuthnException
from webauthn.helpers.structs import (
    AuthenticatorAttachment,
    AuthenticatorSelectionCriteria,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from core.config import settings
from core.exceptions import InvalidStateError, ValidationError
from models import BiometricCredential
from services.attendance_service import mark_attendance
from services.challenge_store import authentication_key, get_challenge_store, registration_key
from services.member_service import get_member_or_404

logger = logging.getLogger(__name__)


def _credentials_for(db: Session, member_id: int) -> List[BiometricCredential]:
    return (
        db.query(BiometricCredential)
        .filter(BiometricCredential.member_id == member_id)
        .order_by(BiometricCredential.created_at)
        .all()
    )


def _options_dict(options) -> Dict[str, Any]:
    return json.loads(options_to_json(options))


def _verification_failed(e: Exception) -> InvalidStateError:
    return InvalidStateError("Verification failed", extra={"verified": False, "error": str(e)})


def registration_options(db: Session, member_id: int) -> Dict[str, Any]:
    """
    Start enrolment. Existing credentials are not excluded so a member can
    enrol more than one finger.
    """
    member = get_member_or_404(db, member_id)

    options = generate_registration_options(
        rp_id=settings.WEBAUTHN_RP_ID,
        rp_name=settings.WEBAUTHN_RP_NAME,
        user_id=str(member.id).encode("utf-8"),
        user_name=member.email or f"member-{member.id}",
        user_display_name=member.full_name,
        authenticator_selection=AuthenticatorSelectionCriteria(
            authenticator_attachment=AuthenticatorAttachment.PLATFORM,
            resident_key=ResidentKeyRequirement.DISCOURAGED,
            user_verification=UserVerificationRequirement.PREFERRED,
        ),
    )
    get_challenge_store().put(registration_key(member.id), options.challenge)
    return _options_dict(options)


def _transports(response: Dict[str, Any]) -> Optional[str]:
    transports = (response.get("response") or {}).get("transports")
    if not transports:
        return None
    return json.dumps(transports)


def verify_registration(db: Session, member_id: int, response: Dict[str, Any]) -> Dict[str, Any]:
    """
    Finish enrolment and store the new credential.

    The stored challenge is consumed whether or not verification succeeds.
    """
    challenge = get_challenge_store().pop(registration_key(member_id))
    if challenge is None:
        raise InvalidStateError("Challenge expired or not found")
    get_member_or_404(db, member_id)

    try:
        verification = verify_registration_response(
            credential=response,
            expected_challenge=challenge,
            expected_rp_id=settings.WEBAUTHN_RP_ID,
            expected_origin=settings.WEBAUTHN_ORIGIN,
        )
    except WebAuthnException as e:
        logger.warning(f"Fingerprint registration rejected for member {member_id}: {e}")
        raise _verification_failed(e)

    credential = BiometricCredential(
        id=bytes_to_base64url(verification.credential_id),
        member_id=member_id,
        public_key=base64.b64encode(verification.credential_public_key).decode("ascii"),
        counter=verification.sign_count,
        transports=_transports(response),
        attestation_type=str(getattr(verification.fmt, "value", verification.fmt) or "none"),
    )
    db.add(credential)
    db.flush()
    logger.info(f"Fingerprint registered for member {member_id}")
    return {"verified": True}


def authentication_options(db: Session, member_id: int) -> Dict[str, Any]:
    credentials = _credentials_for(db, member_id)
    if not credentials:
        raise InvalidStateError("No fingerprints registered")

    options = generate_authentication_options(
        rp_id=settings.WEBAUTHN_RP_ID,
        allow_credentials=[PublicKeyCredentialDescriptor(id=base64url_to_bytes(c.id)) for c in credentials],
        user_verification=UserVerificationRequirement.PREFERRED,
    )
    get_challenge_store().put(authentication_key(member_id), options.challenge)
    return _options_dict(options)


def verify_authentication(
    db: Session,
    member_id: int,
    response: Dict[str, Any],
    direction: str = "in",
) -> Dict[str, Any]:
    """
    Verify a fingerprint assertion, then check the member in or out.

    A check-out with nothing open today still counts as a verified scan; the
    result carries a message instead of an attendance record.
    """
    challenge = get_challenge_store().pop(authentication_key(member_id))
    if challenge is None:
        raise InvalidStateError("Challenge expired")

    credential_id = response.get("id")
    if not credential_id:
        raise ValidationError("Missing credential id", field="id")
    credential = db.get(BiometricCredential, credential_id)
    if credential is None or credential.member_id != member_id:
        raise InvalidStateError("Credential not found")

    try:
        verification = verify_authentication_response(
            credential=response,
            expected_challenge=challenge,
            expected_rp_id=settings.WEBAUTHN_RP_ID,
            expected_origin=settings.WEBAUTHN_ORIGIN,
            credential_public_key=base64.b64decode(credential.public_key),
            credential_current_sign_count=credential.counter,
        )
    except WebAuthnException as e:
        logger.warning(f"Fingerprint authentication rejected for member {member_id}: {e}")
        raise _verification_failed(e)

    credential.counter = verification.new_sign_count
    db.flush()

    result: Dict[str, Any] = {"verified": True, "type": direction}
    try:
        result["attendance"] = mark_attendance(db, member_id, direction, method="fingerprint")
    except InvalidStateError as e:
        result["attendance"] = None
        result["message"] = e.detail
    return result
