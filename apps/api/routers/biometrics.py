"""
Fingerprint enrolment and check-in (WebAuthn).

Called from the kiosk without a session: the member id in the body selects
whose credentials are used.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from schemas import BiometricOptionsRequest, BiometricVerifyRequest
from services import biometric_service

router = APIRouter(prefix="/api/biometrics", tags=["biometrics"])


@router.post("/register/options")
def register_options(request: BiometricOptionsRequest, db: Session = Depends(get_db)):
    return biometric_service.registration_options(db, request.member_id)


@router.post("/register/verify")
def register_verify(request: BiometricVerifyRequest, db: Session = Depends(get_db)):
    return biometric_service.verify_registration(db, request.member_id, request.response)


@router.post("/auth/options")
def auth_options(request: BiometricOptionsRequest, db: Session = Depends(get_db)):
    return biometric_service.authentication_options(db, request.member_id)


@router.post("/auth/verify")
def auth_verify(request: BiometricVerifyRequest, db: Session = Depends(get_db)):
    return biometric_service.verify_authentication(db, request.member_id, request.response, request.type)
