"""
Authentication API endpoints.

Provides:
- Login for staff (users table, bcrypt) and members (email + NIC)
- Current principal lookup
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import hmac
import logging

from core.auth import get_current_principal
from core.database import get_db
from core.exceptions import UnauthorizedError
from core.security import create_access_token, verify_password
from models import Member, User
from schemas import LoginRequest, Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

MEMBER_ROLE = "member"
DEFAULT_STAFF_ROLE = "staff"


def _staff_login(db: Session, email: str, password: str):
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password):
        return None
    role = user.role.name if user.role else DEFAULT_STAFF_ROLE
    token = create_access_token({"sub": str(user.id), "role": role, "kind": "user"})
    return {"token": token, "user": {"id": user.id, "name": user.name, "role": role, "email": user.email}}


def _member_login(db: Session, email: str, password: str):
    # Members sign in with their NIC as the password
    member = db.query(Member).filter(Member.email == email).first()
    if not member or not member.nic or not hmac.compare_digest(password.encode("utf-8"), member.nic.encode("utf-8")):
        return None
    token = create_access_token({"sub": str(member.id), "role": MEMBER_ROLE, "kind": "member"})
    return {
        "token": token,
        "user": {"id": member.id, "name": member.full_name, "role": MEMBER_ROLE, "email": member.email},
    }


@router.post("/login")
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Exchange credentials for a bearer token (valid 24 hours).

    Staff accounts are tried first; if the email is not a staff account or
    the password does not match, the members table is tried.
    """
    email = credentials.email.strip()

    result = _staff_login(db, email, credentials.password)
    if result is None:
        result = _member_login(db, email, credentials.password)
    if result is None:
        logger.info("Failed login attempt")
        raise UnauthorizedError("Invalid credentials")

    logger.info(f"Login: kind={'member' if result['user']['role'] == MEMBER_ROLE else 'user'} id={result['user']['id']}")
    return result


@router.get("/me")
def me(principal: Principal = Depends(get_current_principal)):
    return {"id": principal.id, "role": principal.role, "kind": principal.kind}
