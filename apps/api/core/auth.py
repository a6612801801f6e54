"""
Authentication and authorization dependencies.

Provides FastAPI dependencies for:
- Getting the current principal (staff user or member) from the bearer token
- Staff-only access
- Member self-service access (a member may only touch their own records)
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from core.exceptions import ForbiddenError, UnauthorizedError
from core.security import decode_access_token
from schemas import Principal

# Use auto_error=False to handle missing credentials manually and return 401 (not 403)
security = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """
    Resolve the caller from the JWT.

    Tokens are self-contained (id, role, kind), so no database round trip is needed.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Invalid authentication credentials")

    try:
        return Principal(
            id=int(payload.get("sub")),
            role=payload.get("role") or "",
            kind=payload.get("kind") or "",
        )
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload")


def require_staff(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Require a staff account (any role from the users table)."""
    if not principal.is_staff:
        raise ForbiddenError("Staff access required")
    return principal


def ensure_member_access(principal: Principal, member_id: int) -> None:
    """
    Staff can access any member; members can only access themselves.
    """
    if principal.is_staff:
        return
    if principal.id != member_id:
        raise ForbiddenError("Access denied. You can only access your own data.")


def require_member_or_staff(
    id: int,
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Path-parameter variant of ensure_member_access for `/members/{id}/...` routes."""
    ensure_member_access(principal, id)
    return principal
