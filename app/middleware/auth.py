"""
Session Auth Middleware

Bearer-token session verification and the admin capability check.

Roles:
- user: generate proposals, manage own account
- admin: everything above plus the /admin reporting surface
"""
import logging
from typing import Optional, Dict, Any
from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.domain.constants import Role
from app.domain.errors import AuthError, ForbiddenError
from app.services.auth_service import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme)
) -> Dict[str, Any]:
    """
    Resolve the session to a stored user document.

    Raises:
        AuthError: missing header, bad/expired token or unknown user
    """
    if not credentials or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthError("Auth required.")

    payload = decode_access_token(credentials.credentials)

    from app.infra.mongodb.repositories import get_user_repo
    user = get_user_repo().get_by_id(payload["sub"])
    if not user:
        raise AuthError("User not found.")
    return user


def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Admin-only routes."""
    if user.get("role") != Role.ADMIN.value:
        logger.warning(f"[Auth] non-admin user {user['_id']} denied admin access")
        raise ForbiddenError("Admin access required.")
    return user
