"""
User Service

Self-service account operations: profile, provider API key, password.
"""
import logging
from typing import Optional, Dict, Any

from pymongo.errors import DuplicateKeyError

from app.domain.constants import MIN_PASSWORD_LENGTH
from app.domain.errors import AuthError, ConflictError, NotFoundError, ValidationError
from app.services.auth_service import hash_password, verify_password
from app.services.quota_service import QuotaService

logger = logging.getLogger(__name__)


def mask_key(key: str) -> str:
    """First and last four characters only."""
    return f"{key[:4]}...{key[-4:]}"


class UserService:
    """Account operations for the signed-in user."""

    def __init__(self, user_repo, quota_service: QuotaService = None):
        self.user_repo = user_repo
        self.quota = quota_service or QuotaService(user_repo)

    def _load(self, user_id: str) -> Dict[str, Any]:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        return user

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        """Current user, with the monthly counter rolled over if due."""
        return self.quota.roll_over(self._load(user_id))

    def update_profile(self, user_id: str, name: Optional[str] = None, email: Optional[str] = None) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if name is not None and name.strip():
            fields["name"] = name.strip()
        if email is not None and email.strip():
            email = email.strip().lower()
            existing = self.user_repo.get_by_email(email)
            if existing and existing["_id"] != user_id:
                raise ConflictError("Email already in use.")
            fields["email"] = email
        if not fields:
            return self._load(user_id)

        try:
            user = self.user_repo.update_fields(user_id, fields)
        except DuplicateKeyError:
            raise ConflictError("Email already in use.")
        if not user:
            raise NotFoundError("User not found.")
        return user

    def set_api_key(self, user_id: str, api_key: Optional[str]) -> None:
        """Store (or clear, with None/"") the user's provider key."""
        if not self.user_repo.update_by_id(user_id, {"api_key": (api_key or "").strip()}):
            raise NotFoundError("User not found.")
        logger.info(f"[UserService] API key {'saved' if api_key else 'cleared'} for user {user_id}")

    def api_key_status(self, user_id: str) -> Dict[str, Any]:
        key = self._load(user_id).get("api_key") or ""
        return {"hasApiKey": bool(key), "keyPreview": mask_key(key) if key else None}

    def change_password(self, user_id: str, current_password: Optional[str], new_password: Optional[str]) -> None:
        """
        Raises:
            ValidationError: missing fields or new password too short
            AuthError: current password does not match
        """
        if not current_password or not new_password:
            raise ValidationError("Both passwords required.")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be {MIN_PASSWORD_LENGTH}+ characters.")

        user = self._load(user_id)
        if not verify_password(current_password, user.get("password_hash")):
            raise AuthError("Current password is incorrect.")

        self.user_repo.update_by_id(user_id, {"password_hash": hash_password(new_password)})
        logger.info(f"[UserService] password changed for user {user_id}")


# Singleton instance
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Get singleton UserService."""
    global _user_service
    if _user_service is None:
        from app.infra.mongodb.repositories import get_user_repo
        _user_service = UserService(get_user_repo())
    return _user_service
