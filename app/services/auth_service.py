"""
Auth Service

Credential and session issuance:
- bcrypt password hashing (passlib)
- HS256 bearer tokens (python-jose)
- signup / login with case-insensitive unique email
"""
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from app.config import settings
from app.domain.constants import MIN_PASSWORD_LENGTH
from app.domain.errors import AuthError, ConflictError, ValidationError
from app.models.schemas import UserOut

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not plain or not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: str, email: str, expires_minutes: int = None) -> str:
    """Signed token carrying the user id as subject."""
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or settings.JWT_EXPIRES_MINUTES)
    payload = {"sub": str(user_id), "email": email, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry.

    Raises:
        AuthError: expired or invalid token
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Session expired. Please log in again.")
    except JWTError:
        raise AuthError("Invalid token.")
    if not payload.get("sub"):
        raise AuthError("Invalid token.")
    return payload


class AuthService:
    """Signup and login."""

    def __init__(self, user_repo, country_resolver=None):
        """
        Args:
            user_repo: UserRepository
            country_resolver: ip -> country name ("" when unknown), optional
        """
        self.user_repo = user_repo
        self.country_resolver = country_resolver

    def _session(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "token": create_access_token(user["_id"], user["email"]),
            "user": UserOut.from_doc(user).to_response(),
        }

    def _tag_country(self, user: Dict[str, Any], client_ip: Optional[str]) -> Dict[str, Any]:
        if user.get("country") or not self.country_resolver or not client_ip:
            return user
        country = self.country_resolver(client_ip)
        if country:
            user = self.user_repo.update_fields(user["_id"], {"country": country}) or user
        return user

    def signup(self, name: str, email: str, password: str, client_ip: Optional[str] = None) -> Dict[str, Any]:
        """
        Create an account and open a session.

        Raises:
            ValidationError: missing fields or short password
            ConflictError: email already registered
        """
        name, email = (name or "").strip(), (email or "").strip().lower()
        if not name or not email or not password:
            raise ValidationError("All fields required.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be {MIN_PASSWORD_LENGTH}+ characters.")
        if self.user_repo.get_by_email(email):
            raise ConflictError("Email already in use.")

        try:
            user = self.user_repo.create(name=name, email=email, password_hash=hash_password(password))
        except DuplicateKeyError:
            raise ConflictError("Email already in use.")

        user = self._tag_country(user, client_ip)
        logger.info(f"[AuthService] signup user {user['_id']}")
        return self._session(user)

    def login(self, email: str, password: str, client_ip: Optional[str] = None) -> Dict[str, Any]:
        """
        Raises:
            AuthError: unknown email or wrong password (same message)
        """
        user = self.user_repo.get_by_email(email or "")
        if not user or not verify_password(password, user.get("password_hash")):
            raise AuthError("Invalid credentials.")

        user = self._tag_country(user, client_ip)
        logger.info(f"[AuthService] login user {user['_id']}")
        return self._session(user)


# Singleton instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get singleton AuthService."""
    global _auth_service
    if _auth_service is None:
        from app.infra.mongodb.repositories import get_user_repo
        from app.utils.geoip import get_country_from_ip
        _auth_service = AuthService(get_user_repo(), country_resolver=get_country_from_ip)
    return _auth_service
