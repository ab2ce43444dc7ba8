"""
User Routes - self-service account management
"""
import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends

from app.middleware.auth import get_current_user
from app.models.schemas import (
    UpdateProfileRequest,
    UpdateApiKeyRequest,
    ChangePasswordRequest,
    UserOut,
)
from app.services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
def get_me(
    user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    profile = service.get_profile(user["_id"])
    return {"success": True, "user": UserOut.from_doc(profile).to_response()}


@router.patch("/profile")
def update_profile(
    body: UpdateProfileRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    updated = service.update_profile(user["_id"], name=body.name, email=body.email)
    return {"success": True, "user": UserOut.from_doc(updated).to_response()}


@router.get("/api-key")
def get_api_key_status(
    user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return {"success": True, **service.api_key_status(user["_id"])}


@router.patch("/api-key")
def update_api_key(
    body: UpdateApiKeyRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Save or clear (null / "") the caller's Cohere key. The key is never echoed."""
    service.set_api_key(user["_id"], body.cohereApiKey)
    return {"success": True, "message": "API key saved." if body.cohereApiKey else "API key cleared."}


@router.patch("/password")
def change_password(
    body: ChangePasswordRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.change_password(user["_id"], body.current_password, body.new_password)
    return {"success": True, "message": "Password updated."}
