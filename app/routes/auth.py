"""
Auth Routes

Signup and login, both rate limited per client address.
"""
import logging
from fastapi import APIRouter, Depends, Request

from app.middleware.rate_limiter import limit_auth
from app.models.schemas import SignupRequest, LoginRequest
from app.services.auth_service import AuthService, get_auth_service
from app.utils.geoip import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"], dependencies=[Depends(limit_auth)])


@router.post("/signup", status_code=201)
def signup(body: SignupRequest, request: Request, service: AuthService = Depends(get_auth_service)):
    session = service.signup(body.name, body.email, body.password, client_ip=get_client_ip(request))
    return {"success": True, **session}


@router.post("/login")
def login(body: LoginRequest, request: Request, service: AuthService = Depends(get_auth_service)):
    session = service.login(body.email, body.password, client_ip=get_client_ip(request))
    return {"success": True, **session}
