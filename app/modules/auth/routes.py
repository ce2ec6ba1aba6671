from fastapi import APIRouter, Depends, Request
from app.config import settings
from app.core.dependencies import get_auth_service, get_current_user
from app.core.limiter import limiter
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, CurrentUserResponse
)
from app.modules.auth.service import AuthService
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get an access token (valid for 3 days)"""
    return service.login(login_data)


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(current_user: Dict = Depends(get_current_user)):
    """Get the authenticated user"""
    return current_user
