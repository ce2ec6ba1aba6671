"""
Core dependencies for route protection and service wiring
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.security import InvalidTokenError, decode_access_token
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a bare token (no "Bearer" scheme) can still be read from the header
security = HTTPBearer(auto_error=False)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    raw = request.headers.get("authorization", "").strip()
    return raw or None


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Resolve the Authorization header to {id, username, name, avatar_url}. Cached on request.state."""
    cached = getattr(request.state, "current_user", None)
    if cached is not None:
        return cached

    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied"
        )
    try:
        user_id = decode_access_token(token)
    except InvalidTokenError as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token is invalid")

    try:
        user = auth_service.get_user(user_id)
    except Exception:
        logger.exception("Error resolving user %s", user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Authentication failed")
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    request.state.current_user = user
    return user


def require_identity_on_writes(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Dict[str, Any]]:
    """Router-level gate: every mutating method must carry a valid identity; reads pass through."""
    if request.method in SAFE_METHODS:
        return None
    return get_current_user(request, credentials, auth_service)
