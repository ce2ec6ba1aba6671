import logging
from supabase import Client
from postgrest.exceptions import APIError
from app.modules.auth.schemas import LoginRequest, RegisterRequest, RegisterResponse, TokenResponse, TokenUser
from app.modules.auth.security import create_access_token, hash_password, verify_password
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Columns safe to hand to request handlers; never includes password_hash
USER_PUBLIC_COLUMNS = "id, username, name, avatar_url"

# Postgres unique_violation; the users.username constraint backs the pre-insert check
UNIQUE_VIOLATION = "23505"


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user with a bcrypt-hashed password"""
        username = register_data.username.strip()
        if not username:
            raise HTTPException(status_code=400, detail="Username is required")
        try:
            existing = self.supabase.table("users")\
                .select("id")\
                .eq("username", username)\
                .limit(1)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="Username already exists")

            result = self.supabase.table("users").insert({
                "username": username,
                "password_hash": hash_password(register_data.password),
                "name": register_data.name,
                "avatar_url": register_data.avatar_url or "",
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Server error")

            logger.info("Registered user %s", username)
            return RegisterResponse(message="User registered successfully")
        except HTTPException:
            raise
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise HTTPException(status_code=400, detail="Username already exists")
            logger.exception("Registration failed for %s", username)
            raise HTTPException(status_code=500, detail="Server error")
        except Exception:
            logger.exception("Registration failed for %s", username)
            raise HTTPException(status_code=500, detail="Server error")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Check credentials and issue an access token"""
        try:
            result = self.supabase.table("users")\
                .select("id, username, password_hash")\
                .eq("username", login_data.username.strip())\
                .limit(1)\
                .execute()
            user = result.data[0] if result.data else None
            if not user or not verify_password(login_data.password, user["password_hash"]):
                raise HTTPException(status_code=400, detail="Invalid credentials")

            return TokenResponse(
                token=create_access_token(str(user["id"])),
                user=TokenUser(id=str(user["id"]), username=user["username"]),
            )
        except HTTPException:
            raise
        except Exception:
            logger.exception("Login failed")
            raise HTTPException(status_code=500, detail="Server error")

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Public fields of a user, or None when the id is unknown"""
        result = self.supabase.table("users")\
            .select(USER_PUBLIC_COLUMNS)\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        user = result.data[0]
        return {
            "id": str(user["id"]),
            "username": user.get("username"),
            "name": user.get("name"),
            "avatar_url": user.get("avatar_url"),
        }
