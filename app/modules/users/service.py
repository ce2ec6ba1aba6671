from supabase import Client
from app.modules.auth.service import USER_PUBLIC_COLUMNS
from app.modules.users.schemas import UserResponse
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_users(self) -> List[UserResponse]:
        """List all users (public fields only), in store order"""
        try:
            result = self.supabase.table("users").select(USER_PUBLIC_COLUMNS).execute()
            return [UserResponse(**user) for user in result.data or []]
        except Exception:
            logger.exception("Failed to list users")
            raise HTTPException(status_code=500, detail="Failed to fetch users")

    def update_avatar(self, user_id: str, avatar_url: str) -> UserResponse:
        """Avatar is the only user field that can change after registration"""
        try:
            result = self.supabase.table("users")\
                .update({"avatar_url": avatar_url})\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            user = result.data[0]
            return UserResponse(
                id=str(user["id"]),
                username=user["username"],
                name=user["name"],
                avatar_url=user.get("avatar_url"),
            )
        except HTTPException:
            raise
        except Exception:
            logger.exception("Failed to update avatar for %s", user_id)
            raise HTTPException(status_code=500, detail="Failed to update avatar")
