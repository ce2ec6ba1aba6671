from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.users.schemas import UserResponse, AvatarUpdate
from app.modules.users.service import UserService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(get_current_user)])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("", response_model=List[UserResponse])
async def list_users(service: UserService = Depends(get_user_service)):
    """List users that tasks can be assigned to"""
    return service.list_users()


@router.put("/me/avatar", response_model=UserResponse)
async def update_my_avatar(
    avatar_data: AvatarUpdate,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Change the authenticated user's avatar"""
    return service.update_avatar(current_user["id"], avatar_data.avatar_url)
