from pydantic import BaseModel
from typing import Optional


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class AvatarUpdate(BaseModel):
    avatar_url: str
