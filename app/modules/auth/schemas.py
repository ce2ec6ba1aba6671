from pydantic import BaseModel, Field
from typing import Optional


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    avatar_url: Optional[str] = None


class RegisterResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenUser(BaseModel):
    id: str
    username: str


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: TokenUser


class CurrentUserResponse(BaseModel):
    id: str
    username: str
    name: str
    avatar_url: Optional[str] = None
