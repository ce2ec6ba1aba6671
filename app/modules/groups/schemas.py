from pydantic import BaseModel, Field
from datetime import datetime


class GroupCreate(BaseModel):
    name: str = Field(min_length=1)


class GroupResponse(BaseModel):
    id: str
    name: str
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class GroupDeleteResponse(BaseModel):
    message: str
    deleted_task_count: int
