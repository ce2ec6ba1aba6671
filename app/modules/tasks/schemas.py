from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

Priority = Literal["low", "medium", "high"]


class ActivityEntry(BaseModel):
    user: str
    action: str
    timestamp: datetime


class TaskAssignee(BaseModel):
    id: str
    name: Optional[str] = None


class TaskCreate(BaseModel):
    title: str
    group_id: str
    description: Optional[str] = None
    status: str = "todo"
    priority: Priority = "medium"
    assigned_to: Optional[str] = None


class TaskUpdate(BaseModel):
    """Partial update.

    updated_at is the version the client last saw. Versions are issued at
    millisecond precision; echo the value as received (a JavaScript Date
    round trip is safe, finer rounding is not).
    """
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1)
    updated_at: datetime


class TaskResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: Priority
    group_id: str
    assigned_to: Optional[TaskAssignee] = None
    updated_at: datetime
    activity: List[ActivityEntry] = []

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str


class TaskBulkDeleteResponse(BaseModel):
    message: str
    deleted_count: int
