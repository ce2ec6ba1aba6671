from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.core.dependencies import get_current_user
from app.core.events import EventHub, get_event_hub
from app.modules.tasks.schemas import (
    TaskCreate, TaskUpdate, TaskResponse, MessageResponse, TaskBulkDeleteResponse
)
from app.modules.tasks.service import TaskService
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(get_current_user)])


def get_task_service(
    supabase: Client = Depends(get_supabase),
    events: EventHub = Depends(get_event_hub)
) -> TaskService:
    return TaskService(supabase, events)


@router.get("", response_model=List[TaskResponse])
async def list_tasks(service: TaskService = Depends(get_task_service)):
    """List all tasks with assignee names"""
    return service.list_tasks()


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    task_data: TaskCreate,
    service: TaskService = Depends(get_task_service)
):
    """Create a task; broadcasts taskCreated"""
    return service.create_task(task_data)


@router.get("/group/{group_id}", response_model=List[TaskResponse])
async def list_group_tasks(group_id: str, service: TaskService = Depends(get_task_service)):
    """List the tasks of one group"""
    return service.list_group_tasks(group_id)


@router.delete("/group/{group_id}/status/{status}", response_model=TaskBulkDeleteResponse)
async def delete_column(
    group_id: str,
    status: str,
    service: TaskService = Depends(get_task_service)
):
    """Delete all tasks in one column of a group"""
    return service.delete_column(group_id, status)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Get task by ID"""
    return service.get_task(task_id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    patch: TaskUpdate,
    current_user: Dict = Depends(get_current_user),
    service: TaskService = Depends(get_task_service)
):
    """Update a task. 409 with the server version when updated_at is stale; broadcasts taskUpdated"""
    return service.update_task(task_id, patch, current_user)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Delete a task; broadcasts taskDeleted"""
    return service.delete_task(task_id)


@router.post("/{task_id}/assign-smart", response_model=TaskResponse)
async def smart_assign(
    task_id: str,
    current_user: Dict = Depends(get_current_user),
    service: TaskService = Depends(get_task_service)
):
    """Assign the task to the least-loaded user; broadcasts taskUpdated"""
    return service.smart_assign(task_id, current_user)
