from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.core.dependencies import get_current_user, require_identity_on_writes
from app.core.events import EventHub, get_event_hub
from app.modules.groups.schemas import GroupCreate, GroupResponse, GroupDeleteResponse
from app.modules.groups.service import GroupService
from supabase import Client
from typing import List, Dict

# Reads are public; every mutating route goes through the identity gate
router = APIRouter(prefix="/groups", tags=["groups"], dependencies=[Depends(require_identity_on_writes)])


def get_group_service(
    supabase: Client = Depends(get_supabase),
    events: EventHub = Depends(get_event_hub)
) -> GroupService:
    return GroupService(supabase, events)


@router.get("", response_model=List[GroupResponse])
async def list_groups(service: GroupService = Depends(get_group_service)):
    """List all groups, newest first"""
    return service.list_groups()


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group"""
    return service.create_group(group_data, current_user["id"])


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(group_id: str, service: GroupService = Depends(get_group_service)):
    """Get group by ID"""
    return service.get_group_by_id(group_id)


@router.delete("/{group_id}", response_model=GroupDeleteResponse)
async def delete_group(group_id: str, service: GroupService = Depends(get_group_service)):
    """Delete a group together with all of its tasks"""
    return service.delete_group(group_id)
