from supabase import Client
from app.core.events import EventHub, TASK_DELETED
from app.modules.groups.schemas import GroupCreate, GroupResponse, GroupDeleteResponse
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, supabase: Client, events: EventHub):
        self.supabase = supabase
        self.events = events

    def _find_group(self, group_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("id", group_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def create_group(self, group_data: GroupCreate, user_id: str) -> GroupResponse:
        """Create a new group owned by user_id"""
        name = group_data.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Group creation failed")
        try:
            result = self.supabase.table("groups").insert({
                "name": name,
                "created_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=400, detail="Group creation failed")

            logger.info("Group %s created by %s", result.data[0]["id"], user_id)
            return GroupResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception:
            logger.exception("Group creation failed")
            raise HTTPException(status_code=400, detail="Group creation failed")

    def get_group_by_id(self, group_id: str) -> GroupResponse:
        """Get group by ID"""
        try:
            group = self._find_group(group_id)
        except Exception:
            logger.exception("Error fetching group %s", group_id)
            raise HTTPException(status_code=500, detail="Error fetching group")
        if not group:
            raise HTTPException(status_code=404, detail="Group not found")
        return GroupResponse(**group)

    def list_groups(self) -> List[GroupResponse]:
        """List all groups, newest first"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [GroupResponse(**group) for group in result.data or []]
        except Exception:
            logger.exception("Failed to fetch groups")
            raise HTTPException(status_code=500, detail="Failed to fetch groups")

    def delete_group(self, group_id: str) -> GroupDeleteResponse:
        """Delete a group and every task in it.

        The group must exist before any task is touched; tasks are removed
        before the group row so no task is ever left pointing at a missing group.
        """
        try:
            if not self._find_group(group_id):
                raise HTTPException(status_code=404, detail="Group not found")

            tasks_result = self.supabase.table("tasks")\
                .delete()\
                .eq("group_id", group_id)\
                .execute()
            deleted_tasks = tasks_result.data or []

            self.supabase.table("groups")\
                .delete()\
                .eq("id", group_id)\
                .execute()
        except HTTPException:
            raise
        except Exception:
            logger.exception("Error deleting group %s", group_id)
            raise HTTPException(status_code=500, detail="Failed to delete group")

        for task in deleted_tasks:
            self.events.emit(TASK_DELETED, {"task_id": str(task["id"])})
        logger.info("Group %s deleted with %d task(s)", group_id, len(deleted_tasks))
        return GroupDeleteResponse(
            message="Group and its tasks deleted",
            deleted_task_count=len(deleted_tasks)
        )
