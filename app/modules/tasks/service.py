from supabase import Client
from app.core.events import EventHub, TASK_CREATED, TASK_UPDATED, TASK_DELETED
from app.modules.tasks.assignment import pick_least_loaded
from app.modules.tasks.schemas import (
    TaskCreate, TaskUpdate, TaskResponse, MessageResponse, TaskBulkDeleteResponse
)
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import TypeAdapter
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

# Column names of the board; a task may not be titled after one
RESERVED_TITLES = frozenset({"todo", "inprogress", "done"})

# Conditional writes tried before smart assign gives up on a busy task
SMART_ASSIGN_ATTEMPTS = 5

_timestamp = TypeAdapter(datetime)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    return as_utc(_timestamp.validate_python(value))


def to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def next_version(previous: datetime) -> datetime:
    """A fresh updated_at at millisecond precision, strictly later than previous.

    Millisecond versions survive a round trip through a JavaScript Date.
    """
    now = to_millis(utc_now())
    if now > previous:
        return now
    return to_millis(previous) + timedelta(milliseconds=1)


def activity_entry(user_name: str, action: str) -> Dict[str, str]:
    return {"user": user_name, "action": action, "timestamp": utc_now().isoformat()}


class TaskService:
    def __init__(self, supabase: Client, events: EventHub):
        self.supabase = supabase
        self.events = events

    def _fetch_task(self, task_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("tasks")\
            .select("*")\
            .eq("id", task_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _resolve(self, rows: List[Dict[str, Any]]) -> List[TaskResponse]:
        """Replace assigned_to ids with {id, name}; unknown assignees resolve to None."""
        assignee_ids = sorted({str(row["assigned_to"]) for row in rows if row.get("assigned_to")})
        names: Dict[str, Optional[str]] = {}
        if assignee_ids:
            users_result = self.supabase.table("users")\
                .select("id, name")\
                .in_("id", assignee_ids)\
                .execute()
            names = {str(user["id"]): user.get("name") for user in users_result.data or []}

        tasks = []
        for row in rows:
            data = dict(row)
            assignee = str(row["assigned_to"]) if row.get("assigned_to") else None
            data["assigned_to"] = {"id": assignee, "name": names[assignee]} if assignee in names else None
            data["activity"] = row.get("activity") or []
            tasks.append(TaskResponse(**data))
        return tasks

    def _resolve_one(self, row: Dict[str, Any]) -> TaskResponse:
        return self._resolve([row])[0]

    def _conflict(self, row: Dict[str, Any]) -> HTTPException:
        logger.info("Stale update rejected for task %s (server version %s)", row["id"], row["updated_at"])
        return HTTPException(
            status_code=409,
            detail={
                "message": "Conflict detected",
                "server_version": jsonable_encoder(self._resolve_one(row)),
            }
        )

    def list_tasks(self) -> List[TaskResponse]:
        """All tasks with assignee names resolved"""
        try:
            result = self.supabase.table("tasks").select("*").execute()
            return self._resolve(result.data or [])
        except Exception:
            logger.exception("Failed to fetch tasks")
            raise HTTPException(status_code=500, detail="Failed to fetch tasks")

    def list_group_tasks(self, group_id: str) -> List[TaskResponse]:
        try:
            result = self.supabase.table("tasks")\
                .select("*")\
                .eq("group_id", group_id)\
                .execute()
            return self._resolve(result.data or [])
        except Exception:
            logger.exception("Failed to fetch tasks for group %s", group_id)
            raise HTTPException(status_code=500, detail="Failed to fetch tasks")

    def get_task(self, task_id: str) -> TaskResponse:
        try:
            task = self._fetch_task(task_id)
            if not task:
                raise HTTPException(status_code=404, detail="Task not found")
            return self._resolve_one(task)
        except HTTPException:
            raise
        except Exception:
            logger.exception("Failed to fetch task %s", task_id)
            raise HTTPException(status_code=500, detail="Failed to fetch task")

    def create_task(self, task_data: TaskCreate) -> TaskResponse:
        """Create a task in an existing group.

        The trimmed title must be unique within the group and must not name a
        board column.
        """
        title = task_data.title.strip()
        group_id = task_data.group_id.strip()
        if not title or not group_id:
            raise HTTPException(status_code=400, detail="Task title and group_id are required.")
        if title.lower() in RESERVED_TITLES:
            raise HTTPException(status_code=400, detail="Task title cannot match a column name.")

        try:
            group_result = self.supabase.table("groups")\
                .select("id")\
                .eq("id", group_id)\
                .limit(1)\
                .execute()
            if not group_result.data:
                raise HTTPException(status_code=404, detail="Group not found")

            existing = self.supabase.table("tasks")\
                .select("id")\
                .eq("title", title)\
                .eq("group_id", group_id)\
                .limit(1)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="A task with this title already exists in this group.")

            result = self.supabase.table("tasks").insert({
                "title": title,
                "description": task_data.description,
                "status": task_data.status,
                "priority": task_data.priority,
                "group_id": group_id,
                "assigned_to": task_data.assigned_to,
                "updated_at": to_millis(utc_now()).isoformat(),
                "activity": [],
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Server error while creating task.")

            task = self._resolve_one(result.data[0])
        except HTTPException:
            raise
        except Exception:
            logger.exception("Task creation failed")
            raise HTTPException(status_code=500, detail="Server error while creating task.")

        self.events.emit(TASK_CREATED, task)
        return task

    def update_task(self, task_id: str, patch: TaskUpdate, user: Dict[str, Any]) -> TaskResponse:
        """Apply a partial update guarded by the client's last-seen updated_at.

        A stored updated_at later than patch.updated_at means someone else wrote
        first: 409 with the current task, nothing changed. Otherwise each
        provided field that differs is applied and logged (title, description,
        status, in that order). A patch that changes nothing is not persisted
        and leaves updated_at as it was.
        """
        try:
            task = self._fetch_task(task_id)
            if not task:
                raise HTTPException(status_code=404, detail="Task not found")

            server_version = parse_timestamp(task["updated_at"])
            if server_version > as_utc(patch.updated_at):
                raise self._conflict(task)

            changes: Dict[str, Any] = {}
            entries = []
            for field, action in (
                ("title", "Updated title"),
                ("description", "Updated description"),
                ("status", None),
            ):
                value = getattr(patch, field)
                if value is None or value == task.get(field):
                    continue
                changes[field] = value
                entries.append(activity_entry(user["name"], action or f"Moved to {value}"))

            if not changes:
                logger.debug("No-op update for task %s", task_id)
                return self._resolve_one(task)

            changes["activity"] = list(task.get("activity") or []) + entries
            changes["updated_at"] = next_version(server_version).isoformat()

            # Compare-and-set on the version we read
            result = self.supabase.table("tasks")\
                .update(changes)\
                .eq("id", task_id)\
                .eq("updated_at", task["updated_at"])\
                .execute()
            if not result.data:
                current = self._fetch_task(task_id)
                if not current:
                    raise HTTPException(status_code=404, detail="Task not found")
                raise self._conflict(current)

            updated = self._resolve_one(result.data[0])
        except HTTPException:
            raise
        except Exception:
            logger.exception("Update failed for task %s", task_id)
            raise HTTPException(status_code=500, detail="Update failed")

        self.events.emit(TASK_UPDATED, updated)
        return updated

    def smart_assign(self, task_id: str, user: Dict[str, Any]) -> TaskResponse:
        """Assign the task to the user currently holding the fewest tasks.

        The client's version is not checked; the assignment always wins. The
        write itself is conditional on the version read here, so a concurrent
        update is re-read and its activity entries are kept.
        """
        try:
            task = self._fetch_task(task_id)
            if not task:
                raise HTTPException(status_code=404, detail="Task not found")

            users = self.supabase.table("users").select("id, name").execute().data or []
            all_tasks = self.supabase.table("tasks").select("id, assigned_to").execute().data or []

            chosen = pick_least_loaded(users, all_tasks)
            if chosen is None:
                raise HTTPException(status_code=404, detail="No users to assign")

            entry = activity_entry(user["name"], f"Smart-assigned to {chosen['name']}")
            updated = None
            for _ in range(SMART_ASSIGN_ATTEMPTS):
                result = self.supabase.table("tasks")\
                    .update({
                        "assigned_to": str(chosen["id"]),
                        "activity": list(task.get("activity") or []) + [entry],
                        "updated_at": next_version(parse_timestamp(task["updated_at"])).isoformat(),
                    })\
                    .eq("id", task_id)\
                    .eq("updated_at", task["updated_at"])\
                    .execute()
                if result.data:
                    updated = self._resolve_one(result.data[0])
                    break
                logger.info("Task %s changed during smart assign; retrying", task_id)
                task = self._fetch_task(task_id)
                if not task:
                    raise HTTPException(status_code=404, detail="Task not found")
            if updated is None:
                raise RuntimeError(f"task {task_id} kept changing during smart assign")
        except HTTPException:
            raise
        except Exception:
            logger.exception("Smart assign failed for task %s", task_id)
            raise HTTPException(status_code=500, detail="Smart assign failed")

        logger.info("Task %s smart-assigned to %s", task_id, chosen["id"])
        self.events.emit(TASK_UPDATED, updated)
        return updated

    def delete_task(self, task_id: str) -> MessageResponse:
        try:
            result = self.supabase.table("tasks")\
                .delete()\
                .eq("id", task_id)\
                .execute()
        except Exception:
            logger.exception("Failed to delete task %s", task_id)
            raise HTTPException(status_code=500, detail="Failed to delete task")
        if not result.data:
            raise HTTPException(status_code=404, detail="Task not found")

        self.events.emit(TASK_DELETED, {"task_id": task_id})
        return MessageResponse(message="Task deleted successfully")

    def delete_column(self, group_id: str, status: str) -> TaskBulkDeleteResponse:
        """Delete every task of a group that sits in the given status column"""
        try:
            result = self.supabase.table("tasks")\
                .delete()\
                .eq("group_id", group_id)\
                .eq("status", status)\
                .execute()
        except Exception:
            logger.exception("Failed to delete column %s of group %s", status, group_id)
            raise HTTPException(status_code=500, detail="Failed to delete tasks in column")

        deleted = result.data or []
        for task in deleted:
            self.events.emit(TASK_DELETED, {"task_id": str(task["id"])})
        return TaskBulkDeleteResponse(message=f"{len(deleted)} tasks deleted", deleted_count=len(deleted))
