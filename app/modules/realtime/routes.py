from fastapi import APIRouter, WebSocket
from app.core.events import hub

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def task_events(websocket: WebSocket):
    """Stream taskCreated / taskUpdated / taskDeleted events to the client"""
    await hub.handle_connection(websocket)
