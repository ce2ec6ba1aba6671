import asyncio
import json
import threading

from app.core.events import EventHub, _Client
from app.modules.tasks.schemas import TaskResponse

from .conftest import API
from .fakes import FakeWebSocket


def register(hub, ws):
    # bypasses accept/receive handling; broadcast only needs send_text
    hub._clients[id(ws)] = _Client(ws=ws)


def test_broadcast_reaches_every_client_with_sequence_numbers():
    hub = EventHub()
    first, second = FakeWebSocket(), FakeWebSocket()
    register(hub, first)
    register(hub, second)

    async def _run():
        await hub.broadcast("taskDeleted", {"task_id": "t1"})
        return await hub.broadcast("taskDeleted", {"task_id": "t2"})

    assert asyncio.run(_run()) == 2
    messages = [json.loads(text) for text in first.sent]
    assert messages == [
        {"event": "taskDeleted", "data": {"task_id": "t1"}, "seq": 1},
        {"event": "taskDeleted", "data": {"task_id": "t2"}, "seq": 2},
    ]
    assert second.sent == first.sent


def test_broadcast_drops_clients_whose_send_fails():
    hub = EventHub()
    healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
    register(hub, healthy)
    register(hub, broken)

    delivered = asyncio.run(hub.broadcast("taskUpdated", {"id": "t1"}))
    assert delivered == 1
    assert hub.client_count == 1


def test_broadcast_serializes_task_models():
    hub = EventHub()
    ws = FakeWebSocket()
    register(hub, ws)
    task = TaskResponse(
        id="t1", title="Fix bug", status="todo", priority="high", group_id="g1",
        updated_at="2026-01-01T00:00:00Z",
    )
    asyncio.run(hub.broadcast("taskCreated", task))
    data = json.loads(ws.sent[0])["data"]
    assert data["title"] == "Fix bug"
    assert data["activity"] == []


def test_emit_without_clients_or_loop_is_a_no_op():
    hub = EventHub()
    hub.emit("taskUpdated", {"id": "t1"})
    register(hub, FakeWebSocket())
    hub.emit("taskUpdated", {"id": "t1"})


def test_emit_inside_running_loop_schedules_delivery():
    hub = EventHub()
    ws = FakeWebSocket()
    register(hub, ws)

    async def _run():
        hub.emit("taskDeleted", {"task_id": "t9"})
        assert ws.sent == []
        await asyncio.sleep(0.01)

    asyncio.run(_run())
    assert json.loads(ws.sent[0])["data"] == {"task_id": "t9"}


def test_close_closes_all_sockets():
    hub = EventHub()
    ws = FakeWebSocket()
    register(hub, ws)
    asyncio.run(hub.close())
    assert ws.closed
    assert hub.client_count == 0


def test_websocket_endpoint_greets_and_answers_ping(client):
    with client.websocket_connect("/ws") as ws:
        hello = ws.receive_json()
        assert hello["event"] == "connected"
        assert hello["data"]["events"] == ["taskCreated", "taskUpdated", "taskDeleted"]
        ws.send_json({"action": "ping"})
        assert ws.receive_json()["event"] == "pong"


def test_emit_from_worker_thread_uses_attached_loop():
    async def _run():
        hub = EventHub()
        ws = FakeWebSocket()
        register(hub, ws)
        hub.attach_loop(asyncio.get_running_loop())

        worker = threading.Thread(target=lambda: hub.emit("taskDeleted", {"task_id": "t1"}))
        worker.start()
        worker.join(timeout=2)
        for _ in range(100):
            if ws.sent:
                break
            await asyncio.sleep(0.01)
        return ws.sent

    sent = asyncio.run(_run())
    assert [json.loads(text)["event"] for text in sent] == ["taskDeleted"]


def test_task_update_reaches_connected_socket(live_client, store, alice, group):
    task = store.add("tasks", title="Fix bug", status="todo", priority="medium", group_id=group["id"],
                     updated_at="2026-01-01T00:00:00+00:00", activity=[])

    with live_client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["event"] == "connected"

        response = live_client.put(
            f"{API}/tasks/{task['id']}",
            json={"status": "done", "updated_at": task["updated_at"]},
            headers=alice["headers"],
        )
        assert response.status_code == 200

        message = ws.receive_json()
        assert message["event"] == "taskUpdated"
        assert message["data"]["id"] == task["id"]
        assert message["data"]["status"] == "done"
        assert message["data"]["activity"][-1]["action"] == "Moved to done"


def test_group_delete_announces_each_task_on_socket(live_client, store, alice, group):
    doomed = [
        store.add("tasks", title=f"Task {i}", status="todo", priority="medium", group_id=group["id"],
                  updated_at="2026-01-01T00:00:00+00:00", activity=[])
        for i in range(2)
    ]

    with live_client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["event"] == "connected"

        response = live_client.delete(f"{API}/groups/{group['id']}", headers=alice["headers"])
        assert response.status_code == 200

        received = [ws.receive_json() for _ in doomed]
        assert [m["event"] for m in received] == ["taskDeleted", "taskDeleted"]
        assert [m["data"] for m in received] == [{"task_id": t["id"]} for t in doomed]
