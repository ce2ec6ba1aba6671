from .conftest import API


def test_create_group_requires_identity(client):
    response = client.post(f"{API}/groups", json={"name": "Eng"})
    assert response.status_code == 401


def test_create_list_and_get_groups(client, alice):
    first = client.post(f"{API}/groups", json={"name": "Eng"}, headers=alice["headers"])
    second = client.post(f"{API}/groups", json={"name": "Ops"}, headers=alice["headers"])
    assert first.status_code == 201
    assert first.json()["created_by"] == alice["id"]

    listed = client.get(f"{API}/groups")
    assert listed.status_code == 200
    assert [g["name"] for g in listed.json()] == ["Ops", "Eng"]

    fetched = client.get(f"{API}/groups/{second.json()['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Ops"


def test_get_missing_group_is_not_found(client):
    response = client.get(f"{API}/groups/missing")
    assert response.status_code == 404
    assert response.json()["detail"] == "Group not found"


def test_delete_group_requires_identity(client, store, group):
    response = client.delete(f"{API}/groups/{group['id']}")
    assert response.status_code == 401
    assert store.get("groups", group["id"]) is not None


def test_delete_group_cascades_to_its_tasks_only(client, store, events, alice, group):
    other = store.add("groups", name="Ops", created_by=alice["id"])
    doomed = [
        store.add("tasks", title=f"Task {i}", status="todo", priority="medium",
                  group_id=group["id"], updated_at="2026-01-01T00:00:00+00:00", activity=[])
        for i in range(3)
    ]
    survivor = store.add("tasks", title="Keep me", status="todo", priority="medium",
                         group_id=other["id"], updated_at="2026-01-01T00:00:00+00:00", activity=[])

    response = client.delete(f"{API}/groups/{group['id']}", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json() == {"message": "Group and its tasks deleted", "deleted_task_count": 3}

    assert client.get(f"{API}/groups/{group['id']}").status_code == 404
    for task in doomed:
        assert client.get(f"{API}/tasks/{task['id']}", headers=alice["headers"]).status_code == 404
    assert [t["id"] for t in store.rows("tasks")] == [survivor["id"]]
    assert events.events == [("taskDeleted", {"task_id": t["id"]}) for t in doomed]


def test_tasks_are_deleted_before_the_group(client, store, alice, group):
    client.delete(f"{API}/groups/{group['id']}", headers=alice["headers"])
    deletes = [table for table, op in store.calls if op == "delete"]
    assert deletes == ["tasks", "groups"]


def test_delete_missing_group_leaves_tasks_alone(client, store, alice):
    orphan = store.add("tasks", title="Orphan", status="todo", priority="medium",
                       group_id="ghost", updated_at="2026-01-01T00:00:00+00:00", activity=[])

    response = client.delete(f"{API}/groups/ghost", headers=alice["headers"])
    assert response.status_code == 404
    assert store.get("tasks", orphan["id"]) is not None


def test_list_groups_storage_failure_is_server_error(client, store):
    store.broken_tables.add("groups")
    response = client.get(f"{API}/groups")
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch groups"
