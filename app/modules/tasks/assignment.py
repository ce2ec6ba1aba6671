"""Least-loaded user selection for smart assignment.

Loads are recomputed from the full user and task snapshots on every call;
there is no cached load index.
"""

from typing import Any, Dict, Iterable, List, Optional


def count_loads(users: List[Dict[str, Any]], tasks: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Number of tasks assigned to each known user.

    Every user starts at 0. Tasks assigned to ids outside *users* are ignored.
    """
    loads = {str(user["id"]): 0 for user in users}
    for task in tasks:
        assignee = task.get("assigned_to")
        if assignee is None:
            continue
        assignee = str(assignee)
        if assignee in loads:
            loads[assignee] += 1
    return loads


def pick_least_loaded(users: List[Dict[str, Any]], tasks: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """First user, in the given order, holding the strictly smallest load.

    Returns None when there are no users.
    """
    loads = count_loads(users, tasks)
    best = None
    best_load = None
    for user in users:
        load = loads[str(user["id"])]
        if best_load is None or load < best_load:
            best = user
            best_load = load
    return best
