from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from tasknest.models.reminder import Reminder
from tasknest.models.suggestion import AISuggestion
from tasknest.models.tasks import Task, TaskTag
from tasknest.services import tasks as task_service
from tasknest.utils.clock import utcnow, as_utc

from conftest import count_rows


async def _create(client, headers, **fields) -> str:
    response = await client.post("/tasks/", json={"title": "Task", **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _iso(delta: timedelta) -> str:
    return (utcnow() + delta).isoformat()


@pytest.mark.asyncio
async def test_create_task_defaults(client, alice):
    task_id = await _create(client, alice, title="  Write <b>report</b>  ")

    response = await client.get(f"/tasks/{task_id}", headers=alice)
    assert response.status_code == 200
    task = response.json()
    assert task["title"] == "Write report"
    assert task["priority"] == "medium"
    assert task["status"] == "pending"
    assert task["deleted_at"] is None
    assert task["completed_at"] is None


@pytest.mark.asyncio
async def test_create_requires_title(client, alice):
    response = await client.post("/tasks/", json={"title": "<i></i>  "}, headers=alice)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reads_degrade_and_writes_fail_without_identity(client, alice):
    await _create(client, alice)

    assert (await client.get("/tasks/")).json() == []
    assert (await client.get("/tasks/overdue")).json() == []

    response = await client.post("/tasks/", json={"title": "Nope"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"

    bad_token = {"Authorization": "Bearer not-a-jwt"}
    assert (await client.get("/tasks/", headers=bad_token)).json() == []


@pytest.mark.asyncio
async def test_other_users_task_is_not_found(client, alice, bob):
    task_id = await _create(client, alice)

    response = await client.get(f"/tasks/{task_id}", headers=bob)
    assert response.status_code == 200
    assert response.json() is None

    for method, path in [
        ("patch", f"/tasks/{task_id}"),
        ("post", f"/tasks/{task_id}/complete"),
        ("post", f"/tasks/{task_id}/soft-delete"),
        ("delete", f"/tasks/{task_id}"),
    ]:
        kwargs = {"json": {"title": "x"}} if method == "patch" else {}
        response = await getattr(client, method)(path, headers=bob, **kwargs)
        assert response.status_code == 404
        assert response.json()["detail"] == "Task not found"


@pytest.mark.asyncio
async def test_soft_delete_hides_task_until_restored(client, alice):
    task_id = await _create(client, alice, title="Keep me", priority="high")
    before = (await client.get(f"/tasks/{task_id}", headers=alice)).json()

    response = await client.post(f"/tasks/{task_id}/soft-delete", headers=alice)
    assert response.status_code == 204

    listed = (await client.get("/tasks/", headers=alice)).json()
    assert task_id not in [t["task_id"] for t in listed]
    listed = (await client.get("/tasks/", params={"include_deleted": True}, headers=alice)).json()
    assert task_id in [t["task_id"] for t in listed]

    restored = (await client.post(f"/tasks/{task_id}/restore", headers=alice)).json()
    assert restored["deleted_at"] is None
    assert restored["title"] == "Keep me"
    assert restored["priority"] == "high"
    assert as_utc(datetime.fromisoformat(restored["updated_at"])) >= as_utc(datetime.fromisoformat(before["updated_at"]))

    listed = (await client.get("/tasks/", headers=alice)).json()
    assert task_id in [t["task_id"] for t in listed]

    # Restoring a live task is allowed
    response = await client.post(f"/tasks/{task_id}/restore", headers=alice)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_hard_delete_removes_dependents(client, alice):
    task_id = await _create(client, alice, due_date=_iso(timedelta(days=3)))
    other_id = await _create(client, alice, title="Other")
    tag_id = (await client.post("/tags/", json={"name": "home"}, headers=alice)).json()["id"]

    await client.put(f"/tasks/{task_id}/tags/{tag_id}", headers=alice)
    await client.put(f"/tasks/{other_id}/tags/{tag_id}", headers=alice)
    await client.post("/reminders/", json={"task_id": task_id, "reminder_date": _iso(timedelta(days=1))}, headers=alice)
    await client.post(
        "/ai/suggestions",
        json={"task_id": task_id, "type": "priority", "suggestion": "high"},
        headers=alice,
    )
    subtask_ids = (await client.post(
        f"/tasks/{task_id}/subtasks", json={"subtasks": [{"title": "Step"}]}, headers=alice
    )).json()["ids"]

    response = await client.delete(f"/tasks/{task_id}", headers=alice)
    assert response.status_code == 204

    assert await count_rows(Task, Task.task_id == task_id) == 0
    assert await count_rows(TaskTag, TaskTag.task_id == task_id) == 0
    assert await count_rows(Reminder, Reminder.task_id == task_id) == 0
    assert await count_rows(AISuggestion, AISuggestion.task_id == task_id) == 0
    # Unrelated link survives
    assert await count_rows(TaskTag, TaskTag.task_id == other_id) == 1

    assert (await client.get(f"/tasks/{task_id}/tags", headers=alice)).json() == []
    assert (await client.get(f"/tasks/{task_id}/reminders", headers=alice)).json() == []

    # Subtasks are kept but no longer point at the removed parent
    subtask = (await client.get(f"/tasks/{subtask_ids[0]}", headers=alice)).json()
    assert subtask["parent_task_id"] is None


@pytest.mark.asyncio
async def test_update_merges_only_given_fields(client, alice):
    project_id = (await client.post("/projects/", json={"name": "Work"}, headers=alice)).json()["id"]
    task_id = await _create(
        client, alice, description="Notes", due_date=_iso(timedelta(days=2)), project_id=project_id
    )

    updated = (await client.patch(f"/tasks/{task_id}", json={"priority": "low"}, headers=alice)).json()
    assert updated["priority"] == "low"
    assert updated["description"] == "Notes"
    assert updated["project_id"] == project_id

    updated = (await client.patch(
        f"/tasks/{task_id}",
        json={"description": None, "due_date": None, "project_id": None, "title": None},
        headers=alice,
    )).json()
    assert updated["description"] is None
    assert updated["due_date"] is None
    assert updated["project_id"] is None
    assert updated["title"] == "Task"


@pytest.mark.asyncio
async def test_references_must_belong_to_caller(client, alice, bob):
    project_id = (await client.post("/projects/", json={"name": "Mine"}, headers=alice)).json()["id"]

    response = await client.post("/tasks/", json={"title": "x", "project_id": project_id}, headers=bob)
    assert response.status_code == 404
    assert response.json()["detail"] == "Project not found"


@pytest.mark.asyncio
async def test_status_transitions_track_completion(client, alice):
    task_id = await _create(client, alice)

    done = (await client.post(f"/tasks/{task_id}/complete", headers=alice)).json()
    assert done["status"] == "completed"
    assert done["completed_at"] is not None

    again = (await client.post(f"/tasks/{task_id}/complete", headers=alice)).json()
    assert again["status"] == "completed"

    toggled = (await client.post(f"/tasks/{task_id}/toggle", headers=alice)).json()
    assert toggled["status"] == "pending"
    assert toggled["completed_at"] is None

    toggled = (await client.post(f"/tasks/{task_id}/toggle", headers=alice)).json()
    assert toggled["status"] == "completed"


@pytest.mark.asyncio
async def test_overdue_task_leaves_view_once_completed(client, alice):
    task_id = await _create(client, alice, due_date=_iso(-timedelta(hours=2)))

    overdue = (await client.get("/tasks/overdue", headers=alice)).json()
    assert [t["task_id"] for t in overdue] == [task_id]

    await client.post(f"/tasks/{task_id}/toggle", headers=alice)
    assert (await client.get("/tasks/overdue", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_list_orders_dated_first_then_newest_undated(client, db, alice):
    day3 = await _create(client, alice, title="day3", due_date=_iso(timedelta(days=3)))
    undated_old = await _create(client, alice, title="none-old")
    day1 = await _create(client, alice, title="day1", due_date=_iso(timedelta(days=1)))
    undated_new = await _create(client, alice, title="none-new")

    now = utcnow()
    for offset, task_id in enumerate([day3, undated_old, day1, undated_new]):
        await db.execute(
            update(Task).where(Task.task_id == task_id).values(created_at=now + timedelta(minutes=offset))
        )
    await db.commit()

    listed = (await client.get("/tasks/", headers=alice)).json()
    assert [t["task_id"] for t in listed] == [day1, day3, undated_new, undated_old]


@pytest.mark.asyncio
async def test_list_filters_are_combined(client, alice):
    await _create(client, alice, title="a", priority="high")
    low_id = await _create(client, alice, title="b", priority="low")
    done_id = await _create(client, alice, title="c", priority="low")
    await client.post(f"/tasks/{done_id}/complete", headers=alice)

    listed = (await client.get("/tasks/", params={"priority": "low", "status": "pending"}, headers=alice)).json()
    assert [t["task_id"] for t in listed] == [low_id]

    response = await client.get("/tasks/", params={"priority": "urgent"}, headers=alice)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_today_and_upcoming_views(db, alice_user):
    now = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)

    def task(due_in):
        return Task(
            user_id=alice_user.user_id, title="t", priority="medium", status="pending",
            due_date=now + due_in, created_at=now, updated_at=now,
        )

    today_task, upcoming_task, later_task = task(timedelta(hours=2)), task(timedelta(days=3)), task(timedelta(days=30))
    db.add_all([today_task, upcoming_task, later_task])
    await db.commit()

    today = await task_service.list_today(db, alice_user.user_id, now=now)
    assert [t.task_id for t in today] == [today_task.task_id]
    upcoming = await task_service.list_upcoming(db, alice_user.user_id, now=now)
    assert [t.task_id for t in upcoming] == [upcoming_task.task_id]


@pytest.mark.asyncio
async def test_today_view_route(client, alice):
    assert (await client.get("/tasks/today")).json() == []
    assert (await client.get("/tasks/today", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_subtasks_inherit_from_parent(client, alice):
    project_id = (await client.post("/projects/", json={"name": "Launch"}, headers=alice)).json()["id"]
    due = _iso(timedelta(days=5))
    parent_id = await _create(client, alice, title="Ship", priority="high", due_date=due, project_id=project_id)

    response = await client.post(
        f"/tasks/{parent_id}/subtasks",
        json={"subtasks": [{"title": "One"}, {"title": "Two", "priority": "low"}]},
        headers=alice,
    )
    assert response.status_code == 201
    ids = response.json()["ids"]
    assert len(ids) == 2

    subtasks = (await client.get(f"/tasks/{parent_id}/subtasks", headers=alice)).json()
    by_id = {t["task_id"]: t for t in subtasks}
    assert set(by_id) == set(ids)
    assert by_id[ids[0]]["priority"] == "high"
    assert by_id[ids[1]]["priority"] == "low"
    for subtask in subtasks:
        assert subtask["project_id"] == project_id
        assert subtask["parent_task_id"] == parent_id
        assert subtask["due_date"] is not None

    # One level of nesting only
    response = await client.post(f"/tasks/{ids[0]}/subtasks", json={"subtasks": [{"title": "Deep"}]}, headers=alice)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_search_matches_title_case_insensitively(client, alice, bob):
    match_id = await _create(client, alice, title="Buy Groceries")
    await _create(client, alice, title="Call mom")
    await _create(client, bob, title="groceries for bob")

    found = (await client.get("/tasks/search", params={"q": "grocer"}, headers=alice)).json()
    assert [t["task_id"] for t in found] == [match_id]

    assert (await client.get("/tasks/search", params={"q": "   "}, headers=alice)).json() == []
    assert (await client.get("/tasks/search", params={"q": "100%"}, headers=alice)).json() == []


@pytest.mark.asyncio
async def test_search_caps_results_and_skips_deleted(client, alice):
    ids = [await _create(client, alice, title=f"Alpha {n}") for n in range(25)]
    deleted_id = ids[-1]
    await client.post(f"/tasks/{deleted_id}/soft-delete", headers=alice)

    found = (await client.get("/tasks/search", params={"q": "alpha"}, headers=alice)).json()
    assert len(found) == 20
    assert deleted_id not in {t["task_id"] for t in found}


@pytest.mark.asyncio
async def test_blank_reference_ids_are_treated_as_absent(client, alice):
    task_id = await _create(client, alice, project_id="", category_id="", parent_task_id="")

    task = (await client.get(f"/tasks/{task_id}", headers=alice)).json()
    assert task["project_id"] is None
    assert task["category_id"] is None
    assert task["parent_task_id"] is None

    project_id = (await client.post("/projects/", json={"name": "Home"}, headers=alice)).json()["id"]
    await client.patch(f"/tasks/{task_id}", json={"project_id": project_id}, headers=alice)
    response = await client.patch(f"/tasks/{task_id}", json={"project_id": ""}, headers=alice)
    assert response.status_code == 200
    assert (await client.get(f"/tasks/{task_id}", headers=alice)).json()["project_id"] is None
