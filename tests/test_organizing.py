from datetime import timedelta

import pytest

from tasknest.models.reminder import Reminder
from tasknest.models.tasks import Task, TaskTag, Project, Tag
from tasknest.utils.clock import utcnow

from conftest import count_rows


async def _post(client, path, headers, payload) -> str:
    response = await client.post(path, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


@pytest.mark.asyncio
async def test_project_crud_and_defaults(client, alice, bob):
    project_id = await _post(client, "/projects/", alice, {"name": " Home ", "description": "chores"})

    project = (await client.get(f"/projects/{project_id}", headers=alice)).json()
    assert project["name"] == "Home"
    assert project["color"] == "#8f7559"

    updated = (await client.patch(f"/projects/{project_id}", json={"color": "#123456", "name": None}, headers=alice)).json()
    assert updated["color"] == "#123456"
    assert updated["name"] == "Home"

    assert (await client.get(f"/projects/{project_id}", headers=bob)).json() is None
    response = await client.patch(f"/projects/{project_id}", json={"name": "x"}, headers=bob)
    assert response.status_code == 404
    assert response.json()["detail"] == "Project not found"

    response = await client.post("/projects/", json={"name": "Bad", "color": "red"}, headers=alice)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_lists_are_sorted_by_name(client, alice):
    for name in ["beta", "Alpha", "gamma"]:
        await _post(client, "/categories/", alice, {"name": name})

    names = [c["name"] for c in (await client.get("/categories/", headers=alice)).json()]
    assert names == ["Alpha", "beta", "gamma"]
    assert (await client.get("/categories/")).json() == []


@pytest.mark.asyncio
async def test_project_stats_count_live_tasks(client, alice):
    project_id = await _post(client, "/projects/", alice, {"name": "Work"})
    done_id = await _post(client, "/tasks/", alice, {"title": "a", "project_id": project_id})
    await _post(client, "/tasks/", alice, {"title": "b", "project_id": project_id})
    gone_id = await _post(client, "/tasks/", alice, {"title": "c", "project_id": project_id})
    await client.post(f"/tasks/{done_id}/complete", headers=alice)
    await client.post(f"/tasks/{gone_id}/soft-delete", headers=alice)

    stats = (await client.get(f"/projects/{project_id}/stats", headers=alice)).json()
    assert stats["task_count"] == 2
    assert stats["completed_count"] == 1
    assert stats["pending_count"] == 1

    listed = (await client.get("/projects/stats", headers=alice)).json()
    assert listed[0]["project_id"] == project_id
    assert listed[0]["task_count"] == 2


@pytest.mark.asyncio
async def test_delete_project_detaches_tasks_by_default(client, alice):
    project_id = await _post(client, "/projects/", alice, {"name": "Work"})
    task_id = await _post(client, "/tasks/", alice, {"title": "a", "project_id": project_id})

    response = await client.delete(f"/projects/{project_id}", headers=alice)
    assert response.status_code == 204

    assert await count_rows(Project, Project.project_id == project_id) == 0
    task = (await client.get(f"/tasks/{task_id}", headers=alice)).json()
    assert task["project_id"] is None


@pytest.mark.asyncio
async def test_delete_project_with_tasks_cascades(client, alice):
    project_id = await _post(client, "/projects/", alice, {"name": "Work"})
    tag_id = await _post(client, "/tags/", alice, {"name": "urgent"})
    due = (utcnow() + timedelta(days=2)).isoformat()
    task_ids = [
        await _post(client, "/tasks/", alice, {"title": f"t{i}", "project_id": project_id, "due_date": due})
        for i in range(2)
    ]
    # Soft-deleted tasks go with the project too
    await client.post(f"/tasks/{task_ids[1]}/soft-delete", headers=alice)
    outside_id = await _post(client, "/tasks/", alice, {"title": "outside"})

    for task_id in task_ids + [outside_id]:
        await client.put(f"/tasks/{task_id}/tags/{tag_id}", headers=alice)
    reminder_at = (utcnow() + timedelta(days=1)).isoformat()
    for task_id in task_ids:
        await _post(client, "/reminders/", alice, {"task_id": task_id, "reminder_date": reminder_at})

    response = await client.delete(f"/projects/{project_id}", params={"delete_tasks": True}, headers=alice)
    assert response.status_code == 204

    assert await count_rows(Project, Project.project_id == project_id) == 0
    assert await count_rows(Task, Task.task_id.in_(task_ids)) == 0
    assert await count_rows(TaskTag, TaskTag.task_id.in_(task_ids)) == 0
    assert await count_rows(Reminder, Reminder.task_id.in_(task_ids)) == 0
    assert await count_rows(Task, Task.task_id == outside_id) == 1
    assert await count_rows(TaskTag, TaskTag.task_id == outside_id) == 1


@pytest.mark.asyncio
async def test_delete_category_detaches_tasks(client, alice):
    category_id = await _post(client, "/categories/", alice, {"name": "Errands"})
    task_ids = [await _post(client, "/tasks/", alice, {"title": f"t{i}", "category_id": category_id}) for i in range(3)]

    response = await client.delete(f"/categories/{category_id}", headers=alice)
    assert response.status_code == 204

    assert await count_rows(Task, Task.task_id.in_(task_ids)) == 3
    assert await count_rows(Task, Task.category_id == category_id) == 0
    assert (await client.get(f"/categories/{category_id}", headers=alice)).json() is None


@pytest.mark.asyncio
async def test_delete_tag_keeps_tasks_and_other_links(client, alice):
    first = await _post(client, "/tags/", alice, {"name": "first"})
    second = await _post(client, "/tags/", alice, {"name": "second"})
    task_id = await _post(client, "/tasks/", alice, {"title": "tagged"})
    await client.put(f"/tasks/{task_id}/tags/{first}", headers=alice)
    await client.put(f"/tasks/{task_id}/tags/{second}", headers=alice)

    response = await client.delete(f"/tags/{first}", headers=alice)
    assert response.status_code == 204

    assert await count_rows(Tag, Tag.tag_id == first) == 0
    assert await count_rows(Task, Task.task_id == task_id) == 1
    assert await count_rows(TaskTag, TaskTag.tag_id == first) == 0
    tags = (await client.get(f"/tasks/{task_id}/tags", headers=alice)).json()
    assert [t["tag_id"] for t in tags] == [second]


@pytest.mark.asyncio
async def test_adding_a_tag_twice_keeps_one_link(client, alice):
    tag_id = await _post(client, "/tags/", alice, {"name": "home"})
    task_id = await _post(client, "/tasks/", alice, {"title": "tagged"})

    for _ in range(2):
        response = await client.put(f"/tasks/{task_id}/tags/{tag_id}", headers=alice)
        assert response.status_code == 204

    assert await count_rows(TaskTag, TaskTag.task_id == task_id, TaskTag.tag_id == tag_id) == 1
    tasks = (await client.get(f"/tags/{tag_id}/tasks", headers=alice)).json()
    assert [t["task_id"] for t in tasks] == [task_id]

    stats = (await client.get("/tags/stats", headers=alice)).json()
    assert stats[0]["task_count"] == 1


@pytest.mark.asyncio
async def test_tag_links_are_owner_checked(client, alice, bob):
    tag_id = await _post(client, "/tags/", alice, {"name": "mine"})
    bob_task = await _post(client, "/tasks/", bob, {"title": "bob's"})

    response = await client.put(f"/tasks/{bob_task}/tags/{tag_id}", headers=bob)
    assert response.status_code == 404

    response = await client.delete(f"/tasks/{bob_task}/tags/{tag_id}", headers=alice)
    assert response.status_code == 404

    # Removing a link that does not exist is a no-op
    response = await client.delete(f"/tasks/{bob_task}/tags/{tag_id}", headers=bob)
    assert response.status_code == 204
