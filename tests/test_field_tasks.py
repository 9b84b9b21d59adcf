# tests/test_field_tasks.py

from __future__ import annotations

import uuid
from datetime import datetime


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _ids(resp) -> set:
    assert resp.status_code == 200, resp.text
    return {row["id"] for row in resp.json()}


def test_admin_creates_task_with_defaults(client, headers, admin, tech1) -> None:
    resp = client.post(
        "/api/field-tasks",
        json={"title": "Fiber splice", "location": "Kadıköy", "assignedToId": tech1.id},
        headers=headers(admin),
    )
    assert resp.status_code == 201, resp.text
    task = resp.json()
    assert task["status"] == "pending"
    assert task["priority"] == "medium"
    assert task["assignedToId"] == tech1.id
    assert task["completedAt"] is None
    uuid.UUID(task["id"])


def test_create_validates_body_wholesale(client, headers, admin, db) -> None:
    resp = client.post(
        "/api/field-tasks",
        json={"title": "", "status": "done", "customerPhone": "x" * 21},
        headers=headers(admin),
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation error"
    paths = {tuple(e["path"]) for e in body["errors"]}
    assert {("title",), ("status",), ("location",), ("customerPhone",)} <= paths

    listing = client.get("/api/field-tasks?all=true", headers=headers(admin))
    assert listing.json() == []


def test_create_rejects_unknown_fields(client, headers, admin) -> None:
    resp = client.post(
        "/api/field-tasks",
        json={"title": "T", "location": "L", "color": "red"},
        headers=headers(admin),
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["path"] == ["color"]


def test_create_rejects_unknown_assignee(client, headers, admin) -> None:
    resp = client.post(
        "/api/field-tasks",
        json={"title": "T", "location": "L", "assignedToId": "nobody"},
        headers=headers(admin),
    )
    assert resp.status_code == 400
    assert resp.json()["errors"] == [{"path": ["assignedToId"], "message": "Assigned user does not exist"}]


def test_create_completed_task_stamps_completion(create_task) -> None:
    task = create_task(status="completed")
    assert task["completedAt"] is not None


def test_visibility_scenario(client, headers, admin, tech1, tech2, create_task) -> None:
    t1 = create_task(title="Cabinet check", location="Kadıköy", assignedToId=tech1.id, status="pending")

    assert t1["id"] in _ids(client.get("/api/field-tasks", headers=headers(tech1)))
    assert t1["id"] not in _ids(client.get("/api/field-tasks", headers=headers(tech2)))
    # all=true has no effect for a technician
    assert t1["id"] not in _ids(client.get("/api/field-tasks?all=true", headers=headers(tech2)))
    assert t1["id"] in _ids(client.get("/api/field-tasks?all=true", headers=headers(admin)))
    # Without all=true the admin only sees their own assignments
    assert t1["id"] not in _ids(client.get("/api/field-tasks", headers=headers(admin)))


def test_listing_embeds_assignee_or_null(client, headers, admin, tech1, create_task) -> None:
    assigned = create_task(title="Assigned", assignedToId=tech1.id)
    create_task(title="Unassigned")

    rows = {r["id"]: r for r in client.get("/api/field-tasks?all=true", headers=headers(admin)).json()}
    assert rows[assigned["id"]]["assignedTo"]["id"] == tech1.id
    assert rows[assigned["id"]]["assignedTo"]["email"] == tech1.email
    unassigned = next(r for r in rows.values() if r["title"] == "Unassigned")
    assert unassigned["assignedTo"] is None


def test_technician_listing_never_leaks_other_rows(client, headers, tech1, tech2, create_task) -> None:
    for i in range(3):
        create_task(title=f"Ali {i}", assignedToId=tech1.id)
        create_task(title=f"Mehmet {i}", assignedToId=tech2.id)
    create_task(title="Nobody")

    rows = client.get("/api/field-tasks?all=true", headers=headers(tech1)).json()
    assert len(rows) == 3
    assert {r["assignedToId"] for r in rows} == {tech1.id}


def test_search_matches_title_location_or_customer(client, headers, admin, create_task) -> None:
    by_title = create_task(title="FIBER cut", location="Besiktas")
    by_location = create_task(title="Survey", location="Fiberpark Sokak")
    by_customer = create_task(title="Install", location="Uskudar", customerName="Kadikoy Fiber AS")
    create_task(title="Router swap", location="Sisli", customerName="Copper Ltd")

    found = _ids(client.get("/api/field-tasks?all=true&search=fiber", headers=headers(admin)))
    assert found == {by_title["id"], by_location["id"], by_customer["id"]}


def test_status_filter_and_combination(client, headers, admin, create_task) -> None:
    pending_fiber = create_task(title="Fiber A", status="pending")
    create_task(title="Fiber B", status="completed")
    create_task(title="Copper", status="pending")

    found = _ids(client.get("/api/field-tasks?all=true&status=pending&search=fiber", headers=headers(admin)))
    assert found == {pending_fiber["id"]}


def test_blank_filters_are_ignored(client, headers, admin, create_task) -> None:
    create_task(title="One")
    create_task(title="Two")
    rows = client.get("/api/field-tasks?all=true&status=&date=&search=", headers=headers(admin)).json()
    assert len(rows) == 2


def test_invalid_filters_are_rejected(client, headers, admin) -> None:
    resp = client.get("/api/field-tasks?status=done", headers=headers(admin))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["path"] == ["status"]

    resp = client.get("/api/field-tasks?date=tomorrow", headers=headers(admin))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["path"] == ["date"]


def test_date_filter_is_half_open_local_day(client, headers, admin, create_task) -> None:
    # Service timezone is Europe/Istanbul (UTC+3)
    inside_start = create_task(title="Start", scheduledDate="2024-05-01T00:00:00+03:00")
    inside_late = create_task(title="Late", scheduledDate="2024-05-01T23:59:00+03:00")
    create_task(title="Next midnight", scheduledDate="2024-05-02T00:00:00+03:00")
    create_task(title="Day before", scheduledDate="2024-04-30T23:59:00+03:00")
    create_task(title="Unscheduled")

    found = _ids(client.get("/api/field-tasks?all=true&date=2024-05-01", headers=headers(admin)))
    assert found == {inside_start["id"], inside_late["id"]}


def test_naive_schedule_is_read_as_local_time(create_task) -> None:
    task = create_task(scheduledDate="2024-05-01T09:00:00")
    scheduled = _ts(task["scheduledDate"])
    assert (scheduled.hour, scheduled.minute) == (6, 0)


def test_ordering_most_recent_schedule_first(client, headers, admin, create_task) -> None:
    old = create_task(title="Old", scheduledDate="2024-01-01T10:00:00Z")
    new = create_task(title="New", scheduledDate="2024-06-01T10:00:00Z")
    none = create_task(title="None")
    rows = client.get("/api/field-tasks?all=true", headers=headers(admin)).json()
    assert [r["id"] for r in rows] == [new["id"], old["id"], none["id"]]


def test_get_single_task(client, headers, admin, tech1, tech2, create_task) -> None:
    task = create_task(assignedToId=tech1.id)
    url = f"/api/field-tasks/{task['id']}"

    resp = client.get(url, headers=headers(tech1))
    assert resp.status_code == 200
    assert resp.json()["assignedTo"]["id"] == tech1.id

    assert client.get(url, headers=headers(tech2)).status_code == 403
    assert client.get(url, headers=headers(admin)).status_code == 200


def test_get_missing_task_is_404(client, headers, admin) -> None:
    assert client.get(f"/api/field-tasks/{uuid.uuid4()}", headers=headers(admin)).status_code == 404
    resp = client.get("/api/field-tasks/not-a-uuid", headers=headers(admin))
    assert resp.status_code == 404
    assert resp.json() == {"message": "Task not found"}


def test_patch_status_changes_only_status_and_updated_at(client, headers, tech1, create_task) -> None:
    before = create_task(
        title="Fiber splice",
        description="Closure 7",
        location="Kadıköy",
        assignedToId=tech1.id,
        priority="high",
        customerName="Moda",
        customerPhone="+90 216 000",
        vehiclePlate="34 ABC 1",
        scheduledDate="2024-05-01T09:00:00Z",
        scheduledStartTime="09:00",
        scheduledEndTime="10:00",
    )
    resp = client.patch(f"/api/field-tasks/{before['id']}", json={"status": "completed"}, headers=headers(tech1))
    assert resp.status_code == 200, resp.text
    after = resp.json()

    assert after["status"] == "completed"
    assert _ts(after["updatedAt"]) >= _ts(before["updatedAt"])
    for key in before:
        if key not in ("status", "updatedAt"):
            assert after[key] == before[key], key


def test_patch_by_other_technician_is_denied(client, headers, tech1, tech2, create_task) -> None:
    task = create_task(assignedToId=tech1.id)
    resp = client.patch(f"/api/field-tasks/{task['id']}", json={"status": "completed"}, headers=headers(tech2))
    assert resp.status_code == 403

    still = client.get(f"/api/field-tasks/{task['id']}", headers=headers(tech1)).json()
    assert still["status"] == "pending"


def test_patch_rejects_null_required_fields(client, headers, admin, create_task) -> None:
    task = create_task()
    resp = client.patch(f"/api/field-tasks/{task['id']}", json={"title": None}, headers=headers(admin))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["path"] == ["title"]


def test_patch_can_unassign(client, headers, admin, tech1, create_task) -> None:
    task = create_task(assignedToId=tech1.id)
    resp = client.patch(f"/api/field-tasks/{task['id']}", json={"assignedToId": None}, headers=headers(admin))
    assert resp.status_code == 200
    assert resp.json()["assignedToId"] is None


def test_admin_deletes_task_and_reports_keep_content(client, headers, admin, tech1, create_task, report_body) -> None:
    task = create_task(assignedToId=tech1.id)
    report = client.post(
        "/api/field-reports", json={**report_body, "taskId": task["id"]}, headers=headers(tech1)
    ).json()

    assert client.delete(f"/api/field-tasks/{task['id']}", headers=headers(tech1)).status_code == 403
    assert client.delete(f"/api/field-tasks/{task['id']}", headers=headers(admin)).status_code == 204
    assert client.get(f"/api/field-tasks/{task['id']}", headers=headers(admin)).status_code == 404

    kept = client.get(f"/api/field-reports/{report['id']}", headers=headers(tech1)).json()
    assert kept["taskId"] is None
    assert kept["task"] is None
    assert kept["details"] == report_body["details"]


def test_access_is_checked_before_the_body(client, headers, tech1, tech2, create_task) -> None:
    task = create_task(assignedToId=tech1.id)
    bad = {"status": "bogus", "title": ""}

    resp = client.patch(f"/api/field-tasks/{task['id']}", json=bad, headers=headers(tech2))
    assert resp.status_code == 403
    assert "errors" not in resp.json()

    resp = client.patch(f"/api/field-tasks/{uuid.uuid4()}", json=bad, headers=headers(tech1))
    assert resp.status_code == 404
    assert resp.json() == {"message": "Task not found"}

    # The owner still gets field errors for the same body
    resp = client.patch(f"/api/field-tasks/{task['id']}", json=bad, headers=headers(tech1))
    assert resp.status_code == 400


def test_search_treats_wildcards_literally(client, headers, admin, create_task) -> None:
    create_task(title="Fiber A")
    percent = create_task(title="100% done")
    underscore = create_task(title="Port", location="rack_7")

    assert _ids(client.get("/api/field-tasks?all=true&search=%25", headers=headers(admin))) == {percent["id"]}
    assert _ids(client.get("/api/field-tasks?all=true&search=_", headers=headers(admin))) == {underscore["id"]}
    assert _ids(client.get("/api/field-tasks?all=true&search=F_ber", headers=headers(admin))) == set()


def test_priority_cannot_be_null(client, headers, admin, create_task) -> None:
    resp = client.post("/api/field-tasks", json={"title": "T", "location": "L", "priority": None}, headers=headers(admin))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["path"] == ["priority"]

    task = create_task(priority="low")
    resp = client.patch(f"/api/field-tasks/{task['id']}", json={"priority": None}, headers=headers(admin))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["path"] == ["priority"]
    still = client.get(f"/api/field-tasks/{task['id']}", headers=headers(admin)).json()
    assert still["priority"] == "low"
