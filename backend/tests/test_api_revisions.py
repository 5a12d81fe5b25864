import asyncio
from datetime import timedelta
from uuid import uuid4

from core.timeutils import utcnow


async def test_mark_revised_flow(client, make_problem):
    problem = await make_problem()

    first = await client.put(f"/api/revisions/{problem.id}/mark-revised", json={"time_taken": 14, "notes": "recalled quickly"})
    second = await client.put(f"/api/revisions/{problem.id}/mark-revised", json={"time_taken": 9})

    assert first.status_code == 200
    body = second.json()
    assert body["revision_count"] == 2
    assert [e["sequence"] for e in body["revision_history"]] == [1, 2]
    assert body["revision_history"][0]["notes"] == "recalled quickly"
    assert body["next_revision_date"] is not None

    stats = (await client.get("/api/revisions/stats")).json()["stats"]
    assert stats["revised_this_week"] == 1
    assert stats["average_revision_time"] == 11.5
    assert stats["total_revisions"] == 2
    assert stats["recent_revisions"][0]["revision_count"] == 2


async def test_mark_revised_validation(client, make_problem):
    problem = await make_problem()

    zero = await client.put(f"/api/revisions/{problem.id}/mark-revised", json={"time_taken": 0})
    missing = await client.put(f"/api/revisions/{problem.id}/mark-revised", json={})

    assert zero.status_code == 400
    assert zero.json()["error"]["code"] == "E2003_OUT_OF_RANGE"
    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "E2001_REQUIRED_FIELD_MISSING"

    unchanged = (await client.get(f"/api/problems/{problem.id}")).json()
    assert unchanged["revision_count"] == 0


async def test_mark_revised_unknown_problem(client):
    response = await client.put(f"/api/revisions/{uuid4()}/mark-revised", json={"time_taken": 5})
    assert response.status_code == 404


async def test_inconsistent_problem_is_reported(client, make_problem):
    problem = await make_problem(revision_count=3)

    response = await client.put(f"/api/revisions/{problem.id}/mark-revised", json={"time_taken": 5})

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "E5004_INVARIANT_VIOLATED"


async def test_concurrent_requests_are_serialized(client, make_problem):
    problem = await make_problem()
    url = f"/api/revisions/{problem.id}/mark-revised"

    responses = await asyncio.gather(*(client.put(url, json={"time_taken": 5 + i}) for i in range(4)))

    assert all(r.status_code == 200 for r in responses)
    final = (await client.get(f"/api/problems/{problem.id}")).json()
    assert final["revision_count"] == 4
    assert len(final["revision_history"]) == 4


async def test_first_requests_from_new_user_run_concurrently(client, make_problem):
    first, second = await make_problem(), await make_problem()

    responses = await asyncio.gather(
        client.put(f"/api/revisions/{first.id}/mark-revised", json={"time_taken": 7}),
        client.put(f"/api/revisions/{second.id}/mark-revised", json={"time_taken": 9}),
        client.get("/api/revisions"),
        client.get("/api/users/profile"),
    )

    assert [r.status_code for r in responses] == [200, 200, 200, 200]
    profile = (await client.get("/api/users/profile")).json()
    assert profile["statistics"]["total_revision_count"] == 2


async def test_queue_status_filters(client, make_problem):
    now = utcnow()
    overdue = await make_problem(problem_name="overdue", next_revision_date=now - timedelta(days=2))
    await make_problem(problem_name="later", next_revision_date=now + timedelta(days=5))
    await make_problem(problem_name="unscheduled")

    listed = (await client.get("/api/revisions", params={"status": "overdue"})).json()
    assert [p["id"] for p in listed["problems"]] == [str(overdue.id)]
    assert listed["problems"][0]["revision_status"] == "overdue"

    pending = (await client.get("/api/revisions")).json()
    assert [p["problem_name"] for p in pending["problems"]] == ["later"]
    assert pending["problems"][0]["revision_status"] == "upcoming"

    everything = (await client.get("/api/revisions", params={"status": "all"})).json()
    assert everything["pagination"]["total"] == 3
    statuses = {p["problem_name"]: p["revision_status"] for p in everything["problems"]}
    assert statuses["unscheduled"] == "unscheduled"


async def test_schedule_next_reschedule_and_clear(client, make_problem):
    problem = await make_problem()

    scheduled = (await client.put(f"/api/revisions/{problem.id}/schedule-next")).json()
    assert scheduled["next_revision_date"] is not None
    assert scheduled["revision_count"] == 0

    moved = await client.put(f"/api/revisions/{problem.id}/reschedule", json={"revision_date": "2030-06-01T10:00:00"})
    assert moved.json()["next_revision_date"] == "2030-06-01T10:00:00"

    cleared = await client.delete(f"/api/revisions/{problem.id}/schedule")
    assert cleared.json()["next_revision_date"] is None


async def test_notifications(client, make_problem):
    now = utcnow()
    await make_problem(problem_name="soon", next_revision_date=now + timedelta(hours=3))
    await make_problem(problem_name="late", next_revision_date=now - timedelta(hours=3))
    await make_problem(problem_name="far", next_revision_date=now + timedelta(days=3))

    body = (await client.get("/api/revisions/notifications")).json()

    assert [n["problem_name"] for n in body["upcoming"]] == ["soon"]
    assert [n["problem_name"] for n in body["overdue"]] == ["late"]
    assert body["total"] == 2


async def test_revision_stats_empty(client):
    stats = (await client.get("/api/revisions/stats")).json()["stats"]
    assert stats["average_revision_time"] is None
    assert stats["recent_revisions"] == []
    assert stats["missed_revisions"] == 0
