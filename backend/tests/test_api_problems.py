import asyncio
from datetime import datetime, timedelta
from uuid import uuid4

from core.timeutils import utcnow
from models.problem import Category, Difficulty, ProblemStatus


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_create_and_fetch_problem(client, problem_payload):
    response = await client.post("/api/problems", json=problem_payload)

    assert response.status_code == 201
    created = response.json()
    assert created["main_category"] == "Hash Tables"
    assert created["topic_tags"] == ["strings", "sorting"]
    assert created["revision_count"] == 0
    assert created["next_revision_date"] is None
    assert created["revision_history"] == []

    fetched = await client.get(f"/api/problems/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["problem_name"] == "valid-anagram"

    profile = (await client.get("/api/users/profile")).json()
    assert profile["statistics"]["total_problems_solved"] == 1


async def test_create_rejects_bad_input(client, problem_payload):
    bad = {**problem_payload, "time_taken": 0, "platform": "Kattis"}

    response = await client.post("/api/problems", json=bad)

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["category"] == "validation"
    assert error["metadata"]["error_count"] == 2
    fields = {e["field"] for e in error["metadata"]["errors"]}
    assert fields == {"body.time_taken", "body.platform"}


async def test_unknown_problem_returns_error_envelope(client):
    response = await client.get(f"/api/problems/{uuid4()}")

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "E4010_NOT_FOUND"
    assert error["code_num"] == 4010
    assert "correlation_id" in error


async def test_other_users_problem_is_invisible(client, make_problem, act_as):
    problem = await make_problem()
    act_as(uuid4())

    assert (await client.get(f"/api/problems/{problem.id}")).status_code == 404
    assert (await client.delete(f"/api/problems/{problem.id}")).status_code == 404
    listing = (await client.get("/api/problems")).json()
    assert listing["pagination"]["total"] == 0


async def test_list_filters_search_and_pagination(client, make_problem):
    await make_problem(problem_name="merge-intervals", real_difficulty=Difficulty.MEDIUM, platform_difficulty=Difficulty.MEDIUM)
    await make_problem(problem_name="lru-cache", topic_tags=["design", "linked-list"], is_favorite=True)
    await make_problem(problem_name="word-ladder", status=ProblemStatus.FOR_REVIEW)

    medium = (await client.get("/api/problems", params={"difficulty": "Medium"})).json()
    assert [p["problem_name"] for p in medium["problems"]] == ["merge-intervals"]

    by_tag = (await client.get("/api/problems", params={"search": "LINKED"})).json()
    assert [p["problem_name"] for p in by_tag["problems"]] == ["lru-cache"]

    favorites = (await client.get("/api/problems", params={"favorites": "true"})).json()
    assert favorites["pagination"]["total"] == 1

    review = (await client.get("/api/problems", params={"status": "For Review"})).json()
    assert [p["problem_name"] for p in review["problems"]] == ["word-ladder"]

    page = (await client.get("/api/problems", params={"limit": 2, "page": 2, "sort_by": "problem_name", "sort_order": "asc"})).json()
    assert page["pagination"] == {"current": 2, "pages": 2, "total": 3}
    assert [p["problem_name"] for p in page["problems"]] == ["word-ladder"]


async def test_list_rejects_oversized_limit(client):
    response = await client.get("/api/problems", params={"limit": 500})
    assert response.status_code == 400


async def test_update_changes_descriptive_fields_only(client, make_problem):
    problem = await make_problem()

    response = await client.put(
        f"/api/problems/{problem.id}",
        json={"approach_notes": "two pass hash map", "time_taken": 12, "problem_name": None},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["approach_notes"] == "two pass hash map"
    assert body["time_taken"] == 12
    assert body["problem_name"] == problem.problem_name


async def test_toggle_favorite(client, make_problem):
    problem = await make_problem()

    first = await client.put(f"/api/problems/{problem.id}/favorite")
    second = await client.put(f"/api/problems/{problem.id}/favorite")

    assert first.json()["is_favorite"] is True
    assert second.json()["is_favorite"] is False


async def test_schedule_revision_accepts_past_and_rejects_garbage(client, make_problem):
    problem = await make_problem()

    ok = await client.put(f"/api/problems/{problem.id}/schedule-revision", json={"revision_date": "2020-01-01T00:00:00Z"})
    assert ok.status_code == 200
    assert ok.json()["next_revision_date"].startswith("2020-01-01T00:00:00")

    bad = await client.put(f"/api/problems/{problem.id}/schedule-revision", json={"revision_date": "soon"})
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "E2012_INVALID_DATE"


async def test_delete_cascades_history(client, make_problem):
    problem = await make_problem()
    await client.put(f"/api/revisions/{problem.id}/mark-revised", json={"time_taken": 10})

    response = await client.delete(f"/api/problems/{problem.id}")

    assert response.status_code == 200
    assert (await client.get(f"/api/problems/{problem.id}")).status_code == 404


async def test_dashboard_stats(client, make_problem):
    now = utcnow()
    await make_problem(solve_date=now, time_taken=10, next_revision_date=now - timedelta(hours=1))
    await make_problem(solve_date=now - timedelta(days=1), time_taken=20, platform_difficulty=Difficulty.HARD)
    await make_problem(solve_date=now - timedelta(days=90), time_taken=30, status=ProblemStatus.IN_PROGRESS)

    response = await client.get("/api/problems/stats")

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["total_problems"] == 3
    assert stats["current_streak"] == 2
    assert stats["best_streak"] == 2
    assert stats["average_solve_time"] == 15.0
    assert stats["pending_revisions"] == 1
    assert stats["difficulty_stats"] == {"Easy": 1, "Hard": 1}
    assert sum(b["count"] for b in stats["time_analysis"]) == 2
    assert sum(stats["heatmap"].values()) == 2

    profile = (await client.get("/api/users/profile")).json()
    assert profile["statistics"]["best_streak"] == 2


async def test_dashboard_stats_empty(client):
    stats = (await client.get("/api/problems/stats")).json()["stats"]
    assert stats["total_problems"] == 0
    assert stats["average_solve_time"] is None
    assert stats["time_analysis"] == []
    assert stats["heatmap"] == {}


async def test_solve_date_with_offset_is_stored_as_utc(client, problem_payload):
    payload = {**problem_payload, "solve_date": "2024-03-10T23:30:00+05:30"}

    created = (await client.post("/api/problems", json=payload)).json()

    assert datetime.fromisoformat(created["solve_date"]) == datetime(2024, 3, 10, 18, 0)


async def test_dashboard_distributions_count_solved_problems_only(client, make_problem):
    now = utcnow()
    await make_problem(solve_date=now, time_taken=10, real_difficulty=Difficulty.MEDIUM)
    await make_problem(
        solve_date=now,
        time_taken=90,
        status=ProblemStatus.IN_PROGRESS,
        platform_difficulty=Difficulty.HARD,
        real_difficulty=Difficulty.HARD,
        main_category=Category.GRAPHS,
    )

    stats = (await client.get("/api/problems/stats")).json()["stats"]

    assert stats["total_problems"] == 2
    assert stats["problems_this_week"] == 1
    assert stats["average_solve_time"] == 10.0
    assert stats["difficulty_stats"] == {"Easy": 1}
    assert stats["category_stats"] == {"Arrays": 1}
    assert sum(b["count"] for b in stats["time_analysis"]) == 1


async def test_concurrent_first_creates_share_one_user(client, problem_payload):
    responses = await asyncio.gather(
        client.post("/api/problems", json={**problem_payload, "problem_name": "valid-anagram"}),
        client.post("/api/problems", json={**problem_payload, "problem_name": "group-anagrams"}),
    )

    assert [r.status_code for r in responses] == [201, 201]
    profile = (await client.get("/api/users/profile")).json()
    assert profile["statistics"]["total_problems_solved"] == 2
