from datetime import timedelta

from core.timeutils import utcnow
from models.problem import Difficulty, Platform, ProblemStatus


async def test_profile_created_on_first_access(client):
    body = (await client.get("/api/users/profile")).json()

    assert body["user"]["timezone"] == "UTC"
    assert body["user"]["platform_usernames"] == {}
    assert body["statistics"]["best_week"] == 0
    assert body["detailed_stats"] == {"by_platform": {}, "by_difficulty": {}, "by_category": {}}


async def test_profile_detailed_stats(client, make_problem):
    await make_problem(platform=Platform.CODEFORCES)
    await make_problem()
    await make_problem()

    body = (await client.get("/api/users/profile")).json()

    assert body["detailed_stats"]["by_platform"] == {"Codeforces": 1, "LeetCode": 2}
    assert body["statistics"]["total_solved"] == 3
    assert body["statistics"]["best_week"] == 3


async def test_profile_and_activity_ignore_unsolved_problems(client, make_problem):
    now = utcnow()
    await make_problem(solve_date=now, platform_difficulty=Difficulty.MEDIUM)
    await make_problem(solve_date=now, status=ProblemStatus.FOR_REVIEW, platform_difficulty=Difficulty.HARD)

    profile = (await client.get("/api/users/profile")).json()
    activity = (await client.get("/api/users/activity", params={"period": 7})).json()

    assert profile["statistics"]["total_solved"] == 1
    assert profile["statistics"]["best_week"] == 1
    assert profile["detailed_stats"]["by_difficulty"] == {"Medium": 1}
    assert sum(b["count"] for b in activity["daily"]) == 1


async def test_update_preferences(client):
    response = await client.put("/api/users/preferences", json={"timezone": "Europe/Berlin", "dark_mode": True})

    assert response.status_code == 200
    assert response.json()["timezone"] == "Europe/Berlin"
    assert response.json()["dark_mode"] is True
    assert response.json()["notifications"] is True


async def test_update_preferences_rejects_unknown_timezone(client):
    response = await client.put("/api/users/preferences", json={"timezone": "Mars/Olympus_Mons"})

    assert response.status_code == 400
    assert response.json()["error"]["category"] == "validation"


async def test_platform_usernames_merge_and_remove(client):
    await client.put("/api/users/platform-usernames", json={"leetcode": "alice", "codeforces": "al1ce"})
    response = await client.put("/api/users/platform-usernames", json={"codeforces": "", "atcoder": "a_l"})

    assert response.json()["platform_usernames"] == {"leetcode": "alice", "atcoder": "a_l"}


async def test_activity_buckets(client, make_problem):
    now = utcnow()
    await make_problem(solve_date=now)
    await make_problem(solve_date=now)
    await make_problem(solve_date=now - timedelta(days=3))
    await make_problem(solve_date=now - timedelta(days=200))

    body = (await client.get("/api/users/activity", params={"period": 30})).json()

    assert body["period_days"] == 30
    assert sum(b["count"] for b in body["daily"]) == 3
    assert body["daily"][-1]["count"] == 2
    assert [b["period"] for b in body["daily"]] == sorted(b["period"] for b in body["daily"])
    assert sum(b["count"] for b in body["weekly"]) == 3
    assert sum(b["count"] for b in body["monthly"]) == 3


async def test_activity_rejects_bad_period(client):
    response = await client.get("/api/users/activity", params={"period": 0})
    assert response.status_code == 400
