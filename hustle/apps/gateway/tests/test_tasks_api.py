"""任务 API 测试

测试内容：
1. POST /api/tasks 发布（201 / 401 / 422）
2. PUT /api/tasks/{id} 编辑
3. GET /api/tasks 列表筛选，GET /api/tasks/{id} 详情可见性
4. accept / phase / cancel / progress 的状态码与错误体
"""

from httpx import AsyncClient

ALICE = {"X-User-Id": "user-alice"}
BOB = {"X-User-Id": "user-bob"}
CAROL = {"X-User-Id": "user-carol"}
MISSING_TASK_ID = "01JMISSING0000000000000000"


async def _post_task(client: AsyncClient, headers=ALICE, **body) -> dict:
    body.setdefault("title", "Pick up my lunch")
    resp = await client.post("/api/tasks", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["task"]


def _error_code(resp) -> str:
    return resp.json()["error"]["code"]


class TestCreateTask:
    async def test_create_returns_201(self, client: AsyncClient):
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "Pick up my lunch",
                "category": "Food-Pickup",
                "store": "Campus Cafe",
                "dropoff_address": "Dorm 5",
                "reward_cents": 350,
            },
            headers=ALICE,
        )
        assert resp.status_code == 201
        task = resp.json()["task"]
        assert task["category"] == "food_pickup"
        assert task["status"] == "posted"
        assert task["phase"] == "none"
        assert task["created_by"] == "user-alice"
        assert task["assignee_id"] is None
        assert task["moderation_status"] == "approved"
        assert task["reward_cents"] == 350
        assert task["urgency"] == "medium"

    async def test_create_unauthenticated(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json={"title": "Lunch"})
        assert resp.status_code == 401
        assert _error_code(resp) == "UNAUTHENTICATED"

    async def test_blank_identity_header(self, client: AsyncClient):
        resp = await client.post(
            "/api/tasks", json={"title": "Lunch"}, headers={"X-User-Id": "  "}
        )
        assert resp.status_code == 401

    async def test_create_blocked(self, client: AsyncClient):
        resp = await client.post(
            "/api/tasks", json={"title": "Deliver my gun"}, headers=ALICE
        )
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "CONTENT_BLOCKED"
        assert error["reason"] == "Violence or weapon content is not allowed"
        assert error["category"] == "violence"

        listed = await client.get("/api/tasks", headers=ALICE)
        assert listed.json()["tasks"] == []

    async def test_create_needs_review(self, client: AsyncClient):
        task = await _post_task(client, title="Take my exam for me")
        assert task["moderation_status"] == "needs_review"
        assert task["moderation_reason"] == "Academic content requires review"
        assert task["moderated_by"] == "user-alice"

    async def test_invalid_body(self, client: AsyncClient):
        resp = await client.post(
            "/api/tasks", json={"title": "Lunch", "reward_cents": -5}, headers=ALICE
        )
        assert resp.status_code == 422


class TestEditTask:
    async def test_edit(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.put(
            f"/api/tasks/{task['task_id']}",
            json={"title": "Pick up my dinner"},
            headers=ALICE,
        )
        assert resp.status_code == 200
        assert resp.json()["task"]["title"] == "Pick up my dinner"

    async def test_edit_by_other_user(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.put(
            f"/api/tasks/{task['task_id']}", json={"title": "Mine"}, headers=BOB
        )
        assert resp.status_code == 404
        assert _error_code(resp) == "TASK_NOT_FOUND"

    async def test_edit_cancelled(self, client: AsyncClient):
        task = await _post_task(client)
        await client.post(f"/api/tasks/{task['task_id']}/cancel", headers=ALICE)
        resp = await client.put(
            f"/api/tasks/{task['task_id']}", json={"title": "Again"}, headers=ALICE
        )
        assert resp.status_code == 409
        assert _error_code(resp) == "TASK_ALREADY_FINAL"


class TestQueryTasks:
    async def test_get_task(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.get(f"/api/tasks/{task['task_id']}")
        assert resp.status_code == 200
        assert resp.json()["task"]["task_id"] == task["task_id"]

    async def test_get_missing(self, client: AsyncClient):
        resp = await client.get(f"/api/tasks/{MISSING_TASK_ID}", headers=ALICE)
        assert resp.status_code == 404
        assert _error_code(resp) == "TASK_NOT_FOUND"

    async def test_needs_review_hidden(self, client: AsyncClient):
        task = await _post_task(client, title="Grab some beer")

        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=BOB)
        assert resp.status_code == 404
        resp = await client.get(f"/api/tasks/{task['task_id']}", headers=ALICE)
        assert resp.status_code == 200

        bob_list = await client.get("/api/tasks", headers=BOB)
        assert bob_list.json()["tasks"] == []

    async def test_list_filters(self, client: AsyncClient):
        first = await _post_task(client, title="Pick up my lunch")
        second = await _post_task(client, title="Grab coffee")
        await client.post(f"/api/tasks/{first['task_id']}/accept", headers=BOB)

        resp = await client.get("/api/tasks", params={"status": "posted"}, headers=CAROL)
        assert [t["task_id"] for t in resp.json()["tasks"]] == [second["task_id"]]

        resp = await client.get("/api/tasks", params={"scope": "assigned"}, headers=BOB)
        assert [t["task_id"] for t in resp.json()["tasks"]] == [first["task_id"]]

        resp = await client.get("/api/tasks", params={"scope": "mine"}, headers=ALICE)
        assert len(resp.json()["tasks"]) == 2

    async def test_list_mine_requires_identity(self, client: AsyncClient):
        resp = await client.get("/api/tasks", params={"scope": "mine"})
        assert resp.status_code == 401

    async def test_list_invalid_scope(self, client: AsyncClient):
        resp = await client.get("/api/tasks", params={"scope": "everything"})
        assert resp.status_code == 422


class TestAccept:
    async def test_accept(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.post(f"/api/tasks/{task['task_id']}/accept", headers=BOB)
        assert resp.status_code == 200
        data = resp.json()
        assert data["owner_id"] == "user-alice"
        assert data["assignee_id"] == "user-bob"
        assert data["task"]["status"] == "accepted"

    async def test_accept_own(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.post(f"/api/tasks/{task['task_id']}/accept", headers=ALICE)
        assert resp.status_code == 403
        assert _error_code(resp) == "CANNOT_ACCEPT_OWN_TASK"

    async def test_accept_taken(self, client: AsyncClient):
        task = await _post_task(client)
        await client.post(f"/api/tasks/{task['task_id']}/accept", headers=BOB)
        resp = await client.post(f"/api/tasks/{task['task_id']}/accept", headers=CAROL)
        assert resp.status_code == 409
        assert _error_code(resp) == "TASK_NOT_AVAILABLE"

    async def test_accept_missing(self, client: AsyncClient):
        resp = await client.post(f"/api/tasks/{MISSING_TASK_ID}/accept", headers=BOB)
        assert resp.status_code == 404

    async def test_accept_unauthenticated(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.post(f"/api/tasks/{task['task_id']}/accept")
        assert resp.status_code == 401


class TestPhaseAndCancel:
    async def test_phase_flow_and_progress(self, client: AsyncClient):
        task = await _post_task(client, category="food_delivery")
        task_id = task["task_id"]
        await client.post(f"/api/tasks/{task_id}/accept", headers=BOB)

        for phase in ("started", "on_the_way"):
            resp = await client.post(
                f"/api/tasks/{task_id}/phase", json={"phase": phase}, headers=BOB
            )
            assert resp.status_code == 200
            assert resp.json()["task"]["status"] == "accepted"

        resp = await client.post(
            f"/api/tasks/{task_id}/phase",
            json={"phase": "delivered", "note": "Left at door"},
            headers=BOB,
        )
        assert resp.status_code == 200
        assert resp.json()["task"]["status"] == "completed"

        resp = await client.get(f"/api/tasks/{task_id}/progress", headers=ALICE)
        assert resp.status_code == 200
        events = resp.json()["events"]
        assert [e["phase"] for e in events] == ["started", "on_the_way", "delivered"]
        assert [e["task_seq"] for e in events] == [1, 2, 3]
        assert events[-1]["note"] == "Left at door"

    async def test_invalid_phase(self, client: AsyncClient):
        task = await _post_task(client, category="food_pickup")
        await client.post(f"/api/tasks/{task['task_id']}/accept", headers=BOB)
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/phase",
            json={"phase": "completed"},
            headers=BOB,
        )
        assert resp.status_code == 409
        assert _error_code(resp) == "INVALID_PHASE_TRANSITION"

    async def test_phase_by_stranger(self, client: AsyncClient):
        task = await _post_task(client)
        await client.post(f"/api/tasks/{task['task_id']}/accept", headers=BOB)
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/phase",
            json={"phase": "started"},
            headers=CAROL,
        )
        assert resp.status_code == 403
        assert _error_code(resp) == "NOT_AUTHORIZED"

    async def test_progress_by_stranger(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.get(f"/api/tasks/{task['task_id']}/progress", headers=CAROL)
        assert resp.status_code == 403

    async def test_cancel(self, client: AsyncClient):
        task = await _post_task(client)
        resp = await client.post(f"/api/tasks/{task['task_id']}/cancel", headers=ALICE)
        assert resp.status_code == 200
        assert resp.json()["task"]["status"] == "cancelled"

        resp = await client.post(f"/api/tasks/{task['task_id']}/cancel", headers=ALICE)
        assert resp.status_code == 409
        assert _error_code(resp) == "TASK_ALREADY_FINAL"

    async def test_cancel_by_assignee_forbidden(self, client: AsyncClient):
        task = await _post_task(client)
        await client.post(f"/api/tasks/{task['task_id']}/accept", headers=BOB)
        resp = await client.post(f"/api/tasks/{task['task_id']}/cancel", headers=BOB)
        assert resp.status_code == 403

    async def test_cancel_by_assignee_when_enabled(self, client: AsyncClient, monkeypatch):
        monkeypatch.setenv("HUSTLE_ASSIGNEE_CAN_CANCEL", "true")
        task = await _post_task(client)
        await client.post(f"/api/tasks/{task['task_id']}/accept", headers=BOB)
        resp = await client.post(f"/api/tasks/{task['task_id']}/cancel", headers=BOB)
        assert resp.status_code == 200

    async def test_unknown_phase_is_validation_error(self, client: AsyncClient):
        task = await _post_task(client)
        await client.post(f"/api/tasks/{task['task_id']}/accept", headers=BOB)
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/phase",
            json={"phase": "teleported"},
            headers=BOB,
        )
        assert resp.status_code == 422
