"""HTTP surface tests - FastAPI app driven through httpx's ASGI transport."""

import pytest
from httpx import ASGITransport, AsyncClient

from hwboard.common.database import db_manager
from hwboard.main import app

ASSIGNMENT = {
    "id": "a1",
    "subject": {"id": "math", "name": "数学", "color": "#e53935"},
    "created": "2024-01-01T08:00:00",
    "deadline": "2024-01-03T18:00:00",
    "estimated": 120,
    "title": "练习册 P12-15",
    "priority": 1,
}


@pytest.fixture
async def client():
    await db_manager.initialize()
    await db_manager.create_tables()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    await db_manager.dispose()


@pytest.fixture
async def seeded(client):
    response = await client.post("/api/subjects", json=ASSIGNMENT["subject"])
    assert response.status_code == 201
    response = await client.post("/api/students", json={"name": "张三", "group": "1班"})
    assert response.status_code == 201
    return client


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAssignmentRoutes:

    @pytest.mark.asyncio
    async def test_create_then_undo_redo(self, seeded):
        client = seeded
        response = await client.post("/api/assignments", json={"assignment": ASSIGNMENT, "description": "布置"})
        assert response.status_code == 201
        operation_id = response.json()["operation_id"]

        days = (await client.get("/api/days", params={"begin": "2024-01-01", "end": "2024-01-03"})).json()
        assert sorted(days) == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert days["2024-01-02"][0]["taken"] == 40

        data = (await client.get("/api/assignments/a1")).json()
        assert data["total_required_submissions"] == 1

        response = await client.post(f"/api/operations/{operation_id}/undo")
        assert response.json() == {"id": operation_id, "toggled": True, "reverted": True}
        assert (await client.get("/api/assignments/a1")).status_code == 404

        response = await client.post(f"/api/operations/{operation_id}/redo")
        assert response.json()["reverted"] is False
        assert (await client.get("/api/assignments/a1")).status_code == 200

    @pytest.mark.asyncio
    async def test_invalid_schedule_rejected(self, seeded):
        bad = dict(ASSIGNMENT, deadline="2023-12-31T08:00:00")
        response = await seeded.post("/api/assignments", json={"assignment": bad})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_remove_missing(self, seeded):
        response = await seeded.post("/api/assignments/ghost/remove", json={"description": "删除"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_progress(self, seeded):
        client = seeded
        await client.post("/api/assignments", json={"assignment": ASSIGNMENT})
        response = await client.post(
            "/api/progress",
            json={"progress": [{"delta": 30, "assignment_id": "a1"}], "description": "进度"},
        )
        assert response.status_code == 201
        assert (await client.get("/api/assignments/a1")).json()["spent"] == 30

    @pytest.mark.asyncio
    async def test_duplicate_assignment_is_conflict(self, seeded):
        client = seeded
        first = await client.post("/api/assignments", json={"assignment": ASSIGNMENT})
        assert first.status_code == 201
        second = await client.post("/api/assignments", json={"assignment": ASSIGNMENT})
        assert second.status_code == 409
        assert len((await client.get("/api/operations")).json()) == 1

    @pytest.mark.asyncio
    async def test_unknown_subject_is_conflict(self, client):
        response = await client.post("/api/assignments", json={"assignment": ASSIGNMENT})
        assert response.status_code == 409
        assert (await client.get("/api/operations")).json() == []

    @pytest.mark.asyncio
    async def test_tags_on_assignment(self, seeded):
        client = seeded
        response = await client.post("/api/tags", json={"id": "t1", "name": "必做", "color": "#e53935"})
        assert response.status_code == 201
        assert (await client.post("/api/tags", json={"id": "t1", "name": "重复"})).status_code == 409

        tagged = dict(ASSIGNMENT, config={"tags": ["t1"]})
        await client.post("/api/assignments", json={"assignment": tagged})
        data = (await client.get("/api/assignments/a1")).json()
        assert data["tags"] == [{"id": "t1", "name": "必做", "color": "#e53935"}]

        response = await client.put("/api/tags/t1", json={"name": "重点", "color": "#fb8c00"})
        assert response.json()["id"] == "t1"
        assert (await client.get("/api/tags")).json()[0]["name"] == "重点"

        assert (await client.delete("/api/tags/t1")).status_code == 204
        assert (await client.delete("/api/tags/t1")).status_code == 404

    @pytest.mark.asyncio
    async def test_days_range_validation(self, client):
        response = await client.get("/api/days", params={"begin": "2024-01-03", "end": "2024-01-01"})
        assert response.status_code == 422


class TestOperationRoutes:

    @pytest.mark.asyncio
    async def test_generic_apply_and_list(self, seeded):
        client = seeded
        response = await client.post(
            "/api/operations",
            json={"type": "create-assignment", "changes": ASSIGNMENT, "description": "通用入口"},
        )
        assert response.status_code == 201
        entry_id = response.json()["id"]

        entries = (await client.get("/api/operations", params={"q": "通用"})).json()
        assert [e["id"] for e in entries] == [entry_id]
        assert entries[0]["payload_kind"] == "assignment"

        entry = (await client.get(f"/api/operations/{entry_id}")).json()
        assert entry["reverted"] is False

    @pytest.mark.asyncio
    async def test_generic_apply_duplicate_is_conflict(self, seeded):
        body = {"type": "create-assignment", "changes": ASSIGNMENT}
        assert (await seeded.post("/api/operations", json=body)).status_code == 201
        assert (await seeded.post("/api/operations", json=body)).status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_type(self, client):
        response = await client.post("/api/operations", json={"type": "archive", "changes": {}})
        assert response.status_code == 400
        assert (await client.get("/api/operations")).json() == []

    @pytest.mark.asyncio
    async def test_malformed_payload(self, seeded):
        response = await seeded.post(
            "/api/operations", json={"type": "create-assignment", "changes": {"id": "a1"}}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_entry(self, client):
        assert (await client.get("/api/operations/nope")).status_code == 404
        response = await client.post("/api/operations/nope/toggle")
        assert response.json() == {"id": "nope", "toggled": False, "reverted": None}

    @pytest.mark.asyncio
    async def test_failed_undo_is_conflict(self, seeded):
        client = seeded
        await client.post("/api/assignments", json={"assignment": ASSIGNMENT})
        modified = dict(ASSIGNMENT, estimated=90)
        modify_id = (await client.put("/api/assignments/a1", json={"assignment": modified})).json()["operation_id"]
        await client.post("/api/assignments/a1/remove", json={})

        response = await client.post(f"/api/operations/{modify_id}/undo")
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_compact(self, client):
        response = await client.post("/api/operations/maintenance/compact")
        assert response.json() == {"rewritten": 0}
