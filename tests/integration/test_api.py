"""HTTP tests for the v1 API: routing, status codes and error bodies."""

import json
from datetime import timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.planforge.core.exceptions import GeneratorUnavailableError
from src.planforge.models import Note, Project, Subproject, TaskState
from tests.factories import ProjectFactory, generate_uuid, utc_now
from tests.fakes import ScriptedGenerator
from tests.helpers import set_statuses

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


class TestProjectsApi:
    async def test_create_and_get(self, client: AsyncClient):
        response = await client.post("/api/v1/projects", json={"name": "  Importer  "})

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Importer"
        assert created["status"] == "planning"

        response = await client.get(f"/api/v1/projects/{created['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    @pytest.mark.parametrize("name", ["", "   "])
    async def test_blank_name_rejected(self, client: AsyncClient, name: str):
        response = await client.post("/api/v1/projects", json={"name": name})

        assert response.status_code == 422

    async def test_rename(self, client: AsyncClient, project: Project):
        response = await client.patch(f"/api/v1/projects/{project.id}", json={"name": "P2"})

        assert response.status_code == 200
        assert response.json()["name"] == "P2"

    async def test_status_is_not_writable(self, client: AsyncClient, project: Project):
        response = await client.patch(
            f"/api/v1/projects/{project.id}", json={"name": "P1", "status": "complete"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "planning"

    async def test_list_pages_newest_first(self, client: AsyncClient, db_session: AsyncSession):
        start = utc_now()
        projects = [
            ProjectFactory.build(name=f"P{i}", created_at=start + timedelta(seconds=i))
            for i in range(3)
        ]
        db_session.add_all(projects)
        await db_session.commit()

        first = (await client.get("/api/v1/projects", params={"limit": 2})).json()
        assert [p["name"] for p in first["items"]] == ["P2", "P1"]
        assert first["has_more"] is True

        second = (
            await client.get(
                "/api/v1/projects", params={"limit": 2, "cursor": first["next_cursor"]}
            )
        ).json()
        assert [p["name"] for p in second["items"]] == ["P0"]
        assert second["has_more"] is False
        assert second["next_cursor"] is None

    async def test_list_filters_by_status(
        self, client: AsyncClient, db_session: AsyncSession, project: Project
    ):
        db_session.add(ProjectFactory.build(name="Shipped", status="complete"))
        await db_session.commit()

        response = await client.get("/api/v1/projects", params={"status": "complete"})

        assert [p["name"] for p in response.json()["items"]] == ["Shipped"]

    async def test_delete_cascades(
        self, client: AsyncClient, project: Project, subproject: Subproject, notes: list[Note]
    ):
        response = await client.delete(f"/api/v1/projects/{project.id}")
        assert response.status_code == 204

        assert (await client.get(f"/api/v1/projects/{project.id}")).status_code == 404
        assert (await client.get(f"/api/v1/subprojects/{subproject.id}")).status_code == 404


class TestErrorBodies:
    async def test_not_found_carries_kind_and_request_id(self, client: AsyncClient):
        request_id = uuid4().hex

        response = await client.get(
            f"/api/v1/projects/{generate_uuid()}", headers={"X-Request-ID": request_id}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["kind"] == "NotFound"
        assert body["request_id"] == request_id
        assert response.headers["X-Request-ID"] == request_id

    async def test_unknown_route_has_request_id(self, client: AsyncClient):
        response = await client.get("/api/v1/nowhere")

        assert response.status_code == 404
        assert response.json()["request_id"]


class TestSubprojectsApi:
    async def test_create_list_rename(self, client: AsyncClient, project: Project):
        response = await client.post(
            f"/api/v1/projects/{project.id}/subprojects", json={"name": "S1"}
        )
        assert response.status_code == 201
        created = response.json()
        assert created["mode"] == "planned"
        assert created["prd_markdown"] is None

        listed = await client.get(f"/api/v1/projects/{project.id}/subprojects")
        assert [s["name"] for s in listed.json()] == ["S1"]

        renamed = await client.patch(
            f"/api/v1/subprojects/{created['id']}", json={"name": "S1 renamed"}
        )
        assert renamed.json()["name"] == "S1 renamed"

    async def test_create_under_missing_project(self, client: AsyncClient):
        response = await client.post(
            f"/api/v1/projects/{generate_uuid()}/subprojects", json={"name": "S1"}
        )

        assert response.status_code == 404

    async def test_notes_timeline(self, client: AsyncClient, subproject: Subproject):
        for content in ("first", "second"):
            response = await client.post(
                f"/api/v1/subprojects/{subproject.id}/notes", json={"content": content}
            )
            assert response.status_code == 201

        asc = await client.get(f"/api/v1/subprojects/{subproject.id}/notes")
        desc = await client.get(
            f"/api/v1/subprojects/{subproject.id}/notes", params={"order": "desc"}
        )

        assert [n["content"] for n in asc.json()] == ["first", "second"]
        assert [n["content"] for n in desc.json()] == ["second", "first"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"content": "   "},
            {"type": "image", "content": "not a url"},
            {"type": "audio", "content": "hello"},
        ],
    )
    async def test_invalid_note(self, client: AsyncClient, subproject: Subproject, payload):
        response = await client.post(f"/api/v1/subprojects/{subproject.id}/notes", json=payload)

        assert response.status_code == 422

    async def test_image_note(self, client: AsyncClient, subproject: Subproject):
        response = await client.post(
            f"/api/v1/subprojects/{subproject.id}/notes",
            json={"type": "image", "content": "https://example.com/whiteboard.png"},
        )

        assert response.status_code == 201
        assert response.json()["type"] == "image"


class TestBuildApi:
    async def test_build(
        self, client: AsyncClient, project: Project, subproject: Subproject, notes: list[Note]
    ):
        response = await client.post(f"/api/v1/subprojects/{subproject.id}/build")

        assert response.status_code == 200
        assert response.json()["mode"] == "build"
        project_body = (await client.get(f"/api/v1/projects/{project.id}")).json()
        assert project_body["status"] == "in_progress"

        again = await client.post(f"/api/v1/subprojects/{subproject.id}/build")
        assert again.status_code == 409
        assert again.json()["kind"] == "InvalidState"

    async def test_build_without_notes(self, client: AsyncClient, subproject: Subproject):
        response = await client.post(f"/api/v1/subprojects/{subproject.id}/build")

        assert response.status_code == 422
        assert response.json()["kind"] == "EmptyInput"

    async def test_generator_unavailable(
        self,
        client: AsyncClient,
        generator: ScriptedGenerator,
        subproject: Subproject,
        notes: list[Note],
    ):
        generator.prd_error = GeneratorUnavailableError("generator down")

        response = await client.post(f"/api/v1/subprojects/{subproject.id}/build")

        assert response.status_code == 503
        assert response.json()["kind"] == "GeneratorUnavailable"
        current = (await client.get(f"/api/v1/subprojects/{subproject.id}")).json()
        assert current["mode"] == "planned"

    async def test_stream(self, client: AsyncClient, subproject: Subproject, notes: list[Note]):
        response = await client.post(f"/api/v1/subprojects/{subproject.id}/build/stream")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        events = [json.loads(line) for line in response.text.splitlines()]
        assert [e["step"] for e in events] == [
            "aggregating",
            "generating_prd",
            "generating_tasks",
            "persisting",
            "done",
        ]
        assert events[-1]["index"] == events[-1]["total"] == 4

    async def test_stream_reports_failure_in_band(
        self, client: AsyncClient, subproject: Subproject
    ):
        response = await client.post(f"/api/v1/subprojects/{subproject.id}/build/stream")

        assert response.status_code == 200
        last = json.loads(response.text.splitlines()[-1])
        assert last["step"] == "failed"
        assert last["error_kind"] == "EmptyInput"

    async def test_stream_rejects_non_planned(
        self, client: AsyncClient, build_subproject: Subproject
    ):
        response = await client.post(f"/api/v1/subprojects/{build_subproject.id}/build/stream")

        assert response.status_code == 409

    async def test_deadline_must_be_positive(self, client: AsyncClient, subproject: Subproject):
        response = await client.post(
            f"/api/v1/subprojects/{subproject.id}/build", params={"deadline": 0}
        )

        assert response.status_code == 422


class TestTransitionApi:
    async def test_complete(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        project: Project,
        build_subproject: Subproject,
    ):
        await set_statuses(
            db_session, build_subproject.id, task_1=TaskState.DONE, task_2=TaskState.DONE
        )

        response = await client.post(
            f"/api/v1/subprojects/{build_subproject.id}/transition", json={"target": "complete"}
        )

        assert response.status_code == 200
        assert response.json()["mode"] == "complete"
        assert (await client.get(f"/api/v1/projects/{project.id}")).json()["status"] == "complete"

    async def test_unfinished_tasks(
        self, client: AsyncClient, db_session: AsyncSession, build_subproject: Subproject
    ):
        await set_statuses(
            db_session, build_subproject.id, task_1=TaskState.DONE, task_2=TaskState.TODO
        )

        response = await client.post(
            f"/api/v1/subprojects/{build_subproject.id}/transition", json={"target": "complete"}
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "InvalidTransition"

    async def test_unknown_target(self, client: AsyncClient, build_subproject: Subproject):
        response = await client.post(
            f"/api/v1/subprojects/{build_subproject.id}/transition", json={"target": "archived"}
        )

        assert response.status_code == 422


class TestTasksApi:
    async def test_list_and_summary(self, client: AsyncClient, build_subproject: Subproject):
        base = f"/api/v1/subprojects/{build_subproject.id}/tasks"

        await client.put(f"{base}/task-1/status", json={"status": "done"})
        tasks = (await client.get(base)).json()
        summary = (await client.get(f"{base}/summary")).json()

        assert [(t["id"], t["status"]) for t in tasks] == [("task-1", "done"), ("task-2", "todo")]
        assert tasks[0]["subtasks"] == ["Parse header"]
        assert summary == {
            "todo": 1,
            "in_progress": 0,
            "done": 1,
            "total": 2,
            "completion_percent": 50,
        }

    async def test_set_status(self, client: AsyncClient, build_subproject: Subproject):
        response = await client.put(
            f"/api/v1/subprojects/{build_subproject.id}/tasks/task-2/status",
            json={"status": "in_progress"},
        )

        assert response.status_code == 200
        assert response.json()["task_id"] == "task-2"
        assert response.json()["status"] == "in_progress"

    async def test_set_status_errors(
        self, client: AsyncClient, build_subproject: Subproject, subproject: Subproject
    ):
        base = f"/api/v1/subprojects/{build_subproject.id}/tasks"

        unknown = await client.put(f"{base}/task-9/status", json={"status": "done"})
        invalid = await client.put(f"{base}/task-1/status", json={"status": "blocked"})
        planned = await client.put(
            f"/api/v1/subprojects/{subproject.id}/tasks/task-1/status", json={"status": "done"}
        )

        assert unknown.status_code == 404
        assert invalid.status_code == 422
        assert planned.status_code == 409

    async def test_comment(self, client: AsyncClient, build_subproject: Subproject):
        base = f"/api/v1/subprojects/{build_subproject.id}/tasks"

        response = await client.post(f"{base}/task-1/comments", json={"content": " looks good "})

        assert response.status_code == 201
        assert response.json()["content"] == "looks good"
        tasks = (await client.get(base)).json()
        assert [c["content"] for c in tasks[0]["comments"]] == ["looks good"]


async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "healthy", "running_pipelines": 0}
