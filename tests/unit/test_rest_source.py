"""Unit tests for the PostgREST data source, against a mock transport."""

import json

import httpx
import pytest
from conftest import run

from planboard.errors import NotFoundError, TransientError, ValidationError
from planboard.infrastructure.rest import RestDataSource
from planboard.models import ALL_SCOPE, ProjectFields, TaskCreate, TaskUpdate

TASK_ROW = {
    "id": "t1",
    "name": "Design",
    "project_id": "p1",
    "project_name": "Website",
    "status_id": "todo",
    "parent_id": None,
    "tags": [{"id": "g1", "name": "ui"}],
    "formatted_id": "T-1",
}


class Recorder:
    """Mock transport handler that records requests and replays canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else httpx.Response(200, json=[])
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last(self):
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


def make_source(recorder):
    return RestDataSource("https://example.supabase.co/", "secret", transport=httpx.MockTransport(recorder))


class TestTasks:
    """Test cases for task calls."""

    def test_fetch_all_uses_user_tasks_rpc(self):
        recorder = Recorder(httpx.Response(200, json=[TASK_ROW]))

        tasks = run(make_source(recorder).fetch_tasks_for_scope(ALL_SCOPE))

        assert [t.id for t in tasks] == ["t1"]
        assert tasks[0].tags[0].name == "ui"
        assert recorder.last.url.path == "/rest/v1/rpc/get_all_user_tasks"
        assert recorder.last.headers["apikey"] == "secret"
        assert recorder.last.headers["authorization"] == "Bearer secret"

    def test_fetch_project(self):
        recorder = Recorder(httpx.Response(200, json=[]))

        run(make_source(recorder).fetch_tasks_for_scope("p1"))

        assert recorder.last.url.path == "/rest/v1/rpc/get_tasks_for_project"
        assert recorder.last_json() == {"p_project_id": "p1"}

    def test_insert_task_sends_prefixed_params(self):
        recorder = Recorder(httpx.Response(200, json=[TASK_ROW]))

        task = run(make_source(recorder).insert_task(TaskCreate(project_id="p1", name="Design", tag_ids=["g1"])))

        body = recorder.last_json()
        assert task.id == "t1"
        assert recorder.last.url.path == "/rest/v1/rpc/insert_task_with_tags"
        assert body["p_project_id"] == "p1"
        assert body["p_name"] == "Design"
        assert body["p_tag_ids"] == ["g1"]

    def test_partial_update_patches_changed_fields_only(self):
        recorder = Recorder(httpx.Response(200, json=[TASK_ROW]))

        run(make_source(recorder).update_task_fields("t1", TaskUpdate(status_id="done")))

        assert recorder.last.method == "PATCH"
        assert recorder.last.url.params["id"] == "eq.t1"
        assert recorder.last_json() == {"status_id": "done"}
        assert recorder.last.headers["prefer"] == "return=representation"

    def test_update_with_tags_uses_rpc(self):
        recorder = Recorder(httpx.Response(204))

        run(make_source(recorder).update_task_fields("t1", TaskUpdate(name="Design", tag_ids=["g2"])))

        body = recorder.last_json()
        assert recorder.last.url.path == "/rest/v1/rpc/update_task_with_tags"
        assert body["p_task_id"] == "t1"
        assert body["p_tag_ids"] == ["g2"]
        assert body["p_custom_fields"] == {}

    def test_update_missing_row_is_not_found(self):
        recorder = Recorder(httpx.Response(200, json=[]))

        with pytest.raises(NotFoundError):
            run(make_source(recorder).update_task_fields("gone", TaskUpdate(progress=5)))

    def test_update_parent_uses_in_filter(self):
        recorder = Recorder(httpx.Response(204))

        run(make_source(recorder).update_task_parent(["t2", "t3"], "t1"))

        assert recorder.last.url.params["id"] == "in.(t2,t3)"
        assert recorder.last_json() == {"parent_id": "t1"}

    def test_update_parent_with_no_ids_sends_nothing(self):
        recorder = Recorder()

        run(make_source(recorder).update_task_parent([], "t1"))

        assert recorder.requests == []

    def test_delete(self):
        recorder = Recorder(httpx.Response(200, json=[TASK_ROW]))

        run(make_source(recorder).delete_task("t1"))

        assert recorder.last.method == "DELETE"
        assert recorder.last.url.params["id"] == "eq.t1"


class TestErrorMapping:
    """Test cases for translating HTTP failures into data source errors."""

    @pytest.mark.parametrize(
        "status, error",
        [(400, ValidationError), (409, ValidationError), (404, NotFoundError), (500, TransientError), (401, TransientError)],
    )
    def test_status_codes(self, status, error):
        recorder = Recorder(httpx.Response(status, json={"message": "boom"}))

        with pytest.raises(error, match="boom"):
            run(make_source(recorder).fetch_tasks_for_scope(ALL_SCOPE))

    def test_network_failure_is_transient(self):
        recorder = Recorder(httpx.ConnectError("connection refused"))

        with pytest.raises(TransientError, match="connection refused"):
            run(make_source(recorder).delete_task("t1"))

    def test_plain_text_error_body(self):
        recorder = Recorder(httpx.Response(503, text="upstream unavailable"))

        with pytest.raises(TransientError, match="upstream unavailable"):
            run(make_source(recorder).list_projects())


class TestSettingsTables:
    """Test cases for projects, statuses and tags tables."""

    def test_insert_project(self):
        row = {"id": "p1", "name": "Website", "created_at": "2024-01-01T00:00:00+00:00"}
        recorder = Recorder(httpx.Response(201, json=[row]))

        project = run(make_source(recorder).insert_project(ProjectFields(name="Website")))

        assert project.id == "p1"
        assert recorder.last.url.path == "/rest/v1/projects"

    def test_statuses_ordered(self):
        recorder = Recorder(httpx.Response(200, json=[{"id": "todo", "name": "To do", "color": "#fff"}]))

        statuses = run(make_source(recorder).list_statuses())

        assert statuses[0].name == "To do"
        assert recorder.last.url.params["order"] == "display_order"

    def test_delete_missing_tag(self):
        recorder = Recorder(httpx.Response(200, json=[]))

        with pytest.raises(NotFoundError):
            run(make_source(recorder).delete_tag("g9"))
