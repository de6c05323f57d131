"""Unit tests for the project store and table settings."""

import pytest
from conftest import run

from planboard.errors import NotFoundError, TransientError
from planboard.models import ProjectFields
from planboard.services.projects import ProjectStore
from planboard.services.table_settings import DEFAULT_COLUMNS, TableSettings


@pytest.fixture
def projects(source, notifications):
    store = ProjectStore(source, notifications)
    run(store.refetch())
    return store


@pytest.fixture
def table(source, notifications):
    settings = TableSettings(source, notifications)
    run(settings.refetch())
    return settings


class TestProjectStore:
    """Test cases for remote-first project writes."""

    def test_refetch(self, projects):
        assert [p.name for p in projects.projects] == ["Website"]
        assert projects.get("p1").budget == 1000
        assert projects.get("nope") is None

    def test_add_returns_project_and_refetches(self, projects, notifications):
        outcome = run(projects.add_project(ProjectFields(name="App")))

        assert outcome.ok
        assert outcome.value.name == "App"
        assert [p.name for p in projects.projects] == ["Website", "App"]
        assert notifications.latest.title == "Project added"

    def test_update_missing_project(self, projects, notifications):
        outcome = run(projects.update_project("nope", ProjectFields(name="x")))

        assert isinstance(outcome.error, NotFoundError)
        assert notifications.latest.is_error

    def test_delete(self, projects):
        assert run(projects.delete_project("p1")).ok
        assert projects.projects == []

    def test_refetch_failure_keeps_list(self, projects, source):
        source.fail["list_projects"] = TransientError("offline")

        outcome = run(projects.refetch())

        assert not outcome.ok
        assert not projects.loading
        assert [p.id for p in projects.projects] == ["p1"]


class TestStatusesAndTags:
    """Test cases for status and tag settings."""

    def test_refetch_loads_both(self, table):
        assert [s.id for s in table.statuses] == ["todo", "doing", "done"]
        assert table.tags == []

    def test_add_status(self, table):
        outcome = run(table.add_status("Review", "#aa00aa", 3))

        assert outcome.value.name == "Review"
        assert table.statuses[-1].id == outcome.value.id

    def test_update_status_applies_locally_after_success(self, table):
        run(table.update_status("todo", name="Backlog"))

        assert table.statuses[0].name == "Backlog"

    def test_failed_update_leaves_local_list(self, table, source, notifications):
        source.fail["update_status"] = TransientError("offline")

        outcome = run(table.update_status("todo", name="Backlog"))

        assert not outcome.ok
        assert table.statuses[0].name == "To do"
        assert notifications.latest.title == "Could not update status"

    def test_tags(self, table):
        tag = run(table.add_tag("urgent")).value
        run(table.update_tag(tag.id, "blocker"))
        assert [t.name for t in table.tags] == ["blocker"]

        run(table.delete_tag(tag.id))
        assert table.tags == []


class TestColumns:
    """Test cases for the local column layout."""

    def test_defaults(self, table):
        assert [c.id for c in table.columns] == [c.id for c in DEFAULT_COLUMNS]
        assert table.visible_columns == [c.id for c in DEFAULT_COLUMNS]

    def test_add_custom_column(self, table):
        column = table.add_column("Cost", "number")

        assert column.id.startswith("custom_")
        assert column.id in table.visible_columns

    def test_duplicate_and_delete(self, table):
        copy = table.duplicate_column("progress")

        assert copy.name == "Progress (copy)"
        assert copy.type == "progress"
        assert table.delete_column(copy.id)
        assert copy.id not in table.visible_columns
        assert table.duplicate_column("nope") is None

    def test_update_missing_column(self, table):
        assert table.update_column("nope", "x", "text") is None

    def test_set_visible_ignores_unknown(self, table):
        assert table.set_visible_columns(["status", "nope", "status", "tags"]) == ["status", "tags"]
