"""Unit tests for the SQLite database layer."""

from datetime import date

import pytest

from planboard.errors import NotFoundError, ValidationError
from planboard.infrastructure.db import Database
from planboard.models import Priority, ProjectFields, TaskCreate, TaskUpdate


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "planboard.db")
    yield database
    database.close()


@pytest.fixture
def project(db):
    return db.add_project(ProjectFields(name="Website", budget=5000))


class TestProjects:
    """Test cases for project CRUD."""

    def test_add_and_list(self, db, project):
        projects = db.list_projects()

        assert [p.name for p in projects] == ["Website"]
        assert projects[0].id == project.id
        assert projects[0].budget == 5000

    def test_update(self, db, project):
        db.update_project(project.id, ProjectFields(name="Web shop", spent=120))

        assert db.list_projects()[0].name == "Web shop"
        assert db.list_projects()[0].spent == 120

    def test_update_missing(self, db):
        with pytest.raises(NotFoundError):
            db.update_project("missing", ProjectFields(name="x"))

    def test_delete_cascades_to_tasks(self, db, project):
        db.add_task(TaskCreate(project_id=project.id, name="Design"))

        db.delete_project(project.id)

        assert db.list_tasks() == []


class TestTasks:
    """Test cases for task CRUD and hierarchy columns."""

    def test_add_task_defaults(self, db, project):
        task = db.add_task(TaskCreate(project_id=project.id, name="Design"))

        assert task.status_id == "todo"
        assert task.status_name == "To do"
        assert task.project_name == "Website"
        assert task.wbs_code == "1"

    def test_wbs_codes_follow_hierarchy(self, db, project):
        first = db.add_task(TaskCreate(project_id=project.id, name="Phase 1"))
        second = db.add_task(TaskCreate(project_id=project.id, name="Phase 2"))
        child = db.add_task(TaskCreate(project_id=project.id, name="Step", parent_id=second.id))

        assert (first.wbs_code, second.wbs_code, child.wbs_code) == ("1", "2", "2.1")

    def test_unknown_project_is_rejected(self, db):
        with pytest.raises(ValidationError):
            db.add_task(TaskCreate(project_id="missing", name="Orphan"))

    def test_fields_round_trip(self, db, project):
        task = db.add_task(
            TaskCreate(
                project_id=project.id,
                name="Build",
                priority=Priority.HIGH,
                progress=30,
                start_date=date(2024, 3, 1),
                end_date=date(2024, 3, 15),
                dependencies=["x"],
                custom_fields={"cost": 12},
            )
        )

        assert task.priority is Priority.HIGH
        assert task.end_date == date(2024, 3, 15)
        assert task.dependencies == ["x"]
        assert task.custom_fields == {"cost": 12}

    def test_update_only_provided_fields(self, db, project):
        task = db.add_task(TaskCreate(project_id=project.id, name="Build", progress=10))

        db.update_task(task.id, TaskUpdate(status_id="done"))
        updated = db.get_task(task.id)

        assert updated.status_id == "done"
        assert updated.progress == 10
        assert updated.name == "Build"

    def test_update_missing_task(self, db):
        with pytest.raises(NotFoundError):
            db.update_task("missing", TaskUpdate(name="x"))

    def test_progress_out_of_range_is_rejected(self, db, project):
        task = db.add_task(TaskCreate(project_id=project.id, name="Build"))

        with pytest.raises(ValidationError):
            db.update_task(task.id, TaskUpdate.model_construct(progress=150, _fields_set={"progress"}))

    def test_tags_are_replaced(self, db, project):
        urgent, backend = db.add_tag("urgent"), db.add_tag("backend")
        task = db.add_task(TaskCreate(project_id=project.id, name="API", tag_ids=[urgent.id]))

        db.update_task(task.id, TaskUpdate(tag_ids=[backend.id]))

        assert [t.name for t in db.get_task(task.id).tags] == ["backend"]
        assert [t.name for t in task.tags] == ["urgent"]

    def test_set_parent(self, db, project):
        parent = db.add_task(TaskCreate(project_id=project.id, name="Parent"))
        a = db.add_task(TaskCreate(project_id=project.id, name="A"))
        b = db.add_task(TaskCreate(project_id=project.id, name="B"))

        db.set_parent([a.id, b.id], parent.id)

        assert {t.name: t.parent_id for t in db.list_tasks()} == {"Parent": None, "A": parent.id, "B": parent.id}

    def test_delete_missing_task(self, db):
        with pytest.raises(NotFoundError):
            db.delete_task("missing")

    def test_list_tasks_for_project(self, db, project):
        other = db.add_project(ProjectFields(name="Other"))
        db.add_task(TaskCreate(project_id=project.id, name="Mine"))
        db.add_task(TaskCreate(project_id=other.id, name="Theirs"))

        assert [t.name for t in db.list_tasks_for_project(project.id)] == ["Mine"]
        assert len(db.list_tasks()) == 2


class TestStatusesAndTags:
    """Test cases for status and tag settings."""

    def test_default_statuses_seeded(self, db):
        assert [s.id for s in db.list_statuses()] == ["todo", "in-progress", "done"]

    def test_update_status(self, db):
        db.update_status("todo", name="Backlog", color="#000000")

        assert db.list_statuses()[0].name == "Backlog"

    def test_update_status_rejects_unknown_fields(self, db):
        with pytest.raises(ValidationError):
            db.update_status("todo", id="x")

    def test_status_in_use_cannot_be_deleted(self, db, project):
        db.add_task(TaskCreate(project_id=project.id, name="Build"))

        with pytest.raises(ValidationError):
            db.delete_status("todo")

    def test_duplicate_tag_name_is_rejected(self, db):
        db.add_tag("urgent")

        with pytest.raises(ValidationError):
            db.add_tag("urgent")

    def test_delete_missing_tag(self, db):
        with pytest.raises(NotFoundError):
            db.delete_tag("missing")
