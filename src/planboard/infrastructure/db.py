"""SQLite database layer for projects, tasks, statuses and tags."""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections import defaultdict
from collections.abc import Collection, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from planboard.errors import NotFoundError, TransientError, ValidationError
from planboard.models import (
    TASK_FIELDS,
    Project,
    ProjectFields,
    Tag,
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
)

DEFAULT_DB_PATH = Path("planboard.db")

DEFAULT_STATUSES = (
    ("todo", "To do", "#64748b"),
    ("in-progress", "In progress", "#3b82f6"),
    ("done", "Done", "#22c55e"),
)

STATUS_COLUMNS = ("name", "color", "display_order")


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> str:
    return datetime.now(UTC).isoformat()


class Database:
    def __init__(self, db_path: Path | str = DEFAULT_DB_PATH):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS projects (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                owner_id TEXT,
                budget REAL,
                spent REAL,
                created_at TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS task_statuses (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                color TEXT NOT NULL,
                display_order INTEGER
            );
            CREATE TABLE IF NOT EXISTS tags (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE
            );
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                assignee_id TEXT,
                status_id TEXT NOT NULL,
                parent_id TEXT,
                start_date TEXT,
                end_date TEXT,
                progress INTEGER CHECK (progress IS NULL OR progress BETWEEN 0 AND 100),
                priority TEXT,
                wbs_code TEXT,
                dependencies TEXT NOT NULL DEFAULT '[]',
                custom_fields TEXT NOT NULL DEFAULT '{}',
                observation TEXT,
                created_at TEXT NOT NULL,
                FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
                FOREIGN KEY (status_id) REFERENCES task_statuses(id)
            );
            CREATE TABLE IF NOT EXISTS task_tags (
                task_id TEXT NOT NULL,
                tag_id TEXT NOT NULL,
                PRIMARY KEY (task_id, tag_id),
                FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
                FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
            );
        """)
        if self.conn.execute("SELECT COUNT(*) FROM task_statuses").fetchone()[0] == 0:
            self.conn.executemany(
                "INSERT INTO task_statuses (id, name, color, display_order) VALUES (?, ?, ?, ?)",
                [(sid, name, color, order) for order, (sid, name, color) in enumerate(DEFAULT_STATUSES)],
            )
        self.conn.commit()

    def close(self):
        self.conn.close()

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        """Run statements in one transaction, translating sqlite failures."""
        try:
            with self.conn:
                yield self.conn
        except sqlite3.IntegrityError as e:
            raise ValidationError(str(e)) from e
        except sqlite3.OperationalError as e:
            raise TransientError(str(e)) from e

    def _read(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self.conn.execute(sql, params).fetchall()
        except sqlite3.OperationalError as e:
            raise TransientError(str(e)) from e

    # --- Projects CRUD ---

    def add_project(self, fields: ProjectFields) -> Project:
        project = Project(id=_new_id(), created_at=_now(), **fields.model_dump())
        with self._write() as conn:
            conn.execute(
                "INSERT INTO projects (id, name, description, owner_id, budget, spent, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    project.id,
                    project.name,
                    project.description,
                    project.owner_id,
                    project.budget,
                    project.spent,
                    project.created_at.isoformat(),
                ),
            )
        return project

    def update_project(self, project_id: str, fields: ProjectFields) -> None:
        with self._write() as conn:
            cur = conn.execute(
                "UPDATE projects SET name = ?, description = ?, owner_id = ?, budget = ?, spent = ? WHERE id = ?",
                (fields.name, fields.description, fields.owner_id, fields.budget, fields.spent, project_id),
            )
        if cur.rowcount == 0:
            raise NotFoundError(f"Project {project_id} not found")

    def delete_project(self, project_id: str) -> None:
        with self._write() as conn:
            cur = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Project {project_id} not found")

    def list_projects(self) -> list[Project]:
        rows = self._read("SELECT * FROM projects ORDER BY created_at, rowid")
        return [Project(**dict(r)) for r in rows]

    # --- Statuses and tags ---

    def add_status(self, name: str, color: str, display_order: int | None = None) -> TaskStatus:
        status = TaskStatus(id=_new_id(), name=name, color=color, display_order=display_order)
        with self._write() as conn:
            conn.execute(
                "INSERT INTO task_statuses (id, name, color, display_order) VALUES (?, ?, ?, ?)",
                (status.id, status.name, status.color, status.display_order),
            )
        return status

    def update_status(self, status_id: str, **changes: Any) -> None:
        unknown = set(changes) - set(STATUS_COLUMNS)
        if unknown:
            raise ValidationError(f"Unknown status fields: {', '.join(sorted(unknown))}")
        if not changes:
            return
        assignments = ", ".join(f"{k} = ?" for k in changes)
        with self._write() as conn:
            cur = conn.execute(
                f"UPDATE task_statuses SET {assignments} WHERE id = ?", (*changes.values(), status_id)
            )
        if cur.rowcount == 0:
            raise NotFoundError(f"Status {status_id} not found")

    def delete_status(self, status_id: str) -> None:
        with self._write() as conn:
            cur = conn.execute("DELETE FROM task_statuses WHERE id = ?", (status_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Status {status_id} not found")

    def list_statuses(self) -> list[TaskStatus]:
        rows = self._read("SELECT * FROM task_statuses ORDER BY display_order, rowid")
        return [TaskStatus(**dict(r)) for r in rows]

    def add_tag(self, name: str) -> Tag:
        tag = Tag(id=_new_id(), name=name)
        with self._write() as conn:
            conn.execute("INSERT INTO tags (id, name) VALUES (?, ?)", (tag.id, tag.name))
        return tag

    def update_tag(self, tag_id: str, name: str) -> None:
        with self._write() as conn:
            cur = conn.execute("UPDATE tags SET name = ? WHERE id = ?", (name, tag_id))
        if cur.rowcount == 0:
            raise NotFoundError(f"Tag {tag_id} not found")

    def delete_tag(self, tag_id: str) -> None:
        with self._write() as conn:
            cur = conn.execute("DELETE FROM tags WHERE id = ?", (tag_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Tag {tag_id} not found")

    def list_tags(self) -> list[Tag]:
        return [Tag(**dict(r)) for r in self._read("SELECT * FROM tags ORDER BY name")]

    # --- Tasks CRUD ---

    def add_task(self, fields: TaskCreate) -> Task:
        task_id = _new_id()
        status_id = fields.status_id or self._first_status_id()
        with self._write() as conn:
            conn.execute(
                "INSERT INTO tasks (id, project_id, name, description, assignee_id, status_id, parent_id, "
                "start_date, end_date, progress, priority, wbs_code, dependencies, custom_fields, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    task_id,
                    fields.project_id,
                    fields.name,
                    fields.description,
                    fields.assignee_id,
                    status_id,
                    fields.parent_id,
                    _column_value("start_date", fields.start_date),
                    _column_value("end_date", fields.end_date),
                    fields.progress,
                    _column_value("priority", fields.priority),
                    self._next_wbs_code(fields.project_id, fields.parent_id),
                    json.dumps(fields.dependencies),
                    json.dumps(fields.custom_fields),
                    _now(),
                ),
            )
            _replace_tags(conn, task_id, fields.tag_ids)
        return self.get_task(task_id)

    def update_task(self, task_id: str, fields: TaskUpdate) -> None:
        changes = {k: v for k, v in fields.changes().items() if k in TASK_FIELDS}
        if self.conn.execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,)).fetchone() is None:
            raise NotFoundError(f"Task {task_id} not found")
        with self._write() as conn:
            if changes:
                assignments = ", ".join(f"{k} = ?" for k in changes)
                values = [_column_value(k, v) for k, v in changes.items()]
                conn.execute(f"UPDATE tasks SET {assignments} WHERE id = ?", (*values, task_id))
            if fields.has_tags:
                _replace_tags(conn, task_id, fields.tag_ids or [])

    def set_parent(self, task_ids: Collection[str], parent_id: str | None) -> None:
        if not task_ids:
            return
        placeholders = ",".join("?" * len(task_ids))
        with self._write() as conn:
            conn.execute(f"UPDATE tasks SET parent_id = ? WHERE id IN ({placeholders})", (parent_id, *task_ids))

    def delete_task(self, task_id: str) -> None:
        with self._write() as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Task {task_id} not found")

    def get_task(self, task_id: str) -> Task:
        tasks = self._select_tasks("WHERE t.id = ?", (task_id,))
        if not tasks:
            raise NotFoundError(f"Task {task_id} not found")
        return tasks[0]

    def list_tasks(self) -> list[Task]:
        return self._select_tasks()

    def list_tasks_for_project(self, project_id: str) -> list[Task]:
        return self._select_tasks("WHERE t.project_id = ?", (project_id,))

    def _select_tasks(self, where: str = "", params: tuple = ()) -> list[Task]:
        rows = self._read(
            "SELECT t.*, p.name AS project_name, s.name AS status_name, s.color AS status_color "
            "FROM tasks t "
            "LEFT JOIN projects p ON p.id = t.project_id "
            "LEFT JOIN task_statuses s ON s.id = t.status_id "
            f"{where} ORDER BY t.created_at, t.rowid",
            params,
        )
        tags_by_task: dict[str, list[Tag]] = defaultdict(list)
        for r in self._read(
            "SELECT tt.task_id, g.id, g.name FROM task_tags tt JOIN tags g ON g.id = tt.tag_id ORDER BY g.name"
        ):
            tags_by_task[r["task_id"]].append(Tag(id=r["id"], name=r["name"]))
        return [_row_to_task(r, tags_by_task.get(r["id"], [])) for r in rows]

    def _first_status_id(self) -> str:
        row = self.conn.execute("SELECT id FROM task_statuses ORDER BY display_order, rowid LIMIT 1").fetchone()
        if row is None:
            raise ValidationError("No task statuses defined")
        return row["id"]

    def _next_wbs_code(self, project_id: str, parent_id: str | None) -> str:
        if parent_id is None:
            siblings = self.conn.execute(
                "SELECT COUNT(*) FROM tasks WHERE project_id = ? AND parent_id IS NULL", (project_id,)
            ).fetchone()[0]
            return str(siblings + 1)
        parent = self.conn.execute("SELECT wbs_code FROM tasks WHERE id = ?", (parent_id,)).fetchone()
        siblings = self.conn.execute("SELECT COUNT(*) FROM tasks WHERE parent_id = ?", (parent_id,)).fetchone()[0]
        prefix = parent["wbs_code"] if parent and parent["wbs_code"] else "?"
        return f"{prefix}.{siblings + 1}"


def _column_value(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in ("dependencies", "custom_fields"):
        return json.dumps(value)
    if name in ("start_date", "end_date"):
        return value.isoformat()
    if name == "priority":
        return str(value)
    return value


def _replace_tags(conn: sqlite3.Connection, task_id: str, tag_ids: list[str]) -> None:
    conn.execute("DELETE FROM task_tags WHERE task_id = ?", (task_id,))
    conn.executemany(
        "INSERT INTO task_tags (task_id, tag_id) VALUES (?, ?)", [(task_id, tag_id) for tag_id in dict.fromkeys(tag_ids)]
    )


def _row_to_task(r: sqlite3.Row, tags: list[Tag]) -> Task:
    data = dict(r)
    data["dependencies"] = json.loads(data["dependencies"] or "[]")
    data["custom_fields"] = json.loads(data["custom_fields"] or "{}")
    return Task(**data, tags=tags)
