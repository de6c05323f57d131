"""Task collection state with optimistic mutations.

The flat task list is the only mutable state. Every edit is published
locally before the remote write and rolled back to its own pre-call
snapshot if the write fails. Overlapping edits are not serialized: each
rollback restores the snapshot taken when *that* edit started, and whichever
remote call resolves last decides the final local state.
A rollback is skipped once the scope has changed; the snapshot belongs to
the previous collection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from dataclasses import dataclass, replace

from planboard.errors import DataSourceError, ValidationError
from planboard.hierarchy import TaskFilter, build_forest, filter_forest, filter_tasks
from planboard.infrastructure.sources import DataSource
from planboard.models import Task, TaskCreate, TaskNode, TaskUpdate
from planboard.services.mutations import ChangeStatus, DeleteTask, Mutation, SetParent, UpdateFields
from planboard.services.notifications import Notifier, failure, success
from planboard.services.outcome import OK, Outcome, failed
from planboard.services.selection import SelectionSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskState:
    tasks: tuple[Task, ...] = ()
    loading: bool = False
    scope: str | None = None


Listener = Callable[[TaskState], None]


class TaskStore:
    def __init__(self, source: DataSource, notifier: Notifier):
        self.source = source
        self.notifier = notifier
        self.selection = SelectionSet(self.has_task)
        self._state = TaskState()
        self._ids: frozenset[str] = frozenset()
        self._listeners: list[Listener] = []
        self._forest: tuple[tuple[Task, ...], list[TaskNode]] | None = None

    # --- reads ---

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def tasks(self) -> list[Task]:
        return list(self._state.tasks)

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def scope(self) -> str | None:
        return self._state.scope

    @property
    def forest(self) -> list[TaskNode]:
        tasks = self._state.tasks
        if self._forest is None or self._forest[0] is not tasks:
            self._forest = (tasks, build_forest(tasks))
        return list(self._forest[1])

    def view(self, task_filter: TaskFilter) -> list[TaskNode]:
        """Filtered forest for the table, Gantt and WBS views."""
        if task_filter.is_wildcard:
            return self.forest
        return filter_forest(self.forest, task_filter)

    def kanban(self, task_filter: TaskFilter) -> list[Task]:
        return filter_tasks(self._state.tasks, task_filter)

    def has_task(self, task_id: str) -> bool:
        return task_id in self._ids

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every published state. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        if "tasks" in changes:
            self._ids = frozenset(t.id for t in self._state.tasks)
        for listener in list(self._listeners):
            listener(self._state)

    # --- loading ---

    async def set_scope(self, scope: str | None) -> Outcome:
        self._publish(scope=scope)
        return await self.refetch()

    async def refetch(self) -> Outcome:
        scope = self._state.scope
        if scope is None:
            self._publish(tasks=(), loading=False)
            self.selection.clear()
            return OK

        self._publish(loading=True)
        try:
            tasks = await self.source.fetch_tasks_for_scope(scope)
        except DataSourceError as e:
            logger.warning("Loading tasks for %s failed: %s", scope, e)
            if self._state.scope == scope:
                self._publish(tasks=(), loading=False)
                self.selection.clear()
            await self.notifier.notify(failure("Could not load tasks", str(e)))
            return failed(e)

        if self._state.scope != scope:
            logger.debug("Discarding tasks for stale scope %s", scope)
            return OK
        self._publish(tasks=tuple(tasks), loading=False)
        self.selection.retain(self._ids)
        logger.debug("Loaded %d tasks for %s", len(tasks), scope)
        return OK

    # --- mutations ---

    async def commit(self, mutation: Mutation) -> Outcome:
        """Publish ``mutation`` locally, send it, and roll back if the send fails."""
        snapshot, scope = self._state.tasks, self._state.scope
        self._publish(tasks=tuple(mutation.apply(snapshot)))
        try:
            await mutation.send(self.source, snapshot)
        except DataSourceError as e:
            if self._state.scope == scope:
                logger.warning("%r failed, rolling back: %s", mutation, e)
                self._publish(tasks=snapshot)
            else:
                logger.warning("%r failed after scope changed to %s: %s", mutation, self._state.scope, e)
            await self.notifier.notify(failure(mutation.failure_title, str(e)))
            return failed(e)

        # Another edit may have rolled back over this one meanwhile; put it back.
        reasserted = tuple(mutation.apply(self._state.tasks))
        if reasserted != self._state.tasks:
            self._publish(tasks=reasserted)
        logger.info("%r committed", mutation)
        await self.notifier.notify(success(mutation.success_title))
        return OK

    async def add_task(self, fields: TaskCreate) -> Outcome:
        try:
            task = await self.source.insert_task(fields)
        except DataSourceError as e:
            logger.warning("Adding task %r failed: %s", fields.name, e)
            await self.notifier.notify(failure("Could not add task", str(e)))
            return failed(e)
        logger.info("Added task %s", task.id)
        await self.notifier.notify(success("Task added"))
        await self.refetch()
        return OK

    async def delete_task(self, task_id: str) -> Outcome:
        outcome = await self.commit(DeleteTask(task_id))
        if outcome:
            self.selection.retain(self._ids)
        return outcome

    async def set_parent_task(self, task_ids: Collection[str], parent_id: str | None) -> Outcome:
        if parent_id is not None and parent_id in task_ids:
            return await self._reject("Could not set parent task", "A task cannot be its own parent")
        return await self.commit(SetParent(frozenset(task_ids), parent_id))

    async def reparent_selection(self, parent_id: str | None) -> Outcome:
        """Re-parent every selected task; the selection is cleared only on success."""
        # ids whose delete is still in flight are already gone from the collection
        task_ids = [i for i in self.selection.all() if self.has_task(i)]
        if not task_ids:
            return await self._reject("Could not set parent task", "No tasks selected")
        outcome = await self.set_parent_task(task_ids, parent_id)
        if outcome:
            self.selection.clear()
        return outcome

    async def update_task_status(self, task_id: str, status_id: str) -> Outcome:
        return await self.commit(ChangeStatus(task_id, status_id))

    async def update_task(self, task_id: str, update: TaskUpdate) -> Outcome:
        if update.is_empty:
            return await self._reject("Could not update task", "No data provided")
        return await self.commit(UpdateFields(task_id, update))

    async def _reject(self, title: str, message: str) -> Outcome:
        await self.notifier.notify(failure(title, message))
        return failed(ValidationError(message))
