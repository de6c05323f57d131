"""Parent/child nesting and ancestor-preserving filtering of task lists."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from planboard.models import ALL, Task, TaskNode

Predicate = Callable[[Task], bool]


class TaskFilter(BaseModel):
    """Status/assignee equality filter. ``"all"`` matches anything."""

    model_config = ConfigDict(frozen=True)

    status_id: str = ALL
    assignee_id: str = ALL

    def __call__(self, task: Task) -> bool:
        status_match = self.status_id == ALL or task.status_id == self.status_id
        assignee_match = self.assignee_id == ALL or task.assignee_id == self.assignee_id
        return status_match and assignee_match

    @property
    def is_wildcard(self) -> bool:
        return self.status_id == ALL and self.assignee_id == ALL


def build_forest(tasks: Sequence[Task]) -> list[TaskNode]:
    """Nest a flat task list by ``parent_id``.

    Records whose parent is not loaded become roots. Every record ends up in
    the forest exactly once, children in input order. Construction is a flat
    pass over the list; parent chains are never followed, so cyclic or
    self-referencing ``parent_id`` data cannot loop. Records only reachable
    through a cycle are promoted to roots (first one in input order wins).
    """
    n = len(tasks)
    if n == 0:
        return []

    index_of: dict[str, int] = {}
    for i, task in enumerate(tasks):
        index_of.setdefault(task.id, i)

    children: list[list[int]] = [[] for _ in range(n)]
    parent_of: list[int | None] = [None] * n
    roots: list[int] = []
    for i, task in enumerate(tasks):
        parent = index_of.get(task.parent_id) if task.parent_id is not None else None
        if parent is None:
            roots.append(i)
        else:
            children[parent].append(i)
            parent_of[i] = parent

    reached = [False] * n
    _mark_reachable(roots, children, reached)
    if not all(reached):
        for i in range(n):
            if reached[i]:
                continue
            children[parent_of[i]].remove(i)
            parent_of[i] = None
            roots.append(i)
            _mark_reachable([i], children, reached)
        roots.sort()

    return [_materialize(root, tasks, children) for root in roots]


def _mark_reachable(start: Iterable[int], children: list[list[int]], reached: list[bool]) -> None:
    stack = list(start)
    while stack:
        i = stack.pop()
        if reached[i]:
            continue
        reached[i] = True
        stack.extend(children[i])


def _materialize(root: int, tasks: Sequence[Task], children: list[list[int]]) -> TaskNode:
    built: dict[int, TaskNode] = {}
    stack = [(root, False)]
    while stack:
        i, expanded = stack.pop()
        if expanded:
            built[i] = TaskNode(task=tasks[i], children=[built.pop(c) for c in children[i]])
        else:
            stack.append((i, True))
            stack.extend((c, False) for c in children[i])
    return built[root]


def flatten_forest(forest: Iterable[TaskNode]) -> list[Task]:
    """Pre-order walk over the materialized child lists."""
    out: list[Task] = []
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        out.append(node.task)
        stack.extend(reversed(node.children))
    return out


def filter_forest(forest: Sequence[TaskNode], predicate: Predicate) -> list[TaskNode]:
    """Keep nodes that match or still have a kept descendant.

    Children are filtered before their parent, so an ancestor survives
    whenever anything below it matches. The input forest is left untouched.
    """
    pruned: dict[int, TaskNode | None] = {}
    stack = [(node, False) for node in reversed(forest)]
    while stack:
        node, expanded = stack.pop()
        if not expanded:
            stack.append((node, True))
            stack.extend((child, False) for child in node.children)
            continue
        kept = [pruned[id(c)] for c in node.children if pruned[id(c)] is not None]
        if predicate(node.task) or kept:
            pruned[id(node)] = node.model_copy(update={"children": kept})
        else:
            pruned[id(node)] = None
    return [pruned[id(node)] for node in forest if pruned[id(node)] is not None]


def filter_tasks(tasks: Iterable[Task], predicate: Predicate) -> list[Task]:
    """Flat filter for views without hierarchy (kanban)."""
    return [t for t in tasks if predicate(t)]
