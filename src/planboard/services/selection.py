"""Selected task ids, used to batch a re-parent."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator


class SelectionSet:
    """Ordered set of selected task ids.

    Only ids accepted by ``is_known`` can be selected. Filters do not affect
    membership; ids leave the set through ``toggle``, ``clear`` or ``retain``.
    """

    def __init__(self, is_known: Callable[[str], bool]):
        self._is_known = is_known
        self._ids: dict[str, None] = {}

    def toggle(self, task_id: str) -> bool:
        """Flip membership and return whether the id is now selected."""
        if task_id in self._ids:
            del self._ids[task_id]
            return False
        if not self._is_known(task_id):
            raise KeyError(task_id)
        self._ids[task_id] = None
        return True

    def clear(self) -> None:
        self._ids.clear()

    def contains(self, task_id: str) -> bool:
        return task_id in self._ids

    def all(self) -> list[str]:
        return list(self._ids)

    def retain(self, task_ids: Iterable[str]) -> None:
        keep = set(task_ids)
        self._ids = {i: None for i in self._ids if i in keep}

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)
