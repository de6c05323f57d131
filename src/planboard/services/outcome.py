"""Result of a store operation that talked to the data source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from planboard.errors import DataSourceError


@dataclass(frozen=True)
class Outcome:
    ok: bool
    error: DataSourceError | None = None
    value: Any = None  # created record, for inserts

    def __bool__(self) -> bool:
        return self.ok


OK = Outcome(ok=True)


def succeeded(value: Any) -> Outcome:
    return Outcome(ok=True, value=value)


def failed(error: DataSourceError) -> Outcome:
    return Outcome(ok=False, error=error)
