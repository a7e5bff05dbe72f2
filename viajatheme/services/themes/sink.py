"""Style sinks: where the resolver writes the derived CSS variables."""

from __future__ import annotations

from threading import Lock
from typing import Mapping, Protocol


class StyleSink(Protocol):
    """Receives the full variable map on every recompute."""

    def apply(self, variables: Mapping[str, str]) -> None:
        ...


class InMemoryStyleSink:
    """Process-global key-value style registry; writes are idempotent."""

    def __init__(self):
        self._lock = Lock()
        self._variables: dict[str, str] = {}
        self._revision = 0

    def apply(self, variables: Mapping[str, str]) -> None:
        with self._lock:
            if all(self._variables.get(key) == value for key, value in variables.items()):
                return
            self._variables.update(variables)
            self._revision += 1

    @property
    def revision(self) -> int:
        """Bumped only when an apply actually changed a value."""
        return self._revision

    def get(self, name: str) -> str | None:
        with self._lock:
            return self._variables.get(name)

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._variables)
