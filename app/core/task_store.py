"""
Purpose: The ordered task collection the UI and the assistant both mutate.
Owns the in-memory list, applies defaults, and delegates durability to a
TaskRepository (local JSON blob or remote GraphQL API).

Key responsibilities:
- create(fields) -> Task with category/priority/completed defaults.
- update(id, fields) / toggle(id) / delete(id) on a matching record.
- list(filter) -> the matching subsequence, insertion order, no mutation.

Failure: repository errors (TaskApiError for the remote variant) propagate to
the caller unchanged; the in-memory list is only touched after the
repository call succeeded.

Testing: tests/test_task_store.py with the local repository on tmp_path and
a fake repository for the remote semantics.
"""

from __future__ import annotations
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Iterable, Optional

from .interfaces import TaskRepository
from .models import Category, Priority, Task, TaskFilter

logger = logging.getLogger(__name__)

_EDITABLE = ("text", "category", "priority", "due_date", "completed")


def _normalize_fields(fields: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in fields.items():
        if key not in _EDITABLE:
            raise ValueError(f"Unknown task field: {key!r}")
        if key == "category":
            value = Category.coerce(value)
        elif key == "priority":
            value = Priority.coerce(value)
        elif key == "due_date":
            value = value or None
        elif key == "completed":
            value = bool(value)
        elif key == "text":
            value = str(value or "")
        out[key] = value
    return out


def filter_tasks(tasks: Iterable[Task], flt: TaskFilter) -> list[Task]:
    """Subsequence of tasks matching search, category and priority together."""
    return [t for t in tasks if flt.matches(t)]


def _timestamp_id() -> int:
    return int(time.time() * 1000)


class TaskStore:
    def __init__(
        self,
        repository: TaskRepository,
        *,
        id_factory: Optional[Callable[[], Any]] = None,
        assign_ids: bool = True,
    ) -> None:
        """
        assign_ids=False means the repository (server) hands out identifiers;
        the local variant uses millisecond timestamps.
        """
        self.repository = repository
        self._id_factory = id_factory or _timestamp_id
        self._assign_ids = assign_ids
        self._tasks: list[Task] = []
        self._loaded = False

    def load(self) -> list[Task]:
        self._tasks = list(self.repository.load_all())
        self._loaded = True
        logger.debug("Loaded %d tasks", len(self._tasks))
        return self.all()

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def all(self) -> list[Task]:
        self._ensure_loaded()
        return self._tasks[:]

    def get(self, task_id: Any) -> Task:
        self._ensure_loaded()
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise KeyError(task_id)

    def _next_id(self) -> Any:
        new_id = self._id_factory()
        taken = {t.id for t in self._tasks}
        while new_id in taken:
            new_id = new_id + 1 if isinstance(new_id, int) else f"{new_id}-1"
        return new_id

    def create(self, fields: dict[str, Any]) -> Task:
        self._ensure_loaded()
        values = _normalize_fields(fields)
        values.setdefault("completed", False)
        task = Task(id=self._next_id() if self._assign_ids else None, **values)
        created = self.repository.create(task)
        self._tasks.append(created)
        logger.info("Created task %s (%s/%s)", created.id, created.category.value, created.priority.value)
        return created

    def update(self, task_id: Any, fields: dict[str, Any]) -> Task:
        current = self.get(task_id)
        candidate = replace(current, **_normalize_fields(fields))
        saved = self.repository.update(candidate)
        self._tasks = [saved if t.id == task_id else t for t in self._tasks]
        logger.info("Updated task %s", task_id)
        return saved

    def toggle(self, task_id: Any) -> Task:
        current = self.get(task_id)
        return self.update(task_id, {"completed": not current.completed})

    def delete(self, task_id: Any) -> None:
        current = self.get(task_id)
        self.repository.delete(current)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        logger.info("Deleted task %s", task_id)

    def list(self, flt: Optional[TaskFilter] = None) -> list[Task]:
        self._ensure_loaded()
        return filter_tasks(self._tasks, flt or TaskFilter())

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._tasks)
