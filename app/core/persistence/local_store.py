"""
Purpose: Durable task storage on the local machine.
Why: The local variant keeps the whole task list as one JSON blob under a
single key, the same way a browser keeps it in local storage.

What is inside:
- JsonFileStorage: key -> JSON value store backed by one file.
- LocalTaskRepository: whole-collection read/write of the task list.

Testing: tmp_path fixture; reload from disk and compare.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from core.interfaces import KeyValueStorage
from core.models import Task

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"


class JsonFileStorage:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Local storage %s unreadable, starting empty: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Local storage %s is not an object, ignoring it", self._path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=str(self._path.parent), prefix=self._path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self._path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class LocalTaskRepository:
    """Every mutation rewrites the full collection under one key."""

    def __init__(self, storage: KeyValueStorage, key: str = TASKS_KEY) -> None:
        self._storage = storage
        self._key = key
        self._tasks: Optional[list[Task]] = None

    def load_all(self) -> list[Task]:
        raw = self._storage.get(self._key) or []
        if not isinstance(raw, list):
            logger.warning("Stored %r is not a list, ignoring it", self._key)
            raw = []
        self._tasks = [Task.from_dict(item) for item in raw if isinstance(item, dict)]
        return self._tasks[:]

    def _current(self) -> list[Task]:
        if self._tasks is None:
            self.load_all()
        return self._tasks

    def _save(self) -> None:
        self._storage.set(self._key, [t.to_dict() for t in self._current()])

    def create(self, task: Task) -> Task:
        self._current().append(task)
        self._save()
        return task

    def update(self, task: Task) -> Task:
        tasks = self._current()
        for i, existing in enumerate(tasks):
            if existing.id == task.id:
                tasks[i] = task
                break
        else:
            raise KeyError(task.id)
        self._save()
        return task

    def delete(self, task: Task) -> None:
        tasks = self._current()
        kept = [t for t in tasks if t.id != task.id]
        if len(kept) == len(tasks):
            raise KeyError(task.id)
        self._tasks = kept
        self._save()
