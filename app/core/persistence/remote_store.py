"""
Purpose: Task persistence through the AppSync GraphQL API (remote variant).
Why: Tasks follow the signed-in user across devices; the server assigns ids,
owner and the `_version` token used for optimistic concurrency.

What is inside:
AppSyncTaskRepository with load_all (paginated), create, update, delete.
Soft-deleted rows (`_deleted: true`) are skipped when listing.

Testing: httpx.MockTransport behind a real GraphQLClient.
"""

from __future__ import annotations
import logging
from typing import Any

from core.errors import TaskApiError
from core.graphql import GraphQLClient, mutations, queries
from core.models import Task

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class AppSyncTaskRepository:
    def __init__(self, client: GraphQLClient, *, page_size: int = PAGE_SIZE) -> None:
        self._client = client
        self._page_size = page_size

    def load_all(self) -> list[Task]:
        tasks: list[Task] = []
        next_token = None
        while True:
            data = self._client.execute(
                queries.list_tasks,
                {"limit": self._page_size, "nextToken": next_token},
            )
            page = data.get("listTasks") or {}
            for item in page.get("items") or []:
                if item and not item.get("_deleted"):
                    tasks.append(Task.from_dict(item))
            next_token = page.get("nextToken")
            if not next_token:
                break
        logger.debug("Fetched %d remote tasks", len(tasks))
        return tasks

    def create(self, task: Task) -> Task:
        payload: dict[str, Any] = {
            "text": task.text,
            "category": task.category.value,
            "priority": task.priority.value,
            "dueDate": task.due_date,
            "completed": task.completed,
        }
        data = self._client.execute(mutations.create_task, {"input": payload})
        return self._one(data, "createTask")

    def update(self, task: Task) -> Task:
        payload: dict[str, Any] = {
            "id": task.id,
            "text": task.text,
            "category": task.category.value,
            "priority": task.priority.value,
            "dueDate": task.due_date,
            "completed": task.completed,
        }
        if task.version is not None:
            payload["_version"] = task.version
        data = self._client.execute(mutations.update_task, {"input": payload})
        return self._one(data, "updateTask")

    def delete(self, task: Task) -> None:
        payload: dict[str, Any] = {"id": task.id}
        if task.version is not None:
            payload["_version"] = task.version
        data = self._client.execute(mutations.delete_task, {"input": payload})
        self._one(data, "deleteTask")

    @staticmethod
    def _one(data: dict, field: str) -> Task:
        item = data.get(field)
        if not item:
            raise TaskApiError(f"{field} returned no record")
        return Task.from_dict(item)
