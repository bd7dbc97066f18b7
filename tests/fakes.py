# tests/fakes.py

from __future__ import annotations

import itertools
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Optional

from core.errors import AudioDeviceError, TaskApiError
from core.models import IntentResult, JobStatus, Task, TranscriptionJob


class FakeEngine:
    """
    Deterministic conversational engine.

    - Returns the queued results in order (None = engine gave nothing back)
    - An Exception instance in the queue is raised instead
    - Captures every utterance for assertions
    """

    def __init__(self, *results: Optional[IntentResult | Exception]) -> None:
        self.results = list(results)
        self.calls: list[str] = []

    def recognize(self, text: str) -> Optional[IntentResult]:
        self.calls.append(text)
        result = self.results.pop(0) if self.results else None
        if isinstance(result, Exception):
            raise result
        return result


class FakeTaskRepository:
    """
    In-memory repository behaving like the remote API: the server assigns
    ids and bumps `_version` on every write.
    """

    def __init__(self, tasks: Iterable[Task] = (), *, fail_with: Exception | None = None) -> None:
        self.rows: dict[str, Task] = {str(t.id): t for t in tasks}
        self.fail_with = fail_with
        self._ids = itertools.count(1)
        self.calls: list[str] = []

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def load_all(self) -> list[Task]:
        self.calls.append("load_all")
        self._maybe_fail()
        return list(self.rows.values())

    def create(self, task: Task) -> Task:
        self.calls.append("create")
        self._maybe_fail()
        saved = replace(task, id=f"srv-{next(self._ids)}", version=1, owner="alice")
        self.rows[saved.id] = saved
        return saved

    def update(self, task: Task) -> Task:
        self.calls.append("update")
        self._maybe_fail()
        if task.id not in self.rows:
            raise TaskApiError("not found")
        saved = replace(task, version=(task.version or 0) + 1)
        self.rows[task.id] = saved
        return saved

    def delete(self, task: Task) -> None:
        self.calls.append("delete")
        self._maybe_fail()
        self.rows.pop(task.id, None)


class MemoryStorage:
    """KeyValueStorage kept in a dict."""

    def __init__(self) -> None:
        self.data: dict = {}

    def get(self, key, default=None):
        return self.data.get(key, default)

    def set(self, key, value) -> None:
        self.data[key] = value

    def remove(self, key) -> None:
        self.data.pop(key, None)


@dataclass
class FakeObjectStorage:
    objects: dict[tuple[str, str], bytes] = field(default_factory=dict)
    puts: list[tuple[str, str, str]] = field(default_factory=list)
    gets: list[tuple[str, str]] = field(default_factory=list)
    fail_put: Exception | None = None

    def put(self, container: str, key: str, data: bytes, content_type: str) -> str:
        if self.fail_put is not None:
            raise self.fail_put
        self.objects[(container, key)] = data
        self.puts.append((container, key, content_type))
        return f"s3://{container}/{key}"

    def get(self, container: str, key: str) -> bytes:
        self.gets.append((container, key))
        return self.objects[(container, key)]


class FakeTranscriber:
    """
    Transcription service answering get_job from a scripted list of raw
    statuses ("IN_PROGRESS", "COMPLETED", "FAILED", anything else).
    """

    def __init__(
        self,
        statuses: Iterable[str],
        *,
        output_bucket: str = "out",
        failure_reason: str | None = None,
        fail_start: Exception | None = None,
    ) -> None:
        self.statuses = list(statuses)
        self.output_bucket = output_bucket
        self.failure_reason = failure_reason
        self.fail_start = fail_start
        self.started: list[dict] = []
        self.polls = 0

    def start_job(self, *, name: str, source_uri: str, media_format: str, language: str) -> str:
        if self.fail_start is not None:
            raise self.fail_start
        self.started.append(
            {"name": name, "source_uri": source_uri, "media_format": media_format, "language": language}
        )
        return name

    def get_job(self, name: str) -> TranscriptionJob:
        raw = self.statuses[self.polls] if self.polls < len(self.statuses) else self.statuses[-1]
        self.polls += 1
        if isinstance(raw, Exception):
            raise raw
        mapping = {
            "IN_PROGRESS": JobStatus.IN_PROGRESS,
            "COMPLETED": JobStatus.COMPLETED,
            "FAILED": JobStatus.FAILED,
        }
        return TranscriptionJob(
            name=name,
            status=mapping.get(raw, JobStatus.UNKNOWN),
            raw_status=raw,
            failure_reason=self.failure_reason if raw == "FAILED" else None,
            result_location=f"s3://{self.output_bucket}/{name}.json",
        )


class FakeSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class DeniedMicrophone:
    def open(self) -> None:
        raise AudioDeviceError("permission denied")

    def close(self) -> None:
        pass
