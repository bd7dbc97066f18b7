"""
Abstractions for pluggable services. Inversion of control: core depends
on interfaces, not concrete services. Enables fakes/mocks and future swaps.
Protocols define what services or components can do,
without saying how they do it.

Common protocols:
- TaskRepository.load_all() / create(task) / update(task) / delete(task)
- KeyValueStorage.get(key, default) / set(key, value)
- ConversationalEngine.recognize(text) -> IntentResult | None
- ObjectStorage.put(container, key, data, content_type) / get(container, key)
- TranscriptionService.start_job(...) / get_job(name) -> TranscriptionJob
- AudioSource.open() acquires the microphone (may raise AudioDeviceError)

Testing: Use simple fake implementations (tests/fakes.py) to test the
store, dispatcher, pipeline and controller without network calls.
"""

from __future__ import annotations
from typing import Any, Optional, Protocol
from .models import IntentResult, Task, TranscriptionJob, LLMSettings


class LLMClient(Protocol):
    def chat(
        self,
        messages: list[dict[str, str]],
        settings: LLMSettings,
        system: Optional[str] = None,
    ) -> tuple[str, dict]: ...


class TaskRepository(Protocol):
    def load_all(self) -> list[Task]: ...

    def create(self, task: Task) -> Task: ...

    def update(self, task: Task) -> Task: ...

    def delete(self, task: Task) -> None: ...


class KeyValueStorage(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class ConversationalEngine(Protocol):
    def recognize(self, text: str) -> Optional[IntentResult]: ...


class ObjectStorage(Protocol):
    def put(self, container: str, key: str, data: bytes, content_type: str) -> str: ...

    def get(self, container: str, key: str) -> bytes: ...


class TranscriptionService(Protocol):
    def start_job(
        self, *, name: str, source_uri: str, media_format: str, language: str
    ) -> str: ...

    def get_job(self, name: str) -> TranscriptionJob: ...


class AudioSource(Protocol):
    def open(self) -> None: ...

    def close(self) -> None: ...
