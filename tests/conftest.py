# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from core.controller import TaskAssistantController
from core.models import NluBackend, StorageBackend
from core.persistence.local_store import JsonFileStorage, LocalTaskRepository
from core.task_store import TaskStore
from core.voice_pipeline import VoicePipeline

from .fakes import FakeEngine, FakeObjectStorage, FakeSleep, FakeTranscriber


@pytest.fixture(autouse=True)
def dummy_aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep boto3 clients built in tests away from real credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap helpers.

    A SimpleNamespace instead of Settings.from_env() keeps the tests
    independent of the developer's environment and .env file.
    """
    return SimpleNamespace(
        app_name="Task Manager",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        storage_backend=StorageBackend.LOCAL,
        data_dir=tmp_path,
        local_store_path=tmp_path / "storage.json",
        graphql_url="",
        http_timeout=5.0,
        aws_region="us-east-1",
        user_pool_id="",
        user_pool_client_id="",
        identity_pool_id="",
        nlu_backend=NluBackend.LEX,
        lex_bot_id="",
        lex_bot_alias_id="",
        lex_locale="en_US",
        lex_session_id="test-session",
        openai_api_key=None,
        openai_model="gpt-4o-mini",
        audio_bucket="",
        voice_enabled=False,
        transcribe_language="en-US",
        transcribe_media_format="wav",
        poll_interval_seconds=5.0,
        poll_max_attempts=60,
    )


@pytest.fixture()
def local_storage(tmp_path: Path) -> JsonFileStorage:
    return JsonFileStorage(tmp_path / "storage.json")


@pytest.fixture()
def task_store(local_storage: JsonFileStorage) -> TaskStore:
    """
    TaskStore on a real JSON file with predictable ids (1, 2, 3, ...).
    """
    counter = iter(range(1, 10_000))
    return TaskStore(LocalTaskRepository(local_storage), id_factory=lambda: next(counter))


@pytest.fixture()
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture()
def object_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture()
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture()
def make_pipeline(object_storage: FakeObjectStorage, fake_sleep: FakeSleep):
    """Factory: VoicePipeline around a scripted transcriber."""

    def _make(transcriber: FakeTranscriber, **kwargs) -> VoicePipeline:
        kwargs.setdefault("job_name_factory", lambda: "job-1")
        return VoicePipeline(
            object_storage,
            transcriber,
            bucket="audio",
            sleep=fake_sleep,
            **kwargs,
        )

    return _make


@pytest.fixture()
def controller(task_store: TaskStore, engine: FakeEngine) -> TaskAssistantController:
    return TaskAssistantController(task_store, engine)
