# tests/test_dispatcher.py

from __future__ import annotations

from core.dispatcher import (
    MSG_CREATE_FAILED,
    MSG_INITIALIZING,
    MSG_NOT_SURE,
    MSG_TROUBLE,
    IntentDispatcher,
)
from core.errors import TaskApiError
from core.models import Category, IntentResult, Priority, Sender, Slots
from core.persistence.session_store import ChatSession
from core.task_store import TaskStore

from .fakes import FakeEngine, FakeTaskRepository


def _dispatcher(engine, store, **kwargs) -> tuple[IntentDispatcher, ChatSession]:
    session = ChatSession()
    return IntentDispatcher(engine, store, session, **kwargs), session


def test_create_task_intent_adds_task_and_confirms(task_store: TaskStore) -> None:
    engine = FakeEngine(
        IntentResult(
            intent_name="create-task",
            slots=Slots(description="buy milk", category="Shopping", priority="High"),
        )
    )
    created = []
    dispatcher, session = _dispatcher(engine, task_store, on_task_created=created.append)

    reply = dispatcher.dispatch("add buy milk to shopping, high priority")

    assert reply.sender == Sender.BOT
    assert reply.text == "I've added your task: buy milk"
    [task] = task_store.all()
    assert task.text == "buy milk"
    assert task.category == Category.SHOPPING
    assert task.priority == Priority.HIGH
    assert task.completed is False
    assert task.due_date is None
    assert created == [task]
    assert session.messages() == [reply]


def test_create_task_defaults_missing_slots(task_store: TaskStore) -> None:
    engine = FakeEngine(IntentResult(intent_name="create-task", slots=Slots(description="call mom")))
    dispatcher, _ = _dispatcher(engine, task_store)

    dispatcher.dispatch("remind me to call mom")

    [task] = task_store.all()
    assert task.category == Category.PERSONAL
    assert task.priority == Priority.MEDIUM


def test_other_intent_without_messages_says_not_sure(task_store: TaskStore) -> None:
    engine = FakeEngine(IntentResult(intent_name="Greeting"))
    dispatcher, session = _dispatcher(engine, task_store)

    reply = dispatcher.dispatch("hello")

    assert reply.text == "I'm not sure how to help with that."
    assert reply.text == MSG_NOT_SURE
    assert len(task_store) == 0
    assert len(session) == 1


def test_other_intent_uses_first_engine_message(task_store: TaskStore) -> None:
    engine = FakeEngine(IntentResult(intent_name=None, messages=["Hi! I can add tasks.", "second"]))
    dispatcher, _ = _dispatcher(engine, task_store)

    assert dispatcher.dispatch("hi").text == "Hi! I can add tasks."


def test_engine_failure_or_empty_result_apologizes(task_store: TaskStore) -> None:
    engine = FakeEngine(None, RuntimeError("network down"))
    dispatcher, session = _dispatcher(engine, task_store)

    assert dispatcher.dispatch("one").text == MSG_TROUBLE
    assert dispatcher.dispatch("two").text == MSG_TROUBLE
    assert engine.calls == ["one", "two"]
    assert len(session) == 2


def test_missing_engine_reports_initializing(task_store: TaskStore) -> None:
    dispatcher, session = _dispatcher(None, task_store)
    assert dispatcher.dispatch("anything").text == MSG_INITIALIZING
    assert len(session) == 1


def test_task_creation_failure_is_reported_not_raised() -> None:
    store = TaskStore(FakeTaskRepository(fail_with=None), assign_ids=False)
    store.load()
    store.repository.fail_with = TaskApiError("unauthorized")
    engine = FakeEngine(IntentResult(intent_name="create-task", slots=Slots(description="x")))
    dispatcher, session = _dispatcher(engine, store)

    reply = dispatcher.dispatch("add x")

    assert reply.text == MSG_CREATE_FAILED
    assert len(store) == 0
    assert len(session) == 1
