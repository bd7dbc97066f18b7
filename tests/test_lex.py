# tests/test_lex.py

from __future__ import annotations

import boto3
import pytest
from botocore.stub import Stubber

from core.models import CREATE_TASK_INTENT
from core.services.lex import LexConversationalEngine, parse_lex_response

BOT_ID = "BOTID12345"
ALIAS_ID = "ALIAS12345"


@pytest.fixture()
def lex_client():
    return boto3.client("lexv2-runtime", region_name="us-east-1")


def _slot(value: str) -> dict:
    return {"value": {"originalValue": value, "interpretedValue": value, "resolvedValues": [value]}}


def test_parse_maps_add_task_and_slots() -> None:
    resp = {
        "interpretations": [
            {
                "intent": {
                    "name": "AddTask",
                    "slots": {
                        "TaskDescription": _slot("buy milk"),
                        "Category": _slot("Shopping"),
                        "Priority": None,
                        "DueDate": _slot("2024-06-01"),
                    },
                }
            }
        ],
        "messages": [{"content": "Done.", "contentType": "PlainText"}],
    }

    result = parse_lex_response(resp)

    assert result.intent_name == CREATE_TASK_INTENT
    assert result.slots.description == "buy milk"
    assert result.slots.category == "Shopping"
    assert result.slots.priority is None
    assert result.slots.due_date == "2024-06-01"
    assert result.messages == ["Done."]


def test_parse_without_interpretations_keeps_messages() -> None:
    result = parse_lex_response({"messages": [{"content": "Hello there"}]})
    assert result.intent_name is None
    assert result.fallback_text == "Hello there"
    assert parse_lex_response(None) is None


def test_recognize_sends_session_parameters(lex_client) -> None:
    engine = LexConversationalEngine(
        lex_client, bot_id=BOT_ID, bot_alias_id=ALIAS_ID, session_id="session-1"
    )
    with Stubber(lex_client) as stub:
        stub.add_response(
            "recognize_text",
            {
                "sessionId": "session-1",
                "interpretations": [
                    {"intent": {"name": "AddTask", "slots": {"TaskDescription": _slot("call mom")}}}
                ],
            },
            expected_params={
                "botId": BOT_ID,
                "botAliasId": ALIAS_ID,
                "localeId": "en_US",
                "sessionId": "session-1",
                "text": "remind me to call mom",
            },
        )
        result = engine.recognize("remind me to call mom")
        stub.assert_no_pending_responses()

    assert result.intent_name == CREATE_TASK_INTENT
    assert result.slots.description == "call mom"


def test_recognize_returns_none_on_service_error(lex_client) -> None:
    engine = LexConversationalEngine(
        lex_client, bot_id=BOT_ID, bot_alias_id=ALIAS_ID, session_id="session-1"
    )
    with Stubber(lex_client) as stub:
        stub.add_client_error("recognize_text", service_error_code="AccessDeniedException", http_status_code=403)
        assert engine.recognize("hi") is None
