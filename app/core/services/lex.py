"""
Purpose: Amazon Lex V2 as the conversational engine.
Sends one utterance per call and maps the response into a typed IntentResult,
so nothing downstream touches the raw response dict.

Slot mapping (bot model -> Slots field):
- TaskDescription -> description
- Category        -> category
- Priority        -> priority
- DueDate         -> due_date

Testing: botocore Stubber on a lexv2-runtime client.
"""

from __future__ import annotations
import logging
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..models import CREATE_TASK_INTENT, IntentResult, Slots

logger = logging.getLogger(__name__)

INTENT_ALIASES = {"AddTask": CREATE_TASK_INTENT}

SLOT_FIELDS = {
    "TaskDescription": "description",
    "Category": "category",
    "Priority": "priority",
    "DueDate": "due_date",
}


def _slot_value(slots: dict[str, Any], name: str) -> Optional[str]:
    slot = slots.get(name) or {}
    value = (slot.get("value") or {}).get("interpretedValue")
    return value if value else None


def parse_lex_response(resp: Optional[dict]) -> Optional[IntentResult]:
    """Turn a recognize_text response into an IntentResult (None if empty)."""
    if not resp:
        return None

    interpretations = resp.get("interpretations") or []
    intent = (interpretations[0].get("intent") or {}) if interpretations else {}
    raw_name = intent.get("name")
    raw_slots = intent.get("slots") or {}

    slots = Slots(
        **{field: _slot_value(raw_slots, name) for name, field in SLOT_FIELDS.items()}
    )
    messages = [
        m.get("content") or "" for m in (resp.get("messages") or []) if isinstance(m, dict)
    ]
    return IntentResult(
        intent_name=INTENT_ALIASES.get(raw_name, raw_name),
        slots=slots,
        messages=messages,
    )


class LexConversationalEngine:
    def __init__(
        self,
        client,
        *,
        bot_id: str,
        bot_alias_id: str,
        locale: str = "en_US",
        session_id: str,
    ) -> None:
        self.client = client
        self.bot_id = bot_id
        self.bot_alias_id = bot_alias_id
        self.locale = locale
        self.session_id = session_id

    def recognize(self, text: str) -> Optional[IntentResult]:
        try:
            resp = self.client.recognize_text(
                botId=self.bot_id,
                botAliasId=self.bot_alias_id,
                localeId=self.locale,
                sessionId=self.session_id,
                text=text,
            )
        except (ClientError, BotoCoreError):
            logger.exception("Error communicating with Lex")
            return None
        return parse_lex_response(resp)
