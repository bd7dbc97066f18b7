"""
Purpose: OpenAI-backed conversational engine (alternative to Lex).
Asks the model for a JSON intent/slots object and maps it into the same
IntentResult the Lex engine produces, so the dispatcher cannot tell them apart.

Failure modes:
- SDK error -> None (dispatcher answers "trouble understanding").
- Unparseable output -> IntentResult with no intent and no fallback text.
"""

from __future__ import annotations
import logging
from typing import Optional

from openai import OpenAIError

from ..interfaces import LLMClient
from ..models import CREATE_TASK_INTENT, IntentResult, LLMSettings, Slots
from ..prompts import DefaultPromptFactory
from ..utils.llm_json import extract_json

logger = logging.getLogger(__name__)

_KNOWN_INTENTS = {CREATE_TASK_INTENT}


def _opt_str(value) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    if not s or s.lower() in {"null", "none"}:
        return None
    return s


def parse_intent_json(text: str) -> IntentResult:
    obj = extract_json(text)
    if not isinstance(obj, dict):
        return IntentResult()

    intent = _opt_str(obj.get("intent"))
    if intent not in _KNOWN_INTENTS:
        intent = None

    raw_slots = obj.get("slots") if isinstance(obj.get("slots"), dict) else {}
    slots = Slots(
        description=_opt_str(raw_slots.get("description")),
        category=_opt_str(raw_slots.get("category")),
        priority=_opt_str(raw_slots.get("priority")),
        due_date=_opt_str(raw_slots.get("due_date")),
    )
    reply = _opt_str(obj.get("reply"))
    return IntentResult(
        intent_name=intent, slots=slots, messages=[reply] if reply else []
    )


class OpenAIIntentEngine:
    def __init__(self, llm: LLMClient, *, model: str = "gpt-4o-mini") -> None:
        self.llm = llm
        self.prompts = DefaultPromptFactory()
        self.settings = LLMSettings(
            model=model,
            temperature=0.0,
            top_p=1.0,
            max_tokens=300,
            response_format={"type": "json_object"},
        )
        self.tokens_in: int = 0
        self.tokens_out: int = 0

    def recognize(self, text: str) -> Optional[IntentResult]:
        messages = [
            {"role": "system", "content": self.prompts.build_intent_system()},
            {"role": "user", "content": self.prompts.intent_instruction(text=text)},
        ]
        try:
            reply, meta = self.llm.chat(messages, self.settings)
        except (OpenAIError, RuntimeError):
            logger.exception("Error communicating with the LLM intent engine")
            return None

        self.tokens_in += int(meta.get("tokens_in", 0))
        self.tokens_out += int(meta.get("tokens_out", 0))
        if not reply:
            return None
        return parse_intent_json(reply)
