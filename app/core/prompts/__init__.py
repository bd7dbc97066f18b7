"""Facade over the prompt modules, one method per prompt."""

from __future__ import annotations
from datetime import date
from typing import Optional

from . import intent as _intent


class DefaultPromptFactory:
    # INTENT RECOGNITION
    def build_intent_system(self) -> str:
        return _intent.build_intent_system()

    def intent_instruction(self, *, text: str, today: Optional[date] = None) -> str:
        return _intent.intent_instruction(text=text, today=today)
