"""
Purpose: Turn one finalized utterance into at most one task plus one bot reply.

Decision procedure:
- engine missing            -> "initializing" message
- engine failed / no result -> "trouble understanding" message
- intent == create-task     -> create task from slots (defaults applied),
                               confirm, or apologize if creation fails
- anything else             -> engine's fallback text, or "not sure" message

Every external failure is logged and turned into a chat message; nothing
propagates to the caller. No retries.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional

from .interfaces import ConversationalEngine
from .models import CREATE_TASK_INTENT, IntentResult, Message, Task
from .persistence.session_store import ChatSession
from .task_store import TaskStore

logger = logging.getLogger(__name__)

MSG_INITIALIZING = "Chat service is initializing. Please try again in a moment."
MSG_TROUBLE = "Sorry, I'm having trouble understanding. Could you try again?"
MSG_NOT_SURE = "I'm not sure how to help with that."
MSG_CREATE_FAILED = "Sorry, I couldn't add your task. Please try again."
MSG_TASK_ADDED = "I've added your task: {text}"


class IntentDispatcher:
    def __init__(
        self,
        engine: Optional[ConversationalEngine],
        task_store: TaskStore,
        session: ChatSession,
        *,
        on_task_created: Optional[Callable[[Task], None]] = None,
    ) -> None:
        self.engine = engine
        self.task_store = task_store
        self.session = session
        self.on_task_created = on_task_created

    def dispatch(self, text: str) -> Message:
        """Send `text` to the engine and append exactly one bot message."""
        if self.engine is None:
            return self.session.append_bot(MSG_INITIALIZING)

        try:
            result = self.engine.recognize(text)
        except Exception:
            logger.exception("Conversational engine raised")
            result = None

        if result is None:
            return self.session.append_bot(MSG_TROUBLE)

        if result.intent_name == CREATE_TASK_INTENT:
            return self._create_task(result)

        return self.session.append_bot(result.fallback_text or MSG_NOT_SURE)

    def _create_task(self, result: IntentResult) -> Message:
        fields = result.slots.to_task_fields()
        try:
            task = self.task_store.create(fields)
        except Exception:
            logger.exception("Creating task from intent failed")
            return self.session.append_bot(MSG_CREATE_FAILED)

        if self.on_task_created is not None:
            try:
                self.on_task_created(task)
            except Exception:
                logger.warning("on_task_created callback failed", exc_info=True)

        return self.session.append_bot(MSG_TASK_ADDED.format(text=fields["text"]))
