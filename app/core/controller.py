"""
Purpose: The single orchestration point for a session. Owns the task store,
chat log, intent dispatcher and voice pipeline.
It centralizes "one-turn" logic and session lifecycle (create, send, close).
Prevents UI from knowing how engines/SDKs/pipelines work.

Key responsibilities:
- send_text(): validate input, log the user message, dispatch it.
- send_voice(): run the voice pipeline, dispatch the transcript or log a
  failure/timeout message.
- close(): tear down the session (chat log cleared, HTTP clients closed).

Testing: Pure unit tests with fakes: fake engine, fake repository, fake
storage/transcriber. Verify message order and error handling.
"""

from __future__ import annotations
import logging
from typing import Callable, Optional

from .dispatcher import IntentDispatcher
from .interfaces import ConversationalEngine
from .models import Message, PipelineState, Task
from .persistence.session_store import ChatSession
from .services.security import DefaultSecurity
from .task_store import TaskStore
from .voice_pipeline import VoicePipeline

logger = logging.getLogger(__name__)

MSG_VOICE_UNAVAILABLE = "Voice input is not configured."
MSG_VOICE_TIMEOUT = "Sorry, transcription took too long. Please try again."
MSG_VOICE_FAILED = "Sorry, I couldn't transcribe your recording: {reason}"
MSG_VOICE_EMPTY = "I couldn't hear anything in that recording. Please try again."


class TaskAssistantController:
    def __init__(
        self,
        task_store: TaskStore,
        engine: Optional[ConversationalEngine],
        *,
        pipeline: Optional[VoicePipeline] = None,
        on_task_created: Optional[Callable[[Task], None]] = None,
        closers: Optional[list[Callable[[], None]]] = None,
    ):
        self.tasks: TaskStore = task_store
        self.engine = engine
        self.pipeline = pipeline
        self.security = DefaultSecurity()
        self.session = ChatSession()
        self.dispatcher = IntentDispatcher(
            engine, task_store, self.session, on_task_created=on_task_created
        )
        self._closers = list(closers or [])
        self.closed = False

    def is_ready(self) -> bool:
        """True if the controller can chat (has a conversational engine)."""
        return self.engine is not None and not self.closed

    @property
    def voice_enabled(self) -> bool:
        return self.pipeline is not None

    def history(self) -> list[Message]:
        """Get the current full chat log."""
        return self.session.messages()

    def send_text(self, text: str) -> Message:
        """
        Handles a normal chat turn.
        Validates input (raises ValueError for empty/oversized text, nothing
        is logged in that case), appends the user message, dispatches it and
        returns the bot reply.
        """
        self.security.validate_user_input(text)
        utterance = self.security.sanitize_for_prompt(text)
        self.session.append_user(utterance)
        return self.dispatcher.dispatch(utterance)

    def send_voice(self, wav_bytes: Optional[bytes]) -> Message:
        """
        Transcribe a finished recording and feed the transcript to the
        dispatcher. Failures end up as bot messages, never as exceptions.
        """
        if self.pipeline is None:
            return self.session.append_bot(MSG_VOICE_UNAVAILABLE)

        result = self.pipeline.transcribe_recording(wav_bytes)

        if result.state == PipelineState.COMPLETED:
            transcript = (result.transcript or "").strip()
            if not transcript:
                return self.session.append_bot(MSG_VOICE_EMPTY)
            self.session.append_user(transcript)
            return self.dispatcher.dispatch(transcript)

        if result.state == PipelineState.TIMED_OUT:
            return self.session.append_bot(MSG_VOICE_TIMEOUT)

        if result.device_error:
            return self.session.append_bot(result.reason)
        return self.session.append_bot(MSG_VOICE_FAILED.format(reason=result.reason))

    def reset_chat(self) -> None:
        """Start a fresh chat log; tasks are untouched."""
        self.session = ChatSession()
        self.dispatcher.session = self.session

    def close(self) -> None:
        if self.closed:
            return
        self.session.clear()
        for closer in self._closers:
            try:
                closer()
            except Exception:
                logger.warning("Error while closing session resource", exc_info=True)
        self.closed = True
        logger.info("Assistant session closed")
