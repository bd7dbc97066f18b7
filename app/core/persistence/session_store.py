"""
Purpose: Chat transcript storage for one assistant session (in-memory).
Why: The dispatcher and the UI share one ordered log; nothing is persisted
once the session closes.

What is inside:
ChatSession with append/messages/clear. Entries are never mutated or removed
individually; clear() only runs when the session is torn down.

Testing:
In-memory: simple state tests.
"""

from __future__ import annotations
from datetime import datetime
from typing import Callable, Optional

from core.models import Message, Sender


class ChatSession:
    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._messages: list[Message] = []
        self._clock = clock or datetime.now

    def append(self, text: str, sender: Sender) -> Message:
        msg = Message(text=text, sender=Sender(sender), timestamp=self._clock())
        self._messages.append(msg)
        return msg

    def append_user(self, text: str) -> Message:
        return self.append(text, Sender.USER)

    def append_bot(self, text: str) -> Message:
        return self.append(text, Sender.BOT)

    def messages(self) -> list[Message]:
        return self._messages[:]

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def clear(self) -> None:
        self._messages = []
