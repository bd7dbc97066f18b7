"""
Canonical data shapes, shared truth for typing/validation between layers.

Typical contents:
- Task (the to-do record) and TaskFilter (search/category/priority view).
- Message (chat log entry).
- Slots / IntentResult (typed output of a conversational engine).
- TranscriptionJob / PipelineResult (voice pipeline bookkeeping).

Testing: Trivial; mostly types. Defaults and coercions are exercised through
test_task_store.py.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Any
from enum import Enum
from datetime import datetime


ALL = "all"
CREATE_TASK_INTENT = "create-task"


class Category(str, Enum):
    PERSONAL = "personal"
    WORK = "work"
    SHOPPING = "shopping"
    OTHER = "other"

    @classmethod
    def coerce(cls, raw: Any) -> "Category":
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return cls.PERSONAL


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, raw: Any) -> "Priority":
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return cls.MEDIUM


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


class JobStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"


class PipelineState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    UPLOADING = "uploading"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (
            PipelineState.COMPLETED,
            PipelineState.FAILED,
            PipelineState.TIMED_OUT,
        )


class StorageBackend(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class NluBackend(str, Enum):
    LEX = "lex"
    OPENAI = "openai"


@dataclass
class Task:
    id: str | int
    text: str
    category: Category = Category.PERSONAL
    priority: Priority = Priority.MEDIUM
    due_date: Optional[str] = None
    completed: bool = False
    owner: Optional[str] = None
    version: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """GraphQL / local-storage shape (camelCase keys)."""
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "category": self.category.value,
            "priority": self.priority.value,
            "dueDate": self.due_date,
            "completed": self.completed,
        }
        if self.owner is not None:
            data["owner"] = self.owner
        if self.version is not None:
            data["_version"] = self.version
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        version = data.get("_version")
        return cls(
            id=data.get("id"),
            text=str(data.get("text") or ""),
            category=Category.coerce(data.get("category")),
            priority=Priority.coerce(data.get("priority")),
            due_date=data.get("dueDate") or None,
            completed=bool(data.get("completed", False)),
            owner=data.get("owner"),
            version=int(version) if version is not None else None,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass(frozen=True)
class TaskFilter:
    search: str = ""
    category: str = ALL
    priority: str = ALL

    def matches(self, task: Task) -> bool:
        needle = (self.search or "").lower()
        if needle not in (task.text or "").lower():
            return False
        if self.category != ALL and task.category.value != self.category:
            return False
        if self.priority != ALL and task.priority.value != self.priority:
            return False
        return True


@dataclass(frozen=True)
class Message:
    text: str
    sender: Sender
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class Slots:
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None

    def to_task_fields(self) -> dict[str, Any]:
        """Apply the default-substitution rules for a create-task intent."""
        return {
            "text": self.description or "",
            "category": (self.category or "").lower() or Category.PERSONAL.value,
            "priority": (self.priority or "").lower() or Priority.MEDIUM.value,
            "due_date": self.due_date or None,
        }


@dataclass
class IntentResult:
    intent_name: Optional[str] = None
    slots: Slots = field(default_factory=Slots)
    messages: list[str] = field(default_factory=list)

    @property
    def fallback_text(self) -> Optional[str]:
        if self.messages and self.messages[0]:
            return self.messages[0]
        return None


@dataclass
class TranscriptionJob:
    name: str
    status: JobStatus
    raw_status: str = ""
    failure_reason: Optional[str] = None
    result_location: Optional[str] = None


@dataclass
class PipelineResult:
    state: PipelineState
    transcript: str = ""
    reason: str = ""
    polls: int = 0
    job_name: Optional[str] = None
    device_error: bool = False


@dataclass
class LLMSettings:
    model: str
    temperature: float = 0.0
    top_p: float = 1.0
    max_tokens: int = 300
    response_format: Optional[dict] = None
