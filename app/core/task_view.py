"""
Purpose: Presentation logic for the task list that does not need Streamlit.
Badge colours, due-date labels, and the add/edit form state, so the UI
layer only lays out widgets.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from .models import ALL, Category, Priority, Task, TaskFilter
from .services.security import DefaultSecurity
from .task_store import TaskStore

CATEGORY_OPTIONS = [ALL] + [c.value for c in Category]
PRIORITY_OPTIONS = [ALL] + [p.value for p in Priority]

# (background, foreground)
_PRIORITY_COLORS = {
    Priority.LOW: ("#bbf7d0", "#166534"),
    Priority.MEDIUM: ("#fef08a", "#854d0e"),
    Priority.HIGH: ("#fecaca", "#991b1b"),
}
_CATEGORY_COLORS = {
    Category.PERSONAL: ("#bfdbfe", "#1e40af"),
    Category.WORK: ("#e9d5ff", "#6b21a8"),
    Category.SHOPPING: ("#fbcfe8", "#9d174d"),
    Category.OTHER: ("#c7d2fe", "#3730a3"),
}
_DEFAULT_COLORS = ("#e5e7eb", "#1f2937")

NO_DUE_DATE = "No due date"


def option_label(value: str, kind: str) -> str:
    if value == ALL:
        return f"All {kind}"
    return value.capitalize()


def _badge(label: str, colors: tuple[str, str]) -> str:
    bg, fg = colors
    return (
        f'<span style="background:{bg};color:{fg};padding:2px 8px;'
        f'border-radius:9999px;font-size:0.75rem;font-weight:600">{label}</span>'
    )


def category_badge(category: Category) -> str:
    return _badge(category.value, _CATEGORY_COLORS.get(category, _DEFAULT_COLORS))


def priority_badge(priority: Priority) -> str:
    return _badge(priority.value, _PRIORITY_COLORS.get(priority, _DEFAULT_COLORS))


def due_label(task: Task) -> str:
    return task.due_date or NO_DUE_DATE


def build_filter(search: str, category: str, priority: str) -> TaskFilter:
    return TaskFilter(
        search=(search or "").strip(),
        category=category if category in CATEGORY_OPTIONS else ALL,
        priority=priority if priority in PRIORITY_OPTIONS else ALL,
    )


@dataclass
class TaskForm:
    text: str = ""
    category: str = Category.PERSONAL.value
    due_date: Optional[date] = None
    priority: str = Priority.MEDIUM.value
    editing_id: Any = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    @classmethod
    def from_task(cls, task: Task) -> "TaskForm":
        due = None
        if task.due_date:
            try:
                due = date.fromisoformat(task.due_date[:10])
            except ValueError:
                due = None
        return cls(
            text=task.text,
            category=task.category.value,
            due_date=due,
            priority=task.priority.value,
            editing_id=task.id,
        )

    def to_fields(self) -> dict[str, Any]:
        return {
            "text": DefaultSecurity().validate_task_text(self.text),
            "category": self.category,
            "priority": self.priority,
            "due_date": self.due_date.isoformat() if self.due_date else None,
        }


def submit_form(store: TaskStore, form: TaskForm) -> Task:
    """Create a new task, or replace the edited one keeping its completion flag."""
    fields = form.to_fields()
    if form.is_editing:
        return store.update(form.editing_id, fields)
    return store.create(fields)
