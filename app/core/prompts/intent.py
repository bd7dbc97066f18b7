"""Intent classification prompts for the LLM-backed conversational engine."""

from __future__ import annotations
from datetime import date
from textwrap import dedent
from typing import Optional


def build_intent_system() -> str:
    return (
        "You are the intent recognizer of a to-do list assistant. "
        "You never chat freely; you classify one user message and extract slots.\n"
        'Known intents: "create-task" (the user wants to add a task or reminder).\n'
        "Anything else has no intent; then write a short, friendly reply that "
        "tells the user you can add tasks for them.\n"
        "Return ONLY the JSON object requested, with no commentary and no code fences."
    )


def intent_instruction(*, text: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return dedent(
        f"""
        Today is {today.isoformat()}.

        Classify the message below and return ONLY this JSON:
        {{
        "intent": "create-task" | null,
        "slots": {{
            "description": "<what to do, or null>",
            "category": "personal" | "work" | "shopping" | "other" | null,
            "priority": "low" | "medium" | "high" | null,
            "due_date": "<YYYY-MM-DD or null>"
        }},
        "reply": "<short reply when intent is null, else null>"
        }}

        Message:
        \"\"\"{text.strip()}\"\"\"
        """
    ).strip()
