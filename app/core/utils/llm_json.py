"""Utilities for pulling a JSON object out of a model reply."""

from __future__ import annotations
import json
import re
from typing import Any

_OBJECT_BLOCK = re.compile(r"\{.*\}", re.DOTALL)
_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def _strip_code_fences(text: str) -> str:
    """Remove surrounding ```...``` fences (with or without 'json') if present."""
    t = text.strip()
    if t.startswith("```") and t.endswith("```"):
        t = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", t))
    return t.strip()


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def extract_json(text: str) -> dict[str, Any]:
    """
    Parse the first JSON object in a model reply.
    Handles code fences and leading/trailing prose; anything that is not an
    object (arrays, scalars, garbage) comes back as {}.
    """
    if not text:
        return {}
    t = _strip_code_fences(text)

    data = _loads(t)
    if data is None:
        m = _OBJECT_BLOCK.search(t)
        data = _loads(m.group(0)) if m else None
    return data if isinstance(data, dict) else {}
