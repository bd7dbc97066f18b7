"""
Purpose: OpenAI chat completions behind the LLMClient protocol.
Used only by the LLM-backed intent engine (TASKBOT_NLU_BACKEND=openai).

One request per chat() call: the SDK's own retries are switched off and SDK
errors propagate unchanged; the intent engine turns them into "no result".

Testing: pass a stub `client` exposing chat.completions.create.
"""

from __future__ import annotations
import logging
from typing import Any, Optional

from openai import OpenAI

from ..models import LLMSettings

logger = logging.getLogger(__name__)


def _usage_meta(completion: Any) -> dict[str, Any]:
    usage = getattr(completion, "usage", None)
    return {
        "model": getattr(completion, "model", ""),
        "tokens_in": getattr(usage, "prompt_tokens", 0) if usage else 0,
        "tokens_out": getattr(usage, "completion_tokens", 0) if usage else 0,
    }


class OpenAILLMClient:
    def __init__(self, api_key: str, *, client: Optional[OpenAI] = None):
        if not api_key and client is None:
            raise RuntimeError("Missing OPENAI_API_KEY")
        try:
            self.client = client or OpenAI(api_key=api_key, max_retries=0)
        except Exception as e:
            raise RuntimeError(f"Failed to initialize OpenAI client: {e}") from e

    def chat(
        self,
        messages: list[dict[str, str]],
        settings: LLMSettings,
        system: Optional[str] = None,
    ) -> tuple[str, dict]:
        payload = ([{"role": "system", "content": system}] if system else []) + list(messages)

        kwargs: dict[str, Any] = {
            "model": settings.model,
            "messages": payload,
            "temperature": settings.temperature,
            "top_p": settings.top_p,
            "max_tokens": settings.max_tokens,
        }
        if settings.response_format:
            kwargs["response_format"] = settings.response_format

        completion = self.client.chat.completions.create(**kwargs)
        text = completion.choices[0].message.content or ""
        logger.debug("OpenAI reply from %s", getattr(completion, "model", settings.model))
        return text, _usage_meta(completion)
