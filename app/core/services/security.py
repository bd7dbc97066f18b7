"""
Purpose: Guardrails for inputs and content.
Content: early, predictable failures; prevent empty or oversized chat
messages and task descriptions before they reach an external service.
"""

MAX_INPUT_CHARS = 2000
MAX_TASK_CHARS = 500


class DefaultSecurity:
    def validate_user_input(self, text: str) -> None:
        if not (text or "").strip():
            raise ValueError("Please enter a non-empty message.")
        if len(text) > MAX_INPUT_CHARS:
            raise ValueError("Your message is too long. Please shorten it.")

    def validate_task_text(self, text: str) -> str:
        clean = self.sanitize_for_prompt(text)
        if not clean:
            raise ValueError("Task description is required.")
        if len(clean) > MAX_TASK_CHARS:
            raise ValueError(
                f"Task description is too long (max {MAX_TASK_CHARS} characters)."
            )
        return clean

    def sanitize_for_prompt(self, text: str) -> str:
        return (text or "").replace("\x00", "").strip()
