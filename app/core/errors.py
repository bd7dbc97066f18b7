"""
Error types raised at the service boundaries.

SDK-specific exceptions (botocore, httpx, openai) never leave the adapter that
called the SDK; they are wrapped in one of these so the controller and UI only
have to know about this module.
"""

from __future__ import annotations


class TaskbotError(RuntimeError):
    """Base class for all application errors."""


class AuthError(TaskbotError):
    """Sign-in or credential exchange failed."""


class TaskApiError(TaskbotError):
    """Remote task persistence call failed (transport, auth or GraphQL error)."""


class TaskConflictError(TaskApiError):
    """Optimistic-concurrency check rejected an update or delete."""


class AudioDeviceError(TaskbotError):
    """Microphone denied or unavailable."""


class TranscriptionError(TaskbotError):
    """Upload, job submission or status query failed."""
