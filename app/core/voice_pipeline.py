"""
Purpose: Voice capture -> upload -> transcription job -> polling, as an
explicit state machine.

States:
    idle -> recording -> uploading -> submitted -> polling -> completed
                                                           -> failed
                                                           -> timed_out
Any step before polling may also go straight to failed (microphone denied,
upload or submission error). Terminal states go back to idle via reset().

Polling contract:
- one status query per tick, `poll_interval` seconds apart (injected sleep)
- at most `max_attempts` queries; the last in-progress answer ends in
  timed_out without another query
- completed -> fetch the result document and extract the transcript
- failed -> carry the service's failure reason, never fetch the result
- any other status, or any exception inside a tick -> failed; nothing
  propagates past poll()

Testing: tests/test_voice_pipeline.py drives it with a fake transcription
service (scripted status sequence), fake object storage and a fake sleep.
"""

from __future__ import annotations
import logging
import time
import uuid
from typing import Callable, Iterable, Optional

from .errors import AudioDeviceError
from .interfaces import AudioSource, ObjectStorage, TranscriptionService
from .models import JobStatus, PipelineResult, PipelineState
from .services.transcribe import parse_transcript, split_s3_uri

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5.0
MAX_POLL_ATTEMPTS = 60

_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.RECORDING, PipelineState.FAILED},
    PipelineState.RECORDING: {PipelineState.UPLOADING, PipelineState.FAILED},
    PipelineState.UPLOADING: {PipelineState.SUBMITTED, PipelineState.FAILED},
    PipelineState.SUBMITTED: {PipelineState.POLLING, PipelineState.FAILED},
    PipelineState.POLLING: {
        PipelineState.COMPLETED,
        PipelineState.FAILED,
        PipelineState.TIMED_OUT,
    },
    PipelineState.COMPLETED: {PipelineState.IDLE},
    PipelineState.FAILED: {PipelineState.IDLE},
    PipelineState.TIMED_OUT: {PipelineState.IDLE},
}


def _default_job_name() -> str:
    return f"taskbot-{uuid.uuid4().hex}"


class RecordedAudio:
    """
    AudioSource for audio the browser already captured (the recorder widget
    owns the microphone). No bytes means the browser never got access.
    """

    def __init__(self, data: Optional[bytes]) -> None:
        self.data = data or b""

    def open(self) -> None:
        if not self.data:
            raise AudioDeviceError("no audio captured; check microphone permissions")

    def close(self) -> None:
        pass


class VoicePipeline:
    def __init__(
        self,
        storage: ObjectStorage,
        transcriber: TranscriptionService,
        *,
        bucket: str,
        language: str = "en-US",
        media_format: str = "wav",
        content_type: str = "audio/wav",
        key_prefix: str = "recordings/",
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
        job_name_factory: Callable[[], str] = _default_job_name,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.storage = storage
        self.transcriber = transcriber
        self.bucket = bucket
        self.language = language
        self.media_format = media_format
        self.content_type = content_type
        self.key_prefix = key_prefix
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._job_name_factory = job_name_factory

        self.state = PipelineState.IDLE
        self.transitions: list[tuple[PipelineState, PipelineState]] = []
        self.result: Optional[PipelineResult] = None
        self._source: Optional[AudioSource] = None
        self._segments: list[bytes] = []
        self._job_name: Optional[str] = None

    # ---------------------------
    # State bookkeeping
    # ---------------------------
    def _transition(self, target: PipelineState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid voice pipeline transition {self.state.value} -> {target.value}"
            )
        logger.debug("Voice pipeline %s -> %s", self.state.value, target.value)
        self.transitions.append((self.state, target))
        self.state = target

    def _finish(
        self,
        state: PipelineState,
        *,
        transcript: str = "",
        reason: str = "",
        polls: int = 0,
        device_error: bool = False,
    ) -> PipelineResult:
        self._transition(state)
        self.result = PipelineResult(
            state=state,
            transcript=transcript,
            reason=reason,
            polls=polls,
            job_name=self._job_name,
            device_error=device_error,
        )
        if state == PipelineState.COMPLETED:
            logger.info("Transcription %s completed after %d polls", self._job_name, polls)
        else:
            logger.warning(
                "Voice pipeline ended in %s (job=%s, polls=%d): %s",
                state.value,
                self._job_name,
                polls,
                reason,
            )
        return self.result

    def _fail(
        self, reason: str, polls: int = 0, *, device_error: bool = False
    ) -> PipelineResult:
        self._close_source()
        return self._finish(
            PipelineState.FAILED, reason=reason, polls=polls, device_error=device_error
        )

    def _close_source(self) -> None:
        if self._source is not None:
            try:
                self._source.close()
            except Exception:
                logger.warning("Audio source did not close cleanly", exc_info=True)
            self._source = None

    def reset(self) -> None:
        """Return to idle after a terminal state (or no-op when already idle)."""
        if self.state != PipelineState.IDLE:
            self._transition(PipelineState.IDLE)
        self._segments = []
        self._job_name = None
        self.result = None

    # ---------------------------
    # Steps
    # ---------------------------
    def start_recording(self, source: AudioSource) -> PipelineState:
        if self.state != PipelineState.IDLE:
            raise RuntimeError(f"Cannot start recording while {self.state.value}")
        try:
            source.open()
        except AudioDeviceError as e:
            self._fail(f"Microphone unavailable: {e}", device_error=True)
            return self.state
        self._source = source
        self._segments = []
        self._transition(PipelineState.RECORDING)
        return self.state

    def add_segment(self, chunk: bytes) -> None:
        if self.state != PipelineState.RECORDING:
            raise RuntimeError("Not recording")
        if chunk:
            self._segments.append(bytes(chunk))

    def stop_recording(self) -> bytes:
        if self.state != PipelineState.RECORDING:
            raise RuntimeError("Not recording")
        self._close_source()
        payload = b"".join(self._segments)
        self._segments = []
        self._transition(PipelineState.UPLOADING)
        return payload

    def upload(self, payload: bytes) -> Optional[str]:
        if self.state != PipelineState.UPLOADING:
            raise RuntimeError(f"Cannot upload while {self.state.value}")
        if not payload:
            self._fail("No audio was recorded.")
            return None
        self._job_name = self._job_name_factory()
        key = f"{self.key_prefix}{self._job_name}.{self.media_format}"
        try:
            return self.storage.put(self.bucket, key, payload, self.content_type)
        except Exception as e:
            logger.exception("Audio upload failed")
            self._fail(str(e))
            return None

    def submit(self, location: str) -> Optional[str]:
        if self.state != PipelineState.UPLOADING:
            raise RuntimeError(f"Cannot submit while {self.state.value}")
        name = self._job_name or self._job_name_factory()
        self._job_name = name
        try:
            self.transcriber.start_job(
                name=name,
                source_uri=location,
                media_format=self.media_format,
                language=self.language,
            )
        except Exception as e:
            logger.exception("Transcription job submission failed")
            self._fail(str(e))
            return None
        self._transition(PipelineState.SUBMITTED)
        return name

    def poll(self, job_name: Optional[str] = None) -> PipelineResult:
        if self.state != PipelineState.SUBMITTED:
            raise RuntimeError(f"Cannot poll while {self.state.value}")
        name = job_name or self._job_name
        self._job_name = name
        self._transition(PipelineState.POLLING)

        remaining = self.max_attempts
        polls = 0
        while True:
            polls += 1
            try:
                job = self.transcriber.get_job(name)
            except Exception as e:
                logger.exception("Status query for %s failed", name)
                return self._finish(PipelineState.FAILED, reason=str(e), polls=polls)

            if job.status == JobStatus.COMPLETED:
                try:
                    transcript = self._fetch_transcript(job.result_location)
                except Exception as e:
                    logger.exception("Fetching transcript for %s failed", name)
                    return self._finish(PipelineState.FAILED, reason=str(e), polls=polls)
                return self._finish(
                    PipelineState.COMPLETED, transcript=transcript, polls=polls
                )

            if job.status == JobStatus.FAILED:
                return self._finish(
                    PipelineState.FAILED,
                    reason=job.failure_reason or "Transcription failed",
                    polls=polls,
                )

            if job.status != JobStatus.IN_PROGRESS:
                return self._finish(
                    PipelineState.FAILED,
                    reason=f"Unknown transcription status: {job.raw_status or job.status.value}",
                    polls=polls,
                )

            remaining -= 1
            if remaining <= 0:
                return self._finish(
                    PipelineState.TIMED_OUT,
                    reason=f"Transcription still running after {polls} checks",
                    polls=polls,
                )
            self._sleep(self.poll_interval)

    def _fetch_transcript(self, location: Optional[str]) -> str:
        bucket, key = split_s3_uri(location or "")
        return parse_transcript(self.storage.get(bucket, key))

    # ---------------------------
    # Whole flows
    # ---------------------------
    def run(self, source: AudioSource, segments: Iterable[bytes]) -> PipelineResult:
        """Record the given segments and carry them through to a terminal state."""
        self.reset()
        if self.start_recording(source) != PipelineState.RECORDING:
            return self.result
        for chunk in segments:
            self.add_segment(chunk)
        payload = self.stop_recording()

        location = self.upload(payload)
        if location is None:
            return self.result
        name = self.submit(location)
        if name is None:
            return self.result
        return self.poll(name)

    def transcribe_recording(self, wav_bytes: Optional[bytes]) -> PipelineResult:
        """Convenience for a recording the browser already finished."""
        return self.run(RecordedAudio(wav_bytes), [wav_bytes or b""])
