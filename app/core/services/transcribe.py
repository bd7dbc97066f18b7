"""
Purpose: speech-to-text integration through Amazon Transcribe.
Audio goes to S3, a batch transcription job reads it from there and writes
its JSON result back to S3.

What is inside:
- S3ObjectStorage: put/get bytes by (bucket, key).
- AwsTranscriptionService: start_job / get_job with status normalization.
- parse_transcript: pull the primary transcript out of the result JSON.
- split_s3_uri: "s3://bucket/key" -> (bucket, key).

SDK errors are wrapped in TranscriptionError; the voice pipeline decides what
that means for the user.
"""

from __future__ import annotations
import json
import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import TranscriptionError
from ..models import JobStatus, TranscriptionJob

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    "QUEUED": JobStatus.IN_PROGRESS,
    "IN_PROGRESS": JobStatus.IN_PROGRESS,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
}


def normalize_status(raw: Optional[str]) -> JobStatus:
    return _STATUS_MAP.get((raw or "").strip().upper(), JobStatus.UNKNOWN)


def split_s3_uri(uri: str) -> tuple[str, str]:
    if not uri or not uri.startswith("s3://"):
        raise ValueError(f"Not an s3:// location: {uri!r}")
    bucket, _, key = uri[len("s3://"):].partition("/")
    if not bucket or not key:
        raise ValueError(f"Incomplete s3:// location: {uri!r}")
    return bucket, key


def parse_transcript(raw: bytes | str | None) -> str:
    """
    Return results.transcripts[0].transcript, or "" when the document is
    malformed or empty.
    """
    if not raw:
        return ""
    try:
        doc = json.loads(raw)
        return (doc["results"]["transcripts"][0]["transcript"] or "").strip()
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.warning("Malformed transcript document: %s", e)
        return ""


class S3ObjectStorage:
    def __init__(self, client) -> None:
        self.client = client

    def put(self, container: str, key: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=container, Key=key, Body=data, ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception("Upload to s3://%s/%s failed", container, key)
            raise TranscriptionError(f"Upload failed: {e}") from e
        return f"s3://{container}/{key}"

    def get(self, container: str, key: str) -> bytes:
        try:
            resp = self.client.get_object(Bucket=container, Key=key)
            return resp["Body"].read()
        except (ClientError, BotoCoreError) as e:
            logger.exception("Download of s3://%s/%s failed", container, key)
            raise TranscriptionError(f"Could not read transcript: {e}") from e


class AwsTranscriptionService:
    def __init__(self, client, *, output_bucket: str) -> None:
        self.client = client
        self.output_bucket = output_bucket

    def start_job(
        self, *, name: str, source_uri: str, media_format: str, language: str
    ) -> str:
        try:
            self.client.start_transcription_job(
                TranscriptionJobName=name,
                LanguageCode=language,
                MediaFormat=media_format,
                Media={"MediaFileUri": source_uri},
                OutputBucketName=self.output_bucket,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception("Could not start transcription job %s", name)
            raise TranscriptionError(f"Could not start transcription: {e}") from e
        logger.info("Started transcription job %s for %s", name, source_uri)
        return name

    def get_job(self, name: str) -> TranscriptionJob:
        try:
            resp = self.client.get_transcription_job(TranscriptionJobName=name)
        except (ClientError, BotoCoreError) as e:
            raise TranscriptionError(f"Could not query transcription job: {e}") from e

        job = resp.get("TranscriptionJob") or {}
        raw = job.get("TranscriptionJobStatus") or ""
        return TranscriptionJob(
            name=name,
            status=normalize_status(raw),
            raw_status=raw,
            failure_reason=job.get("FailureReason"),
            result_location=f"s3://{self.output_bucket}/{name}.json",
        )
