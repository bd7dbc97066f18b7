# tests/test_transcribe.py

from __future__ import annotations

import io

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from core.errors import TranscriptionError
from core.models import JobStatus
from core.services.transcribe import (
    AwsTranscriptionService,
    S3ObjectStorage,
    normalize_status,
    parse_transcript,
    split_s3_uri,
)


class FakeS3Client:
    def __init__(self, *, error: ClientError | None = None) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.put_calls: list[dict] = []
        self.error = error

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.put_calls.append(kwargs)
        self.objects[(kwargs["Bucket"], kwargs["Key"])] = kwargs["Body"]
        return {}

    def get_object(self, *, Bucket, Key):
        if self.error is not None:
            raise self.error
        data = self.objects[(Bucket, Key)]
        return {"Body": StreamingBody(io.BytesIO(data), len(data))}


def _client_error(code: str, op: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("QUEUED", JobStatus.IN_PROGRESS),
        ("IN_PROGRESS", JobStatus.IN_PROGRESS),
        ("COMPLETED", JobStatus.COMPLETED),
        ("FAILED", JobStatus.FAILED),
        ("completed", JobStatus.COMPLETED),
        ("SOMETHING_NEW", JobStatus.UNKNOWN),
        (None, JobStatus.UNKNOWN),
    ],
)
def test_normalize_status(raw, expected) -> None:
    assert normalize_status(raw) == expected


def test_split_s3_uri() -> None:
    assert split_s3_uri("s3://bucket/a/b.json") == ("bucket", "a/b.json")
    with pytest.raises(ValueError):
        split_s3_uri("https://bucket/a")
    with pytest.raises(ValueError):
        split_s3_uri("s3://bucket")


def test_parse_transcript_reads_first_transcript() -> None:
    doc = b'{"results": {"transcripts": [{"transcript": " Buy milk "}, {"transcript": "x"}]}}'
    assert parse_transcript(doc) == "Buy milk"


@pytest.mark.parametrize("raw", [None, b"", b"not json", b"[]", b'{"results": {"transcripts": []}}'])
def test_parse_transcript_malformed_is_empty(raw) -> None:
    assert parse_transcript(raw) == ""


def test_s3_storage_put_and_get() -> None:
    client = FakeS3Client()
    storage = S3ObjectStorage(client)

    uri = storage.put("audio", "recordings/a.wav", b"RIFF", "audio/wav")

    assert uri == "s3://audio/recordings/a.wav"
    assert client.put_calls == [
        {"Bucket": "audio", "Key": "recordings/a.wav", "Body": b"RIFF", "ContentType": "audio/wav"}
    ]
    assert storage.get("audio", "recordings/a.wav") == b"RIFF"


def test_s3_storage_wraps_sdk_errors() -> None:
    storage = S3ObjectStorage(FakeS3Client(error=_client_error("AccessDenied", "PutObject")))
    with pytest.raises(TranscriptionError, match="AccessDenied"):
        storage.put("audio", "k", b"x", "audio/wav")
    with pytest.raises(TranscriptionError):
        storage.get("audio", "k")


@pytest.fixture()
def transcribe_client():
    return boto3.client("transcribe", region_name="us-east-1")


def test_start_job_parameters(transcribe_client) -> None:
    service = AwsTranscriptionService(transcribe_client, output_bucket="out")
    with Stubber(transcribe_client) as stub:
        stub.add_response(
            "start_transcription_job",
            {"TranscriptionJob": {"TranscriptionJobName": "job-1", "TranscriptionJobStatus": "QUEUED"}},
            expected_params={
                "TranscriptionJobName": "job-1",
                "LanguageCode": "en-US",
                "MediaFormat": "wav",
                "Media": {"MediaFileUri": "s3://audio/recordings/job-1.wav"},
                "OutputBucketName": "out",
            },
        )
        name = service.start_job(
            name="job-1",
            source_uri="s3://audio/recordings/job-1.wav",
            media_format="wav",
            language="en-US",
        )
        stub.assert_no_pending_responses()
    assert name == "job-1"


def test_get_job_maps_status_and_result_location(transcribe_client) -> None:
    service = AwsTranscriptionService(transcribe_client, output_bucket="out")
    with Stubber(transcribe_client) as stub:
        stub.add_response(
            "get_transcription_job",
            {
                "TranscriptionJob": {
                    "TranscriptionJobName": "job-1",
                    "TranscriptionJobStatus": "FAILED",
                    "FailureReason": "Unsupported audio",
                }
            },
            expected_params={"TranscriptionJobName": "job-1"},
        )
        job = service.get_job("job-1")

    assert job.status == JobStatus.FAILED
    assert job.raw_status == "FAILED"
    assert job.failure_reason == "Unsupported audio"
    assert job.result_location == "s3://out/job-1.json"


def test_get_job_wraps_sdk_errors(transcribe_client) -> None:
    service = AwsTranscriptionService(transcribe_client, output_bucket="out")
    with Stubber(transcribe_client) as stub:
        stub.add_client_error("get_transcription_job", service_error_code="LimitExceededException")
        with pytest.raises(TranscriptionError):
            service.get_job("job-1")
