"""
Composition root:
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (local or AppSync tasks, Lex or OpenAI
  engine, S3 + Transcribe voice pipeline) into a TaskAssistantController.

Pieces that are not configured are left out rather than failing the whole
app: no bot ids -> no engine (the chat answers "initializing"), no audio
bucket -> no voice pipeline.
"""

from __future__ import annotations
import logging
import uuid
from typing import Callable, Optional

from .config import Settings, get_settings
from .controller import TaskAssistantController
from .errors import AuthError
from .graphql import GraphQLClient
from .interfaces import ConversationalEngine
from .models import NluBackend, StorageBackend
from .persistence.local_store import JsonFileStorage, LocalTaskRepository
from .persistence.remote_store import AppSyncTaskRepository
from .services.auth import AuthSession, CognitoAuthenticator
from .services.intent_openai import OpenAIIntentEngine
from .services.lex import LexConversationalEngine
from .services.llm_openai import OpenAILLMClient
from .services.transcribe import AwsTranscriptionService, S3ObjectStorage
from .task_store import TaskStore
from .voice_pipeline import VoicePipeline

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.local_store_path.parent.mkdir(parents=True, exist_ok=True)


def build_authenticator(settings: Settings) -> Optional[CognitoAuthenticator]:
    if not (
        settings.user_pool_id
        and settings.user_pool_client_id
        and settings.identity_pool_id
    ):
        return None
    return CognitoAuthenticator(
        region=settings.aws_region,
        user_pool_id=settings.user_pool_id,
        client_id=settings.user_pool_client_id,
        identity_pool_id=settings.identity_pool_id,
    )


def build_task_store(
    settings: Settings,
    *,
    authenticator: Optional[CognitoAuthenticator] = None,
    closers: Optional[list[Callable[[], None]]] = None,
) -> TaskStore:
    if settings.storage_backend == StorageBackend.REMOTE:
        if authenticator is None or authenticator.session is None:
            raise AuthError("Sign in to use the remote task list")
        client = GraphQLClient(
            settings.graphql_url,
            authenticator.id_token,
            timeout=settings.http_timeout,
        )
        if closers is not None:
            closers.append(client.close)
        return TaskStore(AppSyncTaskRepository(client), assign_ids=False)

    _ensure_local_dirs(settings)
    storage = JsonFileStorage(settings.local_store_path)
    return TaskStore(LocalTaskRepository(storage))


def build_engine(settings: Settings, aws) -> Optional[ConversationalEngine]:
    if settings.nlu_backend == NluBackend.OPENAI:
        if not settings.openai_api_key:
            logger.warning("NLU backend is openai but no API key is configured")
            return None
        llm = OpenAILLMClient(api_key=settings.openai_api_key)
        return OpenAIIntentEngine(llm, model=settings.openai_model)

    if not (settings.lex_bot_id and settings.lex_bot_alias_id):
        logger.warning("Lex bot id / alias id not configured; chat disabled")
        return None
    return LexConversationalEngine(
        aws.client("lexv2-runtime"),
        bot_id=settings.lex_bot_id,
        bot_alias_id=settings.lex_bot_alias_id,
        locale=settings.lex_locale,
        session_id=settings.lex_session_id or uuid.uuid4().hex,
    )


def build_pipeline(settings: Settings, aws) -> Optional[VoicePipeline]:
    if not settings.voice_enabled:
        return None
    return VoicePipeline(
        S3ObjectStorage(aws.client("s3")),
        AwsTranscriptionService(
            aws.client("transcribe"), output_bucket=settings.audio_bucket
        ),
        bucket=settings.audio_bucket,
        language=settings.transcribe_language,
        media_format=settings.transcribe_media_format,
        content_type=f"audio/{settings.transcribe_media_format}",
        poll_interval=settings.poll_interval_seconds,
        max_attempts=settings.poll_max_attempts,
    )


def create_controller(
    settings: Optional[Settings] = None,
    *,
    authenticator: Optional[CognitoAuthenticator] = None,
) -> TaskAssistantController:
    """
    Build a ready-to-use controller. Credentials come from the signed-in
    Cognito session when there is one, else from the default AWS chain.
    """
    if settings is None:
        settings = get_settings()

    if authenticator is not None and authenticator.session is not None:
        aws = authenticator.boto3_session()
    else:
        aws = AuthSession.from_default_chain(settings.aws_region).boto3_session()

    closers: list[Callable[[], None]] = []
    task_store = build_task_store(settings, authenticator=authenticator, closers=closers)
    engine = build_engine(settings, aws)
    pipeline = build_pipeline(settings, aws)

    logger.info(
        "Controller ready (storage=%s, nlu=%s, engine=%s, voice=%s)",
        settings.storage_backend.value,
        settings.nlu_backend.value,
        "yes" if engine else "no",
        "yes" if pipeline else "no",
    )
    return TaskAssistantController(
        task_store, engine, pipeline=pipeline, closers=closers
    )
