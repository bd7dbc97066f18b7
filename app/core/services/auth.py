"""
Purpose: Sign-in and AWS credential material for every other client.
Cognito User Pool (username/password) -> id token for the GraphQL API;
Cognito Identity Pool -> temporary AWS credentials for Lex, S3, Transcribe.

The rest of the app treats AuthSession as opaque: it only asks for an id
token or a boto3 Session built from the credentials.

Testing: botocore Stubber on the cognito-idp / cognito-identity clients.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import boto3
from botocore.credentials import RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError
from botocore.session import get_session

from ..errors import AuthError

logger = logging.getLogger(__name__)

_REFRESH_MARGIN_SECONDS = 60
# botocore starts refreshing 15 minutes before expiry
_CLIENT_REFRESH_MARGIN_SECONDS = 15 * 60


@dataclass
class AuthSession:
    username: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    identity_id: Optional[str] = None
    credentials: dict[str, Any] = field(default_factory=dict)
    expires_at: float = 0.0
    region: Optional[str] = None

    @classmethod
    def from_default_chain(cls, region: str) -> "AuthSession":
        """Use whatever credentials boto3 finds (env, profile, instance role)."""
        return cls(region=region, expires_at=float("inf"))

    def is_expired(
        self, now: Optional[float] = None, margin: float = _REFRESH_MARGIN_SECONDS
    ) -> bool:
        now = time.time() if now is None else now
        return now >= self.expires_at - margin

    def boto3_session(self) -> boto3.Session:
        if not self.credentials:
            return boto3.Session(region_name=self.region)
        return boto3.Session(
            aws_access_key_id=self.credentials.get("AccessKeyId"),
            aws_secret_access_key=self.credentials.get("SecretKey"),
            aws_session_token=self.credentials.get("SessionToken"),
            region_name=self.region,
        )


def _expiry_ts(value: Any, fallback: float) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, (int, float)):
        return float(value)
    return fallback


class CognitoAuthenticator:
    def __init__(
        self,
        *,
        region: str,
        user_pool_id: str,
        client_id: str,
        identity_pool_id: str,
        idp_client=None,
        identity_client=None,
    ) -> None:
        if not (user_pool_id and client_id and identity_pool_id):
            raise AuthError("Cognito user pool, app client and identity pool ids are required")
        self.region = region
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self.identity_pool_id = identity_pool_id
        self._idp = idp_client or boto3.client("cognito-idp", region_name=region)
        self._identity = identity_client or boto3.client(
            "cognito-identity", region_name=region
        )
        self._session: Optional[AuthSession] = None

    @property
    def _provider_name(self) -> str:
        return f"cognito-idp.{self.region}.amazonaws.com/{self.user_pool_id}"

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    def sign_in(self, username: str, password: str) -> AuthSession:
        if not username or not password:
            raise AuthError("Username and password are required")
        try:
            resp = self._idp.initiate_auth(
                AuthFlow="USER_PASSWORD_AUTH",
                ClientId=self.client_id,
                AuthParameters={"USERNAME": username, "PASSWORD": password},
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.warning("Sign-in rejected for %s: %s", username, code)
            raise AuthError(f"Sign-in failed: {code or e}") from e
        except BotoCoreError as e:
            logger.exception("Sign-in transport failure")
            raise AuthError(f"Sign-in failed: {e}") from e

        if resp.get("ChallengeName"):
            raise AuthError(f"Sign-in requires challenge {resp['ChallengeName']}")

        result = resp.get("AuthenticationResult") or {}
        self._session = self._exchange(
            username=username,
            id_token=result.get("IdToken"),
            refresh_token=result.get("RefreshToken"),
        )
        logger.info("Signed in %s", username)
        return self._session

    def _exchange(
        self, *, username: str, id_token: Optional[str], refresh_token: Optional[str]
    ) -> AuthSession:
        if not id_token:
            raise AuthError("Sign-in returned no id token")
        logins = {self._provider_name: id_token}
        try:
            identity_id = self._identity.get_id(
                IdentityPoolId=self.identity_pool_id, Logins=logins
            )["IdentityId"]
            creds = self._identity.get_credentials_for_identity(
                IdentityId=identity_id, Logins=logins
            )["Credentials"]
        except (ClientError, BotoCoreError, KeyError) as e:
            logger.exception("Identity pool exchange failed")
            raise AuthError(f"Could not obtain AWS credentials: {e}") from e

        return AuthSession(
            username=username,
            id_token=id_token,
            refresh_token=refresh_token,
            identity_id=identity_id,
            credentials=creds,
            expires_at=_expiry_ts(creds.get("Expiration"), time.time() + 3600),
            region=self.region,
        )

    def refresh(self) -> AuthSession:
        current = self._session
        if current is None or not current.refresh_token:
            raise AuthError("Not signed in")
        try:
            resp = self._idp.initiate_auth(
                AuthFlow="REFRESH_TOKEN_AUTH",
                ClientId=self.client_id,
                AuthParameters={"REFRESH_TOKEN": current.refresh_token},
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning("Token refresh failed: %s", e)
            raise AuthError(f"Session expired, please sign in again ({e})") from e
        result = resp.get("AuthenticationResult") or {}
        self._session = self._exchange(
            username=current.username or "",
            id_token=result.get("IdToken"),
            refresh_token=current.refresh_token,
        )
        return self._session

    def credentials(self) -> AuthSession:
        """Current session, refreshed when close to expiry."""
        if self._session is None:
            raise AuthError("Not signed in")
        if self._session.is_expired():
            return self.refresh()
        return self._session

    def id_token(self) -> str:
        token = self.credentials().id_token
        if not token:
            raise AuthError("Not signed in")
        return token

    def sign_out(self) -> None:
        self._session = None

    # ---------------------------
    # AWS clients
    # ---------------------------
    @staticmethod
    def _credential_metadata(session: AuthSession) -> dict[str, str]:
        creds = session.credentials
        return {
            "access_key": creds.get("AccessKeyId"),
            "secret_key": creds.get("SecretKey"),
            "token": creds.get("SessionToken"),
            "expiry_time": datetime.fromtimestamp(
                session.expires_at, tz=timezone.utc
            ).isoformat(),
        }

    def _refresh_metadata(self) -> dict[str, str]:
        session = self._session
        if session is None:
            raise AuthError("Not signed in")
        if session.is_expired(margin=_CLIENT_REFRESH_MARGIN_SECONDS):
            session = self.refresh()
        return self._credential_metadata(session)

    def boto3_session(self) -> boto3.Session:
        """
        boto3 Session whose clients pick up refreshed identity-pool
        credentials on their own, so long-lived clients outlive the first
        set of temporary keys.
        """
        credentials = RefreshableCredentials.create_from_metadata(
            metadata=self._credential_metadata(self.credentials()),
            refresh_using=self._refresh_metadata,
            method="cognito-identity",
        )
        core = get_session()
        core._credentials = credentials
        core.set_config_variable("region", self.region)
        return boto3.Session(botocore_session=core)
