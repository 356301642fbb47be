from __future__ import annotations

import logging
from typing import Any

import requests

from .config import Settings
from .errors import AuthError
from .schemas import AuthSession

logger = logging.getLogger(__name__)

TOKEN_PATH = "/auth/v1/token"
LOGOUT_PATH = "/auth/v1/logout"


class AuthClient:
    """Client for the hosted auth provider's REST API.

    Holds at most one session. The dashboard uses it as its session provider
    through ``get_session`` and ``sign_out``.
    """

    def __init__(
        self,
        auth_url: str,
        anon_key: str,
        http: Any | None = None,
        timeout: float = 30,
    ) -> None:
        self.auth_url = auth_url.rstrip("/")
        self.anon_key = anon_key
        self.http = http or requests.Session()
        self.timeout = timeout
        self._session: AuthSession | None = None

    @classmethod
    def from_settings(cls, settings: Settings, http: Any | None = None) -> AuthClient:
        if not settings.auth_url or not settings.auth_anon_key:
            raise AuthError("AUTH_URL and AUTH_ANON_KEY must be set")
        return cls(
            settings.auth_url,
            settings.auth_anon_key,
            http=http,
            timeout=settings.http_timeout,
        )

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _grant(self, grant_type: str, body: dict[str, Any]) -> AuthSession:
        try:
            response = self.http.post(
                f"{self.auth_url}{TOKEN_PATH}",
                params={"grant_type": grant_type},
                json=body,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthError(f"Auth provider unreachable: {exc}") from exc
        if not response.ok:
            raise AuthError(
                f"Auth provider rejected {grant_type} grant: {response.text}",
                status_code=response.status_code,
            )
        try:
            return AuthSession.from_token_response(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise AuthError(f"Malformed {grant_type} grant response: {exc!r}") from exc

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self._session = self._grant("password", {"email": email, "password": password})
        logger.info("Signed in as %s", self._session.email or email)
        return self._session

    def get_session(self) -> AuthSession | None:
        session = self._session
        if session is None or not session.is_expired():
            return session
        if not session.refresh_token:
            self._session = None
            return None
        try:
            self._session = self._grant("refresh_token", {"refresh_token": session.refresh_token})
        except AuthError as exc:
            logger.warning("Session refresh failed: %s", exc)
            self._session = None
        return self._session

    def sign_out(self) -> None:
        session = self._session
        self._session = None
        if session is None:
            return
        try:
            response = self.http.post(
                f"{self.auth_url}{LOGOUT_PATH}",
                headers=self._headers(session.access_token),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthError(f"Auth provider unreachable: {exc}") from exc
        if not response.ok:
            raise AuthError(
                f"Sign out failed: {response.text}",
                status_code=response.status_code,
            )


class BearerTokenSessions:
    """Session provider for an access token the caller already holds.

    Used by the server-rendered dashboard, where the browser sends the token
    issued by the auth provider.
    """

    def __init__(self, access_token: str | None) -> None:
        self.access_token = access_token or None

    @classmethod
    def from_request(cls, authorization: str | None, cookie_token: str | None = None) -> BearerTokenSessions:
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return cls(token.strip())
        return cls(cookie_token)

    def get_session(self) -> AuthSession | None:
        if not self.access_token:
            return None
        return AuthSession(
            access_token=self.access_token,
            refresh_token=None,
            expires_at=None,
            user_id=None,
            email=None,
        )

    def sign_out(self) -> None:
        self.access_token = None
