"""Authentication flows for the HTTP transport.

Each scheme is an httpx auth object, so token acquisition and refresh
happen inside the client's request cycle:

- basic: httpx.BasicAuth
- bearertoken: static Authorization header (httpx_auth.HeaderApiKey)
- iam: API key exchanged for a bearer token at the IAM token endpoint
- couchdb_session: username/password exchanged for an AuthSession cookie
"""

import logging
import re
import threading
import time
from email.utils import parsedate_to_datetime
from typing import Generator

import httpx
from httpx_auth import HeaderApiKey

from .common import get_sdk_headers
from .config import CloudantConfig
from .exceptions import CloudantAuthError

logger = logging.getLogger("cloudant-tools")

# Tokens are refreshed once this share of their lifetime has passed
FRACTION_OF_TTL = 0.8

_SESSION_TOKEN = re.compile(r"AuthSession=([^;]*);")
_EXPIRES = re.compile(r".*Expires=([^;]*);")
_MAX_AGE = re.compile(r".*Max-Age=([^;]*);")


class _TokenAuth(httpx.Auth):
    """Shared refresh logic for token-based schemes."""

    requires_response_body = True

    def __init__(self):
        self._token: str | None = None
        self._refresh_time = 0.0
        self._lock = threading.Lock()

    def _needs_refresh(self) -> bool:
        return self._token is None or time.time() >= self._refresh_time

    def _invalidate(self) -> None:
        self._token = None
        self._refresh_time = 0.0

    def _build_token_request(self) -> httpx.Request:
        raise NotImplementedError

    def _save_token(self, response: httpx.Response) -> None:
        raise NotImplementedError

    def _apply(self, request: httpx.Request) -> None:
        raise NotImplementedError

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        with self._lock:
            if self._needs_refresh():
                token_response = yield self._build_token_request()
                self._save_token(token_response)
        self._apply(request)
        response = yield request

        # An expired or revoked token gets exactly one fresh attempt
        if response.status_code == 401:
            with self._lock:
                self._invalidate()
                token_response = yield self._build_token_request()
                self._save_token(token_response)
            self._apply(request)
            yield request


class CouchdbSessionAuth(_TokenAuth):
    """CouchDB cookie session authentication.

    Posts the credentials to ``/_session`` and sends the returned
    ``AuthSession`` cookie with every request.
    """

    def __init__(self, url: str, username: str, password: str):
        super().__init__()
        self.session_url = f"{url.rstrip('/')}/_session"
        self.username = username
        self.password = password

    def _build_token_request(self) -> httpx.Request:
        headers = get_sdk_headers("authenticatorPostSession")
        headers["Accept"] = "application/json"
        return httpx.Request(
            "POST",
            self.session_url,
            json={"username": self.username, "password": self.password},
            headers=headers,
        )

    def _save_token(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise CloudantAuthError(
                f"Session request failed with HTTP {response.status_code}",
                response.status_code,
            )
        cookies = response.headers.get_list("set-cookie")
        if not cookies:
            raise CloudantAuthError("Set-Cookie header not present in response", response.status_code)

        token = expires = max_age = None
        for cookie in cookies:
            match = _SESSION_TOKEN.search(cookie)
            if match:
                token = match.group(1)
                expires = _EXPIRES.match(cookie)
                max_age = _MAX_AGE.match(cookie)
                break
        if token is None:
            raise CloudantAuthError("Session token not present in response", response.status_code)

        now = time.time()
        if expires is not None:
            expire_time = parsedate_to_datetime(expires.group(1)).timestamp()
            self._refresh_time = expire_time - (expire_time - now) * (1.0 - FRACTION_OF_TTL)
        elif max_age is not None:
            self._refresh_time = now + float(max_age.group(1)) * FRACTION_OF_TTL
        else:
            # No lifetime given: refresh on every request
            self._refresh_time = 0.0
        self._token = token
        logger.info(f"Acquired CouchDB session for {self.username}")

    def _apply(self, request: httpx.Request) -> None:
        request.headers["Cookie"] = f"AuthSession={self._token}"


class IAMAuth(_TokenAuth):
    """IBM Cloud IAM API key authentication."""

    GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"

    def __init__(self, apikey: str, iam_url: str = "https://iam.cloud.ibm.com"):
        super().__init__()
        self.apikey = apikey
        self.token_url = f"{iam_url.rstrip('/')}/identity/token"

    def _build_token_request(self) -> httpx.Request:
        return httpx.Request(
            "POST",
            self.token_url,
            data={
                "grant_type": self.GRANT_TYPE,
                "apikey": self.apikey,
                "response_type": "cloud_iam",
            },
            headers={"Accept": "application/json"},
        )

    def _save_token(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise CloudantAuthError(
                f"IAM token request failed with HTTP {response.status_code}",
                response.status_code,
            )
        data = response.json()
        token = data.get("access_token")
        if not token:
            raise CloudantAuthError("IAM token not present in response", response.status_code)

        now = time.time()
        expires_in = float(data.get("expires_in", 0))
        expiration = float(data.get("expiration", now + expires_in))
        self._refresh_time = expiration - expires_in * (1.0 - FRACTION_OF_TTL)
        self._token = token
        logger.info("Acquired IAM access token")

    def _apply(self, request: httpx.Request) -> None:
        request.headers["Authorization"] = f"Bearer {self._token}"


def create_auth(config: CloudantConfig) -> httpx.Auth | None:
    """Create the auth object for the configured scheme.

    Args:
        config: Client configuration (credentials already validated)

    Returns:
        An httpx auth object, or None for unauthenticated access.
    """
    auth_type = config.resolved_auth_type

    if auth_type == "basic":
        return httpx.BasicAuth(config.username, config.password)
    if auth_type == "couchdb_session":
        return CouchdbSessionAuth(config.url, config.username, config.password)
    if auth_type == "iam":
        return IAMAuth(config.apikey, config.iam_url)
    if auth_type == "bearertoken":
        return HeaderApiKey(f"Bearer {config.bearer_token}", header_name="Authorization")
    return None
