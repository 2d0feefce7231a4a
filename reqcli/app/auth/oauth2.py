"""OAuth2 client credentials authentication with a cached token.

The access token is fetched lazily on first use and reused until shortly
before it expires. Concurrent callers that find no valid token queue on a
single lock, so only one token request is in flight at a time and everyone
waiting picks up its result.
"""

import asyncio
import time
from typing import Callable, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from reqcli.app.auth.base import Authenticator
from reqcli.app.core.logging import get_log_context, get_logger
from reqcli.app.exceptions import AuthConfigError, TokenFetchError

logger = get_logger(__name__)

# Token requests use their own timeout, independent of the caller's request.
TOKEN_FETCH_TIMEOUT = 30.0

# Refresh this many seconds before the server-declared expiry.
EXPIRY_MARGIN_SECONDS = 60

# Lifetime assumed when the server does not declare expires_in.
DEFAULT_TOKEN_LIFETIME_SECONDS = 55 * 60


class TokenResponse(BaseModel):
    """Token endpoint response body; unknown fields are ignored.

    ``null`` is accepted for the optional fields, as some servers send it.
    """
    access_token: str = ""
    token_type: Optional[str] = None
    expires_in: Optional[int] = None


class OAuth2ClientCredentials(Authenticator):
    """Bearer authentication using the OAuth2 client credentials grant.

    Token states: none cached, valid (``now < expiry``) and expired. A
    successful fetch always replaces the cached token; a failed one leaves
    it as it was.
    """

    scheme = "oauth2"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: str,
        scopes: Optional[Sequence[str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the authenticator.

        Args:
            client_id: OAuth2 client ID
            client_secret: OAuth2 client secret
            token_url: Token endpoint URL
            scopes: Scopes to request, sent space-joined
            http_client: Optional client for token requests; a short-lived
                one is created per fetch when omitted
            clock: Wall clock in epoch seconds

        Raises:
            AuthConfigError: If client_id, client_secret or token_url is empty
        """
        if not client_id or not client_secret or not token_url:
            raise AuthConfigError("clientID, clientSecret, and tokenURL are required")

        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.scopes: List[str] = list(scopes or [])
        self._http_client = http_client
        self._clock = clock

        self._token = ""
        self._expiry = 0.0
        self._refresh_lock = asyncio.Lock()

    @property
    def expiry(self) -> float:
        """Epoch seconds after which the cached token is no longer used."""
        return self._expiry

    async def apply(self, request: httpx.Request) -> None:
        token = await self.get_token()
        request.headers["Authorization"] = f"Bearer {token}"

    def _cached_token(self) -> Optional[str]:
        if self._token and self._clock() < self._expiry:
            return self._token
        return None

    async def get_token(self) -> str:
        """Return a valid access token, fetching one if needed.

        Raises:
            TokenFetchError: If a new token was needed and could not be fetched
        """
        token = self._cached_token()
        if token is not None:
            return token

        async with self._refresh_lock:
            # Another task may have refreshed while we waited for the lock
            token = self._cached_token()
            if token is not None:
                return token
            return await self._fetch_token()

    def _token_request_data(self) -> dict:
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        if self.scopes:
            data["scope"] = " ".join(self.scopes)
        return data

    async def _post_token_request(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.post(
            self.token_url,
            data=self._token_request_data(),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
            timeout=TOKEN_FETCH_TIMEOUT,
        )

    async def _fetch_token(self) -> str:
        """Request a new token and cache it. Must hold ``_refresh_lock``."""
        logger.debug(
            f"Fetching OAuth2 token from {self.token_url}",
            extra=get_log_context(auth_scheme=self.scheme),
        )

        try:
            if self._http_client is not None:
                response = await self._post_token_request(self._http_client)
            else:
                async with httpx.AsyncClient(timeout=TOKEN_FETCH_TIMEOUT) as client:
                    response = await self._post_token_request(client)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TokenFetchError(f"token request failed: {e!r}") from e

        if response.status_code != 200:
            raise TokenFetchError(
                f"token request failed with status: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            body = TokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TokenFetchError(f"failed to decode token response: {e}") from e

        if not body.access_token:
            raise TokenFetchError("no access token in response")

        now = self._clock()
        if body.expires_in is not None and body.expires_in > 0:
            expiry = now + (body.expires_in - EXPIRY_MARGIN_SECONDS)
        else:
            expiry = now + DEFAULT_TOKEN_LIFETIME_SECONDS

        self._token = body.access_token
        self._expiry = expiry

        logger.info(
            f"Obtained OAuth2 token, valid for {expiry - now:.0f}s",
            extra=get_log_context(auth_scheme=self.scheme),
        )
        return self._token
