"""Authenticator interface and selection.

An authenticator adds credentials to an outbound ``httpx.Request`` by
setting headers. Exactly one variant (or none) is chosen per run from the
configured credentials.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

import httpx

if TYPE_CHECKING:
    from reqcli.app.core.config import Settings


class Authenticator(ABC):
    """Base class for credential injectors.

    Subclasses only ever touch ``request.headers``. Missing credentials are
    a no-op, never an error.
    """

    scheme: str = "none"

    @abstractmethod
    async def apply(self, request: httpx.Request) -> None:
        """Add credentials to the request.

        Raises:
            ReqcliError: On unrecoverable failure; the request is left unmodified
        """
        pass


@dataclass
class AuthConfig:
    """Credentials gathered from settings and command-line flags."""
    username: str = ""
    password: str = ""
    bearer_token: str = ""
    client_id: str = ""
    client_secret: str = ""
    token_url: str = ""
    scopes: List[str] = field(default_factory=list)
    custom_header: str = ""
    custom_value: str = ""

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AuthConfig":
        return cls(
            username=settings.username,
            password=settings.password,
            bearer_token=settings.bearer_token,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            token_url=settings.token_url,
            scopes=list(settings.scopes),
            custom_header=settings.custom_header,
            custom_value=settings.custom_value,
        )


def new_authenticator(
    config: AuthConfig,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Optional[Authenticator]:
    """Pick the authenticator for the configured credentials.

    Precedence: basic > bearer > OAuth2 client credentials > custom header.

    Args:
        config: Configured credentials
        http_client: Optional client for OAuth2 token requests

    Returns:
        The selected authenticator, or None when no credentials are set
    """
    from reqcli.app.auth.basic import BasicAuth
    from reqcli.app.auth.bearer import BearerAuth
    from reqcli.app.auth.custom import CustomHeaderAuth
    from reqcli.app.auth.oauth2 import OAuth2ClientCredentials

    if config.username or config.password:
        return BasicAuth(config.username, config.password)

    if config.bearer_token:
        return BearerAuth(config.bearer_token)

    if config.client_id and config.client_secret and config.token_url:
        return OAuth2ClientCredentials(
            config.client_id,
            config.client_secret,
            config.token_url,
            config.scopes,
            http_client=http_client,
        )

    if config.custom_header and config.custom_value:
        return CustomHeaderAuth(config.custom_header, config.custom_value)

    return None
