"""Authenticators for outbound requests."""

from reqcli.app.auth.base import AuthConfig, Authenticator, new_authenticator
from reqcli.app.auth.basic import BasicAuth
from reqcli.app.auth.bearer import BearerAuth
from reqcli.app.auth.custom import CustomHeaderAuth
from reqcli.app.auth.oauth2 import OAuth2ClientCredentials, TokenResponse

__all__ = [
    "AuthConfig",
    "Authenticator",
    "new_authenticator",
    "BasicAuth",
    "BearerAuth",
    "CustomHeaderAuth",
    "OAuth2ClientCredentials",
    "TokenResponse",
]
