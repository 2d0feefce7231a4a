"""HTTP Basic authentication."""

import base64

import httpx

from reqcli.app.auth.base import Authenticator


class BasicAuth(Authenticator):
    """Sets ``Authorization: Basic ...`` from a username and password."""

    scheme = "basic"

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    async def apply(self, request: httpx.Request) -> None:
        if self.username or self.password:
            request.headers["Authorization"] = f"Basic {self.encode_credentials()}"

    def encode_credentials(self) -> str:
        """Return the base64 encoding of ``username:password``."""
        credentials = f"{self.username}:{self.password}"
        return base64.b64encode(credentials.encode("utf-8")).decode("ascii")
