"""Arbitrary header authentication, e.g. ``X-API-Key``."""

import httpx

from reqcli.app.auth.base import Authenticator


class CustomHeaderAuth(Authenticator):
    """Sets a single configured header to a configured value."""

    scheme = "custom"

    def __init__(self, header: str, value: str):
        self.header = header
        self.value = value

    async def apply(self, request: httpx.Request) -> None:
        if self.header and self.value:
            request.headers[self.header] = self.value
