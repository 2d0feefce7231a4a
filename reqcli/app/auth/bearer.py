"""Static bearer token authentication."""

import httpx

from reqcli.app.auth.base import Authenticator


class BearerAuth(Authenticator):
    """Sets ``Authorization: Bearer <token>``."""

    scheme = "bearer"

    def __init__(self, token: str):
        self.token = token

    async def apply(self, request: httpx.Request) -> None:
        if self.token:
            request.headers["Authorization"] = f"Bearer {self.token}"
