"""HTTP client creation and request execution.

The transport is a plain ``httpx.AsyncClient``; this module only decides
how it is configured and turns transport failures into ``TransportError``.
"""

import time
from typing import Optional

import httpx

from reqcli.app.core.config import settings
from reqcli.app.core.logging import get_log_context, get_logger
from reqcli.app.exceptions import TransportError

logger = get_logger(__name__)


def create_http_client(timeout: Optional[float] = None, **kwargs) -> httpx.AsyncClient:
    """Create a new HTTP client.

    The returned client should be closed when done:
        async with create_http_client() as client:
            ...

    Args:
        timeout: Single timeout in seconds applied to connect, read, write
            and pool acquisition; defaults to ``settings.timeout``
        **kwargs: Passed through to ``httpx.AsyncClient``

    Returns:
        A new httpx.AsyncClient instance
    """
    config = {
        "timeout": httpx.Timeout(timeout if timeout is not None else settings.timeout),
        "follow_redirects": False,
    }
    config.update(kwargs)
    return httpx.AsyncClient(**config)


async def execute(
    client: httpx.AsyncClient,
    request: httpx.Request,
    timeout: Optional[float] = None,
) -> httpx.Response:
    """Send a request and read the whole response body.

    Args:
        client: Client to send through
        request: Fully built request (headers, auth and body applied)
        timeout: Per-request timeout in seconds; the client's default when None

    Raises:
        TransportError: On connection errors, timeouts or protocol errors
    """
    if timeout is not None:
        request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()

    start = time.perf_counter()
    try:
        response = await client.send(request)
        await response.aread()
    except httpx.HTTPError as e:
        logger.debug(
            f"Request failed: {e!r}",
            extra=get_log_context(method=request.method, url=str(request.url)),
        )
        raise TransportError(str(e) or type(e).__name__) from e

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(
        f"{request.method} {request.url} -> {response.status_code}",
        extra=get_log_context(
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            duration_ms=duration_ms,
        ),
    )
    return response
