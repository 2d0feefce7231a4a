"""Command-line entry point for reqcli.

Usage:
    reqcli [OPTIONS] URL

Examples:
    reqcli https://httpbin.org/get -q page=2
    reqcli -X POST -H "Content-Type: application/json" -d @body.json https://api.example.com/items
    reqcli --rate 10/s --bearer "$TOKEN" https://api.example.com/items
    reqcli --client-id app --client-secret s3cret --token-url https://auth.example.com/token \\
        --scope read https://api.example.com/items
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from typing import IO, List, Optional

import httpx

from reqcli import __version__
from reqcli.app.auth import AuthConfig, new_authenticator
from reqcli.app.core.config import Settings, settings
from reqcli.app.core.http_client import create_http_client, execute
from reqcli.app.core.logging import get_log_context, get_logger, setup_logging
from reqcli.app.exceptions import RateLimitConfigError, ReqcliError
from reqcli.app.ratelimit import RateLimiter, parse_duration, parse_rate
from reqcli.app.request import RequestOptions, build_request
from reqcli.app.response import get_formatter, render_response

logger = get_logger(__name__)


@dataclass
class RunOptions:
    """Resolved options for one invocation."""
    request: RequestOptions
    auth: AuthConfig = field(default_factory=AuthConfig)
    timeout: float = 30.0
    rate: str = ""
    pretty: bool = True


def _duration_arg(value: str) -> float:
    try:
        return parse_duration(value)
    except RateLimitConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _rate_arg(value: str) -> str:
    if value:
        try:
            parse_rate(value)
        except RateLimitConfigError as e:
            raise argparse.ArgumentTypeError(str(e)) from None
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reqcli",
        description="Send a single HTTP request and print the response.",
    )
    parser.add_argument("url", help="Request URL")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    request = parser.add_argument_group("request")
    request.add_argument("-X", "--method", default="GET", help="HTTP method (default: GET)")
    request.add_argument(
        "-H", "--header", dest="headers", action="append", default=[],
        metavar="'NAME: VALUE'", help="Request header, repeatable",
    )
    request.add_argument(
        "-q", "--query", action="append", default=[],
        metavar="KEY=VALUE", help="Query parameter, repeatable",
    )
    request.add_argument(
        "-d", "--data", default="",
        help="Request body: a string, @filename, or - for stdin",
    )
    request.add_argument(
        "-f", "--form", action="append", default=[],
        metavar="KEY=VALUE", help="Form field, KEY=@filename uploads a file; repeatable",
    )
    request.add_argument(
        "-t", "--timeout", type=_duration_arg, default=None,
        help="Request timeout, e.g. 30s or 1m30s (default: 30s)",
    )
    request.add_argument(
        "--rate", type=_rate_arg, default=None,
        help="Rate limit, e.g. 10/s, 100/30s, 50/m, 1000/h",
    )

    auth = parser.add_argument_group("authentication")
    auth.add_argument("-u", "--user", default=None, metavar="USER[:PASSWORD]", help="Basic auth credentials")
    auth.add_argument("--bearer", default=None, metavar="TOKEN", help="Bearer token")
    auth.add_argument("--client-id", default=None, help="OAuth2 client ID")
    auth.add_argument("--client-secret", default=None, help="OAuth2 client secret")
    auth.add_argument("--token-url", default=None, help="OAuth2 token endpoint")
    auth.add_argument("--scope", dest="scopes", action="append", default=None, help="OAuth2 scope, repeatable")
    auth.add_argument("--auth-header", default=None, metavar="NAME", help="Custom auth header name")
    auth.add_argument("--auth-value", default=None, metavar="VALUE", help="Custom auth header value")

    output = parser.add_argument_group("output")
    output.add_argument("--raw", action="store_true", help="Print the body without pretty printing")
    output.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    output.add_argument(
        "--log-format", choices=("text", "structured", "json"), default=None,
        help="Log format (default: text)",
    )
    return parser


def _pick(flag, fallback):
    return fallback if flag is None else flag


def options_from_args(args: argparse.Namespace, config: Settings = settings) -> RunOptions:
    """Merge parsed flags over environment settings."""
    auth = AuthConfig.from_settings(config)
    if args.user is not None:
        auth.username, _, auth.password = args.user.partition(":")
    auth.bearer_token = _pick(args.bearer, auth.bearer_token)
    auth.client_id = _pick(args.client_id, auth.client_id)
    auth.client_secret = _pick(args.client_secret, auth.client_secret)
    auth.token_url = _pick(args.token_url, auth.token_url)
    auth.scopes = _pick(args.scopes, auth.scopes)
    auth.custom_header = _pick(args.auth_header, auth.custom_header)
    auth.custom_value = _pick(args.auth_value, auth.custom_value)

    return RunOptions(
        request=RequestOptions(
            url=args.url,
            method=args.method,
            headers=list(args.headers),
            query=list(args.query),
            data=args.data,
            form=list(args.form),
        ),
        auth=auth,
        timeout=_pick(args.timeout, config.timeout),
        rate=_pick(args.rate, config.rate),
        pretty=config.pretty and not args.raw,
    )


def _write_output(stream: IO, data: bytes) -> None:
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        stream.write(data)
        stream.flush()
        return
    stream.flush()
    buffer.write(data)
    buffer.flush()


async def run(
    options: RunOptions,
    stdout: Optional[IO] = None,
    stdin: Optional[IO[str]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> httpx.Response:
    """Build, throttle, authenticate and send the request, then print the response.

    The response is written as bytes. A text stream such as ``sys.stdout``
    is written through its ``buffer``.

    Raises:
        ReqcliError: On any failure along the way
    """
    stdout = stdout if stdout is not None else sys.stdout
    limiter = RateLimiter(options.rate)
    authenticator = new_authenticator(options.auth)

    client = http_client if http_client is not None else create_http_client(timeout=options.timeout)
    try:
        request = build_request(client, options.request, stdin=stdin)

        if limiter.is_enabled():
            logger.debug(
                "Waiting for rate limiter",
                extra=get_log_context(rate_limit=options.rate, **limiter.stats()),
            )
        await limiter.wait(timeout=options.timeout)

        if authenticator is not None:
            logger.debug(
                "Applying authentication",
                extra=get_log_context(auth_scheme=authenticator.scheme),
            )
            await authenticator.apply(request)

        response = await execute(client, request, timeout=options.timeout)
    finally:
        if http_client is None:
            await client.aclose()

    _write_output(stdout, render_response(response, get_formatter(options.pretty)) + b"\n")
    return response


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level="DEBUG" if args.verbose else None,
        log_format=args.log_format,
    )

    try:
        asyncio.run(run(options_from_args(args)))
    except ReqcliError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
