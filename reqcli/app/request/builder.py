"""Assembly of the outbound request from command-line style inputs."""

import os
import sys
from dataclasses import dataclass, field
from typing import IO, Dict, List, Optional, Tuple

import httpx

from reqcli.app.exceptions import RequestBuildError

# (field name, (filename or None for a text field, content))
FormParts = List[Tuple[str, Tuple[Optional[str], bytes]]]


@dataclass
class RequestOptions:
    """Everything needed to build one request."""
    url: str
    method: str = "GET"
    headers: List[str] = field(default_factory=list)
    query: List[str] = field(default_factory=list)
    data: str = ""
    form: List[str] = field(default_factory=list)


def _read_file(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise RequestBuildError(f"failed to read file {path}: {e}") from e


def build_body(data: str, stdin: Optional[IO[str]] = None) -> Optional[bytes]:
    """Turn a ``--data`` value into request content.

    ``-`` reads stdin, ``@path`` reads a file, anything else is sent as is.
    """
    if not data:
        return None

    if data == "-":
        stream = stdin if stdin is not None else sys.stdin
        lines = [line.rstrip("\r\n") for line in stream]
        return "\n".join(lines).encode("utf-8")

    if data.startswith("@"):
        return _read_file(data[1:])

    return data.encode("utf-8")


def build_form(fields: List[str]) -> FormParts:
    """Turn ``key=value`` / ``key=@path`` items into multipart parts, in order.

    Text fields carry no filename; file parts are named after the file.

    Raises:
        RequestBuildError: If an item has no ``=`` or a file cannot be read
    """
    parts: FormParts = []

    for item in fields:
        key, sep, value = item.partition("=")
        if not sep:
            raise RequestBuildError(f"invalid form data format: {item}")

        if value.startswith("@"):
            path = value[1:]
            parts.append((key, (os.path.basename(path), _read_file(path))))
        else:
            parts.append((key, (None, value.encode("utf-8"))))

    return parts


def parse_headers(lines: List[str]) -> Dict[str, str]:
    """Parse ``Name: value`` lines; malformed lines are skipped, last one wins."""
    headers: Dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep:
            continue
        name = name.strip()
        if not name:
            continue
        # Header names are case-insensitive, so drop any earlier spelling
        for existing in [k for k in headers if k.lower() == name.lower()]:
            del headers[existing]
        headers[name] = value.strip()
    return headers


def parse_query(items: List[str]) -> List[Tuple[str, str]]:
    """Parse ``key=value`` items in order; malformed items are skipped."""
    params: List[Tuple[str, str]] = []
    for item in items:
        key, sep, value = item.partition("=")
        if sep:
            params.append((key, value))
    return params


def build_request(
    client: httpx.AsyncClient,
    options: RequestOptions,
    stdin: Optional[IO[str]] = None,
) -> httpx.Request:
    """Build the outbound request.

    Form data takes precedence over ``data`` and is always sent as
    ``multipart/form-data``. Query items are appended to any query string
    already present in the URL.

    Raises:
        RequestBuildError: For an invalid URL, bad form items, unreadable
            files or header values that cannot be encoded
    """
    try:
        url = httpx.URL(options.url)
    except httpx.InvalidURL as e:
        raise RequestBuildError(f"invalid URL: {e}") from e
    if not url.scheme or not url.host:
        raise RequestBuildError(f"invalid URL: {options.url!r} needs a scheme and host")

    params = parse_query(options.query)
    if params:
        url = url.copy_with(params=list(url.params.multi_items()) + params)

    kwargs = {}
    if options.form:
        # httpx only switches to multipart when files= is non-empty
        kwargs["files"] = build_form(options.form)
    else:
        content = build_body(options.data, stdin=stdin)
        if content is not None:
            kwargs["content"] = content

    try:
        return client.build_request(
            options.method.upper(),
            url,
            headers=parse_headers(options.headers),
            **kwargs,
        )
    except UnicodeEncodeError as e:
        raise RequestBuildError(f"invalid header value: {e}") from e
