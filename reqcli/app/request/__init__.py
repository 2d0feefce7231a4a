"""Outbound request assembly."""

from reqcli.app.request.builder import (
    RequestOptions,
    build_body,
    build_form,
    build_request,
    parse_headers,
    parse_query,
)

__all__ = [
    "RequestOptions",
    "build_body",
    "build_form",
    "build_request",
    "parse_headers",
    "parse_query",
]
