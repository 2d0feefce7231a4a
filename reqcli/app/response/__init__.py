"""Response formatting."""

from reqcli.app.response.formatter import (
    Formatter,
    PrettyFormatter,
    RawFormatter,
    get_formatter,
    render_response,
)

__all__ = [
    "Formatter",
    "PrettyFormatter",
    "RawFormatter",
    "get_formatter",
    "render_response",
]
