"""Core utilities for the reqcli application."""

from reqcli.app.core.config import Settings, settings
from reqcli.app.core.http_client import create_http_client, execute
from reqcli.app.core.logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "settings",
    "create_http_client",
    "execute",
    "get_logger",
    "setup_logging",
]
