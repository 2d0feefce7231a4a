import json
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from reqcli.app.ratelimit.parser import parse_rate


def _parse_scopes(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    # Prefer JSON, but tolerate plain comma/space separated values.
    if raw.startswith(("[", '"')):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()

    # Deduplicate while preserving order.
    seen: set[str] = set()
    scopes: list[str] = []
    for part in re.split(r"[,\s]+", raw):
        if not part or part in seen:
            continue
        seen.add(part)
        scopes.append(part)
    return scopes


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    Every field can be set through a ``REQCLI_``-prefixed environment
    variable or a .env file; command-line flags override them.
    """

    # Logging settings
    log_level: str = "WARNING"
    log_format: str = "text"  # text | structured | json

    # Request settings
    timeout: float = 30.0  # Seconds for the whole request, including rate limit wait
    pretty: bool = True  # Re-indent JSON/XML response bodies

    # Rate limiting, e.g. "10/s" or "100/30s"; empty disables
    rate: str = ""

    # Basic auth
    username: str = ""
    password: str = ""

    # Bearer token auth
    bearer_token: str = ""

    # OAuth2 client credentials
    client_id: str = ""
    client_secret: str = ""
    token_url: str = ""
    # NoDecode so a plain "read write" value does not go through JSON parsing
    scopes: Annotated[list[str], NoDecode] = []

    # Custom header auth
    custom_header: str = ""
    custom_value: str = ""

    @field_validator("scopes", mode="before")
    @classmethod
    def decode_scopes(cls, v: Any) -> list[str]:
        return _parse_scopes(v)

    @field_validator("timeout")
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is one of the supported formatters."""
        v = v.strip().lower()
        if v not in ("text", "structured", "json"):
            raise ValueError("log_format must be one of: text, structured, json")
        return v

    @field_validator("rate")
    @classmethod
    def validate_rate(cls, v: str) -> str:
        """Validate the rate spec eagerly so a bad value fails at startup."""
        v = v.strip()
        if v:
            parse_rate(v)
        return v

    model_config = SettingsConfigDict(
        env_prefix="REQCLI_", env_file=".env", extra="ignore"
    )


# Global settings instance
settings = Settings()
