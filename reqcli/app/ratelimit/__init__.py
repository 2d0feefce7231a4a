"""Rate limiting for outbound requests."""

from reqcli.app.ratelimit.limiter import RateLimiter, TokenBucket
from reqcli.app.ratelimit.parser import parse_duration, parse_rate

__all__ = [
    "RateLimiter",
    "TokenBucket",
    "parse_duration",
    "parse_rate",
]
