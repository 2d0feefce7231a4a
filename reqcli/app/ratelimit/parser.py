"""Parsing for rate specifications and duration literals.

A rate spec looks like ``10/s``, ``100/30s``, ``50/m`` or ``1000/h``: a
positive request count, a slash and a duration. Durations are either a bare
unit letter (``s``, ``m``, ``h``) or a duration literal made of one or more
``<number><unit>`` groups, e.g. ``30s``, ``2m30s``, ``1.5h`` or ``500ms``.
"""

import re
from typing import Tuple

from reqcli.app.exceptions import InvalidDurationError, InvalidRateFormatError

# Seconds per unit, longest units first so "ms" wins over "m"
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_BARE_UNITS = {"s": 1.0, "m": 60.0, "h": 3600.0}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a duration literal into seconds.

    Args:
        text: ``s``/``m``/``h`` or a literal such as ``30s`` or ``2m30s``

    Returns:
        Duration in seconds (always positive)

    Raises:
        InvalidDurationError: If the literal is malformed or not positive
    """
    text = text.strip()
    if text in _BARE_UNITS:
        return _BARE_UNITS[text]

    sign = 1.0
    body = text
    if body[:1] in ("+", "-"):
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    if not body:
        raise InvalidDurationError(
            "duration must be a valid time duration (e.g., 's', '30s', 'm', 'h') "
            "or a number followed by a unit"
        )

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _DURATION_PART.match(body, pos)
        if match is None:
            raise InvalidDurationError(
                "duration must be a valid time duration (e.g., 's', '30s', 'm', 'h') "
                "or a number followed by a unit"
            )
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    total *= sign
    if total <= 0:
        raise InvalidDurationError("duration must be positive")
    return total


def parse_rate(rate_spec: str) -> Tuple[float, int]:
    """Parse a rate spec into ``(limit, burst)``.

    ``limit`` is the sustained rate in permits per second and ``burst`` is
    the request count, so a full window's worth of requests may go out at
    once.

    Raises:
        InvalidRateFormatError: If the spec has no ``/`` or a bad request count
        InvalidDurationError: If the duration part is malformed or not positive
    """
    requests_part, sep, duration_part = rate_spec.partition("/")
    if not sep:
        raise InvalidRateFormatError()

    # int() alone would also take "+10", " 10" and "1_0"
    if not (requests_part.isascii() and requests_part.isdigit()):
        raise InvalidRateFormatError("requests must be a positive integer")
    requests = int(requests_part)
    if requests <= 0:
        raise InvalidRateFormatError("requests must be a positive integer")

    duration = parse_duration(duration_part)
    return requests / duration, requests
