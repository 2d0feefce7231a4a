"""Response body formatting and printing.

Bodies are handled as bytes so that binary downloads pass through
untouched; only bodies that are actually re-indented are decoded.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional
from xml.dom import minidom
from xml.parsers.expat import ExpatError

import httpx

JSON_CONTENT_TYPES = ("application/json", "text/json")
XML_CONTENT_TYPES = ("application/xml", "text/xml")


class Formatter(ABC):
    """Turns a response body into the bytes to print."""

    @abstractmethod
    def format(self, response: httpx.Response) -> bytes:
        pass


class RawFormatter(Formatter):
    """Returns the body unchanged."""

    def format(self, response: httpx.Response) -> bytes:
        return response.content


class PrettyFormatter(Formatter):
    """Re-indents JSON and XML bodies with two spaces.

    Bodies of other types, empty bodies and bodies that fail to parse are
    returned byte for byte.
    """

    def format(self, response: httpx.Response) -> bytes:
        content_type = response.headers.get("content-type", "").lower()

        pretty = None
        if any(t in content_type for t in JSON_CONTENT_TYPES):
            pretty = self.format_json(response.text)
        elif any(t in content_type for t in XML_CONTENT_TYPES):
            pretty = self.format_xml(response.content)

        if pretty is None:
            return response.content
        return pretty.encode("utf-8")

    @staticmethod
    def format_json(body: str) -> Optional[str]:
        """Return the re-indented document, or None if it is not JSON."""
        if not body.strip():
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return None
        return json.dumps(parsed, indent=2, ensure_ascii=False)

    @staticmethod
    def format_xml(body: bytes) -> Optional[str]:
        """Return the re-indented document, or None if it is not XML."""
        if not body.strip():
            return None
        try:
            document = minidom.parseString(body)
        except ExpatError:
            return None

        pretty = document.toprettyxml(indent="  ")
        # toprettyxml keeps the original whitespace text nodes as blank lines
        lines = [line for line in pretty.splitlines() if line.strip()]
        if lines and lines[0].startswith("<?xml") and not body.lstrip().startswith(b"<?xml"):
            lines = lines[1:]
        return "\n".join(lines)


def get_formatter(pretty: bool = True) -> Formatter:
    return PrettyFormatter() if pretty else RawFormatter()


def render_response(response: httpx.Response, formatter: Formatter) -> bytes:
    """Render status line, headers, a blank line and the formatted body."""
    status = f"{response.http_version} {response.status_code} {response.reason_phrase}"
    lines = [status.encode("ascii", errors="replace")]
    # raw keeps the header names and values exactly as the server sent them
    for name, value in response.headers.raw:
        lines.append(name + b": " + value)
    lines.append(b"")
    lines.append(formatter.format(response))
    return b"\n".join(lines)
