"""Turns a completed RequestRecord into an OutboundRequest for the target host."""

import re
from urllib.parse import urlsplit

from vlt.errors import MalformedPath, MalformedRequest, UnknownProtocol, UnknownScheme
from vlt.models import OutboundRequest, RequestRecord

_VERSION_RE = re.compile(r"HTTPS?/(\d+)\.(\d+)")


def _has_control_chars(value: str) -> bool:
    return any(ord(c) < 0x20 or c == "\x7f" for c in value)


def _split_path(path: str | None) -> str:
    """Return path plus "?query" from a request target, dropping any authority."""
    if path is None:
        raise MalformedPath("Request has no URL")
    if _has_control_chars(path):
        raise MalformedPath(f"Invalid URL: {path!r}")
    try:
        parts = urlsplit(path)
    except ValueError as e:
        raise MalformedPath(f"Invalid URL {path!r}: {e}") from e

    result = parts.path or "/"
    if not result.startswith("/"):
        result = "/" + result
    # "/a?" keeps its empty query marker
    if parts.query or "?" in path.partition("#")[0]:
        result += "?" + parts.query
    return result


def parse_scheme(protocol: str | None) -> str:
    """HTTP/x.y -> "http", HTTPS/x.y -> "https"."""
    if not protocol or protocol[:4] != "HTTP":
        raise UnknownScheme(f"Unknown scheme: {protocol}")
    return "https" if protocol[4:5] == "S" else "http"


def parse_version(protocol: str) -> tuple[int, int]:
    m = _VERSION_RE.fullmatch(protocol)
    if not m:
        raise UnknownProtocol(f"Unknown protocol: {protocol}")
    return int(m.group(1)), int(m.group(2))


def translate(record: RequestRecord, target_host: str) -> OutboundRequest:
    """Build the outbound request, raising a TranslationError if the record is unusable."""
    path = _split_path(record.path)
    scheme = parse_scheme(record.protocol)
    version = parse_version(record.protocol)
    if not record.method:
        raise MalformedRequest(f"Request for {record.path} has no method")

    original_host = (record.get_header("Host") or "").strip()

    return OutboundRequest(
        method=record.method,
        url=f"{scheme}://{target_host}{path}",
        scheme=scheme,
        path=path,
        protocol=record.protocol,
        version=version,
        headers=tuple(record.headers),
        original_host=original_host,
        target_host=target_host,
    )
