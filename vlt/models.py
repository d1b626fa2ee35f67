"""Request record accumulated from log lines, and the immutable outbound request."""

from dataclasses import dataclass, field

from vlt.errors import MalformedHeader


@dataclass
class RequestRecord:
    method: str | None = None
    path: str | None = None
    protocol: str | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)

    def add_header(self, raw: str) -> None:
        """Append a ``Name: Value`` header line, splitting on the first colon."""
        name, sep, value = raw.partition(":")
        if not sep:
            raise MalformedHeader(f"Header has no separator: {raw!r}")
        self.headers.append((name.strip(), value.strip()))

    def get_header(self, name: str) -> str | None:
        """First value for *name*, compared case-insensitively."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    def is_empty(self) -> bool:
        return (
            self.method is None
            and self.path is None
            and self.protocol is None
            and not self.headers
        )


@dataclass(frozen=True)
class OutboundRequest:
    method: str
    url: str                          # scheme://target_host/path?query
    scheme: str                       # "http" or "https"
    path: str                         # path plus "?query" when present
    protocol: str                     # e.g. "HTTP/1.1"
    version: tuple[int, int]
    headers: tuple[tuple[str, str], ...]
    original_host: str                # Host header from the source request
    target_host: str

    @property
    def display_url(self) -> str:
        """URL as the source server saw it: original virtual host, same path."""
        host = self.original_host or self.target_host
        return f"{self.scheme}://{host}{self.path}"


@dataclass(frozen=True)
class DispatchResult:
    method: str
    display_url: str
    elapsed_ms: int
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None
