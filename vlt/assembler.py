"""State machine that folds tagged log lines into request records."""

import logging

from vlt.decoder import Tag, decode_line
from vlt.errors import MalformedHeader
from vlt.models import RequestRecord

logger = logging.getLogger(__name__)


class RequestAssembler:
    """Owns the single in-progress record.

    feed() returns the completed record on an end tag and swaps in a fresh
    one, so a record handed out is never touched again by the assembler.
    """

    def __init__(self):
        self._current = RequestRecord()
        self.abandoned = 0
        self.malformed_headers = 0
        self._handlers = {
            Tag.REQUEST_START: self._on_start,
            Tag.URL: self._on_url,
            Tag.PROTOCOL: self._on_protocol,
            Tag.HEADER: self._on_header,
            Tag.REQUEST_END: self._on_end,
        }

    @property
    def current(self) -> RequestRecord:
        return self._current

    def feed_line(self, line: str) -> RequestRecord | None:
        """Decode a raw log line and feed it. Short lines are ignored."""
        tag, value, ok = decode_line(line)
        if not ok:
            return None
        return self.feed(tag, value)

    def feed(self, tag: str, value: str) -> RequestRecord | None:
        """Apply one (tag, value) pair. Unknown tags are ignored."""
        known = Tag.lookup(tag)
        if known is None:
            return None
        return self._handlers[known](value)

    def _on_start(self, value: str) -> None:
        if not self._current.is_empty():
            self.abandoned += 1
            logger.debug("Abandoning unfinished request: %s %s",
                         self._current.method, self._current.path)
        self._current = RequestRecord(method=value)

    def _on_url(self, value: str) -> None:
        self._current.path = value

    def _on_protocol(self, value: str) -> None:
        self._current.protocol = value

    def _on_header(self, value: str) -> None:
        try:
            self._current.add_header(value)
        except MalformedHeader as e:
            self.malformed_headers += 1
            logger.warning("Skipping header line: %s", e)

    def _on_end(self, value: str) -> RequestRecord:
        record = self._current
        self._current = RequestRecord()
        return record
