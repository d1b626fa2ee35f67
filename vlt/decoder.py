"""Fixed-column decoder for grouped varnishlog client output.

A line looks like::

      270 RxHeader     c Host: www.dogs.com

The tag lives in columns 6-19 and the value starts at column 21.
"""

from enum import Enum

TAG_START = 6
TAG_END = 19
VALUE_START = 21


class Tag(str, Enum):
    REQUEST_START = "RxRequest"
    URL = "RxURL"
    PROTOCOL = "RxProtocol"
    HEADER = "RxHeader"
    REQUEST_END = "ReqEnd"

    @classmethod
    def lookup(cls, name: str) -> "Tag | None":
        """Return the Tag for *name*, or None if it is not one we replay."""
        try:
            return cls(name)
        except ValueError:
            return None


# Tag list handed to varnishlog -i
VARNISHLOG_TAGS = ",".join(tag.value for tag in Tag)


def decode_line(line: str) -> tuple[str, str, bool]:
    """Split a raw log line into (tag, value, ok).

    ok is False when the line is too short to carry a value, e.g. the blank
    separator lines varnishlog prints between request groups.
    """
    line = line.rstrip("\r\n")
    if len(line) <= VALUE_START:
        return "", "", False
    return line[TAG_START:TAG_END].strip(), line[VALUE_START:], True
