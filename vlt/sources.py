"""Async line sources: a live varnishlog process, or a captured log file."""

import asyncio
import logging
import sys
from collections.abc import AsyncIterator

from vlt.decoder import VARNISHLOG_TAGS
from vlt.errors import StreamError

logger = logging.getLogger(__name__)

# -c client entries, -o grouped by request, -u unbuffered, -i only the tags we replay
DEFAULT_VARNISHLOG_COMMAND = ("varnishlog", "-c", "-o", "-u", "-i", VARNISHLOG_TAGS)

# Cookie and User-Agent lines can be long; asyncio's default is 64 KiB.
DEFAULT_LINE_LIMIT = 1024 * 1024


async def varnishlog_lines(
    command: tuple[str, ...] = DEFAULT_VARNISHLOG_COMMAND,
    limit: int = DEFAULT_LINE_LIMIT,
) -> AsyncIterator[str]:
    """Spawn the log producer and yield its stdout line by line."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *command, stdout=asyncio.subprocess.PIPE, limit=limit
        )
    except OSError as e:
        raise StreamError(f"Could not start {command[0]}: {e}") from e

    logger.info("Started %s (pid %d)", " ".join(command), proc.pid)
    try:
        while True:
            try:
                raw = await proc.stdout.readline()
            except (OSError, ValueError) as e:
                raise StreamError(f"Reading from {command[0]} failed: {e}") from e
            if not raw:
                break
            yield raw.decode("utf-8", errors="replace")
    finally:
        if proc.returncode is None and not proc.stdout.at_eof():
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        returncode = await proc.wait()

    if returncode != 0:
        raise StreamError(f"{command[0]} exited with status {returncode}")


async def file_lines(path: str) -> AsyncIterator[str]:
    """Yield lines from a captured varnishlog file, or stdin when *path* is "-".

    Reads run in a worker thread so dispatch tasks keep making progress.
    """
    if path == "-":
        fh = sys.stdin.buffer
        close = False
    else:
        try:
            fh = open(path, "rb")
        except OSError as e:
            raise StreamError(f"Could not open {path}: {e}") from e
        close = True

    try:
        while True:
            try:
                raw = await asyncio.to_thread(fh.readline)
            except OSError as e:
                raise StreamError(f"Reading from {path} failed: {e}") from e
            if not raw:
                break
            yield raw.decode("utf-8", errors="replace")
    finally:
        if close:
            fh.close()
