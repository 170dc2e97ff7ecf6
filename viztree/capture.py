"""Read the input stream into discrete line chunks."""
from __future__ import annotations

import queue
import sys
import threading
from collections.abc import Iterator
from typing import Final, TextIO

END_OF_STREAM: Final = None

_HANDOFF_POLL_SECONDS = 0.1


def iter_chunks(stream: TextIO) -> Iterator[str]:
    """Yield *stream* one line at a time, newline included.

    A final line without a terminating newline is still yielded. A read fault
    is reported on stderr and ends the sequence instead of propagating.
    """
    while True:
        try:
            chunk = stream.readline()
        except (OSError, ValueError) as exc:
            print(f"viztree: input read failed: {exc}", file=sys.stderr)
            return
        if not chunk:
            return
        yield chunk


def _put(chunks: queue.Queue[str | None], item: str | None, stop: threading.Event) -> bool:
    while not stop.is_set():
        try:
            chunks.put(item, timeout=_HANDOFF_POLL_SECONDS)
        except queue.Full:
            continue
        return True
    return False


def run_capture(
    stream: TextIO,
    chunks: queue.Queue[str | None],
    stop: threading.Event,
) -> None:
    """Thread target: feed *chunks* from *stream*, then the end-of-stream marker."""
    for chunk in iter_chunks(stream):
        if not _put(chunks, chunk, stop):
            return
    _put(chunks, END_OF_STREAM, stop)
