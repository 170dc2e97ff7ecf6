"""Concatenate captured chunks into the one snapshot served for the whole run."""
from __future__ import annotations

import queue
import sys
import threading
from concurrent.futures import Future
from typing import TextIO

from viztree.capture import END_OF_STREAM

_TAKE_POLL_SECONDS = 0.1


class Accumulator:
    """Owns the growing snapshot until end of input, then publishes it once.

    Chunks are appended in arrival order and, in relay mode, written to
    *relay* before the next chunk is taken. The finished text is handed over
    through :attr:`completion`; nothing else ever sees the private buffer.
    """

    def __init__(
        self,
        chunks: queue.Queue[str | None],
        stop: threading.Event,
        relay: TextIO | None = None,
    ) -> None:
        self._chunks = chunks
        self._stop = stop
        self._relay = relay
        self._parts: list[str] = []
        self.completion: Future[str] = Future()

    def _take(self) -> str | None:
        while not self._stop.is_set():
            try:
                return self._chunks.get(timeout=_TAKE_POLL_SECONDS)
            except queue.Empty:
                continue
        return END_OF_STREAM

    def _forward(self, chunk: str) -> None:
        if self._relay is None:
            return
        try:
            self._relay.write(chunk)
            self._relay.flush()
        except (OSError, ValueError) as exc:
            print(f"viztree: relay disabled: {exc}", file=sys.stderr)
            self._relay = None

    def run(self) -> None:
        try:
            while True:
                chunk = self._take()
                if chunk is END_OF_STREAM:
                    break
                self._parts.append(chunk)
                self._forward(chunk)
        finally:
            self.completion.set_result("".join(self._parts))
            self._parts = []

    def snapshot(self, timeout: float | None = None) -> str:
        return self.completion.result(timeout=timeout)
