"""Process-wide termination signal and its causes."""
from __future__ import annotations

import signal
import sys
import threading
from collections.abc import Callable
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from typing import Literal

ShutdownKind = Literal["interrupted", "server_fault", "completed"]

_EXIT_CODES: dict[ShutdownKind, int] = {
    "interrupted": 0,
    "completed": 0,
    "server_fault": 1,
}


@dataclass(frozen=True, slots=True)
class ShutdownReason:
    kind: ShutdownKind
    error: BaseException | None = None

    @classmethod
    def interrupted(cls) -> ShutdownReason:
        return cls("interrupted")

    @classmethod
    def server_fault(cls, error: BaseException) -> ShutdownReason:
        return cls("server_fault", error)

    @classmethod
    def completed(cls) -> ShutdownReason:
        return cls("completed")

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self.kind]

    def describe(self) -> str:
        if self.error is not None:
            return f"{self.kind}: {self.error}"
        return self.kind


class ShutdownCoordinator:
    """Single exit path shared by every component.

    The first call to :meth:`request` wins; later requests are ignored so the
    reported cause is always the one that actually ended the run.
    """

    def __init__(self) -> None:
        self._reason: Future[ShutdownReason] = Future()
        self._stop = threading.Event()

    @property
    def future(self) -> Future[ShutdownReason]:
        return self._reason

    @property
    def stop_event(self) -> threading.Event:
        return self._stop

    @property
    def requested(self) -> bool:
        return self._reason.done()

    def request(self, reason: ShutdownReason) -> bool:
        try:
            self._reason.set_result(reason)
        except InvalidStateError:
            return False
        self._stop.set()
        return True

    def wait(self, poll_interval: float = 0.2) -> ShutdownReason:
        # Poll so Python-level signal handlers get a chance to run in the main thread.
        while True:
            try:
                return self._reason.result(timeout=poll_interval)
            except TimeoutError:
                continue

    def install_signal_handlers(self) -> Callable[[], None]:
        """Route SIGINT/SIGTERM into :meth:`request`; returns a restore callable."""

        def handle(signum: int, frame: object) -> None:
            if not self.request(ShutdownReason.interrupted()):
                return
            print(f"\nReceived {signal.Signals(signum).name}, shutting down", file=sys.stderr)

        previous: dict[int, object] = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, handle)

        def restore() -> None:
            for signum, handler in previous.items():
                if handler is not None:
                    signal.signal(signum, handler)  # type: ignore[arg-type]

        return restore
