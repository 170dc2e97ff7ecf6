"""Wire capture, accumulation and serving together under one shutdown coordinator."""
from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from typing import TextIO

from viztree.accumulator import Accumulator
from viztree.capture import run_capture
from viztree.models import ViewerSettings
from viztree.page import PageTemplate
from viztree.server import SnapshotServer
from viztree.shutdown import ShutdownCoordinator, ShutdownReason


@dataclass(slots=True)
class Viewer:
    settings: ViewerSettings
    template: PageTemplate
    source: TextIO
    sink: TextIO | None = None
    coordinator: ShutdownCoordinator = field(default_factory=ShutdownCoordinator)
    accumulator: Accumulator = field(init=False)
    server: SnapshotServer = field(init=False)
    _chunks: queue.Queue[str | None] = field(init=False, default_factory=queue.Queue)
    _threads: list[threading.Thread] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        stop = self.coordinator.stop_event
        self.accumulator = Accumulator(
            self._chunks,
            stop,
            relay=self.sink if self.settings.pipe else None,
        )
        self.server = SnapshotServer(
            self.settings,
            self.template,
            self.accumulator.completion,
            self.coordinator,
        )

    def start(self) -> None:
        stop = self.coordinator.stop_event
        # The capture thread may stay blocked in a read after shutdown, so all are daemons.
        self._threads = [
            threading.Thread(
                target=run_capture,
                args=(self.source, self._chunks, stop),
                name="viztree-capture",
                daemon=True,
            ),
            threading.Thread(target=self.accumulator.run, name="viztree-accumulate", daemon=True),
            threading.Thread(target=self.server.run, name="viztree-serve", daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def wait(self) -> ShutdownReason:
        return self.coordinator.wait()

    def stop(self, reason: ShutdownReason | None = None) -> None:
        self.coordinator.request(reason or ShutdownReason.interrupted())
        self.server.stop()

    def run(self) -> ShutdownReason:
        self.start()
        try:
            return self.wait()
        finally:
            self.stop()
