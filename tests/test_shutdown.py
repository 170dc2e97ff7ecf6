from __future__ import annotations

import signal
import threading

from viztree.shutdown import ShutdownCoordinator, ShutdownReason


def test_first_request_wins() -> None:
    coordinator = ShutdownCoordinator()
    fault = OSError("address in use")

    assert coordinator.request(ShutdownReason.server_fault(fault)) is True
    assert coordinator.request(ShutdownReason.interrupted()) is False

    reason = coordinator.wait()
    assert reason.kind == "server_fault"
    assert reason.error is fault
    assert coordinator.stop_event.is_set()


def test_exit_codes_per_cause() -> None:
    assert ShutdownReason.interrupted().exit_code == 0
    assert ShutdownReason.completed().exit_code == 0
    assert ShutdownReason.server_fault(RuntimeError("x")).exit_code == 1


def test_describe_includes_error() -> None:
    assert ShutdownReason.server_fault(OSError("boom")).describe() == "server_fault: boom"
    assert ShutdownReason.completed().describe() == "completed"


def test_wait_unblocks_on_request_from_other_thread() -> None:
    coordinator = ShutdownCoordinator()
    timer = threading.Timer(0.1, coordinator.request, args=(ShutdownReason.completed(),))
    timer.start()

    assert coordinator.wait(poll_interval=0.05).kind == "completed"
    timer.join()


def test_concurrent_requests_record_exactly_one() -> None:
    coordinator = ShutdownCoordinator()
    wins: list[bool] = []
    lock = threading.Lock()

    def fire() -> None:
        won = coordinator.request(ShutdownReason.interrupted())
        with lock:
            wins.append(won)

    threads = [threading.Thread(target=fire) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert wins.count(True) == 1


def test_sigint_requests_interrupted_shutdown() -> None:
    coordinator = ShutdownCoordinator()
    previous = signal.getsignal(signal.SIGINT)
    restore = coordinator.install_signal_handlers()
    try:
        signal.raise_signal(signal.SIGINT)
        reason = coordinator.wait(poll_interval=0.05)
    finally:
        restore()

    assert reason.kind == "interrupted"
    assert signal.getsignal(signal.SIGINT) is previous
