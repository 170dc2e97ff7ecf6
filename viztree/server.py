"""HTTP responder that serves the finished snapshot page on every request."""
from __future__ import annotations

import socket
import sys
import threading
import webbrowser
from concurrent.futures import FIRST_COMPLETED, Future, wait
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from viztree.models import ViewerSettings
from viztree.page import PageTemplate
from viztree.shutdown import ShutdownCoordinator, ShutdownReason


class _PageHTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], body: bytes) -> None:
        if ":" in address[0]:
            self.address_family = socket.AF_INET6
        self.body = body
        super().__init__(address, _PageHandler)

    def handle_error(self, request: Any, client_address: Any) -> None:
        exc = sys.exc_info()[1]
        print(f"viztree: request from {client_address} failed: {exc}", file=sys.stderr)


class _PageHandler(BaseHTTPRequestHandler):
    server: _PageHTTPServer

    def _send_page(self) -> None:
        body = self.server.body
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    do_GET = do_HEAD = do_POST = do_PUT = do_PATCH = do_DELETE = do_OPTIONS = _send_page  # noqa: N815

    def send_error(self, code: int, message: str | None = None, explain: str | None = None) -> None:
        # Verbs without a do_* method above still get the page.
        if code == HTTPStatus.NOT_IMPLEMENTED:
            self._send_page()
            return
        super().send_error(code, message, explain)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        pass


def display_url(host: str, port: int) -> str:
    if host in {"", "0.0.0.0", "::"}:
        host = "localhost"
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{port}/"


class SnapshotServer:
    """Waits for the completed snapshot, then binds and serves it.

    If the coordinator is asked to shut down first, the socket is never bound.
    """

    def __init__(
        self,
        settings: ViewerSettings,
        template: PageTemplate,
        completion: Future[str],
        coordinator: ShutdownCoordinator,
    ) -> None:
        self.settings = settings
        self.template = template
        self.completion = completion
        self.coordinator = coordinator
        self.bound_address: Future[tuple[str, int]] = Future()
        self._lock = threading.Lock()
        self._httpd: _PageHTTPServer | None = None
        self._closed = False
        self._serving = False

    def _bind(self, body: bytes) -> _PageHTTPServer | None:
        with self._lock:
            if self._closed:
                return None
            try:
                httpd = _PageHTTPServer((self.settings.host, self.settings.port), body)
            except OSError as exc:
                print(f"viztree: cannot listen on {self.settings.addr}: {exc}", file=sys.stderr)
                self.coordinator.request(ShutdownReason.server_fault(exc))
                return None
            self._httpd = httpd
        host, port = httpd.server_address[:2]
        self.bound_address.set_result((host, port))
        return httpd

    def run(self) -> None:
        wait([self.completion, self.coordinator.future], return_when=FIRST_COMPLETED)
        if self.coordinator.requested:
            return
        body = self.template.render(self.completion.result()).encode("utf-8", "replace")

        httpd = self._bind(body)
        if httpd is None:
            return

        try:
            url = display_url(self.settings.host, httpd.server_address[1])
            print(f"Serving {len(body)} bytes on {url}", file=sys.stderr)
            if self.settings.open_browser:
                webbrowser.open(url)
            with self._lock:
                if self._closed:
                    return
                self._serving = True
            try:
                httpd.serve_forever()
            finally:
                with self._lock:
                    self._serving = False
        except Exception as exc:
            print(f"viztree: server stopped: {exc}", file=sys.stderr)
            self.coordinator.request(ShutdownReason.server_fault(exc))
            return
        self.coordinator.request(ShutdownReason.completed())

    def stop(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            httpd = self._httpd
            serving = self._serving
        if httpd is None:
            return
        # shutdown() waits for serve_forever, so it is only valid once serving began.
        if serving:
            httpd.shutdown()
        httpd.server_close()
