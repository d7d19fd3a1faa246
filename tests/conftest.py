import http.client
import io
import json
import threading
import urllib.request
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, List, Optional, Sequence, Tuple

import pytest

from OpenAPIURLLib import Session

Completion = Tuple[Optional[bytes], Optional[Any], Optional[BaseException]]


class _FakeSocket:
    def __init__(self, payload: bytes) -> None:
        self._file = io.BytesIO(payload)

    def makefile(self, *args: Any, **kwargs: Any) -> io.BytesIO:
        return self._file


def make_http_response(raw: bytes, method: str = "GET") -> http.client.HTTPResponse:
    """Parse a raw HTTP/1.1 response into a real ``http.client.HTTPResponse``."""
    response = http.client.HTTPResponse(_FakeSocket(raw), method=method)  # type: ignore[arg-type]
    response.begin()
    return response


class RecordingSession:
    """Session stub that records submissions and replays canned completions."""

    def __init__(self, completions: Sequence[Completion]) -> None:
        self._completions = list(completions)
        self.requests: List[urllib.request.Request] = []

    def submit(self, request: urllib.request.Request, completion_handler) -> None:
        self.requests.append(request)
        for data, response, error in self._completions:
            completion_handler(data, response, error)


@pytest.fixture()
def recording_session():
    def factory(*completions: Completion) -> RecordingSession:
        return RecordingSession(completions)

    return factory


@pytest.fixture()
def http_response():
    return make_http_response


class _EchoHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        received = self.rfile.read(length) if length else b""

        if self.path.startswith("/missing"):
            status, payload = 404, b"missing"
        elif self.path.startswith("/empty"):
            status, payload = 200, b""
        else:
            status = 200
            payload = json.dumps({
                "method": self.command,
                "path": self.path,
                "headers": {k.lower(): v for k, v in self.headers.items()},
                "body": received.decode("utf-8"),
            }).encode("utf-8")

        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("X-Echo", "yes")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(payload)

    do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = do_HEAD = _handle

    def log_message(self, format: str, *args: Any) -> None:
        pass


@pytest.fixture()
def echo_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _EchoHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture()
def live_session():
    # Bypass proxy settings from the environment so requests stay on loopback
    opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))
    session = Session(opener=opener, timeout=5)
    try:
        yield session
    finally:
        session.close()
