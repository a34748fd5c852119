"""
Shared pytest fixtures for portwatch tests.

Provides:
- make_config: a Config that runs tests/fake_forwarder.py instead of kubectl
- http_listener: a local HTTP server standing in for a forwarded port
- run_in_thread: run a Session in the background and collect its exit status
- wait_for: poll a condition with a deadline
"""

import os
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portwatch.config import Config

FAKE_FORWARDER = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fake_forwarder.py")


def wait_for(condition: Callable[[], bool], timeout: float = 10.0, interval: float = 0.02) -> bool:
    """Poll condition until it holds or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


@pytest.fixture
def make_config():
    """Build a Config that spawns the fake forwarder with fast health checks."""

    def _make(**overrides) -> Config:
        options = {
            "forward_command": sys.executable,
            "forward_subcommand": [FAKE_FORWARDER],
            "health_interval": 0.1,
            "health_timeout": 1.0,
        }
        options.update(overrides)
        return Config(**options)

    return _make


class _OkHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Length", "2")
        self.end_headers()
        self.wfile.write(b"ok")

    def log_message(self, format, *args):
        pass


@pytest.fixture
def http_listener():
    """A reachable HTTP server on an ephemeral localhost port."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _OkHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(5)


@pytest.fixture
def run_in_thread():
    """Run sessions in background threads; kill any left running at teardown."""
    started = []

    def _run(session):
        result = []
        thread = threading.Thread(target=lambda: result.append(session.run()), daemon=True)
        thread.start()
        started.append((session, thread))
        return thread, result

    yield _run

    for session, thread in started:
        session.cancel("test teardown")
        thread.join(10)
