"""
Reachability monitor for forwarded endpoints.

Every interval the first discovered endpoint is fetched with a plain GET.
All forwarded ports share fate with the forwarder, so one endpoint stands in
for them all. Any HTTP response counts as healthy, redirects included; only
a transport failure (refused, timeout, DNS, TLS) counts as unhealthy, and it
cancels the whole session.
"""

import logging
import threading
from typing import Optional

import httpx

from .cancel import CancelSignal
from .registry import EndpointRegistry

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3.0
DEFAULT_TIMEOUT = 10.0


def build_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.Client:
    """Client for health checks: no redirects, and never via an env proxy.

    Endpoints are local forwards, so a proxy would answer for a dead tunnel.
    """
    return httpx.Client(follow_redirects=False, timeout=timeout, trust_env=False)


def check_endpoint(client: httpx.Client, url: str) -> Optional[Exception]:
    """GET url once. Returns the transport error, or None if anything answered.

    Only the status line and headers are awaited; the body is never read, so
    streaming endpoints count as healthy.
    """
    try:
        with client.stream("GET", url) as response:
            logger.debug(f"Health check {url}: HTTP {response.status_code}")
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return e
    return None


class HealthMonitor:
    """Periodically checks the registry's first endpoint until cancelled."""

    def __init__(
        self,
        registry: EndpointRegistry,
        cancel_signal: CancelSignal,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._registry = registry
        self._cancel = cancel_signal
        self._interval = interval
        self._client = client or build_client(timeout)
        self._thread = threading.Thread(target=self._monitor_loop, name="health-monitor", daemon=True)
        self.checks = 0

    def start(self):
        self._thread.start()
        logger.debug(f"Health monitor started (interval {self._interval}s)")

    def join(self, timeout: Optional[float] = None):
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def tick(self) -> Optional[bool]:
        """Run one check cycle.

        Returns None if there was nothing to check, otherwise whether the
        representative endpoint was reachable.
        """
        endpoint = self._registry.first()
        if endpoint is None:
            return None

        self.checks += 1
        error = check_endpoint(self._client, endpoint)
        if error is None:
            return True

        logger.error(f"health check failed: {endpoint}: {error!r}")
        self._cancel.cancel(f"health check failed: {endpoint}")
        return False

    def _monitor_loop(self):
        """Tick on the interval until the session is cancelled."""
        try:
            while not self._cancel.wait(self._interval):
                try:
                    self.tick()
                except Exception as e:
                    logger.error(f"Error in health monitor loop: {e!r}")
        finally:
            self._client.close()
            logger.debug("Health monitor stopped")
