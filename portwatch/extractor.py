"""
Endpoint discovery from forwarder output.

kubectl port-forward announces each local listener with a line such as:

    Forwarding from 127.0.0.1:8080 -> 80

The host:port between the prefix and the arrow becomes an http:// endpoint.
Lines in any other format are ignored.
"""

import logging
import threading
from typing import BinaryIO, Iterator, Optional, Union

from .registry import EndpointRegistry

logger = logging.getLogger(__name__)

FORWARDING_PREFIX = "Forwarding from "
FORWARDING_SEPARATOR = " -> "


def parse_endpoint(line: Union[str, bytes]) -> Optional[str]:
    """Return the endpoint URL announced by a line, or None."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")

    if not line.startswith(FORWARDING_PREFIX):
        return None

    end = line.find(FORWARDING_SEPARATOR, len(FORWARDING_PREFIX))
    if end == -1:
        return None

    return "http://" + line[len(FORWARDING_PREFIX):end]


def iter_endpoints(stream: BinaryIO) -> Iterator[str]:
    """Yield endpoints from a binary stream as their lines arrive.

    Read errors propagate to the caller.
    """
    for raw in stream:
        endpoint = parse_endpoint(raw.rstrip(b"\r\n"))
        if endpoint is not None:
            yield endpoint


class EndpointExtractor:
    """Background thread feeding discovered endpoints into a registry."""

    def __init__(self, stream: BinaryIO, registry: EndpointRegistry, name: str = "endpoint-extractor"):
        self._stream = stream
        self._registry = registry
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self.error: Optional[Exception] = None

    def start(self):
        self._thread.start()

    def join(self, timeout: Optional[float] = None):
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self):
        try:
            for endpoint in iter_endpoints(self._stream):
                self._registry.append(endpoint)
                logger.info(f"Discovered endpoint {endpoint}")
        except (OSError, ValueError) as e:
            self.error = e
        finally:
            try:
                self._stream.close()
            except OSError:
                pass
