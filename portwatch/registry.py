"""
Append-only registry of endpoints discovered from the forwarder's output.
"""

import threading
from typing import Iterator, Optional


class EndpointRegistry:
    """Ordered, thread-safe collection of endpoint URLs.

    A single writer appends while any number of readers take snapshots.
    Snapshots are immutable tuples, so readers never see a torn list.
    """

    def __init__(self):
        self._endpoints: tuple[str, ...] = ()
        self._lock = threading.Lock()

    def append(self, endpoint: str):
        """Add an endpoint to the end of the registry."""
        with self._lock:
            self._endpoints = self._endpoints + (endpoint,)

    def snapshot(self) -> tuple[str, ...]:
        """Return every endpoint appended so far, in order."""
        with self._lock:
            return self._endpoints

    def first(self) -> Optional[str]:
        """Return the first discovered endpoint, if any."""
        endpoints = self.snapshot()
        return endpoints[0] if endpoints else None

    def __len__(self) -> int:
        return len(self.snapshot())

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())
