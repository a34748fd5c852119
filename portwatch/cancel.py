"""
One-shot cancellation signal shared by every activity of a session.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CancelSignal:
    """Idempotent, monotonic cancellation flag with wait and callbacks."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None
        self._callbacks: list[Callable[[str], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        """Reason given by the first trigger, or None if not cancelled."""
        return self._reason

    def cancel(self, reason: str = "cancelled") -> bool:
        """Trigger cancellation. Returns True only for the first trigger."""
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            callbacks = list(self._callbacks)

        logger.debug(f"Session cancelled: {reason}")
        for callback in callbacks:
            self._run_callback(callback)
        return True

    def add_callback(self, callback: Callable[[str], None]):
        """Run callback(reason) once on cancellation, now if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._run_callback(callback)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout. Returns True if cancelled."""
        return self._event.wait(timeout)

    def _run_callback(self, callback: Callable[[str], None]):
        try:
            callback(self._reason)
        except Exception as e:
            logger.error(f"Error in cancel callback {callback!r}: {e}")
