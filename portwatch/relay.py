"""
Tee relay for the forwarder's stdout.

Copies every byte the subprocess writes to our own stdout, unbuffered, and
into an OS pipe whose read end feeds the endpoint extractor. The pipe is the
buffering boundary between the two consumers.
"""

import logging
import os
import threading
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


class TeeRelay:
    """Duplicates a byte stream to a visible sink and a readable pipe."""

    def __init__(self, sink: BinaryIO, name: str = "tee-relay"):
        self._source: Optional[BinaryIO] = None
        self._sink = sink
        read_fd, write_fd = os.pipe()
        self.reader: BinaryIO = os.fdopen(read_fd, "rb")
        self._writer: Optional[BinaryIO] = os.fdopen(write_fd, "wb")
        self._thread = threading.Thread(target=self._copy, name=name, daemon=True)
        self.bytes_relayed = 0

    def start(self, source: BinaryIO):
        """Begin relaying source. The pipe exists from construction on."""
        self._source = source
        self._thread.start()

    def join(self, timeout: Optional[float] = None):
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def close(self):
        """Release both pipe ends without relaying anything."""
        self._close_writer()
        self.reader.close()

    def _copy(self):
        """Relay chunks until the source closes."""
        read = getattr(self._source, "read1", self._source.read)
        sink_ok = True
        try:
            while True:
                try:
                    chunk = read(CHUNK_SIZE)
                except (OSError, ValueError) as e:
                    logger.warning(f"Error reading forwarder output: {e}")
                    break
                if not chunk:
                    break

                self.bytes_relayed += len(chunk)

                if sink_ok:
                    try:
                        self._sink.write(chunk)
                        self._sink.flush()
                    except (OSError, ValueError) as e:
                        # Keep feeding the extractor even if nobody is watching
                        logger.warning(f"Error writing forwarder output to stdout: {e}")
                        sink_ok = False

                if self._writer is not None:
                    try:
                        self._writer.write(chunk)
                        self._writer.flush()
                    except (OSError, ValueError) as e:
                        logger.debug(f"Endpoint pipe closed: {e}")
                        self._close_writer()
        finally:
            self._close_writer()

    def _close_writer(self):
        if self._writer is None:
            return
        try:
            self._writer.close()
        except OSError as e:
            logger.debug(f"Error closing endpoint pipe: {e}")
        self._writer = None
