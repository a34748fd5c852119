"""
Session supervisor for a single forwarding subprocess.

Spawns the forwarder with its stdout piped through a tee relay, feeds the
discovered endpoints to a health monitor, and maps the way the subprocess
ends to an exit status. A failed health check cancels the session, which
kills the forwarder so an outer loop can start a fresh one.
"""

import logging
import shlex
import signal
import subprocess
import sys
from enum import Enum
from typing import BinaryIO, Optional, Sequence

import psutil

from .cancel import CancelSignal
from .config import Config, config
from .extractor import EndpointExtractor
from .health import HealthMonitor
from .registry import EndpointRegistry
from .relay import TeeRelay

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

JOIN_TIMEOUT = 5.0


class SessionState(Enum):
    STARTING = "starting"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


def build_command(args: Sequence[str], cfg: Config = config) -> list[str]:
    """Build the forwarder command line with the pass-through arguments."""
    return [cfg.forward_command, *cfg.forward_subcommand, *args]


def describe_exit(returncode: int) -> str:
    """Describe a non-zero exit the way a shell would."""
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


def kill_process_tree(parent: psutil.Process):
    """Kill a process and everything it spawned.

    psutil refuses to signal a handle whose PID has been reused.
    """
    try:
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return

    for proc in children + [parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass


class Session:
    """One supervised run of the forwarding subprocess."""

    def __init__(
        self,
        args: Sequence[str],
        cfg: Optional[Config] = None,
        stdout: Optional[BinaryIO] = None,
        stderr=None,
    ):
        self.config = cfg or config
        self.command = build_command(args, self.config)
        self.cancel_signal = CancelSignal()
        self.registry = EndpointRegistry()
        self.state = SessionState.STARTING
        self.returncode: Optional[int] = None
        self._stdout = stdout
        self._stderr = stderr
        self._process: Optional[subprocess.Popen] = None
        self._handle: Optional[psutil.Process] = None

    @property
    def name(self) -> str:
        return self.command[0]

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    def cancel(self, reason: str = "cancelled") -> bool:
        """Request cancellation of the session. Safe to call repeatedly."""
        return self.cancel_signal.cancel(reason)

    def run(self) -> int:
        """Run the session to completion and return the exit status."""
        sink = self._stdout if self._stdout is not None else sys.stdout.buffer

        try:
            relay = TeeRelay(sink)
        except OSError as e:
            logger.error(f"attaching to {self.name} stdout: {e}")
            self.state = SessionState.FAILED
            return EXIT_FAILURE

        logger.info(f"Starting {shlex.join(self.command)}")
        try:
            process = subprocess.Popen(
                self.command,
                stdout=subprocess.PIPE,
                stderr=self._stderr,
                bufsize=0,
            )
        except OSError as e:
            relay.close()
            logger.error(f"{self.name}: {e}")
            self.state = SessionState.FAILED
            return EXIT_FAILURE

        if process.stdout is None:
            kill_process_tree(psutil.Process(process.pid))
            process.wait()
            relay.close()
            logger.error(f"attaching to {self.name} stdout: no stdout pipe")
            self.state = SessionState.FAILED
            return EXIT_FAILURE

        self._process = process
        # Taken before wait() can reap the child, so it pins this PID
        self._handle = psutil.Process(process.pid)
        self.cancel_signal.add_callback(self._terminate)

        extractor = EndpointExtractor(relay.reader, self.registry)
        monitor = HealthMonitor(
            self.registry,
            self.cancel_signal,
            interval=self.config.health_interval,
            timeout=self.config.health_timeout,
        )
        relay.start(process.stdout)
        extractor.start()
        monitor.start()

        self.state = SessionState.RUNNING
        logger.info(f"Started {self.name} with PID {process.pid}")

        interrupted = False
        try:
            self.returncode = process.wait()
        except KeyboardInterrupt:
            interrupted = True
            self.cancel_signal.cancel("interrupted")
            self.returncode = process.wait()

        exit_code = self._finish(interrupted)

        # Stop the monitor and wait for the stream threads to drain
        self.cancel_signal.cancel("session ended")
        relay.join(JOIN_TIMEOUT)
        extractor.join(JOIN_TIMEOUT)
        monitor.join(JOIN_TIMEOUT)
        process.stdout.close()

        if extractor.error is not None:
            logger.warning(f"Error reading {self.name} output: {extractor.error}")

        return exit_code

    def _finish(self, interrupted: bool) -> int:
        """Map the subprocess outcome to a final state and exit status."""
        if interrupted:
            self.state = SessionState.CANCELLED
            return EXIT_INTERRUPTED

        if self.cancel_signal.is_cancelled:
            # The forwarder was killed on purpose; its exit error is expected
            self.state = SessionState.CANCELLED
            logger.info(f"{self.name} terminated: {self.cancel_signal.reason}")
            return EXIT_FAILURE

        if self.returncode == 0:
            self.state = SessionState.COMPLETED
            logger.info(f"{self.name} exited cleanly")
            return EXIT_OK

        self.state = SessionState.FAILED
        logger.error(f"{self.name}: {describe_exit(self.returncode)}")
        return EXIT_FAILURE

    def _terminate(self, reason: str):
        if self._handle is None or not self._handle.is_running():
            return
        logger.debug(f"Killing {self.name} (PID {self._handle.pid}): {reason}")
        kill_process_tree(self._handle)
