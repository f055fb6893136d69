"""
Runs the function process for one request.

The request body is written to the child's stdin on one thread while its
combined stdout/stderr is drained on another. Doing both at once is what keeps
filter-style programs (cat, jq, sed ...) from deadlocking once their output
exceeds the pipe buffer before they have read all of their input.

Both threads are joined before the output or the exit status is looked at, so
a caller never sees partial output.
"""

import logging
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import IO, Dict, List, Optional

import psutil

from .config import WatchdogConfig
from .errors import InvocationError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


@dataclass
class InvocationResult:
    """Outcome of a single function invocation."""

    output: bytes
    duration: float
    error: Optional[InvocationError] = None
    returncode: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def kill_process_tree(pid: int) -> None:
    """Kill a process and everything it spawned."""
    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return
    for proc in children + [parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue


def describe_exit(returncode: int) -> str:
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


class ProcessBridge:
    """
    Spawns the configured function and pipes one request through it.

    A bridge holds no per-request state, so a single instance can serve any
    number of concurrent requests.
    """

    def __init__(self, config: WatchdogConfig):
        self.config = config

    def run(
        self,
        argv: List[str],
        env: Optional[Dict[str, str]] = None,
        has_body: bool = False,
        stdin_bytes: bytes = b"",
    ) -> InvocationResult:
        """
        Run the function to completion.

        Args:
            argv: Executable and arguments.
            env: Full environment for the child, or None to inherit ours.
            has_body: Whether stdin_bytes should be fed to the child. When False
                the child's stdin is /dev/null.
            stdin_bytes: Bytes to write to the child's stdin.

        Returns:
            InvocationResult: Output, duration and the error if the call failed.
            Failures are reported here, never raised.
        """
        start_time = time.monotonic()

        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE if has_body else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=env,
            )
        except (OSError, ValueError) as e:
            error = InvocationError(f"exec: {e}")
            return InvocationResult(b"", time.monotonic() - start_time, error)

        logger.debug(f"Started {argv[0]} with PID {process.pid}")

        chunks: List[bytes] = []
        threads = []
        if has_body:
            threads.append(
                threading.Thread(target=self._feed, args=(process.stdin, stdin_bytes), daemon=True)
            )
        threads.append(threading.Thread(target=self._drain, args=(process.stdout, chunks), daemon=True))

        for thread in threads:
            thread.start()

        timeout = self.config.invocation_timeout
        timed_out = False
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            timed_out = True
            logger.warning(f"PID {process.pid} exceeded {timeout}s, killing it")
            kill_process_tree(process.pid)
            process.wait()

        for thread in threads:
            thread.join()

        duration = time.monotonic() - start_time
        output = b"".join(chunks)
        returncode = process.returncode

        error = None
        if timed_out:
            error = InvocationError(f"timed out after {timeout:g}s", output, returncode)
        elif returncode != 0:
            error = InvocationError(describe_exit(returncode), output, returncode)

        return InvocationResult(output, duration, error, returncode)

    @staticmethod
    def _feed(stream: IO[bytes], data: bytes) -> None:
        try:
            stream.write(data)
        except BrokenPipeError:
            # The child exited without reading all of its input.
            logger.debug("Function closed stdin before the body was fully written")
        finally:
            try:
                stream.close()
            except BrokenPipeError:
                pass

    @staticmethod
    def _drain(stream: IO[bytes], chunks: List[bytes]) -> None:
        try:
            for chunk in iter(lambda: stream.read(READ_CHUNK_SIZE), b""):
                chunks.append(chunk)
        finally:
            stream.close()
