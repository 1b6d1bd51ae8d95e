"""
Extractor process execution

ProcessRunner starts the extractor as a child process, drains stdout and
stderr concurrently (stderr lines can be forwarded to a callback while the
process runs) and enforces a hard time limit. Orchestration code only
depends on the `run(command, timeout, on_stderr)` signature, so tests
inject a fake runner instead of spawning real processes.
"""

import contextlib
import os
import shutil
import signal
import subprocess
import threading
from dataclasses import dataclass
from typing import Callable, IO, List, Optional, Sequence

from ..exceptions import ExtractorNotFoundError, ExtractorProcessError, ExtractorTimeoutError
from ..utils.logger import get_logger

logger = get_logger(__name__)

StderrCallback = Callable[[str], None]

# Seconds to wait for the output pipes to close once the child is gone
READER_GRACE = 2.0


@dataclass
class ProcessResult:
    """
    Outcome of one finished extractor process

    Attributes:
        command: Full command line that was executed
        returncode: Exit status of the process
        stdout: Captured standard output
        stderr: Captured standard error
    """
    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ProcessRunner:
    """
    Runs external programs synchronously with a time limit
    """

    def run(
        self,
        command: Sequence[str],
        timeout: float,
        on_stderr: Optional[StderrCallback] = None
    ) -> ProcessResult:
        """
        Run a command to completion

        Args:
            command: Program followed by its arguments
            timeout: Maximum run time in seconds
            on_stderr: Called with each stderr line while the process runs

        Returns:
            ProcessResult with exit status and captured output

        Raises:
            ExtractorProcessError: If the program cannot be started
            ExtractorTimeoutError: If the time limit is exceeded (the child and its
                                   process group are killed)
        """
        command = list(command)
        logger.debug(f"Running: {subprocess.list2cmdline(command)}")

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding='utf-8',
                errors='replace',
                # Own process group, so helpers spawned by the extractor die with it
                start_new_session=(os.name == 'posix'),
            )
        except OSError as e:
            raise ExtractorProcessError(
                f"Failed to start {command[0]}: {e}",
                details={"command": command, "original_error": str(e)}
            ) from e

        stdout_chunks: List[str] = []
        stderr_lines: List[str] = []

        readers = [
            threading.Thread(target=_drain, args=(process.stdout, stdout_chunks, None), daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, stderr_lines, on_stderr), daemon=True),
        ]
        for reader in readers:
            reader.start()

        try:
            returncode = process.wait(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            _kill_group(process)
            process.wait()
            _join_readers(readers)
            raise ExtractorTimeoutError(
                f"{command[0]} exceeded the time limit of {timeout}s",
                details={"command": command, "timeout": timeout},
                stderr="".join(stderr_lines)
            ) from e

        if not _join_readers(readers):
            # A leftover descendant still holds the pipes open
            logger.warning(f"{command[0]} left processes behind, killing them")
            _kill_group(process)
            _join_readers(readers)

        return ProcessResult(
            command=command,
            returncode=returncode,
            stdout="".join(stdout_chunks),
            stderr="".join(stderr_lines),
        )


def _kill_group(process: subprocess.Popen) -> None:
    """Kill the child and everything it started in its process group"""
    if os.name != 'posix':
        process.kill()
        return
    with contextlib.suppress(ProcessLookupError, PermissionError):
        os.killpg(process.pid, signal.SIGKILL)


def _join_readers(readers: List[threading.Thread]) -> bool:
    """Wait a bounded time for the pipe readers, True if all finished"""
    for reader in readers:
        reader.join(READER_GRACE)
    return not any(reader.is_alive() for reader in readers)


def _drain(stream: IO[str], sink: List[str], callback: Optional[StderrCallback]) -> None:
    """Read a pipe line by line until EOF"""
    with stream:
        for line in stream:
            sink.append(line)
            if callback is not None and line.strip():
                callback(line.rstrip("\n"))


def find_executable(name: str) -> str:
    """
    Locate the extractor executable

    Args:
        name: Program name ("yt-dlp", "youtube-dl") or a path

    Returns:
        Absolute path of the executable

    Raises:
        ExtractorNotFoundError: If nothing runnable is found
    """
    path = shutil.which(name)
    if path is None:
        raise ExtractorNotFoundError(
            f"No {name} executable - see: https://github.com/yt-dlp/yt-dlp#installation",
            details={"executable": name}
        )
    logger.debug(f"{name} executable: {path}")
    return path
