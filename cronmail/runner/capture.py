"""
Run a command with its combined stdout/stderr captured to a log file.

Output is copied to the log file and mirrored to our own stderr as it
arrives, so an operator watching the wrapper still sees it live.
"""

import os
import shlex
import subprocess
import sys
import tempfile
import time
import logging
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

from cronmail.runner.result import ExecutionResult, Failure, describe_status, exit_status


logger = logging.getLogger("cronmail.capture")

# Set in the child environment so wrapped commands can tell they run under us
WRAPPED_ENV_VAR = "CRONMAIL_WRAPPED"

CHUNK_SIZE = 64 * 1024

DEFAULT_LOG_DIR = Path("logs")


def create_log_file(log_dir: Path = None) -> Path:
    """
    Create a uniquely named, empty log file for one run.

    Args:
        log_dir: Directory for log files, created if missing (default: ./logs)

    Returns:
        Path to the new file. It is never deleted by cronmail.
    """
    log_dir = Path(log_dir or DEFAULT_LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    fd, path = tempfile.mkstemp(prefix=f"cron-{stamp}-", suffix=".log", dir=str(log_dir))
    os.close(fd)
    return Path(path)


class OutputTee:
    """Writes every chunk to the log file and the mirror, keeping a copy."""

    def __init__(self, log_file: BinaryIO, mirror: Optional[BinaryIO]):
        self.log_file = log_file
        self.mirror = mirror
        self.captured = bytearray()

    def write(self, chunk: bytes) -> None:
        self.log_file.write(chunk)
        self.log_file.flush()
        if self.mirror is not None:
            self.mirror.write(chunk)
            self.mirror.flush()
        self.captured.extend(chunk)

    def line(self, text: str) -> None:
        self.write(f"{text}\n".encode('utf-8'))


def child_environment(env: Dict[str, str] = None) -> Dict[str, str]:
    """Environment for the wrapped command, with the wrapper marker set."""
    child_env = dict(os.environ if env is None else env)
    child_env[WRAPPED_ENV_VAR] = "1"
    return child_env


def run_command(
    argv: List[str],
    log_path: Path,
    env: Dict[str, str] = None,
    mirror: Optional[BinaryIO] = None,
    echo: bool = True
) -> ExecutionResult:
    """
    Run argv to completion, capturing combined output.

    A non-zero exit is a normal result, not an exception. A command that
    cannot be started is reported with the shell's codes (127 not found,
    126 for any other spawn error such as permission denied).

    Args:
        argv: Command and arguments
        log_path: File the combined output is appended to
        env: Base environment for the child (default: os.environ)
        mirror: Binary stream to mirror output to (default: our stderr)
        echo: Set False to capture without mirroring

    Returns:
        ExecutionResult with exit status, log path and captured bytes
    """
    if mirror is None and echo:
        mirror = sys.stderr.buffer
    if not echo:
        mirror = None

    command_text = shlex.join(argv)
    log_path = Path(log_path)
    start_time = time.time()

    with open(log_path, 'ab') as log_file:
        tee = OutputTee(log_file, mirror)
        tee.line(f"Running command: {command_text}")
        tee.line(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        try:
            process = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=child_environment(env)
            )
        except (FileNotFoundError, NotADirectoryError) as e:
            status = Failure(code=127)
            tee.line(f"cronmail: command not found: {e}")
        except OSError as e:
            # Permission denied, exec format error and the like
            status = Failure(code=126)
            tee.line(f"cronmail: cannot execute: {e}")
        else:
            with process.stdout:
                for chunk in iter(lambda: process.stdout.read1(CHUNK_SIZE), b''):
                    tee.write(chunk)
            status = exit_status(process.wait())

        duration = time.time() - start_time
        if tee.captured and not tee.captured.endswith(b"\n"):
            tee.write(b"\n")
        tee.line(f"Command exited with status {describe_status(status)} after {duration:.2f}s")

    logger.debug(f"Command '{command_text}' finished with status {status.code}, log at {log_path}")

    return ExecutionResult(
        status=status,
        log_path=log_path,
        output=bytes(tee.captured),
        duration_seconds=duration
    )
