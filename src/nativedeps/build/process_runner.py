"""Process Runner.

This module runs external build phases (configure, make, cmake) as blocking
subprocesses and returns a structured result instead of raising, so callers
decide how a failure maps onto the error taxonomy.

Design:
    - Wraps subprocess.run with captured output
    - Applies a bounded timeout (None disables it)
    - Reports a missing executable as a failed result rather than an OSError
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..interrupt_utils import handle_keyboard_interrupt_properly


@dataclass
class ProcessResult:
    """Outcome of one external process invocation."""

    command: List[str]
    returncode: Optional[int]
    stdout: str
    stderr: str
    duration: float
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return not self.timed_out and self.returncode == 0

    @property
    def output(self) -> str:
        """Combined output for diagnostics."""
        parts = [part.rstrip() for part in (self.stdout, self.stderr) if part and part.strip()]
        return "\n".join(parts)


class ProcessRunner:
    """Runs blocking subprocesses with an optional timeout."""

    def __init__(self, timeout: Optional[float] = None, verbose: bool = False):
        """Initialize process runner.

        Args:
            timeout: Seconds before a process is killed (None waits forever)
            verbose: Echo commands and their output
        """
        self.timeout = timeout
        self.verbose = verbose

    def run(self, command: Sequence[str], cwd: Path) -> ProcessResult:
        """Run a command to completion.

        Args:
            command: Command and arguments
            cwd: Working directory

        Returns:
            ProcessResult with exit status and captured output
        """
        cmd = [str(part) for part in command]
        if self.verbose:
            print(f"  $ {' '.join(cmd)}  (in {cwd})")
        logging.debug(f"Running {cmd} in {cwd}")

        start = time.time()
        try:
            completed = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            return ProcessResult(
                command=cmd,
                returncode=None,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
                duration=time.time() - start,
                timed_out=True,
            )
        except FileNotFoundError as e:
            return ProcessResult(
                command=cmd,
                returncode=127,
                stdout="",
                stderr=f"Command not found: {e}",
                duration=time.time() - start,
            )
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker

        result = ProcessResult(
            command=cmd,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration=time.time() - start,
        )
        if self.verbose and result.output:
            print(result.output)
        return result


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
