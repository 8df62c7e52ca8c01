"""Error taxonomy for nativedeps.

Every fatal condition raised during a configuration pass derives from
NativeDepsError so the CLI can report it as a single diagnostic.

    ProbeInconclusive   non-fatal, converted to NotFound by the probe
    ChecksumMismatch    fatal, raised before any build phase runs
    ProcessFailure      fatal, names the failing phase and project
    MissingByproduct    fatal, a phase reported success but output is missing
"""

from pathlib import Path
from typing import List, Optional, Sequence


class NativeDepsError(Exception):
    """Base class for all nativedeps errors."""

    pass


class ConfigError(NativeDepsError):
    """Raised for invalid nativedeps.ini or build settings."""

    pass


class ProbeInconclusive(NativeDepsError):
    """Raised when a search location could not be inspected."""

    pass


class DownloadError(NativeDepsError):
    """Raised when download fails."""

    pass


class ExtractionError(NativeDepsError):
    """Raised when archive extraction fails."""

    pass


class ChecksumMismatch(NativeDepsError):
    """Raised when a downloaded archive does not match its pinned hash."""

    def __init__(self, source: str, expected: str, actual: str):
        self.source = source
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch for {source}\n"
            + f"Expected: {expected}\n"
            + f"Got: {actual}"
        )


class ProcessFailure(NativeDepsError):
    """Raised when an external phase exits non-zero or times out."""

    def __init__(
        self,
        phase: str,
        project: str,
        returncode: Optional[int],
        output: str = "",
        timed_out: bool = False,
    ):
        self.phase = phase
        self.project = project
        self.returncode = returncode
        self.output = output
        self.timed_out = timed_out

        if timed_out:
            detail = "timed out"
        else:
            detail = f"exit status {returncode}"
        message = f"{phase.capitalize()} step for {project} has failed ({detail})"
        if output:
            message += f"\n{output.rstrip()}"
        super().__init__(message)


class MissingByproduct(NativeDepsError):
    """Raised when a phase succeeded but a declared byproduct is absent."""

    def __init__(self, project: str, phase: str, missing: Sequence[Path]):
        self.project = project
        self.phase = phase
        self.missing: List[Path] = list(missing)
        listing = "\n".join(f"  {path}" for path in self.missing)
        super().__init__(
            f"{phase.capitalize()} step for {project} reported success "
            + f"but expected byproducts are missing:\n{listing}"
        )


class UndeclaredTargetError(NativeDepsError):
    """Raised when a target links a handle that has not been declared yet."""

    pass


class TargetConflictError(NativeDepsError):
    """Raised when a target name is declared twice with different contents."""

    pass
