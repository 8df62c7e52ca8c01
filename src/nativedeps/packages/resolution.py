"""Resolution results for native dependencies.

A library is resolved either by finding an installed copy or by building it
from source. The outcome is one of the tagged variants below, and only
declare_interface_target() dispatches on them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union


@dataclass(frozen=True)
class ResolvedArtifact:
    """A static archive variant with its absolute path."""

    variant: str
    path: Path

    def is_usable(self) -> bool:
        """True if the archive exists and is non-empty."""
        return self.path.is_file() and self.path.stat().st_size > 0


@dataclass(frozen=True)
class FoundInSystem:
    """The library is already installed under a conventional prefix."""

    library: str
    include_dir: Path
    artifacts: List[ResolvedArtifact] = field(default_factory=list)

    kind = "found-in-system"


@dataclass(frozen=True)
class NotFound:
    """The probe found no complete installed copy."""

    library: str
    reason: str

    kind = "not-found"


@dataclass(frozen=True)
class BuiltFromSource:
    """The library was fetched, verified and built into an isolated prefix."""

    library: str
    include_dir: Path
    artifacts: List[ResolvedArtifact] = field(default_factory=list)

    kind = "built-from-source"


@dataclass(frozen=True)
class Failed:
    """Resolution failed; carries the fatal error."""

    library: str
    reason: Exception

    kind = "failed"


ProbeResult = Union[FoundInSystem, NotFound]
Resolution = Union[FoundInSystem, BuiltFromSource, Failed]
