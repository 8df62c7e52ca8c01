"""
Build settings for a configuration pass.

BuildSettings is the single explicit configuration value handed to every
component entry point. It is assembled from built-in defaults, the optional
nativedeps.ini file, the NATIVEDEPS_BUILD_DIR environment variable and
command-line flags, in increasing order of precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..errors import ConfigError
from ..packages.platform_utils import PlatformDetector

# Upper bound for a single external phase (configure, make, make install)
DEFAULT_PROCESS_TIMEOUT = 3600

COROUTINE_IMPLS = ("default", "libcoro")


@dataclass
class BuildSettings:
    """Explicit configuration for one nativedeps configuration pass."""

    project_dir: Path
    build_dir: Path
    platform: str
    with_tls: bool = False
    coroutine_impl: str = "default"
    rocksdb_experimental: bool = False
    process_timeout: Optional[float] = DEFAULT_PROCESS_TIMEOUT
    prefix_hints: List[Path] = field(default_factory=list)
    generator: str = "Unix Makefiles"
    force: bool = False
    verbose: bool = False

    def __post_init__(self):
        self.project_dir = Path(self.project_dir).resolve()
        self.build_dir = Path(self.build_dir).resolve()
        if self.coroutine_impl not in COROUTINE_IMPLS:
            raise ConfigError(
                f"Unknown coroutine implementation '{self.coroutine_impl}'. "
                + f"Expected one of: {', '.join(COROUTINE_IMPLS)}"
            )
        # 0 means "no timeout"
        if self.process_timeout is not None and self.process_timeout <= 0:
            self.process_timeout = None

    @classmethod
    def defaults(cls, project_dir: Optional[Path] = None) -> "BuildSettings":
        """Create settings with built-in defaults for a project directory.

        The build directory defaults to <project_dir>/.nativedeps/build and can
        be overridden with the NATIVEDEPS_BUILD_DIR environment variable.

        Args:
            project_dir: Project directory. If None, uses current directory.

        Returns:
            BuildSettings for the host platform
        """
        if project_dir is None:
            project_dir = Path.cwd()
        project_dir = Path(project_dir).resolve()

        build_env = os.environ.get("NATIVEDEPS_BUILD_DIR")
        if build_env:
            build_dir = Path(build_env)
        else:
            build_dir = project_dir / ".nativedeps" / "build"

        return cls(
            project_dir=project_dir,
            build_dir=build_dir,
            platform=PlatformDetector.detect_platform(),
            prefix_hints=_prefix_hints_from_env(),
        )


def _prefix_hints_from_env() -> List[Path]:
    """Collect extra search prefixes from CMAKE_PREFIX_PATH and NATIVEDEPS_PREFIX_PATH."""
    hints: List[Path] = []
    for var in ("NATIVEDEPS_PREFIX_PATH", "CMAKE_PREFIX_PATH"):
        value = os.environ.get(var, "")
        for entry in value.split(os.pathsep):
            if entry:
                hints.append(Path(entry))
    return hints
