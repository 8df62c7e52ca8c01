"""
Native library specifications.

This module centralizes what is known about each native dependency: the
marker header used to detect an installed copy, the static archive variants,
the conventional search prefixes, and the pinned source release used when
no installed copy is found.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Tuple

from ..errors import ConfigError

# Prefixes that belong to the host system and must never be used as an
# isolated install prefix.
SYSTEM_PREFIXES = ("/", "/usr", "/usr/local", "/opt", "/opt/homebrew")


@dataclass
class LibrarySpec:
    """What to look for when probing for an installed library."""

    name: str
    header: str  # Marker header relative to an include dir
    variants: Dict[str, str]  # Variant name -> archive filename, in link order
    search_paths: List[Path] = field(default_factory=list)

    def with_extra_search_paths(self, extra: List[Path]) -> "LibrarySpec":
        """Return a copy searching the given prefixes after the built-in ones."""
        merged = list(self.search_paths)
        for path in extra:
            if path not in merged:
                merged.append(path)
        return replace(self, search_paths=merged)


@dataclass
class SourceFetchSpec:
    """Pinned source release and how to build it into an isolated prefix."""

    url: str
    sha256: str
    prefix: Path
    configure_args: Tuple[str, ...] = ()
    build_command: Tuple[str, ...] = ("make",)
    install_command: Tuple[str, ...] = ("make", "install")

    def __post_init__(self):
        self.prefix = Path(self.prefix)
        if not self.prefix.is_absolute():
            raise ConfigError(f"Install prefix must be absolute: {self.prefix}")
        if str(self.prefix.resolve()) in SYSTEM_PREFIXES:
            raise ConfigError(
                f"Refusing to use system prefix {self.prefix} as an isolated install prefix"
            )
        if len(self.sha256) != 64:
            raise ConfigError(f"Pinned SHA-256 must be 64 hex digits: {self.sha256!r}")

    @property
    def archive_name(self) -> str:
        """Archive filename taken from the URL."""
        return self.url.rstrip("/").rsplit("/", 1)[-1]

    def configure_command(self) -> List[str]:
        """Configure command line targeting the isolated prefix."""
        return ["./configure", f"--prefix={self.prefix}", *self.configure_args]

    def byproducts(self, spec: LibrarySpec) -> List[Path]:
        """Files the install phase promises to produce under the prefix."""
        paths = [self.prefix / "include" / spec.header]
        for archive in spec.variants.values():
            paths.append(self.prefix / "lib" / archive)
        return paths


# jemalloc 5.2.1, the release the server and benchmark are tested against
JEMALLOC_VERSION = "5.2.1"
JEMALLOC_URL = (
    "https://github.com/jemalloc/jemalloc/releases/download/"
    + f"{JEMALLOC_VERSION}/jemalloc-{JEMALLOC_VERSION}.tar.bz2"
)
JEMALLOC_SHA256 = "34330e5ce276099e2e8950d9335db5a875689a4c6a56751ef3b1d8c537f887f6"

JEMALLOC = LibrarySpec(
    name="jemalloc",
    header="jemalloc/jemalloc.h",
    variants={
        "default": "libjemalloc.a",
        "pic": "libjemalloc_pic.a",
    },
    search_paths=[
        Path("/usr/local"),
        Path("/usr"),
        Path("/opt/homebrew"),
        Path("/opt/local"),
    ],
)

JEMALLOC_CONFIGURE_ARGS = ("--enable-static", "--disable-cxx")


def jemalloc_fetch_spec(
    build_dir: Path, url: str = JEMALLOC_URL, sha256: str = JEMALLOC_SHA256
) -> SourceFetchSpec:
    """
    Build the source fetch spec for jemalloc inside a build directory.

    Args:
        build_dir: Build root; the prefix is <build_dir>/jemalloc
        url: Archive URL (overridable from nativedeps.ini)
        sha256: Pinned archive hash

    Returns:
        SourceFetchSpec with the isolated prefix
    """
    return SourceFetchSpec(
        url=url,
        sha256=sha256.lower(),
        prefix=Path(build_dir).resolve() / "jemalloc",
        configure_args=JEMALLOC_CONFIGURE_ARGS,
    )

