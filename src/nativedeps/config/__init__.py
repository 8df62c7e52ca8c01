"""Configuration modules for nativedeps."""

from .ini_parser import CONFIG_FILENAME, LibraryOverrides, NativeDepsConfig
from .library_specs import (
    JEMALLOC,
    LibrarySpec,
    SourceFetchSpec,
    jemalloc_fetch_spec,
)
from .settings import BuildSettings

__all__ = [
    "BuildSettings",
    "CONFIG_FILENAME",
    "NativeDepsConfig",
    "LibraryOverrides",
    "LibrarySpec",
    "SourceFetchSpec",
    "JEMALLOC",
    "jemalloc_fetch_spec",
]
