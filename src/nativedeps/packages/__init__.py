"""Package management for nativedeps.

This module handles probing for installed libraries and downloading,
verifying and building them from source when none is found.
"""

from .cache import Cache
from .downloader import PackageDownloader
from .platform_utils import PlatformDetector, PlatformError
from .probe import LibraryProbe
from .resolution import (
    BuiltFromSource,
    Failed,
    FoundInSystem,
    NotFound,
    ResolvedArtifact,
)
from .source_builder import SourceBuilder

__all__ = [
    "Cache",
    "PackageDownloader",
    "PlatformDetector",
    "PlatformError",
    "LibraryProbe",
    "ResolvedArtifact",
    "FoundInSystem",
    "NotFound",
    "BuiltFromSource",
    "Failed",
    "SourceBuilder",
]
