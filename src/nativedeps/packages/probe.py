"""Probe for an installed copy of a native library.

The probe is a pure read of conventional include and library locations.
It never writes and never fails fatally: anything short of a complete,
usable installation is reported as NotFound, which triggers the source
build fallback.
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..config.library_specs import LibrarySpec
from ..errors import ProbeInconclusive
from .platform_utils import PlatformDetector
from .resolution import FoundInSystem, NotFound, ProbeResult, ResolvedArtifact


class LibraryProbe:
    """Searches search-path prefixes for a library's header and archives."""

    def __init__(self, library_subdirs: Optional[List[str]] = None, verbose: bool = False):
        """Initialize probe.

        Args:
            library_subdirs: Library directories below each prefix
                (defaults to the host convention, e.g. lib, lib64)
            verbose: Print each lookup result
        """
        if library_subdirs is None:
            library_subdirs = PlatformDetector.library_subdirs()
        self.library_subdirs = library_subdirs
        self.verbose = verbose

    def resolve(self, spec: LibrarySpec) -> ProbeResult:
        """Look for an installed copy of a library.

        The header and each variant are searched independently; for each,
        the first prefix in search order holding it wins.

        Args:
            spec: Library specification

        Returns:
            FoundInSystem if the header and every variant were found,
            NotFound otherwise
        """
        try:
            include_dir = self._find_include_dir(spec)
            if include_dir is None:
                return self._not_found(spec, f"header {spec.header} not found")

            artifacts = []
            for variant, archive in spec.variants.items():
                path = self._find_library(spec, archive)
                if path is None:
                    return self._not_found(spec, f"{archive} not found")
                artifacts.append(ResolvedArtifact(variant=variant, path=path))
        except ProbeInconclusive as e:
            return self._not_found(spec, str(e))

        if self.verbose:
            print(f"Found {spec.name} in system: {include_dir}")
        logging.info(f"Probe found {spec.name}: {[str(a.path) for a in artifacts]}")
        return FoundInSystem(library=spec.name, include_dir=include_dir, artifacts=artifacts)

    def _find_include_dir(self, spec: LibrarySpec) -> Optional[Path]:
        """Return the first include directory containing the marker header."""
        for prefix in spec.search_paths:
            include_dir = prefix / "include"
            if self._is_usable_file(include_dir / spec.header):
                return include_dir.resolve()
        return None

    def _find_library(self, spec: LibrarySpec, archive: str) -> Optional[Path]:
        """Return the first library path holding a non-empty archive."""
        for prefix in spec.search_paths:
            for subdir in self.library_subdirs:
                candidate = prefix / subdir / archive
                if self._is_usable_file(candidate):
                    return candidate.resolve()
        return None

    @staticmethod
    def _is_usable_file(path: Path) -> bool:
        """Check that path is a non-empty regular file.

        Raises:
            ProbeInconclusive: If the location cannot be inspected
        """
        try:
            return path.is_file() and path.stat().st_size > 0
        except PermissionError as e:
            raise ProbeInconclusive(f"Cannot inspect {path}: {e}") from e

    def _not_found(self, spec: LibrarySpec, reason: str) -> NotFound:
        if self.verbose:
            print(f"{spec.name} not found in system ({reason})")
        logging.info(f"Probe did not find {spec.name}: {reason}")
        return NotFound(library=spec.name, reason=reason)
