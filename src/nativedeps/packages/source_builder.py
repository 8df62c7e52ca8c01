"""Fallback source build for native libraries.

When the probe finds no installed copy, the library is fetched from its
pinned URL, verified against the pinned SHA-256, extracted, and built in
source through three phases (configure, build, install) into an isolated
prefix owned by this dependency alone.

Nothing is extracted and no phase runs until the archive hash matches, so a
tampered archive leaves the install prefix untouched.
"""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from ..build.phase_runner import BuildPhase, PhaseRunner
from ..build.process_runner import ProcessRunner
from ..config.library_specs import LibrarySpec, SourceFetchSpec
from ..errors import ChecksumMismatch, ExtractionError, MissingByproduct
from .cache import Cache
from .downloader import PackageDownloader
from .resolution import ResolvedArtifact


class SourceBuilder:
    """Fetches, verifies, builds and installs a library from source."""

    def __init__(
        self,
        cache: Cache,
        runner: ProcessRunner,
        downloader: Optional[PackageDownloader] = None,
        show_progress: bool = True,
        verbose: bool = False,
    ):
        """Initialize source builder.

        Args:
            cache: Build directory layout
            runner: Process runner for the external phases
            downloader: Package downloader (created if None)
            show_progress: Show download/extract progress
            verbose: Print phase decisions
        """
        self.cache = cache
        self.runner = runner
        self.downloader = downloader or PackageDownloader()
        self.show_progress = show_progress
        self.verbose = verbose

    def fetch_build_install(
        self, spec: LibrarySpec, fetch: SourceFetchSpec, force: bool = False
    ) -> List[ResolvedArtifact]:
        """Produce the library's artifacts in the isolated prefix.

        Args:
            spec: Library specification (header and variants)
            fetch: Pinned source release and prefix
            force: Re-extract the verified archive and re-run every phase

        Returns:
            One ResolvedArtifact per variant, in variant order

        Raises:
            ChecksumMismatch: If the archive does not match the pinned hash
            DownloadError: If the archive cannot be fetched
            ExtractionError: If the archive cannot be extracted
            ProcessFailure: If configure, build or install fails
            MissingByproduct: If an expected file is missing after install
        """
        source_dir = self.cache.get_source_dir(spec.name)
        phases = self.get_phases(spec, fetch, source_dir)
        phase_runner = PhaseRunner(
            spec.name, self.cache.get_stamp_dir(spec.name), self.runner, self.verbose
        )

        # An intact install is enough, even if the source tree is gone
        if not force and phase_runner.is_complete(phases[-1]):
            if self.verbose:
                print(f"Using previously built {spec.name} at {fetch.prefix}")
            return self._collect_artifacts(spec, fetch)

        if force or not source_dir.is_dir() or not phase_runner.is_complete(phases[0]):
            archive_path = self._fetch_verified(fetch)
            self._extract(archive_path, source_dir)
            phase_runner.clear()

        executed = phase_runner.run_phases(phases, force=force)
        logging.info(f"{spec.name}: executed phases {executed}")
        return self._collect_artifacts(spec, fetch)

    def get_phases(
        self, spec: LibrarySpec, fetch: SourceFetchSpec, source_dir: Path
    ) -> List[BuildPhase]:
        """Build the configure/build/install phases for a library.

        Args:
            spec: Library specification
            fetch: Source fetch spec
            source_dir: Extracted source tree (built in source)

        Returns:
            Phases in execution order
        """
        return [
            BuildPhase(
                name="configure",
                command=fetch.configure_command(),
                cwd=source_dir,
                byproducts=[source_dir / "Makefile"],
            ),
            BuildPhase(
                name="build",
                command=list(fetch.build_command),
                cwd=source_dir,
                byproducts=[source_dir / "lib" / archive for archive in spec.variants.values()],
            ),
            BuildPhase(
                name="install",
                command=list(fetch.install_command),
                cwd=source_dir,
                byproducts=fetch.byproducts(spec),
            ),
        ]

    def _fetch_verified(self, fetch: SourceFetchSpec) -> Path:
        """Return a path to the archive whose hash matches the pinned value."""
        self.cache.ensure_directories()
        archive_path = self.cache.get_download_path(fetch.url, fetch.archive_name)

        if self.cache.is_download_cached(fetch.url, fetch.archive_name):
            if self.show_progress:
                print(f"Using cached {fetch.archive_name}")
            try:
                self.downloader.verify_checksum(archive_path, fetch.sha256)
            except ChecksumMismatch:
                archive_path.unlink()
                raise
            return archive_path

        return self.downloader.download(
            fetch.url, archive_path, fetch.sha256, show_progress=self.show_progress
        )

    def _extract(self, archive_path: Path, source_dir: Path) -> None:
        """Extract an archive so its top-level directory becomes source_dir."""
        source_dir.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=source_dir.parent) as temp_dir:
            temp_path = Path(temp_dir)
            self.downloader.extract_archive(
                archive_path, temp_path, show_progress=self.show_progress
            )

            extracted = list(temp_path.iterdir())
            if not extracted:
                raise ExtractionError(f"Archive is empty: {archive_path}")
            if len(extracted) == 1 and extracted[0].is_dir():
                src = extracted[0]
            else:
                src = temp_path

            if source_dir.exists():
                shutil.rmtree(source_dir)
            if src == temp_path:
                shutil.copytree(str(src), str(source_dir))
            else:
                shutil.move(str(src), str(source_dir))

    def _collect_artifacts(
        self, spec: LibrarySpec, fetch: SourceFetchSpec
    ) -> List[ResolvedArtifact]:
        artifacts = [
            ResolvedArtifact(variant=variant, path=fetch.prefix / "lib" / archive)
            for variant, archive in spec.variants.items()
        ]
        unusable = [artifact.path for artifact in artifacts if not artifact.is_usable()]
        if unusable:
            raise MissingByproduct(spec.name, "install", unusable)
        return artifacts
