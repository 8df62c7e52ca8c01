"""Build directory layout for nativedeps.

Build Structure:
    <build_dir>/
    ├── downloads/
    │   └── {url_hash}/              # SHA256 hash of the archive URL
    │       └── jemalloc-5.2.1.tar.bz2
    ├── jemalloc/                    # Isolated install prefix (owned by the builder)
    │   ├── include/jemalloc/jemalloc.h
    │   └── lib/libjemalloc.a, libjemalloc_pic.a
    ├── jemalloc-src/                # Extracted sources, built in source
    ├── stamps/
    │   └── {project}/{phase}.stamp  # Written only after a phase succeeded
    └── flowbench/
        └── googlebenchmark-download/  # Nested project staging dir

Each directory has exactly one writer, so no locking is needed.
"""

import hashlib
import shutil
from pathlib import Path


class Cache:
    """Manages the nativedeps build directory structure."""

    def __init__(self, build_dir: Path):
        """Initialize build layout.

        Args:
            build_dir: Build root for this configuration pass
        """
        self.build_root = Path(build_dir).resolve()

    @staticmethod
    def hash_url(url: str) -> str:
        """Generate a SHA256 hash of a URL for cache directory naming.

        Args:
            url: The URL to hash

        Returns:
            First 16 characters of SHA256 hash (sufficient for uniqueness)
        """
        return hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]

    @property
    def downloads_dir(self) -> Path:
        """Directory for downloaded source archives."""
        return self.build_root / "downloads"

    @property
    def stamps_dir(self) -> Path:
        """Directory for phase completion stamps."""
        return self.build_root / "stamps"

    def get_download_path(self, url: str, filename: str) -> Path:
        """Get path where a source archive would be stored.

        Args:
            url: Archive URL
            filename: Archive filename (e.g., 'jemalloc-5.2.1.tar.bz2')

        Returns:
            Path to the archive
        """
        return self.downloads_dir / self.hash_url(url) / filename

    def get_source_dir(self, name: str) -> Path:
        """Get directory where a dependency's sources are extracted."""
        return self.build_root / f"{name}-src"

    def get_stamp_dir(self, project: str) -> Path:
        """Get stamp directory for a project (dependency or nested project)."""
        return self.stamps_dir / project

    def get_target_dir(self, target: str) -> Path:
        """Get binary directory for a consumer target (e.g., 'flowbench')."""
        return self.build_root / target

    def is_download_cached(self, url: str, filename: str) -> bool:
        """Check if an archive is already downloaded.

        Args:
            url: Archive URL
            filename: Archive filename

        Returns:
            True if archive exists in the download cache
        """
        return self.get_download_path(url, filename).is_file()

    def ensure_directories(self) -> None:
        """Create shared build directories if they don't exist."""
        for directory in [self.downloads_dir, self.stamps_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    def clean(self) -> None:
        """Remove the entire build directory."""
        if self.build_root.exists():
            shutil.rmtree(self.build_root)
