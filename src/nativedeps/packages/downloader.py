"""Package downloader with progress tracking and checksum verification.

This module handles downloading source archives from pinned URLs, verifying
them against a pinned SHA-256 before anything else touches them, and
extracting them.
"""

import hashlib
import logging
import tarfile
import zipfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests
from tqdm import tqdm

from ..errors import ChecksumMismatch, DownloadError, ExtractionError


class PackageDownloader:
    """Downloads and extracts packages with progress tracking."""

    def __init__(self, chunk_size: int = 8192, timeout: float = 30):
        """Initialize downloader.

        Args:
            chunk_size: Size of chunks for downloading and hashing
            timeout: Connect/read timeout for HTTP requests in seconds
        """
        self.chunk_size = chunk_size
        self.timeout = timeout

    def download(
        self,
        url: str,
        dest_path: Path,
        checksum: Optional[str] = None,
        show_progress: bool = True,
    ) -> Path:
        """Download a file from a URL.

        The file is streamed to a temporary sibling and only moved into place
        once its checksum matches, so dest_path never holds unverified data.

        Args:
            url: URL to download from
            dest_path: Destination file path
            checksum: Optional SHA256 checksum for verification
            show_progress: Whether to show progress bar

        Returns:
            Path to the downloaded file

        Raises:
            DownloadError: If download fails
            ChecksumMismatch: If checksum verification fails
        """
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        temp_file = dest_path.with_suffix(dest_path.suffix + ".tmp")

        try:
            response = requests.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))

            progress_bar = None
            if show_progress and total_size > 0:
                filename = Path(urlparse(url).path).name
                progress_bar = tqdm(
                    total=total_size,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    desc=f"Downloading {filename}",
                )

            sha256 = hashlib.sha256()

            with open(temp_file, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        f.write(chunk)
                        sha256.update(chunk)
                        if progress_bar:
                            progress_bar.update(len(chunk))

            if progress_bar:
                progress_bar.close()

            if checksum:
                actual_checksum = sha256.hexdigest()
                if actual_checksum.lower() != checksum.lower():
                    temp_file.unlink()
                    raise ChecksumMismatch(url, checksum.lower(), actual_checksum)

            if dest_path.exists():
                dest_path.unlink()
            temp_file.rename(dest_path)

            logging.info(f"Downloaded {url} -> {dest_path}")
            return dest_path

        except requests.RequestException as e:
            if temp_file.exists():
                temp_file.unlink()
            raise DownloadError(f"Failed to download {url}: {e}") from e

        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def extract_archive(
        self, archive_path: Path, dest_dir: Path, show_progress: bool = True
    ) -> Path:
        """Extract an archive file.

        Supports .tar.gz, .tar.bz2, .tar.xz, and .zip formats.

        Args:
            archive_path: Path to the archive file
            dest_dir: Destination directory for extraction
            show_progress: Whether to show progress information

        Returns:
            Path to the extracted directory

        Raises:
            ExtractionError: If extraction fails
        """
        archive_path = Path(archive_path)
        dest_dir = Path(dest_dir)

        if not archive_path.exists():
            raise ExtractionError(f"Archive not found: {archive_path}")

        dest_dir.mkdir(parents=True, exist_ok=True)

        if show_progress:
            print(f"Extracting {archive_path.name}...")

        try:
            if archive_path.suffix == ".zip":
                self._extract_zip(archive_path, dest_dir)
            elif archive_path.name.endswith((".tar.gz", ".tgz", ".tar.bz2", ".tar.xz")):
                self._extract_tar(archive_path, dest_dir)
            else:
                raise ExtractionError(
                    f"Unsupported archive format: {archive_path.suffix}"
                )
        except ExtractionError:
            raise
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            raise ExtractionError(f"Failed to extract {archive_path}: {e}") from e

        return dest_dir

    def _extract_tar(self, archive_path: Path, dest_dir: Path) -> None:
        """Extract a tar archive.

        Args:
            archive_path: Path to tar archive
            dest_dir: Destination directory
        """
        with tarfile.open(archive_path, "r:*") as tar:
            if hasattr(tarfile, "data_filter"):
                tar.extractall(dest_dir, filter="data")
            else:
                tar.extractall(dest_dir)

    def _extract_zip(self, archive_path: Path, dest_dir: Path) -> None:
        """Extract a zip archive.

        Args:
            archive_path: Path to zip archive
            dest_dir: Destination directory
        """
        with zipfile.ZipFile(archive_path, "r") as zip_file:
            zip_file.extractall(dest_dir)

    def file_sha256(self, file_path: Path) -> str:
        """Compute the SHA256 hex digest of a file."""
        sha256 = hashlib.sha256()

        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b""):
                sha256.update(chunk)

        return sha256.hexdigest()

    def verify_checksum(self, file_path: Path, expected: str) -> bool:
        """Verify SHA256 checksum of a file.

        Args:
            file_path: Path to file to verify
            expected: Expected SHA256 checksum (hex string)

        Returns:
            True if checksum matches

        Raises:
            ChecksumMismatch: If checksum doesn't match
        """
        actual = self.file_sha256(file_path)
        if actual.lower() != expected.lower():
            raise ChecksumMismatch(str(file_path), expected.lower(), actual)

        return True
