"""Platform Detection Utilities.

This module provides utilities for detecting the current platform and the
host's library directory conventions, used to gate optional modules and to
probe for installed libraries.

Supported Platforms:
    - Linux: linux
    - macOS: darwin
    - Windows: windows
    - FreeBSD: freebsd
"""

import platform
from typing import List

from ..errors import NativeDepsError


class PlatformError(NativeDepsError):
    """Raised when platform detection fails or platform is unsupported."""

    pass


PLATFORMS = ("linux", "darwin", "windows", "freebsd")


class PlatformDetector:
    """Detects the current platform and its library layout."""

    @staticmethod
    def detect_platform() -> str:
        """Detect the current platform identifier.

        Returns:
            Platform identifier (linux, darwin, windows, freebsd)

        Raises:
            PlatformError: If platform is unsupported
        """
        system = platform.system().lower()

        if system.startswith(("windows", "cygwin", "msys")):
            return "windows"
        if system in PLATFORMS:
            return system
        raise PlatformError(f"Unsupported platform: {platform.system()}")

    @staticmethod
    def validate_platform(platform_id: str) -> str:
        """Normalize and validate an explicit platform identifier.

        Args:
            platform_id: Platform identifier from configuration or CLI

        Returns:
            Lower-case platform identifier

        Raises:
            PlatformError: If the identifier is unknown
        """
        normalized = platform_id.strip().lower()
        if normalized not in PLATFORMS:
            raise PlatformError(
                f"Unknown platform '{platform_id}'. Expected one of: {', '.join(PLATFORMS)}"
            )
        return normalized

    @staticmethod
    def uses_jemalloc(platform_id: str) -> bool:
        """Whether the allocator is linked on this platform (never on Windows)."""
        return platform_id != "windows"

    @staticmethod
    def supports_tls_modules(platform_id: str) -> bool:
        """Whether TLS-dependent benchmark modules build on this platform."""
        return platform_id != "windows"

    @staticmethod
    def library_subdirs() -> List[str]:
        """Library directories searched below each prefix, in order.

        Includes the Debian-style multiarch directory for the host machine.
        """
        subdirs = ["lib", "lib64"]
        machine = platform.machine().lower()
        if machine in ("x86_64", "amd64"):
            subdirs.append("lib/x86_64-linux-gnu")
        elif machine in ("aarch64", "arm64"):
            subdirs.append("lib/aarch64-linux-gnu")
        return subdirs
