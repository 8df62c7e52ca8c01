"""
nativedeps.ini configuration parser.

This module parses the optional nativedeps.ini file in a project directory
and layers its values on top of the built-in BuildSettings defaults.

Example nativedeps.ini:
    [settings]
    build_dir = build
    with_tls = yes
    coroutine_impl = libcoro
    process_timeout = 1800
    prefix_path =
        /opt/jemalloc
        /srv/toolchains

    [library:jemalloc]
    url = https://mirror.example.com/jemalloc-5.2.1.tar.bz2
    sha256 = 34330e5ce276099e2e8950d9335db5a875689a4c6a56751ef3b1d8c537f887f6

    [target:fdbserver]
    sources =
        fdbserver.actor.cpp
        storageserver.actor.cpp
"""

import configparser
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import ConfigError
from ..packages.platform_utils import PlatformDetector, PlatformError
from .settings import BuildSettings

CONFIG_FILENAME = "nativedeps.ini"


@dataclass
class LibraryOverrides:
    """Per-library values from a [library:NAME] section."""

    url: Optional[str] = None
    sha256: Optional[str] = None
    search_paths: List[Path] = field(default_factory=list)


class NativeDepsConfig:
    """
    Parser for nativedeps.ini configuration files.

    Usage:
        config = NativeDepsConfig(Path("nativedeps.ini"))
        settings = config.apply(BuildSettings.defaults(project_dir))
        overrides = config.get_library_overrides("jemalloc")
    """

    BOOLEAN_KEYS = {"with_tls", "rocksdb_experimental"}

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a nativedeps.ini file.

        Args:
            ini_path: Path to the nativedeps.ini file

        Raises:
            ConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise ConfigError(f"Configuration file not found: {ini_path}")

        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigError(f"Failed to parse {ini_path}: {e}") from e

    @classmethod
    def load_settings(
        cls, project_dir: Path, base: Optional[BuildSettings] = None
    ) -> BuildSettings:
        """
        Build settings for a project, applying nativedeps.ini when present.

        Args:
            project_dir: Project directory that may contain nativedeps.ini
            base: Starting settings (defaults for project_dir if None)

        Returns:
            Effective BuildSettings
        """
        settings = base or BuildSettings.defaults(project_dir)
        ini_path = Path(project_dir) / CONFIG_FILENAME
        if not ini_path.exists():
            return settings
        return cls(ini_path).apply(settings)

    def apply(self, settings: BuildSettings) -> BuildSettings:
        """
        Return a copy of settings with values from the [settings] section.

        Args:
            settings: Settings to start from

        Returns:
            New BuildSettings instance

        Raises:
            ConfigError: If a value cannot be converted
        """
        if "settings" not in self.config:
            return settings

        section = self.config["settings"]
        changes: Dict[str, object] = {}

        try:
            if section.get("build_dir"):
                build_dir = Path(section["build_dir"].strip())
                if not build_dir.is_absolute():
                    build_dir = settings.project_dir / build_dir
                changes["build_dir"] = build_dir
            for key in self.BOOLEAN_KEYS:
                if key in section:
                    if section[key] is None:
                        raise ValueError(f"{key} needs a value (yes or no)")
                    changes[key] = section.getboolean(key)
            if section.get("platform"):
                changes["platform"] = PlatformDetector.validate_platform(section["platform"])
            if section.get("coroutine_impl"):
                changes["coroutine_impl"] = section["coroutine_impl"].strip()
            if section.get("process_timeout"):
                changes["process_timeout"] = section.getfloat("process_timeout")
            if section.get("generator"):
                changes["generator"] = section["generator"].strip()
        except (ValueError, PlatformError) as e:
            raise ConfigError(f"Invalid value in [settings] of {self.ini_path}: {e}") from e

        hints = [Path(p) for p in self._split_list(section.get("prefix_path", ""))]
        if hints:
            changes["prefix_hints"] = hints + list(settings.prefix_hints)

        return replace(settings, **changes)

    def get_library_overrides(self, name: str) -> LibraryOverrides:
        """
        Get overrides for a library's probe and fetch specs.

        Args:
            name: Library name (e.g., 'jemalloc')

        Returns:
            LibraryOverrides (empty if the library has no section)
        """
        section = f"library:{name}"
        if section not in self.config:
            return LibraryOverrides()

        values = self.config[section]
        url = (values.get("url") or "").strip() or None
        sha256 = (values.get("sha256") or "").strip().lower() or None
        search_paths = [Path(p) for p in self._split_list(values.get("search_paths", ""))]
        return LibraryOverrides(url=url, sha256=sha256, search_paths=search_paths)

    def get_targets(self) -> List[str]:
        """
        Get list of target names with a [target:NAME] section.

        Returns:
            List of target names in file order
        """
        targets = []
        for section in self.config.sections():
            if section.startswith("target:"):
                targets.append(section.split(":", 1)[1])
        return targets

    def get_target_sources(self, name: str) -> List[str]:
        """
        Get the base source list declared for a target.

        Args:
            name: Target name

        Returns:
            Ordered list of source filenames (empty if not declared)
        """
        section = f"target:{name}"
        if section not in self.config:
            return []
        return self._split_list(self.config[section].get("sources", ""))

    @staticmethod
    def _split_list(value: Optional[str]) -> List[str]:
        """Split a multi-line or comma-separated value, keeping order."""
        if not value:
            return []
        items = []
        for line in value.split("\n"):
            for item in line.split(","):
                item = item.strip()
                if item:
                    items.append(item)
        return items
