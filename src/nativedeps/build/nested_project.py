"""
Nested build bootstrapping for helper projects.

Some consumer targets depend on a helper project (the Google benchmark
framework for flowbench) that has to be configured and built before the
consumer can be declared. The bootstrapper writes the helper's build
description into a private staging directory, runs its configure and build
steps as nested cmake invocations, and registers the helper's exported
libraries so they are built only when a consumer asks for them.

Phase order is fail-fast: if configuration fails the build step never runs.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .interface_target import imported_name
from .phase_runner import BuildPhase, PhaseRunner
from .process_runner import ProcessRunner
from .target_registry import ImportedLibrary, InterfaceTarget, TargetRegistry

DESCRIPTION_FILENAME = "CMakeLists.txt"


@dataclass
class NestedProjectSpec:
    """A helper project built through a nested build invocation."""

    name: str
    staging_dir: Path
    description: str
    byproducts: List[Path] = field(default_factory=list)
    exported_targets: Dict[str, Path] = field(default_factory=dict)
    include_dirs: List[Path] = field(default_factory=list)
    generator: str = "Unix Makefiles"
    build_config: str = "Release"

    @property
    def description_path(self) -> Path:
        return self.staging_dir / DESCRIPTION_FILENAME


@dataclass
class BootstrapResult:
    """Outcome of bootstrapping a nested project."""

    project: str
    executed_phases: List[str]
    targets: List[str]

    @property
    def was_up_to_date(self) -> bool:
        return not self.executed_phases


class NestedBuildBootstrapper:
    """Configures and builds helper projects, then registers their exports."""

    def __init__(
        self,
        registry: TargetRegistry,
        runner: ProcessRunner,
        stamps_root: Path,
        cmake: str = "cmake",
        verbose: bool = False,
    ):
        """
        Initialize bootstrapper.

        Args:
            registry: Registry the exported targets are declared in
            runner: Process runner for the nested invocations
            stamps_root: Parent directory for per-project phase stamps
            cmake: cmake executable
            verbose: Print progress
        """
        self.registry = registry
        self.runner = runner
        self.stamps_root = stamps_root
        self.cmake = cmake
        self.verbose = verbose

    def get_phases(self, spec: NestedProjectSpec) -> List[BuildPhase]:
        """
        Build the configure and build phases for a nested project.

        Args:
            spec: Nested project specification

        Returns:
            Phases in execution order
        """
        return [
            BuildPhase(
                name="configure",
                command=[self.cmake, "-G", spec.generator, "."],
                cwd=spec.staging_dir,
                byproducts=[spec.staging_dir / "CMakeCache.txt"],
            ),
            BuildPhase(
                name="build",
                command=[self.cmake, "--build", ".", "--config", spec.build_config],
                cwd=spec.staging_dir,
                byproducts=list(spec.byproducts),
            ),
        ]

    def bootstrap(self, spec: NestedProjectSpec, force: bool = False) -> BootstrapResult:
        """
        Make a nested project ready and register its exported targets.

        Phases whose byproducts are present from an earlier successful run are
        skipped; re-registering the same exports is a no-op.

        Args:
            spec: Nested project specification
            force: Re-run every phase

        Returns:
            BootstrapResult listing executed phases and registered targets

        Raises:
            ProcessFailure: If configuration or build fails
            MissingByproduct: If the build succeeded without its byproducts
            TargetConflictError: If an export clashes with another target
        """
        phase_runner = PhaseRunner(
            spec.name, self.stamps_root / spec.name, self.runner, self.verbose
        )

        if self._write_description(spec):
            phase_runner.clear()

        if self.verbose:
            print(f"Bootstrapping {spec.name} in {spec.staging_dir}")

        executed = phase_runner.run_phases(self.get_phases(spec), force=force)
        targets = self._register_exports(spec)

        logging.info(f"{spec.name} ready (executed phases: {executed or 'none'})")
        return BootstrapResult(project=spec.name, executed_phases=executed, targets=targets)

    def _write_description(self, spec: NestedProjectSpec) -> bool:
        """Write the build description; returns True if it changed."""
        spec.staging_dir.mkdir(parents=True, exist_ok=True)
        path = spec.description_path
        if path.exists() and path.read_text(encoding="utf-8") == spec.description:
            return False
        path.write_text(spec.description, encoding="utf-8")
        return True

    def _register_exports(self, spec: NestedProjectSpec) -> List[str]:
        registered = []
        include_dirs = tuple(spec.include_dirs)
        for name, archive in spec.exported_targets.items():
            archive_target = imported_name(name, "default")
            self.registry.declare(
                ImportedLibrary(name=archive_target, location=archive, exclude_from_all=True)
            )
            self.registry.declare(
                InterfaceTarget(name=name, include_dirs=include_dirs, link_libraries=(archive_target,))
            )
            registered.append(name)
        return registered
