"""
Configuration orchestration for nativedeps projects.

This module runs one configuration pass, in this order:
1. Declare libraries provided by the surrounding build
2. Resolve the allocator (probe, then source build fallback)
3. Declare the allocator's interface target
4. Bootstrap the benchmark framework for targets that need it
5. Assemble each consumer's sources and declare it

Every fatal error stops the pass immediately; nothing is retried.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config.ini_parser import CONFIG_FILENAME, LibraryOverrides, NativeDepsConfig
from ..config.library_specs import (
    JEMALLOC,
    JEMALLOC_SHA256,
    JEMALLOC_URL,
    LibrarySpec,
    SourceFetchSpec,
    jemalloc_fetch_spec,
)
from ..config.settings import BuildSettings
from ..errors import NativeDepsError
from ..packages.cache import Cache
from ..packages.downloader import PackageDownloader
from ..packages.platform_utils import PlatformDetector
from ..packages.probe import LibraryProbe
from ..packages.resolution import BuiltFromSource, Failed, FoundInSystem, Resolution
from ..packages.source_builder import SourceBuilder
from .interface_target import declare_empty_interface, declare_interface_target
from .nested_project import BootstrapResult, NestedBuildBootstrapper
from .process_runner import ProcessRunner
from .source_set import FeatureFlags
from .target_plans import (
    EXTERNAL_LIBRARIES,
    FLOWBENCH_PLAN,
    TargetPlan,
    fdbserver_plan,
    googlebenchmark_spec,
)
from .target_registry import (
    BuildDescriptor,
    ExternalLibrary,
    InterfaceTarget,
    TargetRegistry,
)

ALLOCATOR_HANDLE = "jemalloc"


@dataclass
class ProjectPlan:
    """Everything a configuration pass declares, before it runs."""

    library: LibrarySpec
    fetch: SourceFetchSpec
    targets: List[TargetPlan] = field(default_factory=list)


@dataclass
class ConfigureResult:
    """Result of a complete configuration pass."""

    settings: BuildSettings
    resolution: Optional[Resolution]
    interface: InterfaceTarget
    bootstrap: Optional[BootstrapResult]
    descriptors: List[BuildDescriptor]
    registry: TargetRegistry
    configure_time: float

    @property
    def resolution_kind(self) -> str:
        if self.resolution is None:
            return "disabled"
        return self.resolution.kind

    def default_targets(self) -> List[str]:
        return self.registry.default_targets()


def load_project_plan(settings: BuildSettings) -> ProjectPlan:
    """
    Build the project plan from built-in defaults and nativedeps.ini.

    Args:
        settings: Effective build settings

    Returns:
        ProjectPlan with library overrides and consumer targets applied
    """
    library = JEMALLOC
    overrides = LibraryOverrides()
    server_sources: List[str] = []

    ini_path = settings.project_dir / CONFIG_FILENAME
    if ini_path.exists():
        config = NativeDepsConfig(ini_path)
        overrides = config.get_library_overrides(JEMALLOC.name)
        server_sources = config.get_target_sources("fdbserver")
        for name in config.get_targets():
            if name != "fdbserver":
                logging.warning(f"Ignoring [target:{name}] in {ini_path}: unknown target")

    if overrides.search_paths:
        library = library.with_extra_search_paths(overrides.search_paths)
    if settings.prefix_hints:
        library = library.with_extra_search_paths(settings.prefix_hints)

    fetch = jemalloc_fetch_spec(
        settings.build_dir,
        url=overrides.url or JEMALLOC_URL,
        sha256=overrides.sha256 or JEMALLOC_SHA256,
    )

    targets = [FLOWBENCH_PLAN]
    if server_sources:
        targets.append(fdbserver_plan(server_sources))

    return ProjectPlan(library=library, fetch=fetch, targets=targets)


class ConfigureOrchestrator:
    """
    Orchestrates one configuration pass.

    Example usage:
        settings = NativeDepsConfig.load_settings(Path("."))
        orchestrator = ConfigureOrchestrator(settings)
        result = orchestrator.configure()
        print(result.resolution_kind, result.default_targets())
    """

    def __init__(
        self,
        settings: BuildSettings,
        plan: Optional[ProjectPlan] = None,
        runner: Optional[ProcessRunner] = None,
        downloader: Optional[PackageDownloader] = None,
        probe: Optional[LibraryProbe] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            settings: Explicit configuration for this pass
            plan: Project plan (loaded from settings if None)
            runner: Process runner shared by every external phase
            downloader: Package downloader for the source build fallback
            probe: Library probe (host conventions if None)
        """
        self.settings = settings
        self.plan = plan or load_project_plan(settings)
        self.runner = runner or ProcessRunner(
            timeout=settings.process_timeout, verbose=settings.verbose
        )
        self.downloader = downloader
        self.probe = probe or LibraryProbe(verbose=settings.verbose)
        self.cache = Cache(settings.build_dir)

    def configure(self) -> ConfigureResult:
        """
        Run the configuration pass.

        Returns:
            ConfigureResult describing resolution and declared targets

        Raises:
            NativeDepsError: On the first fatal error
        """
        start_time = time.time()
        settings = self.settings
        registry = TargetRegistry()

        for name in EXTERNAL_LIBRARIES:
            registry.declare(ExternalLibrary(name))

        resolution: Optional[Resolution] = None
        if PlatformDetector.uses_jemalloc(settings.platform):
            resolution = self.resolve_allocator()
            interface = declare_interface_target(registry, ALLOCATOR_HANDLE, resolution)
        else:
            if settings.verbose:
                print(f"{ALLOCATOR_HANDLE} is not used on {settings.platform}")
            interface = declare_empty_interface(registry, ALLOCATOR_HANDLE)

        flags = FeatureFlags(
            platform=settings.platform,
            with_tls=settings.with_tls,
            coroutine_impl=settings.coroutine_impl,
            rocksdb_experimental=settings.rocksdb_experimental,
        )

        bootstrap: Optional[BootstrapResult] = None
        descriptors: List[BuildDescriptor] = []
        for plan in self.plan.targets:
            if plan.needs_framework and bootstrap is None:
                bootstrap = self.bootstrap_framework(registry, self.cache.get_target_dir(plan.name))
            descriptors.append(self.declare_target(registry, plan, flags))

        return ConfigureResult(
            settings=settings,
            resolution=resolution,
            interface=interface,
            bootstrap=bootstrap,
            descriptors=descriptors,
            registry=registry,
            configure_time=time.time() - start_time,
        )

    def resolve_allocator(self) -> Resolution:
        """
        Resolve the allocator, preferring an installed copy.

        Returns:
            FoundInSystem, BuiltFromSource, or Failed carrying the fatal error
        """
        library = self.plan.library
        found = self.probe.resolve(library)
        if isinstance(found, FoundInSystem):
            return found

        if self.settings.verbose:
            print(f"Building {library.name} from source ({found.reason})")

        builder = SourceBuilder(
            self.cache,
            self.runner,
            downloader=self.downloader,
            show_progress=self.settings.verbose,
            verbose=self.settings.verbose,
        )
        try:
            artifacts = builder.fetch_build_install(library, self.plan.fetch, force=self.settings.force)
        except NativeDepsError as e:
            logging.error(f"Source build of {library.name} failed: {e}")
            return Failed(library=library.name, reason=e)

        return BuiltFromSource(
            library=library.name,
            include_dir=self.plan.fetch.prefix / "include",
            artifacts=artifacts,
        )

    def bootstrap_framework(self, registry: TargetRegistry, target_dir: Path) -> BootstrapResult:
        """
        Bootstrap the benchmark framework for a consumer target.

        Args:
            registry: Registry receiving the framework's exported targets
            target_dir: Binary directory of the consumer

        Returns:
            BootstrapResult

        Raises:
            ProcessFailure: If the nested configure or build step fails
        """
        bootstrapper = NestedBuildBootstrapper(
            registry,
            self.runner,
            self.cache.stamps_dir,
            verbose=self.settings.verbose,
        )
        spec = googlebenchmark_spec(target_dir, generator=self.settings.generator)
        return bootstrapper.bootstrap(spec, force=self.settings.force)

    def declare_target(
        self, registry: TargetRegistry, plan: TargetPlan, flags: FeatureFlags
    ) -> BuildDescriptor:
        """
        Assemble a consumer's sources and declare it.

        Args:
            registry: Registry for this pass
            plan: Consumer target plan
            flags: Feature flags

        Returns:
            The declared BuildDescriptor
        """
        sources = plan.assembler().assemble(plan.base_sources, flags)
        descriptor = BuildDescriptor(
            name=plan.name,
            kind=plan.kind,
            sources=tuple(sources),
            link_handles=tuple(plan.link_handles),
            features=flags.enabled(),
            definitions=tuple(plan.definitions(flags)),
        )
        registry.declare(descriptor)
        if self.settings.verbose:
            print(f"Declared {plan.kind} {plan.name} ({len(sources)} sources)")
            for source, selected in plan.assembler().selection(flags).items():
                print(f"  {source}: {'on' if selected else 'off'}")
        return descriptor
