"""
Build configuration system for nativedeps.

This module provides the components of a configuration pass:
- Process runner: blocking external phases with structured results
- Phase runner: ordered phases with completion stamps
- Source set assembler: feature-gated source lists
- Target registry: imported, interface and consumer targets
- Nested build bootstrapper: helper projects built before their consumers

The orchestrator lives in nativedeps.build.orchestrator.
"""

from .process_runner import ProcessResult, ProcessRunner
from .phase_runner import BuildPhase, PhaseRunner
from .source_set import AlternativeModule, FeatureFlags, OptionalModule, SourceSetAssembler
from .target_registry import (
    BuildDescriptor,
    ExternalLibrary,
    ImportedLibrary,
    InterfaceTarget,
    LinkInterface,
    TargetRegistry,
)
from .interface_target import declare_empty_interface, declare_interface_target
from .nested_project import BootstrapResult, NestedBuildBootstrapper, NestedProjectSpec

__all__ = [
    "ProcessResult",
    "ProcessRunner",
    "BuildPhase",
    "PhaseRunner",
    "FeatureFlags",
    "OptionalModule",
    "AlternativeModule",
    "SourceSetAssembler",
    "BuildDescriptor",
    "ExternalLibrary",
    "ImportedLibrary",
    "InterfaceTarget",
    "LinkInterface",
    "TargetRegistry",
    "declare_interface_target",
    "declare_empty_interface",
    "BootstrapResult",
    "NestedBuildBootstrapper",
    "NestedProjectSpec",
]
