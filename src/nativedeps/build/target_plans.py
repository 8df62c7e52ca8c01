"""
Built-in consumer target plans.

A plan says how to declare one consumer target: its base sources, the
feature-gated modules appended to them, the handles it links, and whether
it needs the benchmark framework bootstrapped first.
"""

from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import List, Optional, Tuple

from ..packages.platform_utils import PLATFORMS, PlatformDetector
from .nested_project import NestedProjectSpec
from .source_set import AlternativeModule, FeatureFlags, Module, OptionalModule, SourceSetAssembler
from .target_registry import TargetKind


@dataclass
class TargetPlan:
    """How to declare one consumer target."""

    name: str
    kind: TargetKind
    base_sources: List[str]
    modules: List[Module] = field(default_factory=list)
    link_handles: List[str] = field(default_factory=list)
    needs_framework: bool = False
    flag_definitions: List[Tuple[str, str]] = field(default_factory=list)  # (flag, define)

    def assembler(self) -> SourceSetAssembler:
        return SourceSetAssembler(self.modules)

    def definitions(self, flags: FeatureFlags) -> List[str]:
        return [define for flag, define in self.flag_definitions if flags.is_enabled(flag)]


FLOWBENCH_SRCS = [
    "flowbench.actor.cpp",
    "BenchHash.cpp",
    "BenchIterate.cpp",
    "BenchMem.cpp",
    "BenchMetadataCheck.cpp",
    "BenchPopulate.cpp",
    "BenchRandom.cpp",
    "BenchRef.cpp",
    "BenchStream.actor.cpp",
    "BenchTimer.cpp",
    "GlobalData.h",
    "GlobalData.cpp",
]

TLS_EXCLUDED_PLATFORMS = tuple(
    p for p in PLATFORMS if not PlatformDetector.supports_tls_modules(p)
)

FLOWBENCH_PLAN = TargetPlan(
    name="flowbench",
    kind="executable",
    base_sources=FLOWBENCH_SRCS,
    modules=[OptionalModule("BenchEncrypt.cpp", "with_tls", excluded_platforms=TLS_EXCLUDED_PLATFORMS)],
    link_handles=["benchmark", "pthread", "flow", "fdbclient"],
    needs_framework=True,
)

# Coroutine implementation is picked per configuration; exactly one is compiled
CORO_MODULE = AlternativeModule(
    selector="coroutine_impl",
    choices={"libcoro": "CoroFlowCoro.actor.cpp", "default": "CoroFlow.actor.cpp"},
    default="CoroFlow.actor.cpp",
)


def fdbserver_plan(base_sources: List[str]) -> TargetPlan:
    """
    Plan for the server executable.

    The server's own source list is long and lives with the project, so it is
    read from the [target:fdbserver] section of nativedeps.ini.

    Args:
        base_sources: Server sources in declaration order

    Returns:
        TargetPlan linking the allocator handle
    """
    return TargetPlan(
        name="fdbserver",
        kind="executable",
        base_sources=list(base_sources),
        modules=[CORO_MODULE],
        link_handles=["fdbclient", "fdb_sqlite", "toml11_target", "jemalloc"],
        flag_definitions=[("rocksdb_experimental", "SSD_ROCKSDB_EXPERIMENTAL")],
    )


# Libraries provided by the surrounding build or the toolchain
EXTERNAL_LIBRARIES = ["pthread", "flow", "fdbclient", "fdb_sqlite", "toml11_target"]

GOOGLEBENCHMARK_VERSION = "1.6.0"

GOOGLEBENCHMARK_TEMPLATE = Template(
    """cmake_minimum_required(VERSION 3.13)

project(googlebenchmark-download NONE)

include(ExternalProject)
ExternalProject_Add(googlebenchmark
  GIT_REPOSITORY    https://github.com/google/benchmark.git
  GIT_TAG           v$version
  SOURCE_DIR        "$source_dir"
  BINARY_DIR        "$binary_dir"
  CMAKE_ARGS        -DCMAKE_BUILD_TYPE=Release
                    -DBENCHMARK_ENABLE_TESTING=OFF
                    -DBENCHMARK_ENABLE_GTEST_TESTS=OFF
  INSTALL_COMMAND   ""
  TEST_COMMAND      ""
  BUILD_BYPRODUCTS  "$archive"
)
"""
)


def googlebenchmark_spec(
    target_dir: Path, generator: str = "Unix Makefiles", version: Optional[str] = None
) -> NestedProjectSpec:
    """
    Nested project spec for the Google benchmark framework.

    Args:
        target_dir: Binary directory of the consuming target
        generator: cmake generator for the nested configure step
        version: Benchmark release tag (defaults to GOOGLEBENCHMARK_VERSION)

    Returns:
        NestedProjectSpec staged in <target_dir>/googlebenchmark-download
    """
    target_dir = Path(target_dir)
    source_dir = target_dir / "googlebenchmark-src"
    binary_dir = target_dir / "googlebenchmark-build"
    archive = binary_dir / "src" / "libbenchmark.a"
    header = source_dir / "include" / "benchmark" / "benchmark.h"

    description = GOOGLEBENCHMARK_TEMPLATE.substitute(
        version=version or GOOGLEBENCHMARK_VERSION,
        source_dir=source_dir.as_posix(),
        binary_dir=binary_dir.as_posix(),
        archive=archive.as_posix(),
    )

    return NestedProjectSpec(
        name="googlebenchmark",
        staging_dir=target_dir / "googlebenchmark-download",
        description=description,
        byproducts=[header, archive],
        exported_targets={"benchmark": archive},
        include_dirs=[source_dir / "include"],
        generator=generator,
    )
