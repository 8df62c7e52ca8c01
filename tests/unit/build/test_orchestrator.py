"""
Unit tests for ConfigureOrchestrator.

Tests the complete configuration pass including:
- Allocator resolution (found in system, built from source, disabled)
- Interface target declaration
- Benchmark framework bootstrap before its consumer
- Consumer target declaration
"""

import logging

import pytest
from pathlib import Path
from unittest.mock import Mock

from nativedeps.build.orchestrator import (
    ConfigureOrchestrator,
    ProjectPlan,
    load_project_plan,
)
from nativedeps.build.target_plans import FLOWBENCH_PLAN, FLOWBENCH_SRCS, googlebenchmark_spec
from nativedeps.config.library_specs import JEMALLOC, LibrarySpec, jemalloc_fetch_spec
from nativedeps.config.settings import BuildSettings
from nativedeps.errors import ChecksumMismatch, ProcessFailure
from nativedeps.packages.cache import Cache
from nativedeps.packages.downloader import PackageDownloader
from nativedeps.packages.probe import LibraryProbe
from nativedeps.packages.resolution import Failed

URL = "https://example.com/jemalloc-5.2.1.tar.bz2"


def write_file(path: Path, content: bytes = b"!<arch>\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def jemalloc_at(*prefixes: Path) -> LibrarySpec:
    return LibrarySpec(
        name=JEMALLOC.name,
        header=JEMALLOC.header,
        variants=dict(JEMALLOC.variants),
        search_paths=list(prefixes),
    )


# Test fixtures

@pytest.fixture
def settings(tmp_path):
    return BuildSettings(
        project_dir=tmp_path,
        build_dir=tmp_path / "build",
        platform="linux",
    )


@pytest.fixture
def runner(jemalloc_runner, settings):
    """Runner that handles both the allocator build and the nested cmake build."""
    spec = googlebenchmark_spec(settings.build_dir / "flowbench")
    jemalloc_runner.on("cmake -G", lambda command, cwd: write_file(cwd / "CMakeCache.txt", b"c"))

    def build(command, cwd):
        for byproduct in spec.byproducts:
            write_file(byproduct)

    jemalloc_runner.on("cmake --build", build)
    return jemalloc_runner


@pytest.fixture
def system_prefix(tmp_path):
    """A complete installed jemalloc."""
    prefix = tmp_path / "system"
    write_file(prefix / "include" / "jemalloc" / "jemalloc.h", b"#pragma once\n")
    write_file(prefix / "lib" / "libjemalloc.a")
    write_file(prefix / "lib" / "libjemalloc_pic.a")
    return prefix


def make_orchestrator(settings, plan, runner):
    return ConfigureOrchestrator(
        settings,
        plan=plan,
        runner=runner,
        downloader=PackageDownloader(),
        probe=LibraryProbe(library_subdirs=["lib"]),
    )


# Tests

class TestConfigureFoundInSystem:
    """Allocator already installed."""

    def test_uses_installed_copy(self, settings, runner, system_prefix):
        plan = ProjectPlan(
            library=jemalloc_at(system_prefix),
            fetch=jemalloc_fetch_spec(settings.build_dir),
            targets=[FLOWBENCH_PLAN],
        )

        result = make_orchestrator(settings, plan, runner).configure()

        assert result.resolution_kind == "found-in-system"
        assert runner.count("./configure") == 0
        closure = result.registry.link_closure("jemalloc")
        assert closure.archives == [
            (system_prefix / "lib" / "libjemalloc.a").resolve(),
            (system_prefix / "lib" / "libjemalloc_pic.a").resolve(),
        ]
        assert not (settings.build_dir / "jemalloc").exists()

    def test_framework_declared_before_consumer(self, settings, runner, system_prefix):
        plan = ProjectPlan(
            library=jemalloc_at(system_prefix),
            fetch=jemalloc_fetch_spec(settings.build_dir),
            targets=[FLOWBENCH_PLAN],
        )

        result = make_orchestrator(settings, plan, runner).configure()

        names = result.registry.names()
        assert names.index("benchmark") < names.index("flowbench")
        assert result.default_targets() == ["flowbench"]
        assert result.bootstrap.executed_phases == ["configure", "build"]

        flowbench = result.descriptors[0]
        assert flowbench.sources == tuple(FLOWBENCH_SRCS)
        assert flowbench.link_handles == ("benchmark", "pthread", "flow", "fdbclient")

    def test_with_tls_adds_encrypt_module(self, settings, runner, system_prefix):
        settings.with_tls = True
        plan = ProjectPlan(
            library=jemalloc_at(system_prefix),
            fetch=jemalloc_fetch_spec(settings.build_dir),
            targets=[FLOWBENCH_PLAN],
        )

        result = make_orchestrator(settings, plan, runner).configure()

        assert result.descriptors[0].sources[-1] == "BenchEncrypt.cpp"
        assert result.descriptors[0].features == frozenset({"with_tls"})


class TestConfigureBuiltFromSource:
    """Allocator missing: source build fallback."""

    def test_builds_when_probe_fails(self, settings, runner, source_archive):
        fetch = jemalloc_fetch_spec(settings.build_dir, url=URL, sha256="0" * 64)
        _, digest = source_archive(
            Cache(settings.build_dir).get_download_path(URL, fetch.archive_name)
        )
        plan = ProjectPlan(
            library=jemalloc_at(),
            fetch=jemalloc_fetch_spec(settings.build_dir, url=URL, sha256=digest),
            targets=[FLOWBENCH_PLAN],
        )

        result = make_orchestrator(settings, plan, runner).configure()

        assert result.resolution_kind == "built-from-source"
        prefix = settings.build_dir / "jemalloc"
        closure = result.registry.link_closure("jemalloc")
        assert closure.include_dirs == [prefix / "include"]
        assert closure.archives == [prefix / "lib" / "libjemalloc.a", prefix / "lib" / "libjemalloc_pic.a"]

    def test_tampered_archive_aborts_pass(self, settings, runner, source_archive):
        fetch = jemalloc_fetch_spec(settings.build_dir, url=URL)
        archive, _ = source_archive(Cache(settings.build_dir).get_download_path(URL, fetch.archive_name))
        plan = ProjectPlan(library=jemalloc_at(), fetch=fetch, targets=[FLOWBENCH_PLAN])
        orchestrator = make_orchestrator(settings, plan, runner)

        resolution = orchestrator.resolve_allocator()
        assert isinstance(resolution, Failed)
        assert isinstance(resolution.reason, ChecksumMismatch)

        source_archive(archive)
        with pytest.raises(ChecksumMismatch):
            orchestrator.configure()
        assert runner.calls == []
        assert not fetch.prefix.exists()


class TestConfigureWindows:
    def test_empty_interface_and_no_probe(self, settings, runner):
        settings.platform = "windows"
        probe = Mock(spec=LibraryProbe)
        plan = ProjectPlan(
            library=jemalloc_at(), fetch=jemalloc_fetch_spec(settings.build_dir), targets=[FLOWBENCH_PLAN]
        )

        result = ConfigureOrchestrator(settings, plan=plan, runner=runner, probe=probe).configure()

        probe.resolve.assert_not_called()
        assert result.resolution is None
        assert result.resolution_kind == "disabled"
        assert result.interface.include_dirs == ()
        assert result.interface.link_libraries == ()


class TestNestedFailure:
    def test_framework_failure_propagates(self, settings, runner, system_prefix):
        runner.fail("cmake -G", returncode=1)
        plan = ProjectPlan(
            library=jemalloc_at(system_prefix),
            fetch=jemalloc_fetch_spec(settings.build_dir),
            targets=[FLOWBENCH_PLAN],
        )

        with pytest.raises(ProcessFailure) as exc_info:
            make_orchestrator(settings, plan, runner).configure()

        assert exc_info.value.project == "googlebenchmark"
        assert runner.count("cmake --build") == 0


class TestLoadProjectPlan:
    """Project plan assembly from nativedeps.ini."""

    def test_defaults_without_ini(self, settings):
        plan = load_project_plan(settings)

        assert [t.name for t in plan.targets] == ["flowbench"]
        assert plan.fetch.prefix == settings.build_dir / "jemalloc"
        assert plan.library.search_paths[: len(JEMALLOC.search_paths)] == JEMALLOC.search_paths

    def test_library_overrides(self, settings, tmp_path):
        (tmp_path / "nativedeps.ini").write_text(
            "[library:jemalloc]\n"
            + "url = https://mirror.example.com/jemalloc-5.2.1.tar.bz2\n"
            + "sha256 = " + "A" * 64 + "\n"
            + "search_paths = /opt/custom\n"
        )

        plan = load_project_plan(settings)

        assert plan.fetch.url == "https://mirror.example.com/jemalloc-5.2.1.tar.bz2"
        assert plan.fetch.sha256 == "a" * 64
        assert plan.library.search_paths[-1] == Path("/opt/custom")

    def test_fdbserver_declared_from_ini(self, settings, runner, system_prefix, tmp_path):
        (tmp_path / "nativedeps.ini").write_text(
            "[target:fdbserver]\nsources =\n    fdbserver.actor.cpp\n    storageserver.actor.cpp\n"
        )
        settings.rocksdb_experimental = True
        plan = load_project_plan(settings)
        plan.library = jemalloc_at(system_prefix)

        result = make_orchestrator(settings, plan, runner).configure()

        server = result.registry.get("fdbserver")
        assert server.sources == (
            "fdbserver.actor.cpp",
            "storageserver.actor.cpp",
            "CoroFlow.actor.cpp",
        )
        assert "jemalloc" in server.link_handles
        assert server.definitions == ("SSD_ROCKSDB_EXPERIMENTAL",)
        assert result.default_targets() == ["flowbench", "fdbserver"]
        assert result.registry.link_closure("fdbserver").archives[-1].name == "libjemalloc_pic.a"

    def test_unknown_ini_target_is_ignored(self, settings, tmp_path, caplog):
        (tmp_path / "nativedeps.ini").write_text("[target:fdbcli]\nsources = fdbcli.actor.cpp\n")

        with caplog.at_level(logging.WARNING):
            plan = load_project_plan(settings)

        assert [t.name for t in plan.targets] == ["flowbench"]
        assert "[target:fdbcli]" in caplog.text


class TestVerboseSummary:
    def test_reports_module_selection(self, settings, runner, system_prefix, capsys):
        settings.verbose = True
        settings.with_tls = True
        plan = ProjectPlan(
            library=jemalloc_at(system_prefix),
            fetch=jemalloc_fetch_spec(settings.build_dir),
            targets=[FLOWBENCH_PLAN],
        )

        make_orchestrator(settings, plan, runner).configure()

        assert "  BenchEncrypt.cpp: on" in capsys.readouterr().out
