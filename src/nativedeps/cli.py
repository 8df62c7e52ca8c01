"""
Command-line interface for nativedeps.

This module provides the `nativedeps` CLI tool for resolving native
dependencies and preparing benchmark targets at configuration time.
"""

import argparse
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Optional

from nativedeps import __version__
from nativedeps.build.orchestrator import ConfigureOrchestrator, ConfigureResult, load_project_plan
from nativedeps.build.source_set import FeatureFlags
from nativedeps.build.target_registry import BuildDescriptor
from nativedeps.cli_utils import ErrorFormatter, PathValidator, setup_logging
from nativedeps.config import BuildSettings, NativeDepsConfig
from nativedeps.errors import NativeDepsError
from nativedeps.packages import Cache, FoundInSystem, LibraryProbe, PlatformDetector


@dataclass
class ConfigureArgs:
    """Arguments shared by the configure, probe and sources commands."""

    project_dir: Path
    build_dir: Optional[Path] = None
    platform: Optional[str] = None
    with_tls: Optional[bool] = None
    coroutine_impl: Optional[str] = None
    timeout: Optional[float] = None
    force: bool = False
    verbose: bool = False


def resolve_settings(args: ConfigureArgs) -> BuildSettings:
    """Layer command-line flags over nativedeps.ini and built-in defaults."""
    settings = NativeDepsConfig.load_settings(args.project_dir)

    changes: Dict[str, object] = {"force": args.force, "verbose": args.verbose}
    if args.build_dir is not None:
        changes["build_dir"] = args.build_dir
    if args.platform is not None:
        changes["platform"] = PlatformDetector.validate_platform(args.platform)
    if args.with_tls is not None:
        changes["with_tls"] = args.with_tls
    if args.coroutine_impl is not None:
        changes["coroutine_impl"] = args.coroutine_impl
    if args.timeout is not None:
        changes["process_timeout"] = args.timeout

    return replace(settings, **changes)


def print_descriptor(descriptor: BuildDescriptor) -> None:
    print(f"  {descriptor.name} ({descriptor.kind})")
    print(f"    Sources:  {len(descriptor.sources)}")
    print(f"    Links:    {', '.join(descriptor.link_handles) or '-'}")
    if descriptor.definitions:
        print(f"    Defines:  {', '.join(descriptor.definitions)}")


def print_configure_summary(result: ConfigureResult) -> None:
    """Print the outcome of a configuration pass."""
    print(f"Allocator: {result.resolution_kind}")
    closure = result.registry.link_closure(result.interface.name)
    for include_dir in closure.include_dirs:
        print(f"  Include:  {include_dir}")
    for archive in closure.archives:
        print(f"  Archive:  {archive}")

    if result.bootstrap:
        state = "up to date" if result.bootstrap.was_up_to_date else (
            "ran " + ", ".join(result.bootstrap.executed_phases)
        )
        print(f"Benchmark framework: {state}")

    print()
    print("Targets:")
    for descriptor in result.descriptors:
        print_descriptor(descriptor)
    print()
    print(f"Default build set: {', '.join(result.default_targets())}")


def configure_command(args: ConfigureArgs) -> None:
    """Run a full configuration pass.

    Examples:
        nativedeps configure                  # Configure current project
        nativedeps configure --with-tls       # Include TLS benchmark modules
        nativedeps configure --force          # Re-run every external phase
        nativedeps configure --timeout 0      # No timeout for external phases
    """
    print(f"nativedeps v{__version__}")
    print()

    try:
        settings = resolve_settings(args)
        if args.verbose:
            print(f"Project:   {settings.project_dir}")
            print(f"Build dir: {settings.build_dir}")
            print(f"Platform:  {settings.platform}")
            print()

        result = ConfigureOrchestrator(settings).configure()

        ErrorFormatter.print_success("Configuration successful!")
        print()
        print_configure_summary(result)
        print(f"Configure time: {result.configure_time:.2f}s")
        sys.exit(0)

    except NativeDepsError as e:
        ErrorFormatter.handle_nativedeps_error(e, args.verbose)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def probe_command(args: ConfigureArgs) -> None:
    """Look for an installed allocator without building anything.

    Exits 0 if found, 1 if the source build fallback would be needed.
    """
    try:
        settings = resolve_settings(args)
        plan = load_project_plan(settings)
        result = LibraryProbe(verbose=args.verbose).resolve(plan.library)

        if isinstance(result, FoundInSystem):
            ErrorFormatter.print_success(f"{result.library} found in system")
            print(f"  Include:  {result.include_dir}")
            for artifact in result.artifacts:
                print(f"  {artifact.variant:<8}  {artifact.path}")
            sys.exit(0)

        ErrorFormatter.print_warning(f"{result.library} not found: {result.reason}")
        sys.exit(1)

    except NativeDepsError as e:
        ErrorFormatter.handle_nativedeps_error(e, args.verbose)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def sources_command(args: ConfigureArgs, target: str) -> None:
    """Print the assembled source list of a target, one per line."""
    try:
        settings = resolve_settings(args)
        plan = load_project_plan(settings)
        flags = FeatureFlags(
            platform=settings.platform,
            with_tls=settings.with_tls,
            coroutine_impl=settings.coroutine_impl,
            rocksdb_experimental=settings.rocksdb_experimental,
        )

        for target_plan in plan.targets:
            if target_plan.name == target:
                for source in target_plan.assembler().assemble(target_plan.base_sources, flags):
                    print(source)
                sys.exit(0)

        available = ", ".join(p.name for p in plan.targets)
        ErrorFormatter.print_error("Unknown target", f"'{target}' (available: {available})")
        sys.exit(2)

    except NativeDepsError as e:
        ErrorFormatter.handle_nativedeps_error(e, args.verbose)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def clean_command(args: ConfigureArgs) -> None:
    """Remove the build directory, including the isolated install prefix."""
    try:
        settings = resolve_settings(args)
        Cache(settings.build_dir).clean()
        ErrorFormatter.print_success(f"Removed {settings.build_dir}")
        sys.exit(0)
    except NativeDepsError as e:
        ErrorFormatter.handle_nativedeps_error(e, args.verbose)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-B",
        "--build-dir",
        type=Path,
        default=None,
        help="Build directory (default: <project>/.nativedeps/build)",
    )
    parser.add_argument(
        "--platform",
        default=None,
        help="Target platform identifier (default: host platform)",
    )
    parser.add_argument(
        "--with-tls",
        dest="with_tls",
        action="store_true",
        default=None,
        help="Enable TLS-dependent modules",
    )
    parser.add_argument(
        "--without-tls",
        dest="with_tls",
        action="store_false",
        help="Disable TLS-dependent modules",
    )
    parser.add_argument(
        "--coroutine-impl",
        choices=["default", "libcoro"],
        default=None,
        help="Coroutine implementation for the server target",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )


def main(argv: Optional[List[str]] = None) -> None:
    """nativedeps - native dependency resolution at configuration time."""
    parser = argparse.ArgumentParser(
        prog="nativedeps",
        description="Resolve native dependencies and prepare benchmark targets",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"nativedeps {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    configure_parser = subparsers.add_parser(
        "configure",
        help="Resolve dependencies and declare targets",
    )
    _add_common_arguments(configure_parser)
    configure_parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=None,
        help="Timeout per external phase in seconds (0 disables, default: 3600)",
    )
    configure_parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Re-run every external phase even if its byproducts exist",
    )

    probe_parser = subparsers.add_parser(
        "probe",
        help="Look for an installed allocator without building",
    )
    _add_common_arguments(probe_parser)

    sources_parser = subparsers.add_parser(
        "sources",
        help="Print a target's assembled source list",
    )
    _add_common_arguments(sources_parser)
    sources_parser.add_argument(
        "--target",
        default="flowbench",
        help="Target name (default: flowbench)",
    )

    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove the build directory",
    )
    _add_common_arguments(clean_parser)

    parsed_args = parser.parse_args(argv)

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    PathValidator.validate_project_dir(parsed_args.project_dir)
    setup_logging(parsed_args.verbose)

    args = ConfigureArgs(
        project_dir=parsed_args.project_dir,
        build_dir=parsed_args.build_dir,
        platform=parsed_args.platform,
        with_tls=parsed_args.with_tls,
        coroutine_impl=parsed_args.coroutine_impl,
        timeout=getattr(parsed_args, "timeout", None),
        force=getattr(parsed_args, "force", False),
        verbose=parsed_args.verbose,
    )

    if parsed_args.command == "configure":
        configure_command(args)
    elif parsed_args.command == "probe":
        probe_command(args)
    elif parsed_args.command == "sources":
        sources_command(args, parsed_args.target)
    elif parsed_args.command == "clean":
        clean_command(args)


if __name__ == "__main__":
    main()
