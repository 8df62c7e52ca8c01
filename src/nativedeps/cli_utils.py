"""CLI utility functions for nativedeps.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Project path validation
- Logging setup
"""

import logging
import sys
import traceback
from pathlib import Path

from nativedeps.errors import ChecksumMismatch, MissingByproduct, NativeDepsError, ProcessFailure


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Configuration failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message."""
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message."""
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def error_title(error: NativeDepsError) -> str:
        """Headline for a nativedeps error, naming phase and project."""
        if isinstance(error, ChecksumMismatch):
            return "Checksum verification failed"
        if isinstance(error, ProcessFailure):
            return f"{error.phase.capitalize()} step failed for {error.project}"
        if isinstance(error, MissingByproduct):
            return f"Missing byproduct after {error.phase} of {error.project}"
        return "Configuration failed"

    @staticmethod
    def handle_nativedeps_error(error: NativeDepsError, verbose: bool = False) -> None:
        """Report a fatal configuration error and exit with status 1.

        Args:
            error: The error to report
            verbose: Whether to print the traceback
        """
        ErrorFormatter.print_error(ErrorFormatter.error_title(error), str(error))
        if verbose:
            print("Traceback:")
            print(traceback.format_exc())
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Configuration interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Args:
            project_dir: Path to validate

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not project_dir.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)


def setup_logging(verbose: bool) -> None:
    """Configure root logging: INFO when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
