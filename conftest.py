"""
Pytest configuration for the nativedeps test suite.

This configuration enables the --full flag to run integration tests, which
download and build real dependencies.
"""

import pytest


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (slow, needs network)",
    )


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "integration: downloads and builds real dependencies"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --full is given."""
    if config.getoption("--full"):
        return
    skip_integration = pytest.mark.skip(reason="needs --full")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
