"""Unit tests for CLI utilities including ErrorFormatter."""

from pathlib import Path

import pytest

from nativedeps.cli_utils import ErrorFormatter, PathValidator
from nativedeps.errors import ChecksumMismatch, ConfigError, MissingByproduct, ProcessFailure


class TestErrorFormatter:
    """Tests for ErrorFormatter class."""

    def test_title_for_process_failure(self):
        error = ProcessFailure("configure", "jemalloc", 1)
        assert ErrorFormatter.error_title(error) == "Configure step failed for jemalloc"

    def test_title_for_checksum_mismatch(self):
        error = ChecksumMismatch("jemalloc-5.2.1.tar.bz2", "a" * 64, "b" * 64)
        assert ErrorFormatter.error_title(error) == "Checksum verification failed"

    def test_title_for_missing_byproduct(self):
        error = MissingByproduct("googlebenchmark", "build", [Path("/x/libbenchmark.a")])
        assert ErrorFormatter.error_title(error) == "Missing byproduct after build of googlebenchmark"

    def test_title_for_other_errors(self):
        assert ErrorFormatter.error_title(ConfigError("bad")) == "Configuration failed"

    def test_handle_error_exits_1(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_nativedeps_error(ProcessFailure("build", "googlebenchmark", 2))

        assert exc_info.value.code == 1
        output = capsys.readouterr().out
        assert "Build step failed for googlebenchmark" in output
        assert "exit status 2" in output

    def test_keyboard_interrupt_exits_130(self):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130

    def test_unexpected_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_unexpected_error(RuntimeError("oops"))
        assert exc_info.value.code == 1
        assert "RuntimeError: oops" in capsys.readouterr().out


class TestPathValidator:
    def test_missing_dir(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_project_dir(tmp_path / "missing")
        assert exc_info.value.code == 2

    def test_file_is_not_dir(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(SystemExit) as exc_info:
            PathValidator.validate_project_dir(path)
        assert exc_info.value.code == 2

    def test_valid_dir(self, tmp_path):
        PathValidator.validate_project_dir(tmp_path)
