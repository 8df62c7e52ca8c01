"""Unit tests for ProcessRunner."""

import sys

from nativedeps.build.process_runner import ProcessResult, ProcessRunner


class TestProcessRunner:
    """Test cases for ProcessRunner.run."""

    def test_success(self, tmp_path):
        """A zero exit status is a successful result with captured stdout."""
        result = ProcessRunner().run([sys.executable, "-c", "print('configured')"], tmp_path)

        assert result.success
        assert result.returncode == 0
        assert result.stdout.strip() == "configured"
        assert not result.timed_out
        assert result.duration >= 0

    def test_runs_in_cwd(self, tmp_path):
        """The command runs in the given working directory."""
        ProcessRunner().run(
            [sys.executable, "-c", "open('Makefile', 'w').write('all:')"], tmp_path
        )
        assert (tmp_path / "Makefile").exists()

    def test_nonzero_exit(self, tmp_path):
        """A non-zero exit is reported, not raised."""
        result = ProcessRunner().run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"], tmp_path
        )

        assert not result.success
        assert result.returncode == 3
        assert "boom" in result.output

    def test_missing_executable(self, tmp_path):
        """A missing tool yields exit status 127."""
        result = ProcessRunner().run(["definitely-not-a-real-tool-xyz"], tmp_path)

        assert not result.success
        assert result.returncode == 127
        assert "Command not found" in result.stderr

    def test_timeout(self, tmp_path):
        """A process exceeding the timeout is killed and flagged."""
        runner = ProcessRunner(timeout=0.5)
        result = runner.run([sys.executable, "-c", "import time; time.sleep(30)"], tmp_path)

        assert result.timed_out
        assert not result.success
        assert result.returncode is None

    def test_arguments_are_stringified(self, tmp_path):
        """Path arguments are converted to strings."""
        result = ProcessRunner().run([sys.executable, "-c", "pass", tmp_path], tmp_path)
        assert result.command[-1] == str(tmp_path)


class TestProcessResult:
    """Test cases for ProcessResult."""

    def test_output_combines_streams(self):
        result = ProcessResult(["make"], 2, "compiling\n", "error: x\n", 0.1)
        assert result.output == "compiling\nerror: x"

    def test_output_skips_blank_streams(self):
        result = ProcessResult(["make"], 2, "", "   \n", 0.1)
        assert result.output == ""

    def test_timed_out_is_never_success(self):
        result = ProcessResult(["make"], 0, "", "", 0.1, timed_out=True)
        assert not result.success
