"""
Integration tests for the jemalloc source build.

These download the pinned jemalloc release and build it with the host
toolchain, so they need network access, a C compiler and make.
"""

import shutil
import time

import pytest

from nativedeps.build.process_runner import ProcessRunner
from nativedeps.config.library_specs import JEMALLOC, jemalloc_fetch_spec
from nativedeps.packages.cache import Cache
from nativedeps.packages.source_builder import SourceBuilder

needs_toolchain = pytest.mark.skipif(
    shutil.which("make") is None or shutil.which("cc") is None,
    reason="needs make and a C compiler",
)


@pytest.mark.integration
@needs_toolchain
class TestJemallocSourceBuild:
    """Integration tests for fetching and building jemalloc"""

    @pytest.fixture(scope="class")
    def build_dir(self, tmp_path_factory):
        """Build directory shared by the tests in this class"""
        return tmp_path_factory.mktemp("nativedeps-build")

    def test_full_build_from_scratch(self, build_dir):
        """
        Test the complete fallback build.

        Validates:
        - Archive is downloaded and verified
        - configure, make and make install succeed
        - Both static archives and the header land in the isolated prefix
        """
        cache = Cache(build_dir)
        fetch = jemalloc_fetch_spec(build_dir)
        builder = SourceBuilder(cache, ProcessRunner(timeout=1800), show_progress=False)

        start_time = time.time()
        artifacts = builder.fetch_build_install(JEMALLOC, fetch)
        elapsed = time.time() - start_time

        assert [a.variant for a in artifacts] == ["default", "pic"]
        assert all(a.is_usable() for a in artifacts)
        assert (fetch.prefix / "include" / "jemalloc" / "jemalloc.h").is_file()
        print(f"\njemalloc built in {elapsed:.1f}s")

    def test_rebuild_is_up_to_date(self, build_dir):
        """A second pass over the same build directory runs no phase."""
        cache = Cache(build_dir)
        fetch = jemalloc_fetch_spec(build_dir)
        builder = SourceBuilder(cache, ProcessRunner(timeout=60), show_progress=False)

        start_time = time.time()
        artifacts = builder.fetch_build_install(JEMALLOC, fetch)

        assert all(a.is_usable() for a in artifacts)
        assert time.time() - start_time < 30
