"""Shared fixtures for nativedeps unit tests."""

import hashlib
import tarfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from nativedeps.build.process_runner import ProcessResult


class FakeRunner:
    """Stands in for ProcessRunner and records every invocation.

    Commands are matched on their first words ("./configure", "make install",
    "cmake --build"). A matching effect callback runs before the result is
    returned, so it can create the files a real tool would produce.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.effects: Dict[str, Callable[[List[str], Path], None]] = {}
        self.failures: Dict[str, int] = {}
        self.timeouts: set = set()

    def on(self, key: str, effect: Callable[[List[str], Path], None]) -> None:
        self.effects[key] = effect

    def fail(self, key: str, returncode: int = 2) -> None:
        self.failures[key] = returncode

    def count(self, key: str) -> int:
        return sum(1 for command in self.calls if self._key(command) == key)

    @staticmethod
    def _key(command: List[str]) -> str:
        if command[0] == "./configure":
            return "./configure"
        if command[0].endswith("cmake"):
            return "cmake --build" if "--build" in command else "cmake -G"
        return " ".join(command[:2])

    def run(self, command, cwd: Path) -> ProcessResult:
        command = [str(part) for part in command]
        self.calls.append(command)
        key = self._key(command)

        if key in self.timeouts:
            return ProcessResult(command, None, "", "", 0.0, timed_out=True)
        if key in self.failures:
            return ProcessResult(command, self.failures[key], "", f"{key} failed", 0.0)

        effect = self.effects.get(key)
        if effect is not None:
            effect(command, Path(cwd))
        return ProcessResult(command, 0, "", "", 0.0)


def write_file(path: Path, content: bytes = b"!<arch>\n") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def jemalloc_runner(fake_runner: FakeRunner) -> FakeRunner:
    """FakeRunner that behaves like jemalloc's configure/make/make install."""

    def configure(command, cwd):
        prefix = Path(command[1].split("=", 1)[1])
        (cwd / ".prefix").write_text(str(prefix))
        write_file(cwd / "Makefile", b"all:\n")

    def make(command, cwd):
        write_file(cwd / "lib" / "libjemalloc.a")
        write_file(cwd / "lib" / "libjemalloc_pic.a")

    def make_install(command, cwd):
        prefix = Path((cwd / ".prefix").read_text())
        write_file(prefix / "include" / "jemalloc" / "jemalloc.h", b"#pragma once\n")
        write_file(prefix / "lib" / "libjemalloc.a")
        write_file(prefix / "lib" / "libjemalloc_pic.a")

    fake_runner.on("./configure", configure)
    fake_runner.on("make", make)
    fake_runner.on("make install", make_install)
    return fake_runner


@pytest.fixture
def source_archive(tmp_path) -> Callable[[Optional[Path]], tuple]:
    """Create a jemalloc-like .tar.bz2 and return (path, sha256)."""

    def create(dest: Optional[Path] = None) -> tuple:
        tree = tmp_path / "archive-src" / "jemalloc-5.2.1"
        write_file(tree / "configure", b"#!/bin/sh\n")
        write_file(tree / "include" / "jemalloc" / "jemalloc.h.in", b"/* template */\n")

        archive = dest or tmp_path / "jemalloc-5.2.1.tar.bz2"
        archive.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive, "w:bz2") as tar:
            tar.add(tree, arcname="jemalloc-5.2.1")
        digest = hashlib.sha256(archive.read_bytes()).hexdigest()
        return archive, digest

    return create
