"""
Sequential execution of external build phases with completion stamps.

A phase's byproducts are only trusted once the phase itself reported
success, which is recorded in a stamp file. On a later pass a phase is
skipped when its stamp matches the current command and every byproduct is
still present. Once one phase runs, every phase after it runs too.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from ..errors import MissingByproduct, ProcessFailure
from .process_runner import ProcessRunner


@dataclass
class BuildPhase:
    """One external step of a build (e.g. configure, build, install)."""

    name: str
    command: List[str]
    cwd: Path
    byproducts: List[Path] = field(default_factory=list)

    def missing_byproducts(self) -> List[Path]:
        """Byproducts that are absent, not regular files, or empty."""
        return [
            path for path in self.byproducts if not path.is_file() or path.stat().st_size == 0
        ]


class PhaseRunner:
    """Runs phases for one project in order, failing fast on the first error."""

    def __init__(
        self,
        project: str,
        stamp_dir: Path,
        runner: ProcessRunner,
        verbose: bool = False,
    ):
        """
        Initialize phase runner.

        Args:
            project: Dependency or project name used in diagnostics
            stamp_dir: Directory holding this project's phase stamps
            runner: Process runner used for every phase
            verbose: Print skip/run decisions
        """
        self.project = project
        self.stamp_dir = stamp_dir
        self.runner = runner
        self.verbose = verbose

    def stamp_path(self, phase: BuildPhase) -> Path:
        return self.stamp_dir / f"{phase.name}.stamp"

    def is_complete(self, phase: BuildPhase) -> bool:
        """
        Check whether a phase can be skipped.

        Args:
            phase: Phase to check

        Returns:
            True if the phase succeeded before with the same command and all
            of its byproducts still exist
        """
        stamp = self.stamp_path(phase)
        if not stamp.exists():
            return False

        try:
            info = json.loads(stamp.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return False

        if info.get("command") != phase.command:
            return False

        return not phase.missing_byproducts()

    def run_phases(self, phases: Sequence[BuildPhase], force: bool = False) -> List[str]:
        """
        Run phases in order.

        Args:
            phases: Phases in execution order
            force: Re-run every phase regardless of stamps

        Returns:
            Names of the phases that were actually executed

        Raises:
            ProcessFailure: If a phase exits non-zero or times out
            MissingByproduct: If a successful phase left a byproduct missing
        """
        executed: List[str] = []
        rerun_rest = force

        for index, phase in enumerate(phases):
            if not rerun_rest and self.is_complete(phase):
                if self.verbose:
                    print(f"  [{self.project}] {phase.name}: up to date")
                continue

            rerun_rest = True
            self._clear_stamps(phases[index:])
            self._run_phase(phase)
            executed.append(phase.name)

        return executed

    def _run_phase(self, phase: BuildPhase) -> None:
        if self.verbose:
            print(f"  [{self.project}] {phase.name}...")
        logging.info(f"{self.project}: running {phase.name} phase")

        phase.cwd.mkdir(parents=True, exist_ok=True)
        result = self.runner.run(phase.command, phase.cwd)

        if not result.success:
            logging.error(f"{self.project}: {phase.name} phase failed")
            raise ProcessFailure(
                phase=phase.name,
                project=self.project,
                returncode=result.returncode,
                output=result.output,
                timed_out=result.timed_out,
            )

        missing = phase.missing_byproducts()
        if missing:
            raise MissingByproduct(self.project, phase.name, missing)

        self._write_stamp(phase, result.duration)

    def _write_stamp(self, phase: BuildPhase, duration: float) -> None:
        self.stamp_dir.mkdir(parents=True, exist_ok=True)
        info = {
            "command": phase.command,
            "byproducts": [str(path) for path in phase.byproducts],
            "duration": round(duration, 3),
            "completed_at": time.time(),
        }
        self.stamp_path(phase).write_text(json.dumps(info, indent=2), encoding="utf-8")

    def _clear_stamps(self, phases: Sequence[BuildPhase]) -> None:
        for phase in phases:
            stamp = self.stamp_path(phase)
            if stamp.exists():
                stamp.unlink()

    def clear(self) -> None:
        """Forget every phase of this project."""
        if self.stamp_dir.exists():
            for stamp in self.stamp_dir.glob("*.stamp"):
                stamp.unlink()
