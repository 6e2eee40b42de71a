"""Idempotency guard deciding whether a stage must execute.

Filesystem presence is the only done/not-done state: a stage is skipped when
every artifact it is expected to produce exists with non-zero size. There is
no run manifest and no content check, so a truncated but non-empty artifact
left by a crashed run counts as complete.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

from genoprot.exceptions import MissingInputError, PipelineError
from genoprot.external.base import StageInvocation, ToolRunner
from genoprot.utils.logging import LogTemplates, get_logger

PathLike = Union[str, Path]


def artifact_present(path: PathLike) -> bool:
    """True when *path* exists and is non-empty (directories count when non-empty)."""
    candidate = Path(path)
    try:
        if candidate.is_dir():
            return any(candidate.iterdir())
        return candidate.stat().st_size > 0
    except OSError:
        return False


def should_run(expected_artifact_paths: Iterable[PathLike]) -> bool:
    """Return True unless every listed path exists with non-zero size.

    A stage that declares no artifacts always runs.
    """
    paths = list(expected_artifact_paths)
    if not paths:
        return True
    return not all(artifact_present(p) for p in paths)


class StageGate:
    """Wraps every external invocation of a run with the presence check."""

    def __init__(self, runner: ToolRunner, logger: Optional[logging.Logger] = None):
        self.runner = runner
        self.logger = logger or get_logger("stage_gate")
        self.executed: List[str] = []
        self.skipped: List[str] = []
        self._lock = threading.Lock()

    def run(self, stage: StageInvocation) -> bool:
        """Execute *stage* unless its artifacts are already present.

        Returns:
            True if the command was executed, False if it was skipped.
        """
        if not should_run(stage.expected_outputs):
            self.logger.info(
                LogTemplates.STAGE_CACHED.format(stage=stage.name, count=len(stage.expected_outputs))
            )
            with self._lock:
                self.skipped.append(stage.name)
            return False

        absent = [p for p in stage.inputs if not p.exists()]
        if absent:
            listing = ", ".join(str(p) for p in absent)
            raise MissingInputError(LogTemplates.STAGE_MISSING_INPUT.format(stage=stage.name, paths=listing))

        self.logger.debug(LogTemplates.STAGE_RUN.format(stage=stage.name))
        self.runner.run(stage)

        missing = [p for p in stage.expected_outputs if not artifact_present(p)]
        if missing:
            listing = ", ".join(str(p) for p in missing)
            raise PipelineError(f"{stage.name} finished but did not produce: {listing}")

        with self._lock:
            self.executed.append(stage.name)
        return True

    @property
    def executed_count(self) -> int:
        return len(self.executed)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)
