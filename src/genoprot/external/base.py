"""Stage invocation type and the subprocess runner for external tools."""

from __future__ import annotations

import logging
import subprocess
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

from genoprot.exceptions import ExternalToolError
from genoprot.utils.logging import get_logger


@dataclass(frozen=True)
class StageInvocation:
    """One external command with the artifacts it is expected to produce.

    Tool modules expose plain builder functions returning these; the flow
    controller hands them to the stage gate.
    """

    name: str
    command: Tuple[str, ...]
    expected_outputs: Tuple[Path, ...] = ()
    stdout_path: Optional[Path] = None
    stdin_path: Optional[Path] = None
    cwd: Optional[Path] = None
    inputs: Tuple[Path, ...] = field(default=(), compare=False)

    @property
    def executable(self) -> str:
        return self.command[0]

    def command_line(self) -> str:
        text = " ".join(str(c) for c in self.command)
        if self.stdin_path:
            text += f" < {self.stdin_path}"
        if self.stdout_path:
            text += f" > {self.stdout_path}"
        return text


def invocation(
    name: str,
    command: Sequence[object],
    expected_outputs: Sequence[Path] = (),
    *,
    stdout_path: Optional[Path] = None,
    stdin_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    inputs: Sequence[Path] = (),
) -> StageInvocation:
    """Build a ``StageInvocation`` with every argument stringified."""
    return StageInvocation(
        name=name,
        command=tuple(str(c) for c in command),
        expected_outputs=tuple(Path(p) for p in expected_outputs),
        stdout_path=Path(stdout_path) if stdout_path else None,
        stdin_path=Path(stdin_path) if stdin_path else None,
        cwd=Path(cwd) if cwd else None,
        inputs=tuple(Path(p) for p in inputs),
    )



def _partial_path(path: Path) -> Path:
    return path.with_name(path.name + ".partial")


def _discard(path: Optional[Path]) -> None:
    if path is not None and path.exists():
        path.unlink()


class ToolRunner:
    """Execute ``StageInvocation`` commands via ``subprocess``."""

    # Bioinformatics tools can run for hours on large datasets
    DEFAULT_TIMEOUT: Optional[int] = None

    def __init__(self, logger: Optional[logging.Logger] = None, timeout: Optional[int] = None):
        self.logger = logger or get_logger("external.runner")
        self.timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

    def run(self, stage: StageInvocation) -> Tuple[str, str]:
        """Run *stage* to completion.

        Returns:
            Tuple of (stdout, stderr); stdout is empty when redirected to a file.
        """
        cmd = list(stage.command)
        cmd_str = stage.command_line()
        self.logger.info(f"Running: {cmd_str}")

        for output in stage.expected_outputs:
            output.parent.mkdir(parents=True, exist_ok=True)
        # Redirected stdout lands under its final name only when the tool succeeds
        partial = _partial_path(stage.stdout_path) if stage.stdout_path else None
        if partial is not None:
            partial.parent.mkdir(parents=True, exist_ok=True)

        try:
            with ExitStack() as stack:
                stdin = stack.enter_context(open(stage.stdin_path, "r")) if stage.stdin_path else None
                stdout = stack.enter_context(open(partial, "w")) if partial else subprocess.PIPE
                result = subprocess.run(
                    cmd,
                    cwd=stage.cwd,
                    stdin=stdin,
                    stdout=stdout,
                    stderr=subprocess.PIPE,
                    text=True,
                    check=True,
                    timeout=self.timeout,
                )
        except subprocess.TimeoutExpired:
            _discard(partial)
            self.logger.error(f"Command timed out after {self.timeout}s: {cmd_str}")
            raise ExternalToolError(
                f"{stage.name} timed out",
                command=cmd,
                returncode=-1,
                stderr=f"Process timed out after {self.timeout} seconds",
            )
        except subprocess.CalledProcessError as e:
            _discard(partial)
            error = ExternalToolError(
                f"{stage.name} failed with exit code {e.returncode}",
                command=cmd,
                returncode=e.returncode,
                stderr=e.stderr,
            )
            self.logger.error(f"Command failed: {cmd_str}")
            self.logger.error(f"Return code: {e.returncode}")
            self.logger.error(f"stderr:\n{error.stderr_tail() or '(empty)'}")
            raise error from e
        except OSError as e:
            _discard(partial)
            self.logger.error(f"OS error running command: {cmd_str}")
            self.logger.error(f"Error: {e}")
            raise ExternalToolError(
                f"Failed to execute {stage.name}", command=cmd, returncode=-1, stderr=str(e)
            )

        if partial is not None:
            partial.replace(stage.stdout_path)
        if result.stderr:
            self.logger.debug(f"Command stderr: {result.stderr[:500]}")
        return result.stdout or "", result.stderr or ""
