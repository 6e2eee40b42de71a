"""STAR-Fusion calling from STAR chimeric junctions."""

from __future__ import annotations

from pathlib import Path

from genoprot.constants import STAR_FUSION_PREDICTIONS
from genoprot.external.base import StageInvocation, invocation


def call_fusions(
    chimeric_junctions: Path,
    genome_lib_dir: Path,
    output_dir: Path,
    threads: int = 1,
    executable: str = "STAR-Fusion",
) -> StageInvocation:
    output_dir = Path(output_dir)
    cmd = [
        executable,
        "--genome_lib_dir", genome_lib_dir,
        "-J", chimeric_junctions,
        "--output_dir", output_dir,
        "--CPU", threads,
    ]
    return invocation(
        f"star-fusion:{output_dir.name}",
        cmd,
        [output_dir / STAR_FUSION_PREDICTIONS],
        inputs=[chimeric_junctions, genome_lib_dir],
    )
