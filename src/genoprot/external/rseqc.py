"""RSeQC ``infer_experiment.py`` for library strand inference."""

from __future__ import annotations

from pathlib import Path

from genoprot.constants import INFER_EXPERIMENT_SAMPLE_SIZE
from genoprot.external.base import StageInvocation, invocation


def infer_experiment(
    gene_model_bed12: Path,
    bam: Path,
    summary_path: Path,
    sample_size: int = INFER_EXPERIMENT_SAMPLE_SIZE,
    executable: str = "infer_experiment.py",
) -> StageInvocation:
    """The summary is captured from stdout into *summary_path*."""
    cmd = [executable, "-r", gene_model_bed12, "-i", bam, "-s", sample_size]
    return invocation(
        f"rseqc:infer_experiment:{Path(bam).name}",
        cmd,
        [summary_path],
        stdout_path=summary_path,
        inputs=[gene_model_bed12, bam],
    )
