"""StringTie reference-guided transcript assembly."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from genoprot.core.pipeline_types import Strandedness
from genoprot.external.base import StageInvocation, invocation

# RSEM vocabulary -> StringTie library flags
STRAND_FLAGS = {
    Strandedness.FORWARD: "--fr",
    Strandedness.REVERSE: "--rf",
}


def assemble(
    bam: Path,
    gene_model: Path,
    output_gtf: Path,
    threads: int = 1,
    strandedness: Strandedness = Strandedness.NONE,
    min_isoform_fraction: Optional[float] = None,
    executable: str = "stringtie",
) -> StageInvocation:
    output_gtf = Path(output_gtf)
    cmd = [executable, bam, "-p", threads, "-G", gene_model, "-o", output_gtf]
    flag = STRAND_FLAGS.get(Strandedness(strandedness))
    if flag:
        cmd.append(flag)
    if min_isoform_fraction is not None:
        cmd += ["-f", min_isoform_fraction]
    return invocation(
        f"stringtie:{output_gtf.name}",
        cmd,
        [output_gtf],
        inputs=[bam, gene_model],
    )


def merge(
    gtfs: Sequence[Path],
    gene_model: Path,
    output_gtf: Path,
    threads: int = 1,
    executable: str = "stringtie",
) -> StageInvocation:
    output_gtf = Path(output_gtf)
    cmd = [executable, "--merge", "-p", threads, "-G", gene_model, "-o", output_gtf, *gtfs]
    return invocation(
        f"stringtie:merge:{output_gtf.name}",
        cmd,
        [output_gtf],
        inputs=[gene_model, *gtfs],
    )
