"""samtools indexing helpers."""

from __future__ import annotations

from pathlib import Path

from genoprot.external.base import StageInvocation, invocation


def faidx(genome_fasta: Path, executable: str = "samtools") -> StageInvocation:
    genome_fasta = Path(genome_fasta)
    return invocation(
        "samtools:faidx",
        [executable, "faidx", genome_fasta],
        [genome_fasta.with_name(genome_fasta.name + ".fai")],
        inputs=[genome_fasta],
    )


def index_bam(bam: Path, threads: int = 1, executable: str = "samtools") -> StageInvocation:
    bam = Path(bam)
    return invocation(
        f"samtools:index:{bam.name}",
        [executable, "index", "-@", threads, bam],
        [bam.with_name(bam.name + ".bai")],
        inputs=[bam],
    )
