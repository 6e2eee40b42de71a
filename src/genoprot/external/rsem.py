"""RSEM reference preparation and expression quantification (STAR aligner)."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from genoprot.constants import RSEM_GENE_RESULTS, RSEM_ISOFORM_RESULTS
from genoprot.core.pipeline_types import Strandedness
from genoprot.external.base import StageInvocation, invocation


def reference_prefix(genome_fasta: Path, output_dir: Path) -> Path:
    genome_fasta = Path(genome_fasta)
    return Path(output_dir) / f"{genome_fasta.stem}RsemStarReference" / genome_fasta.stem


def gene_model_option(gene_model: Path) -> list:
    suffix = Path(gene_model).suffix
    if suffix.startswith(".gff"):
        return ["--gff3", gene_model]
    if suffix == ".gtf":
        return ["--gtf", gene_model]
    raise ValueError(f"RSEM needs a .gtf or .gff3 gene model, got {gene_model}")


def prepare_reference(
    genome_fasta: Path,
    gene_model: Path,
    prefix: Path,
    threads: int = 1,
    executable: str = "rsem-prepare-reference",
) -> StageInvocation:
    prefix = Path(prefix)
    cmd = [
        executable,
        *gene_model_option(gene_model),
        "--star",
        "--num-threads", threads,
        genome_fasta,
        prefix,
    ]
    return invocation(
        "rsem:prepare-reference",
        cmd,
        [prefix.parent / "SA", Path(f"{prefix}.grp")],
        inputs=[genome_fasta, gene_model],
    )


def calculate_expression(
    reads: Sequence[Path],
    prefix: Path,
    output_prefix: Path,
    threads: int = 1,
    strandedness: Strandedness = Strandedness.NONE,
    output_bam: bool = False,
    executable: str = "rsem-calculate-expression",
) -> StageInvocation:
    if not 1 <= len(reads) <= 2:
        raise ValueError(f"RSEM takes one or two read files, got {len(reads)}")
    cmd = [
        executable,
        "--time",
        "--calc-ci",
        "--star",
        "--num-threads", threads,
        "--strandedness", Strandedness(strandedness).value,
        "--output-genome-bam" if output_bam else "--no-bam-output",
    ]
    first = str(reads[0])
    if first.endswith(".gz"):
        cmd.append("--star-gzipped-read-file")
    elif first.endswith(".bz2"):
        cmd.append("--star-bzipped-read-file")
    if len(reads) == 2:
        cmd.append("--paired-end")
    cmd += [*reads, prefix, output_prefix]
    return invocation(
        f"rsem:calculate-expression:{Path(output_prefix).name}",
        cmd,
        [Path(f"{output_prefix}{RSEM_ISOFORM_RESULTS}"), Path(f"{output_prefix}{RSEM_GENE_RESULTS}")],
        inputs=list(reads),
    )
