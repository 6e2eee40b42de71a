"""STAR genome indexing and spliced alignment."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from genoprot.constants import (
    DEFAULT_SJDB_OVERHANG,
    STAR_ALIGNED_BAM,
    STAR_CHIMERIC_JUNCTION,
    STAR_INDEX_FILES,
)
from genoprot.external.base import StageInvocation, invocation

# Chimeric detection settings recommended for STAR-Fusion
CHIMERIC_OPTIONS = (
    "--chimSegmentMin", "12",
    "--chimJunctionOverhangMin", "8",
    "--chimOutJunctionFormat", "1",
    "--alignSJDBoverhangMin", "10",
    "--alignMatesGapMax", "100000",
    "--alignIntronMax", "100000",
    "--alignSJstitchMismatchNmax", "5", "-1", "5", "5",
    "--chimMultimapScoreRange", "3",
    "--chimScoreJunctionNonGTAG", "-4",
    "--chimMultimapNmax", "20",
    "--chimNonchimScoreDropMin", "10",
    "--peOverlapNbasesMin", "12",
    "--peOverlapMMp", "0.1",
)


def aligned_bam(output_prefix: Path) -> Path:
    return Path(f"{output_prefix}{STAR_ALIGNED_BAM}")


def chimeric_junctions(output_prefix: Path) -> Path:
    return Path(f"{output_prefix}{STAR_CHIMERIC_JUNCTION}")


def generate_genome_index(
    genome_fasta: Path,
    gene_model: Path,
    index_dir: Path,
    threads: int = 1,
    sjdb_overhang: int = DEFAULT_SJDB_OVERHANG,
    executable: str = "STAR",
) -> StageInvocation:
    cmd = [
        executable,
        "--runMode", "genomeGenerate",
        "--runThreadN", threads,
        "--genomeDir", index_dir,
        "--genomeFastaFiles", genome_fasta,
        "--sjdbGTFfile", gene_model,
        "--sjdbOverhang", sjdb_overhang,
    ]
    if Path(gene_model).suffix.startswith(".gff"):
        cmd += ["--sjdbGTFtagExonParentTranscript", "Parent"]
    return invocation(
        "star:genomeGenerate",
        cmd,
        [Path(index_dir) / name for name in STAR_INDEX_FILES],
        inputs=[genome_fasta, gene_model],
    )


def align_reads(
    reads: Sequence[Path],
    index_dir: Path,
    output_prefix: Path,
    threads: int = 1,
    read_subset: Optional[int] = None,
    chimeric: bool = False,
    sample: Optional[str] = None,
    executable: str = "STAR",
) -> StageInvocation:
    """Align one sample; ``read_subset`` bounds the number of reads mapped."""
    cmd = [
        executable,
        "--runThreadN", threads,
        "--genomeDir", index_dir,
        "--readFilesIn", *reads,
        "--outSAMtype", "BAM", "SortedByCoordinate",
        "--outSAMstrandField", "intronMotif",
        "--outFileNamePrefix", output_prefix,
    ]
    if str(reads[0]).endswith(".gz"):
        cmd += ["--readFilesCommand", "zcat"]
    if read_subset:
        cmd += ["--readMapNumber", read_subset]
    if sample:
        cmd += ["--outSAMattrRGline", f"ID:{sample}", f"SM:{sample}", "PL:illumina"]
    expected = [aligned_bam(output_prefix)]
    if chimeric:
        cmd += list(CHIMERIC_OPTIONS)
        expected.append(chimeric_junctions(output_prefix))
    label = "star:chimeric" if chimeric else "star:align"
    return invocation(
        f"{label}:{Path(output_prefix).name}",
        cmd,
        expected,
        inputs=[*reads, Path(index_dir)],
    )
