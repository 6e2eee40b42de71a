"""GATK4 commands used for RNA-seq and DNA-seq variant calling."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from genoprot.external.base import StageInvocation, invocation


def _gatk(executable: str, java_options: Optional[str]) -> list:
    cmd = [executable]
    if java_options:
        cmd += ["--java-options", java_options]
    return cmd


def create_sequence_dictionary(
    genome_fasta: Path,
    executable: str = "gatk",
    java_options: Optional[str] = None,
) -> StageInvocation:
    genome_fasta = Path(genome_fasta)
    dictionary = genome_fasta.with_suffix(".dict")
    return invocation(
        "gatk:CreateSequenceDictionary",
        _gatk(executable, java_options) + ["CreateSequenceDictionary", "-R", genome_fasta, "-O", dictionary],
        [dictionary],
        inputs=[genome_fasta],
    )


def split_n_cigar_reads(
    genome_fasta: Path,
    bam: Path,
    output_bam: Path,
    executable: str = "gatk",
    java_options: Optional[str] = None,
) -> StageInvocation:
    """Split spliced RNA-seq alignments so HaplotypeCaller sees exon-level reads."""
    output_bam = Path(output_bam)
    return invocation(
        f"gatk:SplitNCigarReads:{output_bam.name}",
        _gatk(executable, java_options)
        + ["SplitNCigarReads", "-R", genome_fasta, "-I", bam, "-O", output_bam],
        [output_bam],
        inputs=[genome_fasta, bam],
    )


def haplotype_caller(
    genome_fasta: Path,
    bam: Path,
    output_vcf: Path,
    intervals: Sequence[str] = (),
    known_sites_vcf: Optional[Path] = None,
    rna: bool = True,
    min_confidence: int = 20,
    executable: str = "gatk",
    java_options: Optional[str] = None,
) -> StageInvocation:
    """Call variants, restricted to *intervals* (contig names) when given."""
    output_vcf = Path(output_vcf)
    cmd = _gatk(executable, java_options) + [
        "HaplotypeCaller",
        "-R", genome_fasta,
        "-I", bam,
        "-O", output_vcf,
        "--standard-min-confidence-threshold-for-calling", min_confidence,
    ]
    if rna:
        cmd.append("--dont-use-soft-clipped-bases")
    if known_sites_vcf:
        cmd += ["--dbsnp", known_sites_vcf]
    for interval in intervals:
        cmd += ["-L", interval]
    inputs = [genome_fasta, bam] + ([known_sites_vcf] if known_sites_vcf else [])
    return invocation(
        f"gatk:HaplotypeCaller:{output_vcf.name}",
        cmd,
        [output_vcf],
        inputs=inputs,
    )


def merge_vcfs(
    vcfs: Sequence[Path],
    output_vcf: Path,
    executable: str = "gatk",
    java_options: Optional[str] = None,
) -> StageInvocation:
    output_vcf = Path(output_vcf)
    cmd = _gatk(executable, java_options) + ["MergeVcfs"]
    for vcf in vcfs:
        cmd += ["-I", vcf]
    cmd += ["-O", output_vcf]
    return invocation(f"gatk:MergeVcfs:{output_vcf.name}", cmd, [output_vcf], inputs=vcfs)
