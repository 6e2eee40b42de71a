"""Step executors for variant calling, annotation and the protein database."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Sequence

from genoprot.core.pipeline_types import ExperimentType, ResultKeys
from genoprot.core.stage_gate import should_run
from genoprot.exceptions import PipelineError
from genoprot.external import gatk, samtools, snpeff
from genoprot.utils.logging import LogTemplates
from genoprot.variants.annotation import iter_vcf_annotations
from genoprot.variants.protein_database import write_protein_database

if TYPE_CHECKING:
    from genoprot.core.pipeline import Pipeline


def partition_contigs(contigs: Sequence[str], workers: int) -> List[List[str]]:
    """Round-robin contigs into at most *workers* non-empty buckets."""
    workers = max(1, min(workers, len(contigs))) if contigs else 1
    buckets: List[List[str]] = [[] for _ in range(workers)]
    for i, contig in enumerate(contigs):
        buckets[i % workers].append(contig)
    return [b for b in buckets if b]


def _call_sample(pipeline: Pipeline, name: str, bam: Path, contigs: Sequence[str]) -> Path:
    params = pipeline.parameters
    genome = pipeline.reference.genome_fasta
    opts = params.options_for("gatk")
    java_options = opts.get("java_options")
    min_confidence = opts.get("min_confidence", 20)
    gatk_exe = pipeline.executable("gatk")
    workdir = params.analysis_dir / "variants"
    rna = params.experiment_type is ExperimentType.RNA_SEQUENCING

    if rna:
        split_bam = workdir / f"{name}.split.bam"
        pipeline.gate.run(gatk.split_n_cigar_reads(genome, bam, split_bam, gatk_exe, java_options))
        pipeline.gate.run(samtools.index_bam(split_bam, params.threads, pipeline.executable("samtools")))
        bam = split_bam

    output_vcf = workdir / f"{name}.vcf"
    if not should_run([output_vcf]):
        pipeline.logger.info(LogTemplates.STAGE_CACHED.format(stage=f"variants:{name}", count=1))
        return output_vcf

    def caller(vcf: Path, intervals: Sequence[str]):
        return gatk.haplotype_caller(
            genome,
            bam,
            vcf,
            intervals=intervals,
            known_sites_vcf=params.known_sites_vcf,
            rna=rna,
            min_confidence=min_confidence,
            executable=gatk_exe,
            java_options=java_options,
        )

    buckets = partition_contigs(contigs, params.variant_calling_workers)
    if len(buckets) <= 1:
        pipeline.gate.run(caller(output_vcf, ()))
        return output_vcf

    stages = [caller(workdir / f"{name}.part{i:03d}.vcf", bucket) for i, bucket in enumerate(buckets)]
    pipeline.logger.info(
        f"Calling variants for {name} across {len(stages)} contig partitions "
        f"with {params.variant_calling_workers} workers"
    )
    pipeline.run_parallel(pipeline.gate.run, stages, params.variant_calling_workers)
    pipeline.gate.run(
        gatk.merge_vcfs([s.expected_outputs[0] for s in stages], output_vcf, gatk_exe, java_options)
    )
    return output_vcf


def call_variants(pipeline: Pipeline) -> None:
    """Call variants per sample, partitioning the genome by contig across workers."""
    bams = pipeline._get_result(ResultKeys.ALIGNED_BAMS)
    if not bams:
        raise PipelineError("Aligned BAMs not found in results")
    contigs = pipeline._get_result(ResultKeys.CONTIGS, [])

    vcfs: Dict[str, Path] = {}
    for name, bam in bams.items():
        vcfs[name] = _call_sample(pipeline, name, bam, contigs)
    pipeline._set_result(ResultKeys.VARIANT_VCFS, vcfs)


def annotate_variants(pipeline: Pipeline) -> None:
    params = pipeline.parameters
    vcfs = pipeline._get_result(ResultKeys.VARIANT_VCFS)
    if not vcfs:
        raise PipelineError("Variant VCFs not found in results")
    database = pipeline.reference.snpeff_database
    if not database:
        raise PipelineError(f"No snpEff database for reference {pipeline.reference.name}")

    opts = params.options_for("snpeff")
    annotated: Dict[str, Path] = {}
    for name, vcf in vcfs.items():
        stage = snpeff.annotate(
            vcf,
            database,
            data_dir=params.data_dir / "snpEff",
            quick_without_stats=bool(opts.get("quick_without_stats", False)),
            java_options=opts.get("java_options"),
            executable=pipeline.executable("snpeff"),
        )
        pipeline.gate.run(stage)
        annotated[name] = stage.expected_outputs[0]
    pipeline._set_result(ResultKeys.ANNOTATED_VCFS, annotated)


def build_protein_database(pipeline: Pipeline) -> None:
    """Write reference and variant proteins plus the annotation summary."""
    params = pipeline.parameters
    output_dir = params.analysis_dir / "protein_database"
    output_fasta = output_dir / "sample_specific_proteins.fasta"
    summary_tsv = output_dir / "variant_annotations.tsv"

    pipeline._set_result(ResultKeys.PROTEIN_DATABASE, output_fasta)
    pipeline._set_result(ResultKeys.ANNOTATION_SUMMARY, summary_tsv)
    if not should_run([output_fasta, summary_tsv]):
        pipeline.logger.info(LogTemplates.STAGE_CACHED.format(stage="protein_database", count=2))
        return

    annotations = []
    for vcf in (pipeline._get_result(ResultKeys.ANNOTATED_VCFS) or {}).values():
        annotations.extend(iter_vcf_annotations(vcf))

    stats = write_protein_database(
        annotations,
        pipeline.reference.protein_fasta,
        output_fasta,
        summary_tsv,
        params.min_peptide_length,
    )
    pipeline.logger.info(
        f"Protein database: {stats.reference_proteins} reference and "
        f"{stats.variant_proteins} variant proteins from {len(annotations)} annotations"
    )
