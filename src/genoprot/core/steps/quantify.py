"""Step executors for RSEM expression quantification."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict

from genoprot.core.pipeline_types import FastqGroup, ResultKeys, Strandedness
from genoprot.exceptions import PipelineError
from genoprot.external import rsem

if TYPE_CHECKING:
    from genoprot.core.pipeline import Pipeline


def prepare_quantification_reference(pipeline: Pipeline) -> None:
    """Build the RSEM/STAR reference once for every sample."""
    params = pipeline.parameters
    prefix = rsem.reference_prefix(pipeline.reference.genome_fasta, params.data_dir)
    pipeline.gate.run(
        rsem.prepare_reference(
            pipeline.reference.genome_fasta,
            pipeline.reference.gene_model,
            prefix,
            threads=params.threads,
            executable=pipeline.executable("rsem_prepare"),
        )
    )
    pipeline._set_result(ResultKeys.RSEM_REFERENCE, prefix)


def quantify_expression(pipeline: Pipeline) -> None:
    """Quantify each sample with its own strandedness.

    Samples are independent and every output path derives from the sample
    name, so they run concurrently up to ``group_workers``.
    """
    params = pipeline.parameters
    prefix = pipeline._get_result(ResultKeys.RSEM_REFERENCE)
    if prefix is None:
        raise PipelineError("RSEM reference not found in results")
    trimmed = pipeline._get_result(ResultKeys.TRIMMED_READS, {})
    strandedness = getattr(pipeline, "strandedness_by_group", {}) or {}
    output_bam = bool(params.options_for("rsem").get("output_bam", False))
    workdir = params.analysis_dir / "quantification"

    def stage_for(group: FastqGroup):
        return rsem.calculate_expression(
            trimmed.get(group.name, group.reads),
            prefix,
            workdir / group.name,
            threads=params.threads,
            strandedness=strandedness.get(group.name, Strandedness.NONE),
            output_bam=output_bam,
            executable=pipeline.executable("rsem_calculate"),
        )

    stages = [stage_for(group) for group in params.fastq_groups]
    pipeline.run_parallel(pipeline.gate.run, stages, params.group_workers)

    results: Dict[str, Path] = {
        group.name: stage.expected_outputs[0] for group, stage in zip(params.fastq_groups, stages)
    }
    pipeline._set_result(ResultKeys.QUANTIFICATION, results)
