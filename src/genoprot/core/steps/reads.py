"""Step executors for read trimming, alignment and strandedness."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Tuple

import pandas as pd

from genoprot.core.pipeline_types import FastqGroup, ResultKeys
from genoprot.core.strandedness import StrandednessDecision, StrandednessResolver
from genoprot.exceptions import PipelineError
from genoprot.external import samtools, skewer, star, star_fusion
from genoprot.external.base import StageInvocation

if TYPE_CHECKING:
    from genoprot.core.pipeline import Pipeline


def _reads_for(pipeline: Pipeline, group: FastqGroup) -> Tuple[Path, ...]:
    trimmed = pipeline._get_result(ResultKeys.TRIMMED_READS, {})
    return tuple(trimmed.get(group.name, group.reads))


def _clear_outputs(pipeline: Pipeline, stage: StageInvocation) -> None:
    """Delete a stage's artifacts so the gate reruns it."""
    for path in stage.expected_outputs:
        if path.is_file():
            pipeline.logger.info(f"Removing {path} (overwrite_alignments)")
            path.unlink()


def trim_reads(pipeline: Pipeline) -> None:
    """Step 3: Trim every sample with skewer."""
    params = pipeline.parameters
    opts = params.options_for("skewer")
    output_dir = params.analysis_dir / "trimmed"
    trimmed: Dict[str, Tuple[Path, ...]] = {}

    for group in params.fastq_groups:
        stage = skewer.trim_reads(
            group.reads,
            output_dir,
            threads=params.threads,
            quality=opts.get("quality", 19),
            adapters=opts.get("adapters"),
            executable=pipeline.executable("skewer"),
        )
        pipeline.gate.run(stage)
        trimmed[group.name] = stage.expected_outputs

    pipeline._set_result(ResultKeys.TRIMMED_READS, trimmed)


def align_reads(pipeline: Pipeline) -> None:
    """Step 4: Align trimmed reads with STAR and index the BAMs."""
    params = pipeline.parameters
    index_dir = pipeline._get_result(ResultKeys.STAR_INDEX)
    if index_dir is None:
        raise PipelineError("STAR index not found in results")

    read_subset = params.read_subset if params.use_read_subset else None
    bams: Dict[str, Path] = {}
    for group in params.fastq_groups:
        prefix = params.analysis_dir / "alignments" / f"{group.name}."
        stage = star.align_reads(
            _reads_for(pipeline, group),
            index_dir,
            prefix,
            threads=params.threads,
            read_subset=read_subset,
            sample=group.name,
            executable=pipeline.executable("star"),
        )
        bam = star.aligned_bam(prefix)
        index_stage = samtools.index_bam(bam, params.threads, pipeline.executable("samtools"))
        if params.overwrite_alignments:
            _clear_outputs(pipeline, stage)
            _clear_outputs(pipeline, index_stage)

        pipeline.gate.run(stage)
        pipeline.gate.run(index_stage)
        bams[group.name] = bam

    pipeline._set_result(ResultKeys.ALIGNED_BAMS, bams)


def fusion_align(pipeline: Pipeline) -> None:
    """Chimeric STAR alignment feeding STAR-Fusion."""
    params = pipeline.parameters
    index_dir = pipeline._get_result(ResultKeys.STAR_INDEX)
    if index_dir is None:
        raise PipelineError("STAR index not found in results")

    junctions: Dict[str, Path] = {}
    for group in params.fastq_groups:
        prefix = params.analysis_dir / "fusion" / f"{group.name}."
        stage = star.align_reads(
            _reads_for(pipeline, group),
            index_dir,
            prefix,
            threads=params.threads,
            chimeric=True,
            sample=group.name,
            executable=pipeline.executable("star"),
        )
        if params.overwrite_alignments:
            _clear_outputs(pipeline, stage)
        pipeline.gate.run(stage)
        junctions[group.name] = star.chimeric_junctions(prefix)

    pipeline._set_result(ResultKeys.CHIMERIC_JUNCTIONS, junctions)


def call_fusions(pipeline: Pipeline) -> None:
    params = pipeline.parameters
    junctions = pipeline._get_result(ResultKeys.CHIMERIC_JUNCTIONS)
    if not junctions:
        raise PipelineError("Chimeric junctions not found in results")

    predictions: Dict[str, Path] = {}
    for name, junction_file in junctions.items():
        stage = star_fusion.call_fusions(
            junction_file,
            params.star_fusion_lib_dir,
            params.analysis_dir / "fusion" / f"{name}.star_fusion",
            threads=params.threads,
            executable=pipeline.executable("star_fusion"),
        )
        pipeline.gate.run(stage)
        predictions[name] = stage.expected_outputs[0]

    pipeline._set_result(ResultKeys.FUSION_PREDICTIONS, predictions)


def _write_strandedness_table(path: Path, decisions: Dict[str, StrandednessDecision]) -> None:
    rows = [
        {
            "sample": name,
            "strandedness": decision.strandedness.value,
            "state": decision.state.value,
            "forward_fraction": decision.forward_fraction,
            "reverse_fraction": decision.reverse_fraction,
        }
        for name, decision in decisions.items()
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".partial")
    pd.DataFrame(rows).to_csv(tmp_path, sep="\t", index=False)
    tmp_path.replace(path)


def resolve_strandedness(pipeline: Pipeline) -> None:
    """Resolve the strand protocol of every sample.

    The first sample's decision becomes the run-level value threaded into the
    frozen parameters; quantification uses each sample's own decision.
    """
    params = pipeline.parameters
    resolver = StrandednessResolver(
        params,
        pipeline.gate,
        star_index=pipeline._get_result(ResultKeys.STAR_INDEX),
        gene_model_bed12=pipeline._get_result(ResultKeys.GENE_MODEL_BED12),
    )

    decisions: Dict[str, StrandednessDecision] = {}
    for group in params.fastq_groups:
        decisions[group.name] = resolver.resolve(group)

    first = decisions[params.fastq_groups[0].name]
    pipeline.parameters = replace(
        params,
        strandedness=first.strandedness,
        strandedness_state=first.state,
    )
    pipeline.strandedness_by_group = {name: d.strandedness for name, d in decisions.items()}

    table = params.analysis_dir / "strandedness.tsv"
    _write_strandedness_table(table, decisions)
    pipeline._set_result(ResultKeys.STRANDEDNESS, {name: d.strandedness.value for name, d in decisions.items()})
