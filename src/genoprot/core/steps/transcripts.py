"""Step executors for transcript assembly and lncRNA classification."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict

from genoprot.constants import UCSC_ASSEMBLIES
from genoprot.core.pipeline_types import ResultKeys, Strandedness
from genoprot.core.stage_gate import artifact_present
from genoprot.exceptions import PipelineError
from genoprot.external import slncky, stringtie, ucsc_tools
from genoprot.reference.chromosome_mapping import MappingDirection, translate_leading_column
from genoprot.reference.resolver import canonical_build_name

if TYPE_CHECKING:
    from genoprot.core.pipeline import Pipeline


def _assemble(pipeline: Pipeline, subdir: str, label: str) -> Path:
    """Assemble each sample with stringtie and merge when there are several."""
    params = pipeline.parameters
    bams = pipeline._get_result(ResultKeys.ALIGNED_BAMS)
    if not bams:
        raise PipelineError("Aligned BAMs not found in results")

    gene_model = pipeline.reference.gene_model
    workdir = params.analysis_dir / subdir
    min_fraction = params.options_for("stringtie").get("min_isoform_fraction")
    strandedness = getattr(pipeline, "strandedness_by_group", {}) or {}
    exe = pipeline.executable("stringtie")

    gtfs = []
    for name, bam in bams.items():
        stage = stringtie.assemble(
            bam,
            gene_model,
            workdir / f"{name}.{label}.gtf",
            threads=params.threads,
            strandedness=strandedness.get(name, params.strandedness or Strandedness.NONE),
            min_isoform_fraction=min_fraction,
            executable=exe,
        )
        pipeline.gate.run(stage)
        gtfs.append(stage.expected_outputs[0])

    if len(gtfs) == 1:
        return gtfs[0]
    merged = workdir / f"merged.{label}.gtf"
    pipeline.gate.run(stringtie.merge(gtfs, gene_model, merged, params.threads, exe))
    return merged


def assemble_isoforms(pipeline: Pipeline) -> None:
    """Reference-guided isoform assembly alongside the protein database."""
    pipeline._set_result(ResultKeys.ISOFORM_GTF, _assemble(pipeline, "isoforms", "isoforms"))


def assemble_transcripts(pipeline: Pipeline) -> None:
    pipeline._set_result(
        ResultKeys.ASSEMBLED_TRANSCRIPTS, _assemble(pipeline, "transcripts", "transcripts")
    )


def classify_lncrnas(pipeline: Pipeline) -> None:
    """BED12 conversion, UCSC contig names, then slncky classification."""
    params = pipeline.parameters
    transcripts = pipeline._get_result(ResultKeys.ASSEMBLED_TRANSCRIPTS)
    if transcripts is None:
        raise PipelineError("Assembled transcripts not found in results")

    build = canonical_build_name(pipeline.reference.name)
    if build is None:
        raise PipelineError(f"slncky needs a UCSC assembly; {pipeline.reference.name} has none")

    bed12 = ucsc_tools.bed12_path(transcripts)
    for stage in ucsc_tools.gene_model_to_bed12(transcripts, bed12, dict(params.executables)):
        pipeline.gate.run(stage)

    ucsc_bed = bed12.with_name(f"{bed12.stem}.{MappingDirection.ENSEMBL_TO_UCSC.output_tag}{bed12.suffix}")
    if not artifact_present(ucsc_bed):
        translate_leading_column(bed12, build, MappingDirection.ENSEMBL_TO_UCSC, ucsc_bed)

    output_prefix = params.analysis_dir / "lncrna" / transcripts.stem
    stage = slncky.classify(
        ucsc_bed,
        UCSC_ASSEMBLIES[build],
        output_prefix,
        threads=params.threads,
        config=params.options_for("slncky").get("config"),
        executable=pipeline.executable("slncky"),
    )
    pipeline.gate.run(stage)
    results: Dict[str, Path] = {
        "lncs_bed": stage.expected_outputs[0],
        "lncs_info": stage.expected_outputs[1],
    }
    pipeline._set_result(ResultKeys.LNCRNA_RESULTS, results)
