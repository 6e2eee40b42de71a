"""Fail-fast checks run before any stage of a flow starts."""

from __future__ import annotations

from typing import List

from genoprot.core.pipeline_types import (
    RNA_ONLY_FLOWS,
    ExperimentType,
    Flow,
    PipelineParameters,
)
from genoprot.exceptions import ConfigurationError
from genoprot.reference.resolver import canonical_build_name


def parameter_problems(params: PipelineParameters) -> List[str]:
    """Return every incompatibility found in *params* (empty when valid)."""
    problems: List[str] = []
    rna = params.experiment_type is ExperimentType.RNA_SEQUENCING

    if not params.fastq_groups:
        problems.append("No read files were given")
    for group in params.fastq_groups:
        if not 1 <= len(group.reads) <= 2:
            problems.append(f"Sample {group.name} must have one or two read files")
    names = [group.name for group in params.fastq_groups]
    shared = sorted({name for name in names if names.count(name) > 1})
    if shared:
        problems.append(
            f"Samples must have distinct read file names (outputs are named after them): "
            f"{', '.join(shared)}"
        )

    if params.do_isoform_analysis and not rna:
        problems.append(
            f"Isoform analysis requires RNASequencing reads, not {params.experiment_type.value}"
        )
    if params.do_fusion_analysis and not rna:
        problems.append(
            f"Fusion analysis requires RNASequencing reads, not {params.experiment_type.value}"
        )
    if params.command in RNA_ONLY_FLOWS and not rna:
        problems.append(
            f"The {params.command.value} command requires RNASequencing reads, "
            f"not {params.experiment_type.value}"
        )
    if params.infer_strandedness and not rna:
        problems.append("Strandedness inference requires RNASequencing reads")

    if params.threads < 1:
        problems.append("Threads must be >= 1")
    if params.variant_calling_workers < 1:
        problems.append("Variant calling workers must be >= 1")
    if params.group_workers < 1:
        problems.append("Group workers must be >= 1")
    if params.use_read_subset and params.read_subset < 1:
        problems.append("read_subset must be >= 1")

    needs_fusion = params.command is Flow.FUSION or (
        params.command is Flow.PROTEINS and params.do_fusion_analysis
    )
    if needs_fusion and params.star_fusion_lib_dir is None:
        problems.append("Fusion calling requires star_fusion_lib_dir (a STAR-Fusion genome library)")

    if canonical_build_name(params.reference) is None:
        if params.genome_fasta is None or params.gene_model is None:
            problems.append(
                f"Unsupported reference build {params.reference!r}: supply genome_fasta and "
                "gene_model explicitly or use GRCh37/GRCh38"
            )
        if params.command is Flow.LNCRNA:
            problems.append("lncRNA classification needs a GRCh37 or GRCh38 reference for UCSC names")
        if params.command is Flow.PROTEINS and not params.skip_variant_analysis and not params.snpeff_database:
            problems.append(
                f"No snpEff database known for {params.reference!r}; set snpeff_database "
                "or skip_variant_analysis"
            )
    return problems


def validate_parameters(params: PipelineParameters) -> None:
    """Raise ``ConfigurationError`` listing every problem in *params*."""
    problems = parameter_problems(params)
    if problems:
        raise ConfigurationError("Invalid configuration:\n  - " + "\n  - ".join(problems))
