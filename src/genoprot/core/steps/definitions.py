"""Canonical step ordering and user-facing metadata for each flow."""

from __future__ import annotations

from typing import Dict, List

from genoprot.core.pipeline_types import Flow, PipelineStep


def _prepare_reference() -> PipelineStep:
    return PipelineStep(
        "prepare_reference",
        "Resolve reference files, order contigs and filter the gene model",
    )


def _trim_reads() -> PipelineStep:
    return PipelineStep("trim_reads", "Trim adapters and low-quality bases (skewer)")


PROTEIN_STEPS: List[PipelineStep] = [
    _prepare_reference(),
    PipelineStep("index_reference", "Index the genome (faidx, sequence dictionary, STAR)"),
    _trim_reads(),
    PipelineStep("align_reads", "Align reads to the genome (STAR)"),
    PipelineStep("resolve_strandedness", "Resolve the library strand protocol"),
    PipelineStep(
        "call_variants",
        "Call variants per sample (gatk HaplotypeCaller)",
        skip_condition="skip_variant_analysis",
    ),
    PipelineStep(
        "annotate_variants",
        "Annotate variant effects (snpEff)",
        skip_condition="skip_variant_analysis",
    ),
    PipelineStep("build_protein_database", "Write the sample-specific protein database"),
    PipelineStep(
        "assemble_isoforms",
        "Reference-guided isoform assembly (stringtie)",
        run_condition="do_isoform_analysis",
    ),
    PipelineStep(
        "fusion_align",
        "Chimeric alignment for fusion detection (STAR)",
        run_condition="do_fusion_analysis",
    ),
    PipelineStep(
        "call_fusions",
        "Call gene fusions (STAR-Fusion)",
        run_condition="do_fusion_analysis",
    ),
]

LNCRNA_STEPS: List[PipelineStep] = [
    _prepare_reference(),
    PipelineStep("index_reference", "Index the genome (faidx, STAR)"),
    _trim_reads(),
    PipelineStep("align_reads", "Align reads to the genome (STAR)"),
    PipelineStep("resolve_strandedness", "Resolve the library strand protocol"),
    PipelineStep("assemble_transcripts", "Assemble transcripts (stringtie)"),
    PipelineStep(
        "classify_lncrnas",
        "Convert transcripts to UCSC BED12 and classify lncRNAs (slncky)",
    ),
]

FUSION_STEPS: List[PipelineStep] = [
    _prepare_reference(),
    PipelineStep("index_reference", "Index the genome (faidx, STAR)"),
    _trim_reads(),
    PipelineStep("fusion_align", "Chimeric alignment for fusion detection (STAR)"),
    PipelineStep("call_fusions", "Call gene fusions (STAR-Fusion)"),
]

QUANTIFY_STEPS: List[PipelineStep] = [
    _prepare_reference(),
    PipelineStep(
        "index_reference",
        "Index the genome for strandedness inference (faidx, STAR)",
        run_condition="infer_strandedness",
    ),
    _trim_reads(),
    PipelineStep("resolve_strandedness", "Resolve the library strand protocol per sample"),
    PipelineStep(
        "prepare_quantification_reference",
        "Prepare the RSEM reference (rsem-prepare-reference)",
    ),
    PipelineStep(
        "quantify_expression",
        "Quantify transcript and gene expression per sample (RSEM)",
    ),
]

STRANDEDNESS_STEPS: List[PipelineStep] = [
    _prepare_reference(),
    PipelineStep("index_reference", "Index the genome (faidx, STAR)"),
    PipelineStep("resolve_strandedness", "Infer the library strand protocol (RSeQC)"),
]

FLOW_STEPS: Dict[Flow, List[PipelineStep]] = {
    Flow.PROTEINS: PROTEIN_STEPS,
    Flow.LNCRNA: LNCRNA_STEPS,
    Flow.FUSION: FUSION_STEPS,
    Flow.QUANTIFY: QUANTIFY_STEPS,
    Flow.STRANDEDNESS: STRANDEDNESS_STEPS,
}


def steps_for(flow: Flow) -> List[PipelineStep]:
    return FLOW_STEPS[Flow.parse(flow)]
