"""Shared pipeline types.

This module intentionally contains only lightweight enums, dataclasses and
constants so it can be imported by configuration, step definitions and tool
builders without pulling in the pipeline implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from genoprot.constants import (
    COMPRESSED_SUFFIXES,
    DEFAULT_MIN_PEPTIDE_LENGTH,
    DEFAULT_READ_SUBSET,
    FASTQ_SUFFIXES,
)
from genoprot.exceptions import ConfigurationError


class ExperimentType(str, Enum):
    """Kind of sequencing experiment the reads come from."""

    RNA_SEQUENCING = "RNASequencing"
    WHOLE_GENOME_SEQUENCING = "WholeGenomeSequencing"
    EXOME_SEQUENCING = "ExomeSequencing"

    @classmethod
    def parse(cls, value: Any) -> "ExperimentType":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        choices = ", ".join(m.value for m in cls)
        raise ConfigurationError(
            f"Unrecognized experiment type: {value!r}. Choose one of: {choices}"
        )


class Strandedness(str, Enum):
    """Library strand protocol, in RSEM vocabulary."""

    NONE = "none"
    FORWARD = "forward"
    REVERSE = "reverse"


class StrandednessState(str, Enum):
    UNSPECIFIED = "Unspecified"
    EXPLICIT_FORWARD = "ExplicitForward"
    EXPLICIT_NONE = "ExplicitNone"
    INFERRED = "Inferred"


class Flow(str, Enum):
    """Top-level commands, each mapped to a step list."""

    PROTEINS = "proteins"
    LNCRNA = "lncrna"
    FUSION = "fusion"
    QUANTIFY = "quantify"
    STRANDEDNESS = "strandedness"

    @classmethod
    def parse(cls, value: Any) -> "Flow":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        choices = ", ".join(m.value for m in cls)
        raise ConfigurationError(f"Unrecognized command: {value!r}. Choose one of: {choices}")


# Flows that only make sense for RNA-sequencing reads
RNA_ONLY_FLOWS = (Flow.LNCRNA, Flow.FUSION, Flow.QUANTIFY, Flow.STRANDEDNESS)


class ResultKeys:
    """Canonical keys for pipeline step results to avoid typos.

    Per-sample keys hold dicts keyed by ``FastqGroup.name``.
    """

    GENOME_FASTA = "genome_fasta"
    GENE_MODEL = "gene_model"
    GENE_MODEL_BED12 = "gene_model_bed12"
    CONTIGS = "contigs"
    GENOME_INDEX = "genome_index"
    SEQUENCE_DICTIONARY = "sequence_dictionary"
    STAR_INDEX = "star_index"
    TRIMMED_READS = "trimmed_reads"
    ALIGNED_BAMS = "aligned_bams"
    STRANDEDNESS = "strandedness"
    VARIANT_VCFS = "variant_vcfs"
    ANNOTATED_VCFS = "annotated_vcfs"
    PROTEIN_DATABASE = "protein_database"
    ANNOTATION_SUMMARY = "annotation_summary"
    ISOFORM_GTF = "isoform_gtf"
    ASSEMBLED_TRANSCRIPTS = "assembled_transcripts"
    LNCRNA_RESULTS = "lncrna_results"
    CHIMERIC_JUNCTIONS = "chimeric_junctions"
    FUSION_PREDICTIONS = "fusion_predictions"
    RSEM_REFERENCE = "rsem_reference"
    QUANTIFICATION = "quantification"


@dataclass(frozen=True)
class ReferenceBuild:
    """Resolved reference paths for one genome build.

    ``is_valid`` is False when the build name is not recognized; callers
    surface that as a configuration error before any coordinate-reading
    stage runs.
    """

    name: str
    genome_fasta: Optional[Path] = None
    gtf_gene_model: Optional[Path] = None
    gff3_gene_model: Optional[Path] = None
    protein_fasta: Optional[Path] = None
    snpeff_database: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.genome_fasta is not None and self.gene_model is not None

    @property
    def gene_model(self) -> Optional[Path]:
        return self.gtf_gene_model or self.gff3_gene_model


def fastq_basename(path: Path) -> str:
    """Return a read file name stripped of compression and fastq suffixes."""
    name = Path(path).name
    for suffix in COMPRESSED_SUFFIXES:
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    for suffix in FASTQ_SUFFIXES:
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    return name


@dataclass(frozen=True)
class FastqGroup:
    """One sample: a single-end read file or a mate pair."""

    reads: Tuple[Path, ...]

    @property
    def name(self) -> str:
        return fastq_basename(self.reads[0])

    @property
    def paired(self) -> bool:
        return len(self.reads) == 2


@dataclass(frozen=True)
class PipelineParameters:
    """Configuration snapshot for one run.

    Built once from ``Config``; the resolved strandedness is filled in with
    ``dataclasses.replace`` and the result stays frozen.
    """

    command: Flow
    analysis_dir: Path
    data_dir: Path
    reference: str
    fastq_groups: Tuple[FastqGroup, ...] = ()
    experiment_type: ExperimentType = ExperimentType.RNA_SEQUENCING
    strand_specific: bool = False
    infer_strandedness: bool = False
    strandedness: Strandedness = Strandedness.NONE
    strandedness_state: StrandednessState = StrandednessState.UNSPECIFIED
    threads: int = 1
    variant_calling_workers: int = 1
    group_workers: int = 1
    skip_variant_analysis: bool = False
    do_isoform_analysis: bool = False
    do_fusion_analysis: bool = False
    overwrite_alignments: bool = False
    use_read_subset: bool = False
    read_subset: int = DEFAULT_READ_SUBSET
    min_peptide_length: int = DEFAULT_MIN_PEPTIDE_LENGTH
    genome_fasta: Optional[Path] = None
    gene_model: Optional[Path] = None
    protein_fasta: Optional[Path] = None
    star_index_dir: Optional[Path] = None
    known_sites_vcf: Optional[Path] = None
    star_fusion_lib_dir: Optional[Path] = None
    snpeff_database: Optional[str] = None
    enable_progress: bool = True
    dry_run: bool = False
    executables: Mapping[str, str] = field(default_factory=dict)
    tool_options: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def options_for(self, tool: str) -> Dict[str, Any]:
        return dict(self.tool_options.get(tool) or {})


@dataclass
class PipelineStep:
    """Represents a pipeline step.

    ``skip_condition`` names a parameter that disables the step when true;
    ``run_condition`` names one that must be true for the step to run.
    """

    name: str
    description: str
    display_name: Optional[str] = None
    required: bool = True
    skip_condition: Optional[str] = None
    run_condition: Optional[str] = None

    def is_enabled(self, parameters: PipelineParameters) -> bool:
        if self.skip_condition and getattr(parameters, self.skip_condition, False):
            return False
        if self.run_condition and not getattr(parameters, self.run_condition, False):
            return False
        return True
