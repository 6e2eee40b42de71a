"""Configuration management for genoprot."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from genoprot.constants import (
    DEFAULT_EXECUTABLES,
    DEFAULT_MIN_PEPTIDE_LENGTH,
    DEFAULT_READ_SUBSET,
    DEFAULT_SJDB_OVERHANG,
    DEFAULT_TRIM_QUALITY,
    INFER_EXPERIMENT_SAMPLE_SIZE,
)
from genoprot.core.pipeline_types import ExperimentType, FastqGroup, Flow, PipelineParameters
from genoprot.exceptions import ConfigurationError


@dataclass
class RuntimeConfig:
    """Runtime configuration."""

    log_level: str = "WARNING"
    log_file: Optional[Path] = None
    # Enable tqdm progress where available
    enable_progress: bool = True
    # List the flow's stages without running anything
    dry_run: bool = False


@dataclass
class PerformanceConfig:
    """Performance-related configuration."""

    threads: int = 1
    variant_calling_workers: int = 1
    # Samples quantified concurrently in the quantify flow
    group_workers: int = 1


@dataclass
class ToolConfig:
    """External tool configuration."""

    executables: Dict[str, str] = field(default_factory=dict)
    skewer: Dict[str, Any] = field(
        default_factory=lambda: {"quality": DEFAULT_TRIM_QUALITY, "adapters": None}
    )
    star: Dict[str, Any] = field(default_factory=lambda: {"sjdb_overhang": DEFAULT_SJDB_OVERHANG})
    gatk: Dict[str, Any] = field(
        default_factory=lambda: {"java_options": "-Xmx8g", "min_confidence": 20}
    )
    snpeff: Dict[str, Any] = field(
        default_factory=lambda: {"java_options": "-Xmx16g", "quick_without_stats": False}
    )
    rsem: Dict[str, Any] = field(default_factory=lambda: {"output_bam": False})
    stringtie: Dict[str, Any] = field(default_factory=lambda: {"min_isoform_fraction": None})
    rseqc: Dict[str, Any] = field(
        default_factory=lambda: {"sample_size": INFER_EXPERIMENT_SAMPLE_SIZE}
    )
    slncky: Dict[str, Any] = field(default_factory=lambda: {"config": None})

    def as_options(self) -> Dict[str, Dict[str, Any]]:
        return {
            "skewer": dict(self.skewer),
            "star": dict(self.star),
            "gatk": dict(self.gatk),
            "snpeff": dict(self.snpeff),
            "rsem": dict(self.rsem),
            "stringtie": dict(self.stringtie),
            "rseqc": dict(self.rseqc),
            "slncky": dict(self.slncky),
        }


_PATH_FIELDS = (
    "analysis_dir",
    "data_dir",
    "genome_fasta",
    "gene_model",
    "protein_fasta",
    "star_index_dir",
    "known_sites_vcf",
    "star_fusion_lib_dir",
)

_DIRECT_FIELDS = (
    "command",
    "reference",
    "fastq1",
    "fastq2",
    "experiment_type",
    "strand_specific",
    "infer_strandedness",
    "use_read_subset",
    "read_subset",
    "skip_variant_analysis",
    "do_isoform_analysis",
    "do_fusion_analysis",
    "overwrite_alignments",
    "min_peptide_length",
    "snpeff_database",
)


@dataclass
class Config:
    """Main configuration class."""

    command: Optional[str] = None
    reference: str = "GRCh38"
    analysis_dir: Path = Path("genoprot_output")
    data_dir: Path = Path("genoprot_data")

    # Comma-separated read lists; fastq2 pairs with fastq1 by position
    fastq1: Optional[str] = None
    fastq2: Optional[str] = None

    experiment_type: str = ExperimentType.RNA_SEQUENCING.value
    strand_specific: bool = False
    infer_strandedness: bool = False
    use_read_subset: bool = False
    read_subset: int = DEFAULT_READ_SUBSET

    # Feature flags
    skip_variant_analysis: bool = False
    do_isoform_analysis: bool = False
    do_fusion_analysis: bool = False
    overwrite_alignments: bool = False
    min_peptide_length: int = DEFAULT_MIN_PEPTIDE_LENGTH

    # Pre-supplied reference artifacts
    genome_fasta: Optional[Path] = None
    gene_model: Optional[Path] = None
    protein_fasta: Optional[Path] = None
    star_index_dir: Optional[Path] = None
    known_sites_vcf: Optional[Path] = None
    star_fusion_lib_dir: Optional[Path] = None
    snpeff_database: Optional[str] = None

    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    tools: ToolConfig = field(default_factory=ToolConfig)

    @property
    def threads(self) -> int:
        return self.performance.threads

    @threads.setter
    def threads(self, value: int):
        self.performance.threads = value

    def validate(self) -> None:
        """Validate value ranges; flow compatibility is checked by the pipeline."""
        if not self.command:
            raise ConfigurationError("A command (proteins, lncrna, fusion, quantify, strandedness) is required")
        Flow.parse(self.command)
        ExperimentType.parse(self.experiment_type)
        if not self.fastq1:
            raise ConfigurationError("At least one read file is required (fastq1)")
        if self.performance.threads < 1:
            raise ConfigurationError("Threads must be >= 1")
        if self.performance.variant_calling_workers < 1:
            raise ConfigurationError("Variant calling workers must be >= 1")
        if self.performance.group_workers < 1:
            raise ConfigurationError("Group workers must be >= 1")
        if self.read_subset < 1:
            raise ConfigurationError("read_subset must be >= 1")
        if self.min_peptide_length < 1:
            raise ConfigurationError("min_peptide_length must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""

        def path_to_str(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: path_to_str(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [path_to_str(item) for item in obj]
            return obj

        return path_to_str(asdict(self))


def build_config(data: Dict[str, Any]) -> Config:
    """Build a ``Config`` from a parsed YAML mapping."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration must be a mapping, got {type(data).__name__}")
    cfg = Config()

    known = set(_DIRECT_FIELDS) | set(_PATH_FIELDS) | {"runtime", "performance", "tools", "threads"}
    unknown = sorted(k for k in data if k not in known)
    if unknown:
        raise ConfigurationError("Unsupported config option(s): " + ", ".join(unknown))

    for key in _DIRECT_FIELDS:
        if key in data and data[key] is not None:
            setattr(cfg, key, data[key])
    for key in _PATH_FIELDS:
        if key in data and data[key] is not None:
            setattr(cfg, key, Path(data[key]))
    if data.get("threads") is not None:
        cfg.performance.threads = data["threads"]

    for key, value in (data.get("runtime") or {}).items():
        if hasattr(cfg.runtime, key):
            if key == "log_file" and value:
                value = Path(value)
            setattr(cfg.runtime, key, value)

    for key, value in (data.get("performance") or {}).items():
        if hasattr(cfg.performance, key):
            setattr(cfg.performance, key, value)

    for tool, params in (data.get("tools") or {}).items():
        if not hasattr(cfg.tools, tool):
            raise ConfigurationError(f"Unknown tool section: tools.{tool}")
        if params is None:
            continue
        if not isinstance(params, dict):
            raise ConfigurationError(f"tools.{tool} must be a mapping")
        getattr(cfg.tools, tool).update(params)

    return cfg


def load_config(path: Path) -> Config:
    """Load configuration from YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return build_config(data)


def save_config(cfg: Config, path: Path) -> None:
    """Save configuration to YAML file."""
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(cfg.to_dict(), f, default_flow_style=False, sort_keys=False)


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in str(value).split(",") if item.strip())


def separate_fastqs(fastq1: Optional[str], fastq2: Optional[str] = None) -> Tuple[FastqGroup, ...]:
    """Split comma-separated read lists into per-sample groups.

    Each fastq1 entry is one sample; when fastq2 is given it must list the
    mates in the same order.
    """
    first = _split_list(fastq1)
    second = _split_list(fastq2)
    if second and len(first) != len(second):
        raise ConfigurationError(
            f"Mismatched paired read lists: {len(first)} fastq1 file(s) vs {len(second)} fastq2 file(s)"
        )
    if second:
        return tuple(FastqGroup((Path(a), Path(b))) for a, b in zip(first, second))
    return tuple(FastqGroup((Path(a),)) for a in first)


def build_parameters(cfg: Config) -> PipelineParameters:
    """Freeze a validated ``Config`` into the run's ``PipelineParameters``."""
    executables = dict(DEFAULT_EXECUTABLES)
    executables.update(cfg.tools.executables or {})
    return PipelineParameters(
        command=Flow.parse(cfg.command),
        analysis_dir=Path(cfg.analysis_dir),
        data_dir=Path(cfg.data_dir),
        reference=str(cfg.reference),
        fastq_groups=separate_fastqs(cfg.fastq1, cfg.fastq2),
        experiment_type=ExperimentType.parse(cfg.experiment_type),
        strand_specific=bool(cfg.strand_specific),
        infer_strandedness=bool(cfg.infer_strandedness),
        threads=int(cfg.performance.threads),
        variant_calling_workers=int(cfg.performance.variant_calling_workers),
        group_workers=int(cfg.performance.group_workers),
        skip_variant_analysis=bool(cfg.skip_variant_analysis),
        do_isoform_analysis=bool(cfg.do_isoform_analysis),
        do_fusion_analysis=bool(cfg.do_fusion_analysis),
        overwrite_alignments=bool(cfg.overwrite_alignments),
        use_read_subset=bool(cfg.use_read_subset),
        read_subset=int(cfg.read_subset),
        min_peptide_length=int(cfg.min_peptide_length),
        genome_fasta=cfg.genome_fasta,
        gene_model=cfg.gene_model,
        protein_fasta=cfg.protein_fasta,
        star_index_dir=cfg.star_index_dir,
        known_sites_vcf=cfg.known_sites_vcf,
        star_fusion_lib_dir=cfg.star_fusion_lib_dir,
        snpeff_database=cfg.snpeff_database,
        enable_progress=bool(cfg.runtime.enable_progress),
        dry_run=bool(cfg.runtime.dry_run),
        executables=executables,
        tool_options=cfg.tools.as_options(),
    )
