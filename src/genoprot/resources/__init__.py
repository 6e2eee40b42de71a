"""Resource files and configuration templates."""

from __future__ import annotations

from importlib import resources


def mapping_table_text(filename: str) -> str:
    """Return the content of a packaged chromosome mapping table."""
    table = resources.files(__name__).joinpath("chromosome_mappings", filename)
    return table.read_text(encoding="utf-8")


def get_default_config() -> str:
    """Return default configuration YAML content."""
    return """# genoprot configuration file

# Flow to run: proteins | lncrna | fusion | quantify | strandedness
command: "proteins"

# Reference build (GRCh37 or GRCh38); other names require genome_fasta and gene_model
reference: "GRCh38"
analysis_dir: "genoprot_output"
# Downloaded references, indices and derived reference artifacts
data_dir: "genoprot_data"

# Reads: comma-separated, one entry per sample; fastq2 pairs with fastq1 by position
fastq1: ~
fastq2: ~

# RNASequencing | WholeGenomeSequencing | ExomeSequencing
experiment_type: "RNASequencing"
strand_specific: false
infer_strandedness: false
use_read_subset: false
read_subset: 300000

# Feature toggles
skip_variant_analysis: false
do_isoform_analysis: false
do_fusion_analysis: false
overwrite_alignments: false
min_peptide_length: 7

# Pre-supplied reference artifacts (optional)
genome_fasta: ~
gene_model: ~
protein_fasta: ~
star_index_dir: ~
known_sites_vcf: ~
star_fusion_lib_dir: ~
snpeff_database: ~

# Runtime settings
runtime:
  log_level: "WARNING"
  log_file: ~
  enable_progress: true
  dry_run: false

# Performance settings
performance:
  threads: 1
  variant_calling_workers: 1
  group_workers: 1

# External tool parameters
tools:
  executables: {}
  skewer:
    quality: 19
    adapters: ~
  star:
    sjdb_overhang: 100
  gatk:
    java_options: "-Xmx8g"
    min_confidence: 20
  snpeff:
    java_options: "-Xmx16g"
    quick_without_stats: false
  rsem:
    output_bam: false
  stringtie:
    min_isoform_fraction: ~
  rseqc:
    sample_size: 200000
  slncky:
    config: ~
"""
