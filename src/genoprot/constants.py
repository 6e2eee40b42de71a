"""Unified constants for genoprot.

Reference build layout, default tool settings and canonical file suffixes
shared across the reference, external and core packages.
"""

# ================== Reference Builds ==================
# Ensembl releases pinned per build; file names below follow Ensembl FTP layout.

GRCH37: str = "GRCh37"
GRCH38: str = "GRCh38"
SUPPORTED_BUILDS: tuple = (GRCH37, GRCH38)

ENSEMBL_FTP: str = "http://ftp.ensembl.org/pub"

ENSEMBL_RELEASES: dict = {
    GRCH37: 75,
    GRCH38: 81,
}

# GRCh37 release 75 ships no GFF3; the GTF doubles as the GFF3 entry.
ENSEMBL_FILES: dict = {
    GRCH37: {
        "genome_fasta": "Homo_sapiens.GRCh37.75.dna.primary_assembly.fa",
        "gtf_gene_model": "Homo_sapiens.GRCh37.75.gtf",
        "gff3_gene_model": None,
        "protein_fasta": "Homo_sapiens.GRCh37.75.pep.all.fa",
    },
    GRCH38: {
        "genome_fasta": "Homo_sapiens.GRCh38.dna.primary_assembly.fa",
        "gtf_gene_model": "Homo_sapiens.GRCh38.81.gtf",
        "gff3_gene_model": "Homo_sapiens.GRCh38.81.gff3",
        "protein_fasta": "Homo_sapiens.GRCh38.pep.all.fa",
    },
}

# Sub-directory of a release holding each artifact kind
ENSEMBL_DIRECTORIES: dict = {
    "genome_fasta": "fasta/homo_sapiens/dna",
    "gtf_gene_model": "gtf/homo_sapiens",
    "gff3_gene_model": "gff3/homo_sapiens",
    "protein_fasta": "fasta/homo_sapiens/pep",
}

SNPEFF_DATABASES: dict = {
    GRCH37: "GRCh37.75",
    GRCH38: "GRCh38.86",
}

# UCSC assembly names understood by slncky
UCSC_ASSEMBLIES: dict = {
    GRCH37: "hg19",
    GRCH38: "hg38",
}


# ================== Experiment / Reads ==================

DEFAULT_READ_SUBSET: int = 300000
DEFAULT_MIN_PEPTIDE_LENGTH: int = 7
DEFAULT_TRIM_QUALITY: int = 19
DEFAULT_SJDB_OVERHANG: int = 100

# RSeQC infer_experiment sampling and decision threshold
INFER_EXPERIMENT_SAMPLE_SIZE: int = 200000
STRANDEDNESS_FRACTION_THRESHOLD: float = 0.8

FASTQ_SUFFIXES: tuple = (".fastq", ".fq")
COMPRESSED_SUFFIXES: tuple = (".gz", ".bz2")


# ================== Artifact Suffixes ==================

KARYOTYPIC_SUFFIX: str = ".karyotypic.fa"
FILTERED_TAG: str = ".filtered"
STAR_ALIGNED_BAM: str = "Aligned.sortedByCoord.out.bam"
STAR_CHIMERIC_JUNCTION: str = "Chimeric.out.junction"
STAR_INDEX_FILES: tuple = ("SA", "SAindex", "Genome")
RSEM_ISOFORM_RESULTS: str = ".isoforms.results"
RSEM_GENE_RESULTS: str = ".genes.results"
STAR_FUSION_PREDICTIONS: str = "star-fusion.fusion_predictions.tsv"
SLNCKY_LNCS_BED: str = ".lncs.bed"
SLNCKY_LNCS_INFO: str = ".lncs.info.txt"


# ================== Executables ==================
# Default executable names; overridable per tool through the `tools` config section.

DEFAULT_EXECUTABLES: dict = {
    "skewer": "skewer",
    "star": "STAR",
    "samtools": "samtools",
    "gatk": "gatk",
    "snpeff": "snpEff",
    "stringtie": "stringtie",
    "slncky": "slncky.v1.0",
    "star_fusion": "STAR-Fusion",
    "rsem_prepare": "rsem-prepare-reference",
    "rsem_calculate": "rsem-calculate-expression",
    "infer_experiment": "infer_experiment.py",
    "gtf_to_genepred": "gtfToGenePred",
    "gff3_to_genepred": "gff3ToGenePred",
    "genepred_to_bed": "genePredToBed",
    "sort": "sort",
}
