"""Step executors for reference preparation and indexing."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from genoprot.constants import SNPEFF_DATABASES
from genoprot.core.pipeline_types import Flow, ReferenceBuild, ResultKeys
from genoprot.core.stage_gate import artifact_present
from genoprot.exceptions import ConfigurationError
from genoprot.external import gatk, samtools, star, ucsc_tools
from genoprot.reference.chromosome_mapping import (
    MappingDirection,
    looks_like_ucsc,
    translate_leading_column,
)
from genoprot.reference.genome import ensure_uncompressed, normalize_karyotypic_order, open_text
from genoprot.reference.resolver import canonical_build_name, filter_gene_model, resolve

if TYPE_CHECKING:
    from genoprot.core.pipeline import Pipeline


def _explicit_reference(pipeline: Pipeline) -> ReferenceBuild:
    params = pipeline.parameters
    name = canonical_build_name(params.reference) or params.reference
    gene_model = Path(params.gene_model)
    is_gff = gene_model.name.replace(".gz", "").endswith((".gff", ".gff3"))
    return ReferenceBuild(
        name=name,
        genome_fasta=Path(params.genome_fasta),
        gtf_gene_model=None if is_gff else gene_model,
        gff3_gene_model=gene_model if is_gff else None,
        protein_fasta=params.protein_fasta,
        snpeff_database=SNPEFF_DATABASES.get(name),
    )


def _first_contig(gene_model: Path) -> Optional[str]:
    with open_text(gene_model) as handle:
        for line in handle:
            if line.startswith("#") or not line.strip():
                continue
            return line.split("\t", 1)[0]
    return None


def _harmonize_contig_names(pipeline: Pipeline, gene_model: Path, genome_contigs) -> Path:
    """Translate the gene model into the genome's naming when the two disagree."""
    build = canonical_build_name(pipeline.reference.name)
    first = _first_contig(gene_model)
    if build is None or first is None or not genome_contigs:
        return gene_model

    genome_ucsc = looks_like_ucsc(genome_contigs[0])
    if looks_like_ucsc(first) == genome_ucsc:
        return gene_model

    direction = MappingDirection.ENSEMBL_TO_UCSC if genome_ucsc else MappingDirection.UCSC_TO_ENSEMBL
    translated = gene_model.with_name(f"{gene_model.stem}.{direction.output_tag}{gene_model.suffix}")
    if artifact_present(translated):
        return translated
    pipeline.logger.info(f"Translating {gene_model.name} contig names ({direction.value})")
    return translate_leading_column(gene_model, build, direction, translated)


def prepare_reference(pipeline: Pipeline) -> None:
    """Step 1: Resolve the reference build and normalize its files."""
    params = pipeline.parameters

    if params.genome_fasta is not None and params.gene_model is not None:
        reference = _explicit_reference(pipeline)
    else:
        reference = resolve(params.reference, params.data_dir, download=True, fetch=pipeline.fetch)
        if not reference.is_valid:
            raise ConfigurationError(
                f"Reference build {params.reference!r} could not be resolved; "
                "supply genome_fasta and gene_model"
            )
        if params.protein_fasta is not None:
            reference = replace(reference, protein_fasta=params.protein_fasta)

    if params.snpeff_database:
        reference = replace(reference, snpeff_database=params.snpeff_database)
    pipeline.reference = reference

    genome = ensure_uncompressed(reference.genome_fasta)
    reordered = normalize_karyotypic_order(genome)
    if reordered.written:
        pipeline.logger.info(f"Wrote karyotypic genome {reordered.path}")

    gene_model = ensure_uncompressed(reference.gene_model)
    gene_model = _harmonize_contig_names(pipeline, gene_model, reordered.contigs)
    filtered = filter_gene_model(gene_model, contigs=reordered.contigs)

    protein_fasta = reference.protein_fasta
    if protein_fasta is not None:
        protein_fasta = ensure_uncompressed(protein_fasta)

    is_gff = filtered.suffix.startswith(".gff")
    pipeline.reference = replace(
        reference,
        genome_fasta=reordered.path,
        gtf_gene_model=None if is_gff else filtered,
        gff3_gene_model=filtered if is_gff else None,
        protein_fasta=protein_fasta,
    )

    pipeline._set_result(ResultKeys.GENOME_FASTA, reordered.path)
    pipeline._set_result(ResultKeys.GENE_MODEL, filtered)
    pipeline._set_result(ResultKeys.CONTIGS, list(reordered.contigs))
    pipeline.logger.info(
        f"Reference {pipeline.reference.name}: {reordered.path.name}, "
        f"{len(reordered.contigs)} contigs, gene model {filtered.name}"
    )


def star_index_dir(pipeline: Pipeline) -> Path:
    """Configured STAR index, or one derived from the genome and gene model names."""
    params = pipeline.parameters
    if params.star_index_dir is not None:
        return Path(params.star_index_dir)
    genome = pipeline.reference.genome_fasta
    gene_model = pipeline.reference.gene_model
    return params.data_dir / "star_index" / f"{genome.stem}_{gene_model.stem}"


def index_reference(pipeline: Pipeline) -> None:
    """Step 2: Build genome indices needed by the flow."""
    params = pipeline.parameters
    genome = pipeline.reference.genome_fasta
    gene_model = pipeline.reference.gene_model
    gate = pipeline.gate

    gate.run(samtools.faidx(genome, pipeline.executable("samtools")))
    pipeline._set_result(ResultKeys.GENOME_INDEX, Path(f"{genome}.fai"))

    if params.command is Flow.PROTEINS and not params.skip_variant_analysis:
        gatk_opts = params.options_for("gatk")
        stage = gatk.create_sequence_dictionary(
            genome, pipeline.executable("gatk"), gatk_opts.get("java_options")
        )
        gate.run(stage)
        pipeline._set_result(ResultKeys.SEQUENCE_DICTIONARY, stage.expected_outputs[0])

    index_dir = star_index_dir(pipeline)
    gate.run(
        star.generate_genome_index(
            genome,
            gene_model,
            index_dir,
            threads=params.threads,
            sjdb_overhang=params.options_for("star").get("sjdb_overhang", 100),
            executable=pipeline.executable("star"),
        )
    )
    pipeline._set_result(ResultKeys.STAR_INDEX, index_dir)

    if params.infer_strandedness and not params.strand_specific:
        bed12 = ucsc_tools.bed12_path(gene_model)
        for stage in ucsc_tools.gene_model_to_bed12(gene_model, bed12, dict(params.executables)):
            gate.run(stage)
        pipeline._set_result(ResultKeys.GENE_MODEL_BED12, bed12)
