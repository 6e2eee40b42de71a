"""Canonical Ensembl reference paths per build, fetched only when missing."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from genoprot.constants import (
    ENSEMBL_DIRECTORIES,
    ENSEMBL_FILES,
    ENSEMBL_FTP,
    ENSEMBL_RELEASES,
    FILTERED_TAG,
    SNPEFF_DATABASES,
    SUPPORTED_BUILDS,
)
from genoprot.core.pipeline_types import ReferenceBuild
from genoprot.core.stage_gate import artifact_present
from genoprot.reference.genome import read_contig_names
from genoprot.utils.download import download_and_gunzip
from genoprot.utils.logging import LogTemplates, get_logger

logger = get_logger("reference")

Fetcher = Callable[[str, Path], Path]


def canonical_build_name(build: str) -> Optional[str]:
    """Match *build* case-insensitively against the supported builds."""
    text = str(build or "").strip().lower()
    for name in SUPPORTED_BUILDS:
        if name.lower() == text:
            return name
    return None


def ensembl_url(build: str, kind: str) -> Optional[str]:
    filename = ENSEMBL_FILES[build][kind]
    if filename is None:
        return None
    release = ENSEMBL_RELEASES[build]
    return f"{ENSEMBL_FTP}/release-{release}/{ENSEMBL_DIRECTORIES[kind]}/{filename}.gz"


def reference_paths(build: str, target_directory: Path) -> Dict[str, Optional[Path]]:
    """Return the canonical local path of each reference artifact for *build*.

    GRCh37 has no GFF3 release, so its GFF3 entry points at the GTF.
    """
    paths: Dict[str, Optional[Path]] = {}
    for kind, filename in ENSEMBL_FILES[build].items():
        paths[kind] = Path(target_directory) / filename if filename else None
    if paths["gff3_gene_model"] is None:
        paths["gff3_gene_model"] = paths["gtf_gene_model"]
    return paths


def resolve(
    build: str,
    target_directory: Path,
    download: bool = True,
    fetch: Fetcher = download_and_gunzip,
) -> ReferenceBuild:
    """Resolve *build* to local reference paths, fetching missing files.

    An unrecognized build yields an invalid ``ReferenceBuild`` (all paths
    unset); validation turns that into a configuration error downstream.
    """
    name = canonical_build_name(build)
    if name is None:
        logger.warning(f"Unrecognized reference build {build!r}; no reference files resolved")
        return ReferenceBuild(name=str(build))

    target_directory = Path(target_directory)
    paths = reference_paths(name, target_directory)

    if download:
        target_directory.mkdir(parents=True, exist_ok=True)
        for kind in ENSEMBL_FILES[name]:
            url = ensembl_url(name, kind)
            destination = paths[kind]
            if url is None or destination is None:
                continue
            if artifact_present(destination):
                logger.debug(f"Reference file present: {destination.name}")
                continue
            fetch(url, destination)

    return ReferenceBuild(
        name=name,
        genome_fasta=paths["genome_fasta"],
        gtf_gene_model=paths["gtf_gene_model"],
        gff3_gene_model=paths["gff3_gene_model"],
        protein_fasta=paths["protein_fasta"],
        snpeff_database=SNPEFF_DATABASES[name],
    )


def filtered_gene_model_path(gene_model: Path) -> Path:
    gene_model = Path(gene_model)
    return gene_model.with_name(f"{gene_model.stem}{FILTERED_TAG}{gene_model.suffix}")


def filter_gene_model(
    gene_model: Path,
    genome_fasta: Optional[Path] = None,
    output_path: Optional[Path] = None,
    contigs: Optional[Iterable[str]] = None,
) -> Path:
    """Keep gene-model records on contigs present in the genome, plus comments.

    Skipped when the filtered file already exists and is non-empty.
    """
    gene_model = Path(gene_model)
    output_path = Path(output_path) if output_path else filtered_gene_model_path(gene_model)
    if artifact_present(output_path):
        logger.info(f"Using existing filtered gene model {output_path.name}")
        return output_path

    if contigs is None:
        if genome_fasta is None:
            raise ValueError("filter_gene_model needs either genome_fasta or contigs")
        contigs = read_contig_names(genome_fasta)
    known = set(contigs)

    kept = removed = 0
    tmp_path = output_path.with_suffix(output_path.suffix + ".partial")
    with open(gene_model, "r", encoding="utf-8") as src, open(tmp_path, "w", encoding="utf-8") as out:
        for line in src:
            if line.startswith("#") or line.split("\t", 1)[0] in known:
                out.write(line)
                kept += 1
            elif line.strip():
                removed += 1
    tmp_path.replace(output_path)

    logger.info(LogTemplates.FILTERING_STATS.format(kept=kept, removed=removed))
    return output_path
