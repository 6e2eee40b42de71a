"""Genome FASTA helpers: contig listing and karyotypic ordering."""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from Bio import SeqIO

from genoprot.constants import KARYOTYPIC_SUFFIX
from genoprot.core.stage_gate import artifact_present
from genoprot.exceptions import FileFormatError
from genoprot.utils.download import gunzip_file
from genoprot.utils.logging import get_logger

logger = get_logger("genome")

_SEX_AND_MITO = {"X": 0, "Y": 1, "MT": 2, "M": 2}


@dataclass(frozen=True)
class ReorderedGenome:
    """Outcome of karyotypic normalization.

    ``written`` is True only when this call produced a new FASTA.
    """

    path: Path
    contigs: Tuple[str, ...]
    written: bool


def read_contig_names(genome_fasta: Path) -> List[str]:
    """Return contig ids in file order, preferring a samtools ``.fai`` index."""
    genome_fasta = Path(genome_fasta)
    fai = genome_fasta.with_name(genome_fasta.name + ".fai")
    if fai.exists() and fai.stat().st_mtime >= genome_fasta.stat().st_mtime:
        with open(fai, "r", encoding="utf-8") as handle:
            names = [line.split("\t", 1)[0] for line in handle if line.strip()]
        if names:
            return names

    names = []
    with open(genome_fasta, "r", encoding="utf-8") as handle:
        for line in handle:
            if line.startswith(">"):
                header = line[1:].strip()
                if not header:
                    raise FileFormatError(f"Empty FASTA header in {genome_fasta}")
                names.append(header.split()[0])
    return names


def karyotype_key(name: str, position: int) -> Tuple[int, int, int]:
    """Sort key: numbered chromosomes, then X, Y, MT, then the rest in file order."""
    bare = name[3:] if name.startswith("chr") else name
    if bare.isdigit():
        return (0, int(bare), position)
    if bare in _SEX_AND_MITO:
        return (1, _SEX_AND_MITO[bare], position)
    return (2, 0, position)


def karyotypic_order(names: Sequence[str]) -> List[str]:
    indexed = list(enumerate(names))
    indexed.sort(key=lambda item: karyotype_key(item[1], item[0]))
    return [name for _, name in indexed]


def is_karyotypic(names: Sequence[str]) -> bool:
    return list(names) == karyotypic_order(names)


def ensure_uncompressed(genome_fasta: Path) -> Path:
    """Return a plain-text FASTA path, decompressing ``.gz`` input next to it once."""
    genome_fasta = Path(genome_fasta)
    if genome_fasta.suffix != ".gz":
        return genome_fasta
    target = genome_fasta.with_suffix("")
    if not artifact_present(target):
        logger.info(f"Decompressing {genome_fasta.name}")
        gunzip_file(genome_fasta, target)
    return target


def normalize_karyotypic_order(genome_fasta: Path) -> ReorderedGenome:
    """Write ``<stem>.karyotypic.fa`` when the genome's contigs are out of order.

    An already karyotypic genome is returned as-is and nothing is written; an
    existing reordered file short-circuits the rewrite.
    """
    genome_fasta = Path(genome_fasta)
    reordered_path = genome_fasta.with_name(genome_fasta.stem + KARYOTYPIC_SUFFIX)

    if genome_fasta.name.endswith(KARYOTYPIC_SUFFIX):
        return ReorderedGenome(genome_fasta, tuple(read_contig_names(genome_fasta)), False)

    if artifact_present(reordered_path):
        logger.info(f"Using existing karyotypic genome {reordered_path.name}")
        return ReorderedGenome(reordered_path, tuple(read_contig_names(reordered_path)), False)

    names = read_contig_names(genome_fasta)
    if is_karyotypic(names):
        logger.debug(f"{genome_fasta.name} is already in karyotypic order")
        return ReorderedGenome(genome_fasta, tuple(names), False)

    ordered = karyotypic_order(names)
    logger.info(f"Reordering {len(ordered)} contigs of {genome_fasta.name} into karyotypic order")
    index = SeqIO.index(str(genome_fasta), "fasta")
    tmp_path = reordered_path.with_suffix(reordered_path.suffix + ".partial")
    try:
        with open(tmp_path, "w", encoding="utf-8") as out:
            SeqIO.write((index[name] for name in ordered), out, "fasta")
    finally:
        index.close()
    tmp_path.replace(reordered_path)
    return ReorderedGenome(reordered_path, tuple(ordered), True)


def open_text(path: Path):
    """Open a possibly gzip-compressed text file for reading."""
    path = Path(path)
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8")
    return open(path, "r", encoding="utf-8")
