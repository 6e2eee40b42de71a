"""Sample-specific protein database assembly from annotated variants.

Reference proteins come from the Ensembl ``pep.all`` FASTA; single amino-acid
substitutions and premature stops reported by snpEff on translatable
transcripts are applied to the matching reference protein.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord
from Bio.SeqUtils import seq1

from genoprot.reference.genome import open_text
from genoprot.utils.logging import LogTemplates, get_logger
from genoprot.variants.annotation import VariantEffectRecord, VcfSite, classify_impact, is_translatable

logger = get_logger("variants.protein_database")

# p.Lys34Asn, p.K34N, p.(Lys34Asn), p.Gln5* / p.Gln5Ter
_HGVS_SUBSTITUTION = re.compile(
    r"^p\.\(?(?P<ref>[A-Z][a-z]{2}|[A-Z*])(?P<pos>\d+)(?P<alt>[A-Z][a-z]{2}|[A-Z*])\)?$"
)
_BAD_RESIDUES = ("X", "*")


def strip_version(accession: str) -> str:
    return accession.split(".", 1)[0]


@dataclass(frozen=True)
class ReferenceProtein:
    accession: str
    transcript_id: Optional[str]
    gene_id: Optional[str]
    sequence: str
    description: str = ""

    @property
    def is_bad(self) -> bool:
        """Contains an unknown residue or an internal stop."""
        return any(r in self.sequence for r in _BAD_RESIDUES)


def _header_value(description: str, key: str) -> Optional[str]:
    for token in description.split():
        if token.startswith(key + ":"):
            return token[len(key) + 1:]
    return None


def load_reference_proteins(protein_fasta: Path) -> Dict[str, ReferenceProtein]:
    """Index reference proteins by versionless transcript id (or accession)."""
    proteins: Dict[str, ReferenceProtein] = {}
    with open_text(protein_fasta) as handle:
        for record in SeqIO.parse(handle, "fasta"):
            transcript = _header_value(record.description, "transcript")
            protein = ReferenceProtein(
                accession=record.id,
                transcript_id=transcript,
                gene_id=_header_value(record.description, "gene"),
                sequence=str(record.seq).rstrip("*"),
                description=record.description,
            )
            key = strip_version(transcript) if transcript else strip_version(record.id)
            proteins[key] = protein
    logger.info(LogTemplates.FILE_LOADED.format(count=len(proteins), path=protein_fasta))
    return proteins


def parse_protein_substitution(hgvs_p: str) -> Optional[Tuple[str, int, str]]:
    """Return (reference residue, 1-based position, alternate residue) in one-letter code."""
    match = _HGVS_SUBSTITUTION.match(hgvs_p.strip())
    if not match:
        return None

    def one_letter(code: str) -> str:
        if code in ("*", "Ter"):
            return "*"
        return code if len(code) == 1 else seq1(code)

    return one_letter(match["ref"]), int(match["pos"]), one_letter(match["alt"])


@dataclass
class DatabaseStats:
    variant_proteins: int = 0
    reference_proteins: int = 0
    skipped: Dict[str, int] = field(default_factory=dict)

    def skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1


def apply_variant(
    record: VariantEffectRecord,
    protein: ReferenceProtein,
    min_peptide_length: int,
    stats: DatabaseStats,
) -> Optional[SeqRecord]:
    if not is_translatable(record):
        stats.skip("bad_transcript")
        return None
    if record.frameshift or record.synonymous:
        stats.skip("not_substitution")
        return None
    change = parse_protein_substitution(record.hgvs_p)
    if change is None:
        stats.skip("unsupported_hgvs")
        return None
    ref, pos, alt = change
    sequence = protein.sequence
    if pos > len(sequence) or sequence[pos - 1] != ref:
        stats.skip("reference_mismatch")
        return None

    if alt == "*":
        variant_sequence = sequence[: pos - 1]
    else:
        variant_sequence = sequence[: pos - 1] + alt + sequence[pos:]
    if variant_sequence == sequence:
        stats.skip("unchanged")
        return None
    if len(variant_sequence) < min_peptide_length:
        stats.skip("too_short")
        return None

    short = f"{ref}{pos}{alt}"
    return SeqRecord(
        Seq(variant_sequence),
        id=f"{protein.accession}_{short}",
        description=(
            f"gene:{record.gene_id} gene_symbol:{record.gene_name} "
            f"transcript:{record.feature_id} variant:{record.hgvs_p} "
            f"impact:{classify_impact(record).label}"
        ),
    )


def build_variant_proteins(
    annotations: Iterable[Tuple[VcfSite, VariantEffectRecord]],
    proteins: Dict[str, ReferenceProtein],
    min_peptide_length: int,
    stats: Optional[DatabaseStats] = None,
) -> List[SeqRecord]:
    """One variant protein per distinct (transcript, protein change)."""
    stats = stats or DatabaseStats()
    seen = set()
    variants: List[SeqRecord] = []
    for _site, record in annotations:
        if not record.hgvs_p or not record.feature_id:
            continue
        key = (strip_version(record.feature_id), record.hgvs_p)
        if key in seen:
            continue
        seen.add(key)
        protein = proteins.get(key[0])
        if protein is None:
            stats.skip("no_reference_protein")
            continue
        variant = apply_variant(record, protein, min_peptide_length, stats)
        if variant is not None:
            variants.append(variant)
    stats.variant_proteins = len(variants)
    return variants


def annotation_table(annotations: Sequence[Tuple[VcfSite, VariantEffectRecord]]) -> pd.DataFrame:
    rows = []
    for site, record in annotations:
        rows.append(
            {
                "chrom": site.chrom,
                "pos": site.pos,
                "ref": site.ref,
                "alt": site.alt,
                "allele": record.allele,
                "gene_name": record.gene_name,
                "feature_id": record.feature_id,
                "effects": "&".join(record.effects),
                "impact": classify_impact(record).label,
                "hgvs_p": record.hgvs_p,
                "synonymous": record.synonymous,
                "frameshift": record.frameshift,
                "bad_transcript": record.bad_transcript,
                "translatable": is_translatable(record),
                "unknown_effects": "&".join(record.unknown_effects),
                "warnings": "; ".join(record.describe_warnings()),
            }
        )
    columns = [
        "chrom", "pos", "ref", "alt", "allele", "gene_name", "feature_id", "effects",
        "impact", "hgvs_p", "synonymous", "frameshift", "bad_transcript", "translatable",
        "unknown_effects", "warnings",
    ]
    return pd.DataFrame(rows, columns=columns)


def write_protein_database(
    annotations: Sequence[Tuple[VcfSite, VariantEffectRecord]],
    protein_fasta: Optional[Path],
    output_fasta: Path,
    summary_tsv: Path,
    min_peptide_length: int,
) -> DatabaseStats:
    """Write reference plus variant proteins to FASTA and the annotation summary to TSV."""
    stats = DatabaseStats()
    proteins = load_reference_proteins(protein_fasta) if protein_fasta else {}

    records: List[SeqRecord] = []
    for protein in proteins.values():
        if protein.is_bad:
            stats.skip("bad_reference_protein")
            continue
        if len(protein.sequence) < min_peptide_length:
            continue
        records.append(SeqRecord(Seq(protein.sequence), id=protein.accession, description=protein.description))
    stats.reference_proteins = len(records)

    records.extend(build_variant_proteins(annotations, proteins, min_peptide_length, stats))

    output_fasta.parent.mkdir(parents=True, exist_ok=True)
    tmp_fasta = output_fasta.with_suffix(output_fasta.suffix + ".partial")
    with open(tmp_fasta, "w", encoding="utf-8") as handle:
        SeqIO.write(records, handle, "fasta")
    tmp_tsv = summary_tsv.with_suffix(summary_tsv.suffix + ".partial")
    annotation_table(annotations).to_csv(tmp_tsv, sep="\t", index=False)
    tmp_tsv.replace(summary_tsv)
    tmp_fasta.replace(output_fasta)

    logger.info(
        f"Protein database {output_fasta.name}: {stats.reference_proteins} reference, "
        f"{stats.variant_proteins} variant proteins"
    )
    if stats.skipped:
        logger.debug(f"Skipped annotations: {stats.skipped}")
    return stats
