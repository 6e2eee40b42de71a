"""snpEff ``ANN`` record interpretation.

Each ANN entry is pipe-delimited::

    Allele | Annotation | Annotation_Impact | Gene_Name | Gene_ID |
    Feature_Type | Feature_ID | Transcript_BioType | Rank |
    HGVS.c | HGVS.p | cDNA.pos / cDNA.length | CDS.pos / CDS.length |
    AA.pos / AA.length | Distance | ERRORS / WARNINGS / INFO

Effect tags and warnings are ``&``-joined lists. ``x/y`` sub-fields parse
independently, so either half may be missing.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from genoprot.exceptions import FileFormatError
from genoprot.reference.genome import open_text
from genoprot.utils.logging import get_logger

logger = get_logger("variants.annotation")

ANN_FIELD_COUNT = 16
MIN_ANN_FIELDS = 8


class ImpactTier(IntEnum):
    """Putative impact, ordered so that a larger value is more severe."""

    MODIFIER = 0
    LOW = 1
    MODERATE = 2
    HIGH = 3

    @property
    def label(self) -> str:
        return self.name


HIGH_EFFECTS = frozenset({
    "chromosome_number_variation",
    "exon_loss_variant",
    "frameshift_variant",
    "rare_amino_acid_variant",
    "splice_acceptor_variant",
    "splice_donor_variant",
    "start_lost",
    "stop_gained",
    "stop_lost",
    "transcript_ablation",
})

MODERATE_EFFECTS = frozenset({
    "3_prime_UTR_truncation",
    "exon_loss",
    "5_prime_UTR_truncation",
    "exon_loss_variant",
    "coding_sequence_variant",
    "conservative_inframe_insertion",
    "conservative_inframe_deletion",
    "disruptive_inframe_deletion",
    "disruptive_inframe_insertion",
    "inframe_deletion",
    "inframe_insertion",
    "missense_variant",
    "regulatory_region_ablation",
    "splice_region_variant",
    "TFBS_ablation",
})

LOW_EFFECTS = frozenset({
    "5_prime_UTR_premature_start_codon_gain_variant",
    "initiator_codon_variant",
    "splice_region_variant",
    "start_retained",
    "stop_retained_variant",
    "synonymous_variant",
    "sequence_feature",
})

MODIFIER_EFFECTS = frozenset({
    "3_prime_UTR_variant",
    "5_prime_UTR_variant",
    "coding_sequence_variant",
    "conserved_intergenic_variant",
    "conserved_intron_variant",
    "downstream_gene_variant",
    "exon_variant",
    "feature_elongation",
    "feature_truncation",
    "gene_variant",
    "intergenic_region",
    "intragenic_variant",
    "intron_variant",
    "mature_miRNA_variant",
    "miRNA",
    "NMD_transcript_variant",
    "non_coding_transcript_exon_variant",
    "non_coding_transcript_variant",
    "regulatory_region_amplification",
    "regulatory_region_variant",
    "TF_binding_site_variant",
    "TFBS_amplification",
    "transcript_amplification",
    "transcript_variant",
    "upstream_gene_variant",
})

NON_SYNONYMOUS_EFFECTS = frozenset({
    "exon_loss_variant",
    "frameshift_variant",
    "rare_amino_acid_variant",
    "start_lost",
    "stop_gained",
    "stop_lost",
    "conservative_inframe_insertion",
    "conservative_inframe_deletion",
    "disruptive_inframe_deletion",
    "disruptive_inframe_insertion",
    "inframe_deletion",
    "inframe_insertion",
    "missense_variant",
})

SYNONYMOUS_EFFECTS = frozenset({
    "synonymous_variant",
    "stop_retained_variant",
    "start_retained",
})

# Transcript models whose start/stop codons or length are unreliable
BAD_TRANSCRIPT_WARNINGS = frozenset({
    "WARNING_TRANSCRIPT_INCOMPLETE",
    "WARNING_TRANSCRIPT_MULTIPLE_STOP_CODONS",
    "WARNING_TRANSCRIPT_NO_STOP_CODON",
    "WARNING_TRANSCRIPT_NO_START_CODON",
})

# Tiers checked from most to least severe
SEVERITY_SETS: Tuple[Tuple[ImpactTier, frozenset], ...] = (
    (ImpactTier.HIGH, HIGH_EFFECTS),
    (ImpactTier.MODERATE, MODERATE_EFFECTS),
    (ImpactTier.LOW, LOW_EFFECTS),
    (ImpactTier.MODIFIER, MODIFIER_EFFECTS),
)

KNOWN_EFFECTS = HIGH_EFFECTS | MODERATE_EFFECTS | LOW_EFFECTS | MODIFIER_EFFECTS

WARNING_DESCRIPTIONS = {
    "ERROR_CHROMOSOME_NOT_FOUND": "Chromosome does not exist in the reference genome database",
    "ERROR_OUT_OF_CHROMOSOME_RANGE": "The variant's genomic coordinate is greater than chromosome's length",
    "WARNING_REF_DOES_NOT_MATCH_GENOME": "The reference sequence does not match the genome",
    "WARNING_SEQUENCE_NOT_AVAILABLE": "Reference sequence is not available, results may be inaccurate",
    "WARNING_TRANSCRIPT_INCOMPLETE": "Transcript's CDS length is not a multiple of three",
    "WARNING_TRANSCRIPT_MULTIPLE_STOP_CODONS": "Transcript's CDS has more than one stop codon",
    "WARNING_TRANSCRIPT_NO_START_CODON": "Transcript's CDS does not start with a start codon",
    "WARNING_TRANSCRIPT_NO_STOP_CODON": "Transcript's CDS does not end with a stop codon",
    "INFO_REALIGN_3_PRIME": "Variant was realigned to the most 3-prime position",
    "INFO_COMPOUND_ANNOTATION": "Annotation is the result of a compound variant analysis",
    "INFO_NON_REFERENCE_ANNOTATION": "Annotation computed on a non-reference allele",
}

_reported_unknown: Set[str] = set()
_reported_lock = threading.Lock()


def _report_unknown(tags: Iterable[str]) -> None:
    with _reported_lock:
        fresh = [t for t in tags if t not in _reported_unknown]
        _reported_unknown.update(fresh)
    for tag in fresh:
        logger.warning(f"Unrecognized snpEff effect tag {tag!r}; counted as MODIFIER")


def _split_tags(text: str) -> Tuple[str, ...]:
    return tuple(t for t in (part.strip() for part in text.split("&")) if t)


def _parse_int(text: str) -> Optional[int]:
    text = text.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_fraction(text: str) -> Tuple[Optional[int], Optional[int]]:
    """Parse ``"x/y"`` where either side may be missing."""
    left, _, right = text.partition("/")
    return _parse_int(left), _parse_int(right)


@dataclass(frozen=True)
class VariantEffectRecord:
    """One parsed ANN entry; immutable once created."""

    allele: str
    effects: Tuple[str, ...]
    putative_impact: str
    gene_name: str
    gene_id: str
    feature_type: str
    feature_id: str
    transcript_biotype: str
    exon_intron_rank: Optional[int]
    exon_intron_total: Optional[int]
    hgvs_c: str
    hgvs_p: str
    cdna_position: Optional[int]
    cdna_length: Optional[int]
    cds_position: Optional[int]
    cds_length: Optional[int]
    protein_position: Optional[int]
    protein_length: Optional[int]
    distance_to_feature: Optional[int]
    warnings: Tuple[str, ...]
    raw: str = field(default="", compare=False, repr=False)

    @property
    def frameshift(self) -> bool:
        return "frameshift_variant" in self.effects

    @property
    def synonymous(self) -> bool:
        if any(e in NON_SYNONYMOUS_EFFECTS for e in self.effects):
            return False
        return any(e in SYNONYMOUS_EFFECTS for e in self.effects)

    @property
    def bad_transcript(self) -> bool:
        return any(w in BAD_TRANSCRIPT_WARNINGS for w in self.warnings)

    @property
    def unknown_effects(self) -> Tuple[str, ...]:
        return tuple(e for e in self.effects if e not in KNOWN_EFFECTS)

    @property
    def impact(self) -> ImpactTier:
        return classify_impact(self)

    def describe_warnings(self) -> List[str]:
        return [WARNING_DESCRIPTIONS.get(w, w) for w in self.warnings]


def parse_annotation(line: str) -> VariantEffectRecord:
    """Parse one pipe-delimited ANN entry.

    Missing trailing fields count as empty; fewer than eight fields (up to
    the transcript biotype) is a format error.
    """
    text = line.strip()
    fields = text.split("|")
    if len(fields) < MIN_ANN_FIELDS:
        raise FileFormatError(
            f"Annotation has {len(fields)} fields, expected {ANN_FIELD_COUNT}: {text[:120]!r}"
        )
    fields = [f.strip() for f in fields] + [""] * (ANN_FIELD_COUNT - len(fields))

    rank, total = parse_fraction(fields[8])
    cdna_pos, cdna_len = parse_fraction(fields[11])
    cds_pos, cds_len = parse_fraction(fields[12])
    aa_pos, aa_len = parse_fraction(fields[13])

    return VariantEffectRecord(
        allele=fields[0],
        effects=_split_tags(fields[1]),
        putative_impact=fields[2],
        gene_name=fields[3],
        gene_id=fields[4],
        feature_type=fields[5],
        feature_id=fields[6],
        transcript_biotype=fields[7],
        exon_intron_rank=rank,
        exon_intron_total=total,
        hgvs_c=fields[9],
        hgvs_p=fields[10],
        cdna_position=cdna_pos,
        cdna_length=cdna_len,
        cds_position=cds_pos,
        cds_length=cds_len,
        protein_position=aa_pos,
        protein_length=aa_len,
        distance_to_feature=_parse_int(fields[14]),
        warnings=_split_tags(fields[15]),
        raw=text,
    )


def classify_impact(record: VariantEffectRecord) -> ImpactTier:
    """Most severe tier among the record's effect tags.

    Tags outside every severity set are reported once and contribute nothing;
    a record with no recognized tag is MODIFIER.
    """
    unknown = record.unknown_effects
    if unknown:
        _report_unknown(unknown)
    for tier, effects in SEVERITY_SETS:
        if any(e in effects for e in record.effects):
            return tier
    return ImpactTier.MODIFIER


def is_translatable(record: VariantEffectRecord) -> bool:
    """Bad-transcript records never feed protein translation."""
    return not record.bad_transcript


def select_translatable(records: Iterable[VariantEffectRecord]) -> List[VariantEffectRecord]:
    return [r for r in records if is_translatable(r)]


@dataclass(frozen=True)
class VcfSite:
    chrom: str
    pos: int
    ref: str
    alt: str


def _info_value(info: str, key: str) -> Optional[str]:
    for item in info.split(";"):
        name, sep, value = item.partition("=")
        if name == key and sep:
            return value
    return None


def iter_vcf_annotations(vcf_path: Path) -> Iterator[Tuple[VcfSite, VariantEffectRecord]]:
    """Yield every ANN entry of every record in a snpEff-annotated VCF."""
    with open_text(vcf_path) as handle:
        for lineno, line in enumerate(handle, 1):
            if line.startswith("#") or not line.strip():
                continue
            columns = line.rstrip("\n").split("\t")
            if len(columns) < 8:
                raise FileFormatError(f"{vcf_path}:{lineno}: expected at least 8 VCF columns")
            try:
                pos = int(columns[1])
            except ValueError as exc:
                raise FileFormatError(f"{vcf_path}:{lineno}: invalid position {columns[1]!r}") from exc
            site = VcfSite(columns[0], pos, columns[3], columns[4])
            ann = _info_value(columns[7], "ANN")
            if not ann:
                continue
            for entry in ann.split(","):
                if entry:
                    yield site, parse_annotation(entry)
