"""Tests for sample-specific protein database assembly."""

from pathlib import Path
import sys

import pandas as pd
import pytest
from Bio import SeqIO

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from genoprot.variants.annotation import VcfSite, parse_annotation
from genoprot.variants import protein_database
from genoprot.variants.protein_database import (
    DatabaseStats,
    build_variant_proteins,
    load_reference_proteins,
    parse_protein_substitution,
    write_protein_database,
)

PROTEINS = (
    ">ENSP1.1 pep chromosome:GRCh38:1:1:66:1 gene:ENSG001.3 transcript:ENST001.2\n"
    "MKTAYIAKQRQISFVKSHFSRQ*\n"
    ">ENSP2.1 pep chromosome:GRCh38:2:1:30:1 gene:ENSG002.1 transcript:ENST002.1\n"
    "MSXNPK\n"
    ">ENSP3.1 pep chromosome:GRCh38:3:1:12:1 gene:ENSG003.1 transcript:ENST003.1\n"
    "MAGS\n"
)

SITE = VcfSite("1", 100, "A", "T")


def _record(hgvs_p, effect="missense_variant", warnings="", feature="ENST001.2"):
    return parse_annotation(
        f"T|{effect}|MODERATE|GENE1|ENSG001|transcript|{feature}|protein_coding|"
        f"1/4|c.5A>T|{hgvs_p}|5/70|5/66|2/22||{warnings}"
    )


@pytest.fixture
def protein_fasta(tmp_path):
    path = tmp_path / "pep.fa"
    path.write_text(PROTEINS)
    return path


class TestParseSubstitution:
    """HGVS protein notation."""

    @pytest.mark.parametrize(
        "hgvs, expected",
        [
            ("p.Lys34Asn", ("K", 34, "N")),
            ("p.K34N", ("K", 34, "N")),
            ("p.(Lys34Asn)", ("K", 34, "N")),
            ("p.Gln5*", ("Q", 5, "*")),
            ("p.Gln5Ter", ("Q", 5, "*")),
        ],
    )
    def test_supported(self, hgvs, expected):
        assert parse_protein_substitution(hgvs) == expected

    @pytest.mark.parametrize("hgvs", ["p.Leu2fs", "p.Lys2_Ala4del", "", "c.100A>T"])
    def test_unsupported(self, hgvs):
        assert parse_protein_substitution(hgvs) is None


class TestBuildVariantProteins:
    """Applying annotated changes to reference proteins."""

    def test_load_reference_proteins(self, protein_fasta):
        proteins = load_reference_proteins(protein_fasta)
        assert set(proteins) == {"ENST001", "ENST002", "ENST003"}
        assert proteins["ENST001"].sequence == "MKTAYIAKQRQISFVKSHFSRQ"
        assert proteins["ENST001"].gene_id == "ENSG001.3"
        assert proteins["ENST002"].is_bad

    def test_missense(self, protein_fasta):
        proteins = load_reference_proteins(protein_fasta)
        variants = build_variant_proteins([(SITE, _record("p.Lys2Asn"))], proteins, 7)

        assert len(variants) == 1
        assert variants[0].id == "ENSP1.1_K2N"
        assert str(variants[0].seq) == "MNTAYIAKQRQISFVKSHFSRQ"
        assert "impact:MODERATE" in variants[0].description

    def test_premature_stop_truncates(self, protein_fasta):
        proteins = load_reference_proteins(protein_fasta)
        variants = build_variant_proteins(
            [(SITE, _record("p.Gln11*", effect="stop_gained"))], proteins, 7
        )
        assert str(variants[0].seq) == "MKTAYIAKQR"

    def test_skips(self, protein_fasta):
        proteins = load_reference_proteins(protein_fasta)
        stats = DatabaseStats()
        annotations = [
            (SITE, _record("p.Gly2Asn")),
            (SITE, _record("p.Thr3Ala", warnings="WARNING_TRANSCRIPT_NO_STOP_CODON")),
            (SITE, _record("p.Lys2fs", effect="frameshift_variant")),
            (SITE, _record("p.Tyr5*", effect="stop_gained")),
            (SITE, _record("p.Lys2Asn", feature="ENST999.1")),
        ]

        variants = build_variant_proteins(annotations, proteins, 7, stats)

        assert variants == []
        assert stats.skipped == {
            "reference_mismatch": 1,
            "bad_transcript": 1,
            "not_substitution": 1,
            "too_short": 1,
            "no_reference_protein": 1,
        }

    def test_identical_residue_counted_as_unchanged(self, protein_fasta):
        proteins = load_reference_proteins(protein_fasta)
        stats = DatabaseStats()

        variants = build_variant_proteins([(SITE, _record("p.Lys2Lys"))], proteins, 7, stats)

        assert variants == []
        assert stats.skipped == {"unchanged": 1}

    def test_duplicate_changes_collapse(self, protein_fasta):
        proteins = load_reference_proteins(protein_fasta)
        record = _record("p.Lys2Asn")
        variants = build_variant_proteins([(SITE, record), (VcfSite("1", 100, "A", "T"), record)], proteins, 7)
        assert len(variants) == 1


class TestWriteProteinDatabase:
    """FASTA and summary output."""

    def test_writes_fasta_and_summary(self, tmp_path, protein_fasta):
        output = tmp_path / "db" / "proteins.fasta"
        summary = tmp_path / "db" / "annotations.tsv"
        annotations = [
            (SITE, _record("p.Lys2Asn")),
            (VcfSite("1", 300, "C", "G"), _record("p.Thr3Ala", warnings="WARNING_TRANSCRIPT_INCOMPLETE")),
        ]

        stats = write_protein_database(annotations, protein_fasta, output, summary, 7)

        ids = [r.id for r in SeqIO.parse(str(output), "fasta")]
        # ENSP2 has an unknown residue and ENSP3 is shorter than the minimum
        assert ids == ["ENSP1.1", "ENSP1.1_K2N"]
        assert stats.reference_proteins == 1
        assert stats.variant_proteins == 1
        assert stats.skipped["bad_reference_protein"] == 1

        table = pd.read_csv(summary, sep="\t")
        assert list(table["pos"]) == [100, 300]
        assert list(table["impact"]) == ["MODERATE", "MODERATE"]
        assert list(table["translatable"]) == [True, False]
        assert not output.with_suffix(".fasta.partial").exists()

    def test_failed_summary_leaves_no_database(self, tmp_path, protein_fasta, monkeypatch):
        def broken_table(annotations):
            raise OSError("disk full")

        monkeypatch.setattr(protein_database, "annotation_table", broken_table)
        output = tmp_path / "proteins.fasta"
        summary = tmp_path / "annotations.tsv"

        with pytest.raises(OSError):
            write_protein_database([(SITE, _record("p.Lys2Asn"))], protein_fasta, output, summary, 7)

        assert not output.exists()
        assert not summary.exists()

    def test_without_reference_proteins(self, tmp_path):
        output = tmp_path / "proteins.fasta"
        summary = tmp_path / "annotations.tsv"

        stats = write_protein_database([], None, output, summary, 7)

        assert output.exists()
        assert stats.reference_proteins == 0
        assert pd.read_csv(summary, sep="\t").empty
