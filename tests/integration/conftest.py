"""Shared fixtures for flow-level tests: a tiny reference and a fake tool runner."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from genoprot.external.base import StageInvocation


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: end-to-end flow tests using a fake tool runner"
    )


GENOME = ">1 dna:chromosome\n" + "ACGT" * 25 + "\n>2 dna:chromosome\n" + "TTGCA" * 20 + "\n"

GENE_MODEL = (
    "#!genome-build GRCh38\n"
    '1\tensembl\texon\t1\t50\t.\t+\t.\tgene_id "G1"; transcript_id "T1";\n'
    '2\tensembl\texon\t10\t60\t.\t-\t.\tgene_id "G2"; transcript_id "T2";\n'
    '3\tensembl\texon\t1\t20\t.\t+\t.\tgene_id "G3"; transcript_id "T3";\n'
)

PROTEINS = (
    ">ENSP1.1 pep chromosome:GRCh38:1:1:50:1 gene:G1.1 transcript:T1.1\n"
    "MKTAYIAKQRQISFVKSHFSRQ\n"
    ">ENSP2.1 pep chromosome:GRCh38:2:10:60:-1 gene:G2.1 transcript:T2.1\n"
    "MSTNPKPQRKTKRNTNRRPQDV\n"
)


class FakeRunner:
    """Stands in for ToolRunner: records each stage and writes its outputs."""

    def __init__(self, genome: Path):
        self.genome = genome
        self.stages: List[StageInvocation] = []

    def _content(self, path: Path) -> str:
        if path.name.endswith(".fai"):
            names = [
                line[1:].split()[0]
                for line in self.genome.read_text().splitlines()
                if line.startswith(">")
            ]
            return "".join(f"{name}\t100\t0\t100\t101\n" for name in names)
        if path.suffix == ".vcf":
            return "##fileformat=VCFv4.2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n"
        if path.suffix == ".bed12":
            return "1\t0\t50\tT1\t0\t+\t0\t50\t0\t1\t50,\t0,\n"
        if path.name.endswith(".infer_experiment.txt"):
            return (
                "This is PairEnd Data\n"
                'Fraction of reads failed to determine: 0.0100\n'
                'Fraction of reads explained by "1++,1--,2+-,2-+": 0.0200\n'
                'Fraction of reads explained by "1+-,1-+,2++,2--": 0.9700\n'
            )
        return "fake\n"

    def run(self, stage: StageInvocation):
        self.stages.append(stage)
        for output in stage.expected_outputs:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(self._content(output))
        return "", ""

    @property
    def names(self) -> List[str]:
        return [s.name for s in self.stages]


@pytest.fixture
def reference_files(tmp_path):
    ref_dir = tmp_path / "ref"
    ref_dir.mkdir()
    genome = ref_dir / "genome.fa"
    genome.write_text(GENOME)
    gene_model = ref_dir / "genes.gtf"
    gene_model.write_text(GENE_MODEL)
    proteins = ref_dir / "proteins.fa"
    proteins.write_text(PROTEINS)
    return genome, gene_model, proteins


@pytest.fixture
def reads(tmp_path):
    read_dir = tmp_path / "reads"
    read_dir.mkdir()
    first = read_dir / "sampleA_1.fastq"
    second = read_dir / "sampleA_2.fastq"
    for path in (first, second):
        path.write_text("@r1\nACGT\n+\nIIII\n")
    return first, second


@pytest.fixture
def fake_runner(reference_files):
    return FakeRunner(reference_files[0])
