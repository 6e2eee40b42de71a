"""CLI runs of whole flows with external tools replaced by a fake runner."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from genoprot.cli import cli

pytestmark = pytest.mark.integration


def _invoke(args, fake_runner):
    with patch("genoprot.core.pipeline.ToolRunner", lambda **kwargs: fake_runner):
        return CliRunner().invoke(cli, args)


def test_proteins_command_runs_and_saves_config(tmp_path, reference_files, reads, fake_runner):
    genome, gene_model, proteins = reference_files
    out = tmp_path / "analysis"
    args = [
        "proteins",
        "--fastq1", str(reads[0]),
        "--fastq2", str(reads[1]),
        "--genome-fasta", str(genome),
        "--gene-model", str(gene_model),
        "--protein-fasta", str(proteins),
        "-o", str(out),
        "-d", str(tmp_path / "data"),
        "--variant-calling-workers", "2",
    ]

    result = _invoke(args, fake_runner)

    assert result.exit_code == 0, result.output
    assert "sampleA_1: strandedness none" in result.output
    assert "sample_specific_proteins.fasta" in result.output
    saved = yaml.safe_load((out / "proteins.config.yaml").read_text())
    assert saved["command"] == "proteins"
    assert saved["performance"]["variant_calling_workers"] == 2
    assert saved["fastq2"] == str(reads[1])

    fake_runner.stages.clear()
    again = _invoke(["proteins", "-c", str(out / "proteins.config.yaml")], fake_runner)
    assert again.exit_code == 0, again.output
    assert fake_runner.stages == []
    assert "0 stage(s) run" in again.output


def test_strandedness_command_infers(tmp_path, reference_files, reads, fake_runner):
    genome, gene_model, _ = reference_files
    args = [
        "strandedness",
        "--fastq1", str(reads[0]),
        "--fastq2", str(reads[1]),
        "--genome-fasta", str(genome),
        "--gene-model", str(gene_model),
        "-o", str(tmp_path / "analysis"),
        "-d", str(tmp_path / "data"),
    ]

    result = _invoke(args, fake_runner)

    assert result.exit_code == 0, result.output
    assert "sampleA_1: strandedness reverse" in result.output
    assert any(s.command[0] == "infer_experiment.py" for s in fake_runner.stages)
    assert not any(s.command[0] == "skewer" for s in fake_runner.stages)
