"""Unit tests for CLI commands."""

from pathlib import Path
import sys
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from genoprot import __version__
from genoprot.cli import cli, main
from genoprot.cli.exit_codes import EXIT_ERROR, EXIT_SUCCESS, EXIT_USAGE
from genoprot.cli.pipeline import apply_overrides
from genoprot.config import Config


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_help_lists_flows(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("proteins", "lncrna", "fusion", "quantify", "strandedness", "show-steps"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_main_returns_exit_codes(self):
        assert main(["--help"]) == EXIT_SUCCESS
        assert main(["no-such-command"]) == EXIT_USAGE


class TestInitConfig:
    """Test init-config."""

    def test_stdout(self):
        result = CliRunner().invoke(cli, ["init-config", "--stdout"])
        assert result.exit_code == 0
        assert "command:" in result.output
        assert "variant_calling_workers" in result.output

    def test_refuses_to_overwrite(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            first = runner.invoke(cli, ["init-config"])
            assert first.exit_code == 0
            assert Path("genoprot.yaml").exists()

            second = runner.invoke(cli, ["init-config"])
            assert second.exit_code != 0
            assert "already exists" in second.output

            forced = runner.invoke(cli, ["init-config", "--force"])
            assert forced.exit_code == 0


class TestShowSteps:
    def test_show_steps_respects_config(self, tmp_path):
        config = tmp_path / "c.yaml"
        config.write_text(yaml.safe_dump({"do_isoform_analysis": True, "fastq1": "s.fq"}))

        result = CliRunner().invoke(cli, ["show-steps", "proteins", "-c", str(config)])

        assert result.exit_code == 0
        assert "○ Step  9: assemble_isoforms" in result.output

    def test_unknown_flow(self):
        result = CliRunner().invoke(cli, ["show-steps", "assembly"])
        assert result.exit_code == 2


class TestFlowCommands:
    """Flow commands up to the point where tools would run."""

    def test_dry_run(self, tmp_path):
        reads = tmp_path / "s.fq"
        reads.write_text("@r\nA\n+\nI\n")
        out = tmp_path / "out"

        result = CliRunner().invoke(
            cli, ["quantify", "--fastq1", str(reads), "-o", str(out), "--dry-run"]
        )

        assert result.exit_code == 0, result.output
        assert "quantify_expression" in result.output
        assert not out.exists()

    def test_incompatible_settings_exit_with_error(self, tmp_path):
        result = CliRunner().invoke(
            cli,
            [
                "proteins",
                "--fastq1", str(tmp_path / "s.fq"),
                "-e", "WholeGenomeSequencing",
                "--isoforms",
                "-o", str(tmp_path / "out"),
            ],
        )
        assert result.exit_code == EXIT_ERROR
        assert "Isoform analysis requires RNASequencing" in result.output
        assert not (tmp_path / "out").exists()

    def test_missing_reads(self, tmp_path):
        result = CliRunner().invoke(cli, ["lncrna", "-o", str(tmp_path / "out")])
        assert result.exit_code == EXIT_ERROR
        assert "fastq1" in result.output


class TestApplyOverrides:
    def test_cli_overrides_config(self):
        cfg = Config(command="proteins", reference="GRCh37")
        apply_overrides(
            cfg,
            {"reference": None, "threads": 4, "read_subset": 1000, "strand_specific": False, "fastq1": "a.fq"},
        )
        assert cfg.reference == "GRCh37"
        assert cfg.performance.threads == 4
        assert cfg.read_subset == 1000
        assert cfg.use_read_subset is True
        assert cfg.strand_specific is False
        assert cfg.fastq1 == "a.fq"


class TestValidateCommand:
    def test_valid_config(self, tmp_path):
        config = tmp_path / "c.yaml"
        config.write_text(yaml.safe_dump({"command": "lncrna", "fastq1": "s.fq"}))
        result = CliRunner().invoke(cli, ["validate", "-c", str(config)])
        assert result.exit_code == 0, result.output
        assert "All checks passed" in result.output

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "c.yaml"
        config.write_text(
            yaml.safe_dump({"command": "fusion", "fastq1": "s.fq", "experiment_type": "ExomeSequencing"})
        )
        result = CliRunner().invoke(cli, ["validate", "-c", str(config)])
        assert result.exit_code == EXIT_ERROR
        assert "requires RNASequencing" in result.output
        assert "star_fusion_lib_dir" in result.output

    @patch("shutil.which", return_value=None)
    def test_full_reports_missing_tools(self, _mock_which, tmp_path):
        config = tmp_path / "c.yaml"
        config.write_text(yaml.safe_dump({"command": "quantify", "fastq1": "s.fq"}))
        result = CliRunner().invoke(cli, ["validate", "-c", str(config), "--full"])
        assert result.exit_code == EXIT_ERROR
        assert "rsem-calculate-expression" in result.output
