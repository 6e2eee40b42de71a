"""Tests for the subprocess-backed ToolRunner."""

from pathlib import Path
import subprocess
import sys
from unittest.mock import MagicMock, patch

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from genoprot.exceptions import ExternalToolError
from genoprot.core.stage_gate import should_run
from genoprot.external.base import ToolRunner, invocation


class TestStageInvocation:
    def test_stringified(self, tmp_path):
        stage = invocation("t", ["tool", 3, tmp_path], [str(tmp_path / "o.txt")], stdout_path=tmp_path / "o.txt")
        assert stage.command == ("tool", "3", str(tmp_path))
        assert stage.expected_outputs == (tmp_path / "o.txt",)
        assert stage.executable == "tool"
        assert stage.command_line().endswith(f"> {tmp_path / 'o.txt'}")

    def test_inputs_ignored_in_equality(self):
        a = invocation("t", ["tool"], inputs=[Path("a")])
        b = invocation("t", ["tool"], inputs=[Path("b")])
        assert a == b


class TestToolRunner:
    @patch("subprocess.run")
    def test_run_success(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(stdout="ok", stderr="")
        stage = invocation("t", ["tool", "-x"], [tmp_path / "sub" / "o.txt"])

        stdout, stderr = ToolRunner().run(stage)

        assert stdout == "ok"
        assert (tmp_path / "sub").is_dir()
        args, kwargs = mock_run.call_args
        assert args[0] == ["tool", "-x"]
        assert kwargs["check"] is True

    @patch("subprocess.run")
    def test_stdout_redirect(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(stdout=None, stderr="")
        target = tmp_path / "out.vcf"
        stage = invocation("t", ["tool"], [target], stdout_path=target)

        stdout, _ = ToolRunner().run(stage)

        assert stdout == ""
        assert str(mock_run.call_args.kwargs["stdout"].name) == str(target) + ".partial"
        assert target.exists()
        assert not (tmp_path / "out.vcf.partial").exists()

    @patch("subprocess.run")
    def test_failed_redirect_leaves_no_output(self, mock_run, tmp_path):
        def annotate_then_fail(cmd, stdout=None, **kwargs):
            stdout.write("##fileformat=VCFv4.2\n")
            raise subprocess.CalledProcessError(3, cmd, stderr="java.lang.OutOfMemoryError")

        mock_run.side_effect = annotate_then_fail
        target = tmp_path / "sample.snpEff.vcf"
        stage = invocation("snpeff:sample.vcf", ["snpEff", "ann"], [target], stdout_path=target)

        with pytest.raises(ExternalToolError):
            ToolRunner().run(stage)

        assert not target.exists()
        assert not (tmp_path / "sample.snpEff.vcf.partial").exists()
        assert should_run([target])

    @patch("subprocess.run")
    def test_timed_out_redirect_leaves_no_output(self, mock_run, tmp_path):
        def sort_then_time_out(cmd, stdout=None, **kwargs):
            stdout.write("1\t0\t10\n")
            raise subprocess.TimeoutExpired(cmd, 5)

        mock_run.side_effect = sort_then_time_out
        target = tmp_path / "genes.bed12"

        with pytest.raises(ExternalToolError, match="timed out"):
            ToolRunner(timeout=5).run(invocation("sort", ["sort"], [target], stdout_path=target))
        assert should_run([target])

    @patch("subprocess.run")
    def test_failure(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(2, ["tool"], stderr="boom")
        with pytest.raises(ExternalToolError) as excinfo:
            ToolRunner().run(invocation("t", ["tool"]))
        assert excinfo.value.returncode == 2
        assert excinfo.value.stderr == "boom"
        assert isinstance(excinfo.value.__cause__, subprocess.CalledProcessError)

    def test_stderr_tail(self):
        error = ExternalToolError("t failed", stderr="".join(f"line {i}\n" for i in range(50)))
        assert error.stderr_tail(2) == "line 48\nline 49"
        assert ExternalToolError("t failed").stderr_tail() == ""

    @patch("subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["tool"], 5)
        with pytest.raises(ExternalToolError, match="timed out"):
            ToolRunner(timeout=5).run(invocation("t", ["tool"]))

    @patch("subprocess.run")
    def test_missing_executable(self, mock_run):
        mock_run.side_effect = FileNotFoundError("tool")
        with pytest.raises(ExternalToolError) as excinfo:
            ToolRunner().run(invocation("t", ["tool"]))
        assert excinfo.value.returncode == -1
