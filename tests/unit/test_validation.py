"""Tests for fail-fast parameter validation."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from genoprot.config import Config, build_parameters
from genoprot.core.pipeline import Pipeline
from genoprot.core.pipeline_types import ExperimentType, FastqGroup, Flow, PipelineParameters
from genoprot.core.validation import parameter_problems, validate_parameters
from genoprot.exceptions import ConfigurationError


class NeverRunner:
    def run(self, stage):
        raise AssertionError(f"{stage.name} must not run")


def _params(tmp_path, **kwargs):
    defaults = dict(
        command=Flow.PROTEINS,
        analysis_dir=tmp_path / "out",
        data_dir=tmp_path / "data",
        reference="GRCh38",
        fastq_groups=(FastqGroup((tmp_path / "s.fq",)),),
        enable_progress=False,
    )
    defaults.update(kwargs)
    return PipelineParameters(**defaults)


class TestParameterProblems:
    """Incompatible settings."""

    def test_valid_defaults(self, tmp_path):
        assert parameter_problems(_params(tmp_path)) == []

    def test_isoforms_need_rna(self, tmp_path):
        params = _params(
            tmp_path,
            experiment_type=ExperimentType.WHOLE_GENOME_SEQUENCING,
            do_isoform_analysis=True,
        )
        problems = parameter_problems(params)
        assert any("Isoform analysis" in p for p in problems)

    @pytest.mark.parametrize("flow", [Flow.LNCRNA, Flow.FUSION, Flow.QUANTIFY, Flow.STRANDEDNESS])
    def test_rna_only_flows(self, tmp_path, flow):
        params = _params(
            tmp_path,
            command=flow,
            experiment_type=ExperimentType.EXOME_SEQUENCING,
            star_fusion_lib_dir=tmp_path,
        )
        assert any("requires RNASequencing" in p for p in parameter_problems(params))

    def test_dna_proteins_allowed(self, tmp_path):
        params = _params(tmp_path, experiment_type=ExperimentType.WHOLE_GENOME_SEQUENCING)
        assert parameter_problems(params) == []

    def test_fusion_needs_library(self, tmp_path):
        assert any("star_fusion_lib_dir" in p for p in parameter_problems(_params(tmp_path, command=Flow.FUSION)))
        assert any(
            "star_fusion_lib_dir" in p for p in parameter_problems(_params(tmp_path, do_fusion_analysis=True))
        )

    def test_unsupported_build(self, tmp_path):
        problems = parameter_problems(_params(tmp_path, reference="GRCm39"))
        assert any("Unsupported reference build" in p for p in problems)
        assert any("snpEff" in p for p in problems)

    def test_unsupported_build_with_explicit_files(self, tmp_path):
        params = _params(
            tmp_path,
            reference="GRCm39",
            genome_fasta=tmp_path / "g.fa",
            gene_model=tmp_path / "g.gtf",
            skip_variant_analysis=True,
        )
        assert parameter_problems(params) == []

    def test_samples_sharing_a_file_name(self, tmp_path):
        groups = (
            FastqGroup((tmp_path / "runA" / "sample.fastq",)),
            FastqGroup((tmp_path / "runB" / "sample.fastq",)),
            FastqGroup((tmp_path / "runB" / "other.fastq",)),
        )
        problems = parameter_problems(_params(tmp_path, command=Flow.QUANTIFY, fastq_groups=groups))
        assert problems == [
            "Samples must have distinct read file names (outputs are named after them): sample"
        ]

    def test_samples_from_config_sharing_a_file_name(self, tmp_path):
        cfg = Config(
            command="quantify",
            fastq1="runA/sample.fastq,runB/sample.fastq",
            analysis_dir=str(tmp_path / "out"),
        )
        params = build_parameters(cfg)
        assert [g.name for g in params.fastq_groups] == ["sample", "sample"]
        assert any("distinct read file names" in p for p in parameter_problems(params))

    def test_counts(self, tmp_path):
        problems = parameter_problems(_params(tmp_path, fastq_groups=(), threads=0, group_workers=0))
        assert "No read files were given" in problems
        assert "Threads must be >= 1" in problems
        assert "Group workers must be >= 1" in problems


class TestValidateBeforeRun:
    """Rejection happens before any stage starts."""

    def test_raises_with_all_problems(self, tmp_path):
        params = _params(tmp_path, threads=0, variant_calling_workers=0)
        with pytest.raises(ConfigurationError) as excinfo:
            validate_parameters(params)
        assert "Threads" in str(excinfo.value)
        assert "Variant calling workers" in str(excinfo.value)

    def test_isoforms_on_wgs_rejected_without_invocations(self, tmp_path):
        params = _params(
            tmp_path,
            experiment_type=ExperimentType.WHOLE_GENOME_SEQUENCING,
            do_isoform_analysis=True,
        )
        pipeline = Pipeline(params, runner=NeverRunner())

        with pytest.raises(ConfigurationError):
            pipeline.run()
        assert pipeline.gate.executed == []
        assert not (tmp_path / "out").exists()
