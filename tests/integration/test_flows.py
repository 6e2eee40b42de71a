"""End-to-end flow runs against a fake tool runner."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
from Bio import SeqIO

from genoprot.core.pipeline import Pipeline
from genoprot.core.pipeline_types import (
    ExperimentType,
    FastqGroup,
    Flow,
    PipelineParameters,
    ResultKeys,
    Strandedness,
)
from genoprot.core.steps.reference import prepare_reference
from genoprot.exceptions import ConfigurationError

pytestmark = pytest.mark.integration


def _params(tmp_path, reference_files, groups, **kwargs):
    genome, gene_model, proteins = reference_files
    defaults = dict(
        command=Flow.PROTEINS,
        analysis_dir=tmp_path / "analysis",
        data_dir=tmp_path / "data",
        reference="GRCh38",
        fastq_groups=groups,
        genome_fasta=genome,
        gene_model=gene_model,
        protein_fasta=proteins,
        enable_progress=False,
    )
    defaults.update(kwargs)
    return PipelineParameters(**defaults)


class TestProteinsFlow:
    """Protein database flow."""

    def test_second_run_invokes_nothing(self, tmp_path, reference_files, reads, fake_runner):
        params = _params(tmp_path, reference_files, (FastqGroup(reads),), variant_calling_workers=2)

        first = Pipeline(params, runner=fake_runner)
        results = first.run()

        names = fake_runner.names
        assert "gatk:SplitNCigarReads:sampleA_1.split.bam" in names
        assert "gatk:HaplotypeCaller:sampleA_1.part000.vcf" in names
        assert "gatk:HaplotypeCaller:sampleA_1.part001.vcf" in names
        assert names.index("gatk:MergeVcfs:sampleA_1.vcf") > names.index("gatk:HaplotypeCaller:sampleA_1.part001.vcf")
        assert names[-1] == "snpeff:sampleA_1.vcf"

        database = results[ResultKeys.PROTEIN_DATABASE]
        ids = [r.id for r in SeqIO.parse(str(database), "fasta")]
        assert ids == ["ENSP1.1", "ENSP2.1"]
        assert results[ResultKeys.STRANDEDNESS] == {"sampleA_1": "none"}
        # Contig 3 is absent from the genome
        filtered = results[ResultKeys.GENE_MODEL]
        assert filtered.name == "genes.filtered.gtf"
        assert "\n3\t" not in filtered.read_text()

        fake_runner.stages.clear()
        second = Pipeline(params, runner=fake_runner)
        second.run()

        assert fake_runner.stages == []
        assert second.gate.executed_count == 0
        assert second.gate.skipped_count > 0

    def test_deleted_artifact_reruns_only_its_stage(self, tmp_path, reference_files, reads, fake_runner):
        params = _params(tmp_path, reference_files, (FastqGroup(reads),))
        Pipeline(params, runner=fake_runner).run()
        (tmp_path / "analysis" / "variants" / "sampleA_1.snpEff.vcf").unlink()

        fake_runner.stages.clear()
        Pipeline(params, runner=fake_runner).run()

        assert fake_runner.names == ["snpeff:sampleA_1.vcf"]

    def test_overwrite_alignments(self, tmp_path, reference_files, reads, fake_runner):
        Pipeline(_params(tmp_path, reference_files, (FastqGroup(reads),)), runner=fake_runner).run()

        fake_runner.stages.clear()
        params = _params(tmp_path, reference_files, (FastqGroup(reads),), overwrite_alignments=True)
        Pipeline(params, runner=fake_runner).run()

        assert fake_runner.names == [
            "star:align:sampleA_1.",
            "samtools:index:sampleA_1.Aligned.sortedByCoord.out.bam",
        ]

    def test_dna_reads_skip_split_and_partitions(self, tmp_path, reference_files, reads, fake_runner):
        params = _params(
            tmp_path,
            reference_files,
            (FastqGroup(reads),),
            experiment_type=ExperimentType.WHOLE_GENOME_SEQUENCING,
        )
        Pipeline(params, runner=fake_runner).run()

        names = fake_runner.names
        assert not any("SplitNCigarReads" in n for n in names)
        assert "gatk:HaplotypeCaller:sampleA_1.vcf" in names
        caller = next(s for s in fake_runner.stages if s.name == "gatk:HaplotypeCaller:sampleA_1.vcf")
        assert "-L" not in caller.command
        assert "--dont-use-soft-clipped-bases" not in caller.command

    def test_skip_variant_analysis_with_isoforms(self, tmp_path, reference_files, reads, fake_runner):
        params = _params(
            tmp_path,
            reference_files,
            (FastqGroup(reads),),
            skip_variant_analysis=True,
            do_isoform_analysis=True,
        )
        results = Pipeline(params, runner=fake_runner).run()

        assert not any(n.startswith("gatk:") for n in fake_runner.names)
        assert results[ResultKeys.ISOFORM_GTF].name == "sampleA_1.isoforms.gtf"
        ids = [r.id for r in SeqIO.parse(str(results[ResultKeys.PROTEIN_DATABASE]), "fasta")]
        assert ids == ["ENSP1.1", "ENSP2.1"]


class TestQuantifyFlow:
    """RSEM quantification with inferred strandedness."""

    def test_per_sample_strandedness(self, tmp_path, reference_files, fake_runner):
        read_dir = tmp_path / "reads"
        read_dir.mkdir()
        groups = []
        for name in ("s1", "s2"):
            path = read_dir / f"{name}.fastq"
            path.write_text("@r\nACGT\n+\nIIII\n")
            groups.append(FastqGroup((path,)))

        params = _params(
            tmp_path,
            reference_files,
            tuple(groups),
            command=Flow.QUANTIFY,
            infer_strandedness=True,
            group_workers=2,
        )
        pipeline = Pipeline(params, runner=fake_runner)
        results = pipeline.run()

        assert pipeline.strandedness_by_group == {"s1": Strandedness.REVERSE, "s2": Strandedness.REVERSE}
        assert pipeline.parameters.strandedness is Strandedness.REVERSE
        assert "gtfToGenePred" in [s.command[0] for s in fake_runner.stages]

        quant = [s for s in fake_runner.stages if s.name.startswith("rsem:calculate-expression")]
        assert len(quant) == 2
        for stage in quant:
            assert stage.command[stage.command.index("--strandedness") + 1] == "reverse"

        assert set(results[ResultKeys.QUANTIFICATION]) == {"s1", "s2"}
        table = pd.read_csv(tmp_path / "analysis" / "strandedness.tsv", sep="\t")
        assert list(table["strandedness"]) == ["reverse", "reverse"]
        assert list(table["state"]) == ["Inferred", "Inferred"]

    def test_samples_with_same_file_name_rejected(self, tmp_path, reference_files, fake_runner):
        groups = []
        for run in ("runA", "runB"):
            path = tmp_path / run / "sample.fastq"
            path.parent.mkdir()
            path.write_text("@r\nACGT\n+\nIIII\n")
            groups.append(FastqGroup((path,)))

        params = _params(
            tmp_path, reference_files, tuple(groups), command=Flow.QUANTIFY, group_workers=2
        )
        with pytest.raises(ConfigurationError, match="distinct read file names"):
            Pipeline(params, runner=fake_runner).run()

        assert fake_runner.stages == []
        assert not (tmp_path / "analysis").exists()

    def test_explicit_strandedness_skips_indexing(self, tmp_path, reference_files, reads, fake_runner):
        params = _params(
            tmp_path, reference_files, (FastqGroup(reads),), command=Flow.QUANTIFY, strand_specific=True
        )
        Pipeline(params, runner=fake_runner).run()

        names = fake_runner.names
        assert "star:genomeGenerate" not in names
        quant = next(s for s in fake_runner.stages if s.name.startswith("rsem:calculate-expression"))
        assert quant.command[quant.command.index("--strandedness") + 1] == "forward"


class TestLncrnaAndFusionFlows:
    def test_lncrna_uses_ucsc_names(self, tmp_path, reference_files, reads, fake_runner):
        params = _params(tmp_path, reference_files, (FastqGroup(reads),), command=Flow.LNCRNA)
        results = Pipeline(params, runner=fake_runner).run()

        slncky_stage = next(s for s in fake_runner.stages if s.name.startswith("slncky:"))
        bed = Path(slncky_stage.command[-3])
        assert bed.name == "sampleA_1.transcripts.ucsc.bed12"
        assert bed.read_text().startswith("chr1\t0\t50\tT1")
        assert slncky_stage.command[-2] == "hg38"
        assert results[ResultKeys.LNCRNA_RESULTS]["lncs_bed"].name == "sampleA_1.transcripts.lncs.bed"

    def test_fusion(self, tmp_path, reference_files, reads, fake_runner):
        library = tmp_path / "ctat_lib"
        library.mkdir()
        params = _params(
            tmp_path, reference_files, (FastqGroup(reads),), command=Flow.FUSION, star_fusion_lib_dir=library
        )
        results = Pipeline(params, runner=fake_runner).run()

        names = fake_runner.names
        assert "gatk:CreateSequenceDictionary" not in names
        assert "star:chimeric:sampleA_1." in names
        predictions = results[ResultKeys.FUSION_PREDICTIONS]["sampleA_1"]
        assert predictions == tmp_path / "analysis" / "fusion" / "sampleA_1.star_fusion" / (
            "star-fusion.fusion_predictions.tsv"
        )


class TestPrepareReference:
    """Reference normalization ahead of indexing."""

    def test_gene_model_translated_to_genome_naming(self, tmp_path, reads, fake_runner):
        genome = tmp_path / "ucsc.fa"
        genome.write_text(">chr2\nACGT\n>chr1\nACGT\n")
        gene_model = tmp_path / "genes.gtf"
        gene_model.write_text("1\ts\texon\t1\t2\n2\ts\texon\t1\t2\nMT\ts\texon\t1\t2\n")
        params = _params(
            tmp_path, (genome, gene_model, None), (FastqGroup(reads),), command=Flow.STRANDEDNESS
        )
        pipeline = Pipeline(params, runner=fake_runner)

        prepare_reference(pipeline)

        assert pipeline.reference.genome_fasta == tmp_path / "ucsc.karyotypic.fa"
        assert pipeline.results[ResultKeys.CONTIGS] == ["chr1", "chr2"]
        filtered = pipeline.reference.gene_model
        assert filtered.name == "genes.ucsc.filtered.gtf"
        assert [line.split("\t")[0] for line in filtered.read_text().splitlines()] == ["chr1", "chr2"]

    def test_downloads_build_when_files_not_given(self, tmp_path, reads, fake_runner):
        fetched = []

        def fetch(url, destination):
            fetched.append(url)
            if destination.name.endswith(".pep.all.fa"):
                destination.write_text(">ENSP9.1 pep\nMPEPTIDESEQ\n")
            elif ".dna." in destination.name:
                destination.write_text(">1 dna\nACGT\n")
            else:
                destination.write_text("1\tensembl\texon\t1\t4\t.\t+\t.\tgene_id \"G\";\n")
            return destination

        params = PipelineParameters(
            command=Flow.PROTEINS,
            analysis_dir=tmp_path / "analysis",
            data_dir=tmp_path / "data",
            reference="grch38",
            fastq_groups=(FastqGroup(reads),),
            enable_progress=False,
        )
        pipeline = Pipeline(params, runner=fake_runner, fetch=fetch)

        prepare_reference(pipeline)

        assert len(fetched) == 4
        assert pipeline.reference.name == "GRCh38"
        assert pipeline.reference.snpeff_database == "GRCh38.86"
        assert pipeline.reference.gene_model.name == "Homo_sapiens.GRCh38.81.filtered.gtf"
        assert pipeline.reference.protein_fasta.parent == tmp_path / "data"
