"""Library strand protocol resolution.

Explicit configuration fixes the protocol directly. Otherwise, when inference
is requested, a bounded STAR alignment of the first reads is summarized by
RSeQC ``infer_experiment.py`` and the protocol is derived from the fraction
of reads explained by each strand rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from genoprot.constants import INFER_EXPERIMENT_SAMPLE_SIZE, STRANDEDNESS_FRACTION_THRESHOLD
from genoprot.core.pipeline_types import (
    FastqGroup,
    PipelineParameters,
    Strandedness,
    StrandednessState,
)
from genoprot.core.stage_gate import StageGate
from genoprot.exceptions import FileFormatError
from genoprot.external import rseqc, samtools, star
from genoprot.utils.logging import LogTemplates, get_logger

logger = get_logger("strandedness")

_FRACTION_LINE = re.compile(r'Fraction of reads explained by "(?P<rule>[^"]+)":\s*(?P<value>[0-9.eE+-]+)')

# Rules where read 1 (or the single read) matches the transcript strand
FORWARD_RULES = {"1++,1--,2+-,2-+", "++,--"}
REVERSE_RULES = {"1+-,1-+,2++,2--", "+-,-+"}


@dataclass(frozen=True)
class StrandednessDecision:
    state: StrandednessState
    strandedness: Strandedness
    forward_fraction: Optional[float] = None
    reverse_fraction: Optional[float] = None


def parse_infer_experiment(text: str, threshold: float = STRANDEDNESS_FRACTION_THRESHOLD) -> StrandednessDecision:
    """Derive the protocol from an ``infer_experiment.py`` summary."""
    fractions: Dict[str, float] = {}
    for match in _FRACTION_LINE.finditer(text):
        fractions[match["rule"]] = float(match["value"])

    forward = next((v for k, v in fractions.items() if k in FORWARD_RULES), None)
    reverse = next((v for k, v in fractions.items() if k in REVERSE_RULES), None)
    if forward is None or reverse is None:
        raise FileFormatError("Could not find strand fractions in infer_experiment summary")

    if forward >= threshold:
        result = Strandedness.FORWARD
    elif reverse >= threshold:
        result = Strandedness.REVERSE
    else:
        result = Strandedness.NONE
    return StrandednessDecision(StrandednessState.INFERRED, result, forward, reverse)


def explicit_decision(parameters: PipelineParameters) -> Optional[StrandednessDecision]:
    """Decision fixed by configuration alone, or None when inference is needed."""
    if parameters.strand_specific:
        return StrandednessDecision(StrandednessState.EXPLICIT_FORWARD, Strandedness.FORWARD)
    if not parameters.infer_strandedness:
        return StrandednessDecision(StrandednessState.EXPLICIT_NONE, Strandedness.NONE)
    return None


class StrandednessResolver:
    """Resolve the strand protocol of a sample, running inference when asked."""

    def __init__(
        self,
        parameters: PipelineParameters,
        gate: StageGate,
        star_index: Optional[Path] = None,
        gene_model_bed12: Optional[Path] = None,
    ):
        self.parameters = parameters
        self.gate = gate
        self.star_index = star_index
        self.gene_model_bed12 = gene_model_bed12

    def resolve(self, group: FastqGroup) -> StrandednessDecision:
        decision = explicit_decision(self.parameters)
        if decision is not None:
            logger.info(
                LogTemplates.STRANDEDNESS_EXPLICIT.format(
                    sample=group.name,
                    strandedness=decision.strandedness.value,
                    state=decision.state.value,
                )
            )
            return decision
        return self.infer(group)

    def infer(self, group: FastqGroup) -> StrandednessDecision:
        if self.star_index is None or self.gene_model_bed12 is None:
            raise ValueError("Strandedness inference needs a STAR index and a BED12 gene model")

        params = self.parameters
        workdir = params.analysis_dir / "strandedness"
        prefix = workdir / f"{group.name}.subset"
        executables = params.executables

        self.gate.run(
            star.align_reads(
                group.reads,
                self.star_index,
                Path(f"{prefix}."),
                threads=params.threads,
                read_subset=params.read_subset,
                executable=executables.get("star", "STAR"),
            )
        )
        bam = star.aligned_bam(Path(f"{prefix}."))
        self.gate.run(samtools.index_bam(bam, params.threads, executables.get("samtools", "samtools")))

        summary = workdir / f"{group.name}.infer_experiment.txt"
        sample_size = params.options_for("rseqc").get("sample_size", INFER_EXPERIMENT_SAMPLE_SIZE)
        self.gate.run(
            rseqc.infer_experiment(
                self.gene_model_bed12,
                bam,
                summary,
                sample_size=sample_size,
                executable=executables.get("infer_experiment", "infer_experiment.py"),
            )
        )

        decision = parse_infer_experiment(summary.read_text(encoding="utf-8"))
        logger.info(
            LogTemplates.STRANDEDNESS_INFERRED.format(
                sample=group.name,
                strandedness=decision.strandedness.value,
                forward=decision.forward_fraction,
                reverse=decision.reverse_fraction,
            )
        )
        return decision
