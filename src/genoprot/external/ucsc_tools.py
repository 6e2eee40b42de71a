"""UCSC genePred utilities: GTF/GFF3 to BED12 conversion."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from genoprot.external.base import StageInvocation, invocation


def bed12_path(gene_model: Path) -> Path:
    gene_model = Path(gene_model)
    return gene_model.with_name(f"{gene_model.stem}.bed12")


def gene_model_to_bed12(
    gene_model: Path,
    output_bed: Optional[Path] = None,
    executables: Optional[Dict[str, str]] = None,
) -> List[StageInvocation]:
    """gtfToGenePred (or gff3ToGenePred), genePredToBed, then a coordinate sort."""
    executables = executables or {}
    gene_model = Path(gene_model)
    output_bed = Path(output_bed) if output_bed else bed12_path(gene_model)
    gene_pred = output_bed.with_suffix(".genePred")
    unsorted = output_bed.with_suffix(".unsorted.bed")

    if gene_model.suffix.startswith(".gff"):
        to_gene_pred = [executables.get("gff3_to_genepred", "gff3ToGenePred"), gene_model, gene_pred]
    else:
        to_gene_pred = [executables.get("gtf_to_genepred", "gtfToGenePred"), gene_model, gene_pred]

    return [
        invocation(f"genePred:{gene_model.name}", to_gene_pred, [gene_pred], inputs=[gene_model]),
        invocation(
            f"genePredToBed:{gene_pred.name}",
            [executables.get("genepred_to_bed", "genePredToBed"), gene_pred, unsorted],
            [unsorted],
            inputs=[gene_pred],
        ),
        invocation(
            f"sort:{output_bed.name}",
            [executables.get("sort", "sort"), "-k1,1", "-k2,2n", unsorted],
            [output_bed],
            stdout_path=output_bed,
            inputs=[unsorted],
        ),
    ]
