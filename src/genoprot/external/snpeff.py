"""snpEff variant-effect annotation."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from genoprot.external.base import StageInvocation, invocation


def annotated_vcf(vcf: Path) -> Path:
    vcf = Path(vcf)
    return vcf.with_name(f"{vcf.stem}.snpEff.vcf")


def annotate(
    vcf: Path,
    database: str,
    output_vcf: Optional[Path] = None,
    data_dir: Optional[Path] = None,
    quick_without_stats: bool = False,
    java_options: Optional[str] = None,
    executable: str = "snpEff",
) -> StageInvocation:
    """Annotate *vcf* with snpEff; the annotated VCF is captured from stdout."""
    vcf = Path(vcf)
    output_vcf = Path(output_vcf) if output_vcf else annotated_vcf(vcf)
    cmd = [executable]
    if java_options:
        cmd.append(java_options)
    cmd += ["ann", "-nodownload"]
    if data_dir:
        cmd += ["-dataDir", Path(data_dir).resolve()]
    expected = [output_vcf]
    if quick_without_stats:
        cmd.append("-noStats")
    else:
        stats = output_vcf.with_suffix(".html")
        cmd += ["-stats", stats]
        expected.append(stats)
    cmd += [database, vcf]
    return invocation(
        f"snpeff:{vcf.name}",
        cmd,
        expected,
        stdout_path=output_vcf,
        inputs=[vcf],
    )
