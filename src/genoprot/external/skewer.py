"""skewer adapter/quality trimming."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple

from genoprot.constants import DEFAULT_TRIM_QUALITY
from genoprot.core.pipeline_types import fastq_basename
from genoprot.external.base import StageInvocation, invocation


def trimmed_reads(reads: Sequence[Path], output_dir: Path) -> Tuple[Path, ...]:
    """Paths skewer writes for *reads* when run with ``-o <output_dir>/<basename>``."""
    base = Path(output_dir) / fastq_basename(reads[0])
    if len(reads) == 2:
        return (
            Path(f"{base}-trimmed-pair1.fastq"),
            Path(f"{base}-trimmed-pair2.fastq"),
        )
    return (Path(f"{base}-trimmed.fastq"),)


def trim_reads(
    reads: Sequence[Path],
    output_dir: Path,
    threads: int = 1,
    quality: int = DEFAULT_TRIM_QUALITY,
    adapters: Optional[Path] = None,
    executable: str = "skewer",
) -> StageInvocation:
    if not 1 <= len(reads) <= 2:
        raise ValueError(f"skewer takes one or two read files, got {len(reads)}")
    base = Path(output_dir) / fastq_basename(reads[0])
    cmd = [executable, "-q", quality, "-o", base, "-t", threads]
    if adapters:
        cmd += ["-x", adapters]
    cmd += list(reads)
    return invocation(
        f"skewer:{fastq_basename(reads[0])}",
        cmd,
        trimmed_reads(reads, output_dir),
        inputs=reads,
    )
