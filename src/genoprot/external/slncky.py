"""slncky lncRNA classification.

slncky resolves annotations by UCSC assembly name, so its BED input must use
UCSC contig names.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from genoprot.constants import SLNCKY_LNCS_BED, SLNCKY_LNCS_INFO
from genoprot.external.base import StageInvocation, invocation


def classify(
    transcripts_bed12: Path,
    assembly: str,
    output_prefix: Path,
    threads: int = 1,
    config: Optional[Path] = None,
    executable: str = "slncky.v1.0",
) -> StageInvocation:
    output_prefix = Path(output_prefix)
    cmd = [executable, "--threads", threads, "--overwrite"]
    if config:
        cmd += ["--config", config]
    cmd += [transcripts_bed12, assembly, output_prefix]
    return invocation(
        f"slncky:{output_prefix.name}",
        cmd,
        [Path(f"{output_prefix}{SLNCKY_LNCS_BED}"), Path(f"{output_prefix}{SLNCKY_LNCS_INFO}")],
        inputs=[transcripts_bed12],
    )
